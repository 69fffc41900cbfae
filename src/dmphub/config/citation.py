"""Configuration for DOI citation lookups."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .storage import StorageConfig, get_storage_config

DEFAULT_DOI_RESOLVER_URL: Final[str] = "https://doi.org/"
CSL_JSON_MEDIA_TYPE: Final[str] = "application/vnd.citationstyles.csl+json"


@dataclass(frozen=True, slots=True)
class CitationConfig:
    resilience: ResilienceConfig


def get_citation_config(*, storage: StorageConfig | None = None) -> CitationConfig:
    storage_config = storage or get_storage_config()
    headers = {"Accept": CSL_JSON_MEDIA_TYPE}
    mailto = os.getenv("DMPHUB_CITATION_MAILTO")
    if mailto:
        headers["User-Agent"] = f"dmphub (mailto:{mailto.strip()})"

    resilience = ResilienceConfig(
        name="doi",
        base_url=DEFAULT_DOI_RESOLVER_URL,
        timeout_seconds=15.0,
        follow_redirects=True,
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        retry=RetryPolicy(total=3),
        cache=CacheConfig(
            enabled=True,
            backend="sqlite",
            sqlite_path=str(storage_config.http_cache_path()),
            default_ttl_seconds=7 * 24 * 3600,
        ),
        default_headers=headers,
    )
    return CitationConfig(resilience=resilience)
