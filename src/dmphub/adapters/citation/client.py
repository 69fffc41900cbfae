"""DOI citation lookups through content negotiation."""

from __future__ import annotations

import asyncio
import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx

from dmphub.adapters.http_resilience import ResilientClient

from .schema import CslItem
from .translator import render_citation

if TYPE_CHECKING:
    from collections.abc import Callable

    from dmphub.config.citation import CitationConfig
    from dmphub.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

DOI_REGEX: Final[re.Pattern[str]] = re.compile(r"10\.\d{4,}(?:\.\d+)*/[^\s?#]+")


def doi_path(doi: str) -> str | None:
    """The ``10.x/y`` part of a DOI in any of its written forms."""

    match = DOI_REGEX.search(doi)
    return match.group(0) if match else None


class DoiCitationClient:
    """Fetches CSL-JSON for a DOI and renders it as a citation string."""

    def __init__(
        self,
        *,
        config: CitationConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def __call__(self, doi: str, *, work_type: str) -> str | None:
        return self.fetch_citation(doi, work_type=work_type)

    def fetch_citation(self, doi: str, *, work_type: str | None = None) -> str | None:
        path = doi_path(doi)
        if path is None:
            log.debug("Not fetching a citation for non-DOI %s", doi)
            return None
        return asyncio.run(self._fetch_citation_async(path, work_type=work_type))

    async def _fetch_citation_async(self, path: str, *, work_type: str | None) -> str | None:
        async with self._client_factory(self._resilience) as client:
            try:
                response = await client.get(path)
                response.raise_for_status()
                item = CslItem.model_validate(response.json())
            except (httpx.HTTPError, ValueError):
                log.warning("Unable to fetch citation metadata for %s", path, exc_info=True)
                return None

        base_url = self._resilience.base_url or "https://doi.org/"
        return render_citation(item, doi_url=f"{base_url}{path}", work_type=work_type)
