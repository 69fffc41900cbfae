"""Identifier minting and versioning settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .env import env_seconds, optional_env_var, require_env_vars

DEFAULT_DMP_ID_BASE_URL: Final[str] = "https://doi.org/"
DEFAULT_API_BASE_URL: Final[str] = "https://api.dmphub.example.org/"
DEFAULT_VERSION_WINDOW: Final[timedelta] = timedelta(hours=1)


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """Settings for the record registry.

    ``dmp_id_shoulder`` is the DOI prefix and shoulder new identifiers are minted under
    (for example ``10.48321/D1``). ``version_window`` is the coalescing window inside which
    consecutive owner edits overwrite ``latest`` without taking a snapshot.
    """

    dmp_id_shoulder: str
    dmp_id_base_url: str = DEFAULT_DMP_ID_BASE_URL
    api_base_url: str = DEFAULT_API_BASE_URL
    version_window: timedelta = DEFAULT_VERSION_WINDOW


def get_registry_config() -> RegistryConfig:
    values = require_env_vars(("DMP_ID_SHOULDER",))
    window = env_seconds(
        "DMPHUB_VERSION_WINDOW_SECONDS", DEFAULT_VERSION_WINDOW.total_seconds()
    )
    return RegistryConfig(
        dmp_id_shoulder=values["DMP_ID_SHOULDER"],
        dmp_id_base_url=_with_trailing_slash(
            optional_env_var("DMP_ID_BASE_URL", DEFAULT_DMP_ID_BASE_URL)
        ),
        api_base_url=_with_trailing_slash(
            optional_env_var("DMP_API_BASE_URL", DEFAULT_API_BASE_URL)
        ),
        version_window=timedelta(seconds=window),
    )


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"
