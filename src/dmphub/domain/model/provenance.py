from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class Provenance:
    """An external system or human actor that writes to the registry.

    ``owner_capable`` provenances may create records (and so own them). ``seeding_mode``
    lets a provenance register records under identifiers it minted itself.
    """

    key: str
    name: str | None = None
    homepage: str | None = None
    callback_uri: str | None = None
    owner_capable: bool = True
    seeding_mode: bool = False
