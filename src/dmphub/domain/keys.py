"""Key layout for records and provenances in the item store.

Records live under ``DMP#<identifier>`` partitions, provenance profiles under
``PROVENANCE#<key>``. Version keys share the ``VERSION#`` prefix so a prefix scan over one
partition returns the latest state, every snapshot and the tombstone.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Final

from dmphub.domain.errors import ValidationFailed

RECORD_PREFIX: Final[str] = "DMP#"
PROVENANCE_PREFIX: Final[str] = "PROVENANCE#"
PROVENANCE_PROFILE: Final[str] = "PROFILE"
VERSION_PREFIX: Final[str] = "VERSION#"
LATEST: Final[str] = f"{VERSION_PREFIX}latest"
TOMBSTONE: Final[str] = f"{VERSION_PREFIX}tombstone"

_DOI_BODY = re.compile(r"10\.\d{4,}(?:\.\d+)*/\S+$", re.I)
_SCHEME = re.compile(r"^(?:https?://|doi:)", re.I)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with second precision, the form used for version keys."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(microsecond=0).isoformat()


def parse_timestamp(value: str) -> datetime:
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValidationFailed(f"Invalid timestamp: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def snapshot_key(modified: datetime) -> str:
    return f"{VERSION_PREFIX}{format_timestamp(modified)}"


def version_key(version: str | None) -> str:
    """Resolve a caller-supplied version (``latest``, ``tombstone``, timestamp) to a key."""

    if version is None or not version.strip():
        return LATEST
    value = version.strip()
    if value.startswith(VERSION_PREFIX):
        return value
    if value.lower() in {"latest", "tombstone"}:
        return f"{VERSION_PREFIX}{value.lower()}"
    return snapshot_key(parse_timestamp(value))


def version_timestamp(key: str) -> datetime | None:
    """Timestamp encoded in a snapshot key; ``None`` for latest and tombstone."""

    if key in {LATEST, TOMBSTONE} or not key.startswith(VERSION_PREFIX):
        return None
    return parse_timestamp(key.removeprefix(VERSION_PREFIX))


def record_pk(identifier: str) -> str:
    return identifier if identifier.startswith(RECORD_PREFIX) else f"{RECORD_PREFIX}{identifier}"


def provenance_pk(key: str) -> str:
    return key if key.startswith(PROVENANCE_PREFIX) else f"{PROVENANCE_PREFIX}{key}"


def identifier_from_pk(pk: str) -> str:
    return pk.removeprefix(RECORD_PREFIX)


def format_dmp_id(value: str, *, base_url: str = "https://doi.org/") -> str | None:
    """Normalize a DMP ID into the ``doi.org/10.x/y`` identifier form.

    Accepts bare DOIs, ``doi:`` prefixed values, resolver URLs and already-normalized
    identifiers. Returns ``None`` when the value is not DOI shaped.
    """

    candidate = _SCHEME.sub("", value.strip())
    match = _DOI_BODY.search(candidate)
    if match is None:
        return None
    host = _SCHEME.sub("", base_url).rstrip("/")
    return f"{host}/{match.group(0).upper()}"


def dmp_id_url(identifier: str) -> str:
    """Resolvable URL for an identifier in ``doi.org/10.x/y`` form."""

    return f"https://{identifier_from_pk(identifier)}"


def provenance_identifier(owner_key: str, external_id: str) -> str:
    """Owner-scoped identifier for a plan, e.g. ``dmptool#plan/123``."""

    return f"{owner_key}#{external_id.strip()}"
