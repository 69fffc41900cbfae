"""Version-aware reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dmphub.domain.errors import AlreadyHistorical, NotFound
from dmphub.domain.keys import (
    LATEST,
    TOMBSTONE,
    format_timestamp,
    version_key,
    version_timestamp,
)

if TYPE_CHECKING:
    from datetime import datetime

    from dmphub.domain.model import Record
    from dmphub.domain.ports import RecordStore


@dataclass(frozen=True, slots=True, kw_only=True)
class VersionEntry:
    timestamp: datetime
    version_key: str
    locator: str


def load_latest(store: RecordStore, identifier: str) -> Record:
    """The latest state, or the reason there is none."""

    latest = store.get(identifier, LATEST)
    if latest is not None:
        return latest
    if store.exists(identifier, TOMBSTONE):
        raise AlreadyHistorical(f"Record {identifier} has been tombstoned")
    raise NotFound(f"No record {identifier}")


def get_record(store: RecordStore, identifier: str, version: str | None = None) -> Record:
    key = version_key(version)
    record = store.get(identifier, key)
    if record is not None:
        return record

    # the current state is addressed by its own modified timestamp as well
    requested = version_timestamp(key)
    if requested is not None:
        latest = store.get(identifier, LATEST)
        if latest is not None and latest.modified == requested:
            return latest
    raise NotFound(f"No version {key} of record {identifier}")


def list_versions(store: RecordStore, identifier: str, *, api_base_url: str) -> list[VersionEntry]:
    """Every stored state of a record, newest first."""

    keys = store.version_keys(identifier)
    if not keys:
        raise NotFound(f"No record {identifier}")

    entries: list[VersionEntry] = []
    for key in keys:
        timestamp = _timestamp_for(store, identifier, key)
        if timestamp is None:
            continue
        entries.append(
            VersionEntry(
                timestamp=timestamp,
                version_key=key,
                locator=f"{api_base_url}dmps/{identifier}?version={_version_param(key, timestamp)}",
            )
        )
    entries.sort(key=lambda entry: entry.timestamp, reverse=True)
    return entries


def _timestamp_for(store: RecordStore, identifier: str, key: str) -> datetime | None:
    if key == LATEST:
        latest = store.get(identifier, LATEST)
        return latest.modified if latest else None
    if key == TOMBSTONE:
        tombstone = store.get(identifier, TOMBSTONE)
        if tombstone is None:
            return None
        return tombstone.tombstoned_at or tombstone.modified
    return version_timestamp(key)


def _version_param(key: str, timestamp: datetime) -> str:
    return "tombstone" if key == TOMBSTONE else format_timestamp(timestamp)
