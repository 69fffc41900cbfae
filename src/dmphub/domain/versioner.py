"""Snapshot decisions taken before a change is applied to ``latest``."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from dmphub.domain.clock import Clock, utcnow
from dmphub.domain.errors import Conflict, ValidationFailed
from dmphub.domain.keys import snapshot_key
from dmphub.domain.model import Role

if TYPE_CHECKING:
    from datetime import datetime

    from dmphub.domain.model import Record
    from dmphub.domain.ports import RecordStore

log = logging.getLogger(__name__)

DEFAULT_VERSION_WINDOW = timedelta(hours=1)


def should_snapshot(
    latest: Record,
    role: Role,
    *,
    now: datetime,
    window: timedelta = DEFAULT_VERSION_WINDOW,
) -> bool:
    """Only owner edits made outside the window are snapshotted.

    Owner edits inside the window coalesce into ``latest``. Contributions from other provenances
    land on ``latest`` itself and never create a version.
    """

    if role is not Role.OWNER:
        return False
    if latest.modified is None:
        return True
    return now - latest.modified >= window


@dataclass(slots=True)
class Versioner:
    store: RecordStore
    window: timedelta = DEFAULT_VERSION_WINDOW
    clock: Clock = utcnow

    def maybe_snapshot(self, latest: Record, role: Role) -> Record:
        """Persist ``latest`` as a historical version when required and return it unchanged.

        A collision on the snapshot key means the same state was already captured and is
        ignored. Any other store failure propagates and aborts the update.
        """

        if latest.identifier is None:
            raise ValidationFailed("Cannot snapshot a record without an identifier")
        if not should_snapshot(latest, role, now=self.clock(), window=self.window):
            log.debug("No snapshot needed for %s (%s)", latest.identifier, role)
            return latest
        if latest.modified is None:
            raise ValidationFailed(f"Record {latest.identifier} has no modified timestamp")

        key = snapshot_key(latest.modified)
        try:
            self.store.put_if_absent(latest, key)
        except Conflict:
            log.debug("Snapshot %s already exists for %s", key, latest.identifier)
        else:
            log.info("Snapshotted %s as %s", latest.identifier, key)
        return latest
