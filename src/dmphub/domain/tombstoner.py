from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from dmphub.domain.clock import Clock, utcnow
from dmphub.domain.errors import AlreadyHistorical, Conflict, Forbidden
from dmphub.domain.finder import load_latest
from dmphub.domain.keys import LATEST, TOMBSTONE
from dmphub.domain.model import Role
from dmphub.domain.notifications import emit_change

if TYPE_CHECKING:
    from dmphub.domain.model import Provenance, Record
    from dmphub.domain.ports import RecordEventSink, RecordStore

log = logging.getLogger(__name__)

OBSOLETE_PREFIX: Final[str] = "OBSOLETE: "


@dataclass(slots=True)
class Tombstoner:
    """Moves a record's latest state to its terminal tombstone (owner only)."""

    store: RecordStore
    events: RecordEventSink
    clock: Clock = utcnow

    def tombstone(self, owner: Provenance, identifier: str) -> Record:
        latest = load_latest(self.store, identifier)
        if Role.for_updater(latest.owner_provenance_id, owner.key) is not Role.OWNER:
            raise Forbidden(f"Only the owner of {identifier} can tombstone it")

        now = self.clock()
        title = latest.title
        if not title.startswith(OBSOLETE_PREFIX):
            title = f"{OBSOLETE_PREFIX}{title}"
        final = replace(latest, title=title, tombstoned_at=now, modified=now)

        try:
            self.store.put_if_absent(final, TOMBSTONE)
        except Conflict as exc:
            raise AlreadyHistorical(f"Record {identifier} already has a tombstone") from exc
        self.store.delete(identifier, LATEST)

        log.info("Tombstoned %s", identifier)
        emit_change(self.events, final, version_key=TOMBSTONE, changed_by_owner=True)
        return final
