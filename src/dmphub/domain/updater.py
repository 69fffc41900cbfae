"""Update flow for existing records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from dmphub.domain.asserter import add_assertions, review_assertion, splice_modifications
from dmphub.domain.clock import Clock, IdFactory, new_assertion_id, utcnow
from dmphub.domain.errors import Forbidden, Unchanged, ValidationFailed
from dmphub.domain.finder import load_latest
from dmphub.domain.keys import LATEST
from dmphub.domain.model import AssertionStatus, Role
from dmphub.domain.notifications import emit_change
from dmphub.domain.splicer import (
    apply_contribution,
    complete_pending_funding,
    pending_funding_completions,
    splice_for_owner,
)

if TYPE_CHECKING:
    from dmphub.domain.model import Provenance, Record
    from dmphub.domain.ports import RecordEventSink, RecordStore
    from dmphub.domain.versioner import Versioner

log = logging.getLogger(__name__)


def same_state(merged: Record, latest: Record) -> bool:
    """Whether ``merged`` differs from ``latest`` only in its modified timestamp."""

    return replace(merged, modified=latest.modified) == latest


@dataclass(slots=True)
class Updater:
    """Applies an incoming body to a record's latest state.

    The owner's edits are spliced into ``latest``. Anyone else can complete a pending funding
    entry with its grant id; everything else they send lands in the modifications log.
    """

    store: RecordStore
    events: RecordEventSink
    versioner: Versioner
    clock: Clock = utcnow
    id_factory: IdFactory = new_assertion_id

    def update(
        self,
        updater: Provenance,
        identifier: str,
        incoming: Record,
        *,
        note: str | None = None,
    ) -> Record:
        latest = load_latest(self.store, identifier)
        if incoming.identifier is not None and incoming.identifier != latest.identifier:
            raise ValidationFailed(
                f"Body identifier {incoming.identifier} does not match {identifier}"
            )

        role = Role.for_updater(latest.owner_provenance_id, updater.key)
        merged = self._merge(role, updater.key, latest, incoming, note=note)
        if same_state(merged, latest):
            log.info("Update from %s leaves %s unchanged", updater.key, identifier)
            raise Unchanged(identifier)

        self.versioner.maybe_snapshot(latest, role)
        return self._write(merged, role)

    def review(
        self,
        owner: Provenance,
        identifier: str,
        assertion_id: str,
        status: AssertionStatus,
    ) -> Record:
        """Accept or reject a pending assertion; accepted payloads join the record."""

        latest = load_latest(self.store, identifier)
        role = Role.for_updater(latest.owner_provenance_id, owner.key)
        if role is not Role.OWNER:
            raise Forbidden(f"Only the owner of {identifier} can review its assertions")

        reviewed, assertion = review_assertion(latest, assertion_id, status)
        if status is AssertionStatus.ACCEPTED:
            reviewed = apply_contribution(
                reviewed,
                related_identifiers=assertion.related_identifiers,
                funding=assertion.funding,
                provenance=assertion.provenance,
                now=self.clock(),
            )
        log.info("Assertion %s on %s marked %s", assertion_id, identifier, status)

        self.versioner.maybe_snapshot(latest, role)
        return self._write(reviewed, role)

    def _merge(
        self,
        role: Role,
        updater: str,
        latest: Record,
        incoming: Record,
        *,
        note: str | None,
    ) -> Record:
        if role is Role.OWNER:
            spliced = splice_for_owner(latest, incoming)
            return replace(spliced, modifications_log=splice_modifications(latest, incoming))

        completions = pending_funding_completions(latest, incoming)
        base = complete_pending_funding(latest, completions, updater, now=self.clock())
        return add_assertions(
            role,
            updater,
            base,
            incoming,
            note=note,
            clock=self.clock,
            id_factory=self.id_factory,
        )

    def _write(self, merged: Record, role: Role) -> Record:
        stamped = replace(merged, modified=self.clock())
        self.store.put(stamped, LATEST)
        emit_change(self.events, stamped, version_key=LATEST, changed_by_owner=role is Role.OWNER)
        return stamped
