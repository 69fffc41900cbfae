"""The modifications ledger: reviewable changes proposed by non-owners."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from dmphub.domain.clock import Clock, IdFactory, new_assertion_id, utcnow
from dmphub.domain.errors import Conflict, NotFound, ValidationFailed
from dmphub.domain.model import Assertion, AssertionStatus, Role

if TYPE_CHECKING:
    from dmphub.domain.model import Funding, Record, RelatedIdentifier

log = logging.getLogger(__name__)


def add_assertions(
    role: Role,
    updater: str,
    latest: Record,
    incoming: Record,
    *,
    note: str | None = None,
    clock: Clock = utcnow,
    id_factory: IdFactory = new_assertion_id,
) -> Record:
    """Append what ``incoming`` proposes beyond ``latest`` to the modifications log.

    Owners never go through the ledger, so their calls return ``latest`` untouched.
    Related identifiers and grant ids already present on the record, authoritative or
    asserted, are dropped before anything is appended.
    """

    if role is Role.OWNER:
        return latest

    now = clock()
    known_related = latest.known_related_identifiers()
    proposed: list[RelatedIdentifier] = []
    for entry in incoming.related_identifiers:
        if entry.normalized in known_related:
            continue
        known_related |= {entry.normalized}
        proposed.append(replace(entry, provenance_id=None))

    entries: list[Assertion] = []
    if proposed:
        entries.append(
            Assertion(
                id=id_factory(),
                provenance=updater,
                timestamp=now,
                note=note,
                related_identifiers=tuple(proposed),
            )
        )

    funding = _first_unknown_grant(latest, incoming)
    if funding is not None:
        entries.append(
            Assertion(
                id=id_factory(),
                provenance=updater,
                timestamp=now,
                note=note,
                funding=(replace(funding, provenance_id=None, created_at=None),),
            )
        )

    if not entries:
        return latest
    log.info(
        "Recording %d assertion(s) from %s on %s", len(entries), updater, latest.identifier
    )
    return replace(latest, modifications_log=(*latest.modifications_log, *entries))


def splice_modifications(latest: Record, incoming: Record) -> tuple[Assertion, ...]:
    """Union two modification logs by assertion id.

    Entries are never dropped. When both sides hold the same id the stored entry wins, so a
    status only changes through ``review_assertion``.
    """

    stored_ids = {entry.id for entry in latest.modifications_log}
    extra = tuple(entry for entry in incoming.modifications_log if entry.id not in stored_ids)
    return (*latest.modifications_log, *extra)


def review_assertion(
    latest: Record,
    assertion_id: str,
    status: AssertionStatus,
) -> tuple[Record, Assertion]:
    """Accept or reject a pending assertion, returning the record and the reviewed entry."""

    if status is AssertionStatus.PENDING:
        raise ValidationFailed("An assertion can only be reviewed as accepted or rejected")
    current = latest.find_assertion(assertion_id)
    if current is None:
        raise NotFound(f"No assertion {assertion_id} on record {latest.identifier}")
    if not current.is_pending:
        raise Conflict(f"Assertion {assertion_id} was already {current.status}")

    reviewed = replace(current, status=status)
    log_entries = tuple(
        reviewed if entry.id == assertion_id else entry for entry in latest.modifications_log
    )
    return replace(latest, modifications_log=log_entries), reviewed


def _first_unknown_grant(latest: Record, incoming: Record) -> Funding | None:
    funding = next((entry for entry in incoming.iter_funding() if entry.grant_id is not None), None)
    if funding is None or funding.grant_id is None:
        return None
    if funding.grant_id.normalized in latest.known_grant_ids():
        return None
    return funding
