from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from dmphub.domain.asserter import add_assertions, review_assertion, splice_modifications
from dmphub.domain.errors import Conflict, NotFound, ValidationFailed
from dmphub.domain.model import (
    Assertion,
    AssertionStatus,
    FundingStatus,
    RelatedIdentifier,
    Role,
)
from tests.helpers.fakes import FixedClock, SequentialIds
from tests.helpers.records import HARVESTER, T0, make_funding, make_record

if TYPE_CHECKING:
    from dmphub.domain.model import Record


def _assert(
    latest: Record,
    incoming: Record,
    *,
    role: Role = Role.NON_OWNER,
    note: str | None = None,
) -> Record:
    return add_assertions(
        role,
        HARVESTER,
        latest,
        incoming,
        note=note,
        clock=FixedClock(T0),
        id_factory=SequentialIds("A"),
    )


def test_owner_updates_bypass_the_ledger() -> None:
    latest = make_record()
    incoming = make_record(related=(RelatedIdentifier(identifier="https://doi.org/10.1/x"),))

    assert _assert(latest, incoming, role=Role.OWNER) is latest


def test_new_related_identifiers_become_one_pending_assertion() -> None:
    latest = make_record(related=(RelatedIdentifier(identifier="https://doi.org/10.1/known"),))
    incoming = make_record(
        related=(
            RelatedIdentifier(identifier="https://doi.org/10.1/KNOWN"),
            RelatedIdentifier(identifier="https://doi.org/10.1/new", provenance_id="spoofed"),
            RelatedIdentifier(identifier="https://doi.org/10.1/new"),
        )
    )

    updated = _assert(latest, incoming, note="found in DataCite")

    (assertion,) = updated.modifications_log
    assert assertion.id == "A1"
    assert assertion.provenance == HARVESTER
    assert assertion.timestamp == T0
    assert assertion.status is AssertionStatus.PENDING
    assert assertion.note == "found in DataCite"
    assert [entry.identifier for entry in assertion.related_identifiers] == [
        "https://doi.org/10.1/new"
    ]
    assert assertion.related_identifiers[0].provenance_id is None
    assert updated.related_identifiers == latest.related_identifiers


def test_unknown_grant_becomes_a_separate_funding_assertion() -> None:
    latest = make_record(funding=(make_funding(),))
    incoming = make_record(
        funding=(make_funding(status=FundingStatus.GRANTED, grant="G-9", created_at=T0),),
        related=(RelatedIdentifier(identifier="https://doi.org/10.1/new"),),
    )

    updated = _assert(latest, incoming)

    related, funding = updated.modifications_log
    assert related.related_identifiers
    assert not related.funding
    assert funding.id == "A2"
    (entry,) = funding.funding
    assert entry.grant_id is not None
    assert entry.grant_id.identifier == "G-9"
    assert entry.created_at is None
    assert list(updated.iter_funding()) == list(latest.iter_funding())


def test_grants_already_asserted_are_not_repeated() -> None:
    asserted = Assertion(
        id="OLD",
        provenance="other",
        timestamp=T0,
        funding=(make_funding(status=FundingStatus.GRANTED, grant="G-9"),),
    )
    latest = make_record(modifications_log=(asserted,))
    incoming = make_record(funding=(make_funding(status=FundingStatus.GRANTED, grant="g-9"),))

    assert _assert(latest, incoming) is latest


def test_splice_modifications_never_drops_entries_and_keeps_stored_status() -> None:
    stored = Assertion(id="A1", provenance=HARVESTER, timestamp=T0)
    latest = make_record(modifications_log=(stored,))
    tampered = replace(stored, status=AssertionStatus.ACCEPTED)
    extra = Assertion(id="A2", provenance="other", timestamp=T0)

    merged = splice_modifications(latest, make_record(modifications_log=(tampered, extra)))

    assert merged == (stored, extra)
    assert splice_modifications(latest, make_record()) == (stored,)


def test_review_assertion_updates_only_the_reviewed_entry() -> None:
    first = Assertion(id="A1", provenance=HARVESTER, timestamp=T0)
    second = Assertion(id="A2", provenance=HARVESTER, timestamp=T0)
    latest = make_record(modifications_log=(first, second))

    updated, reviewed = review_assertion(latest, "A2", AssertionStatus.REJECTED)

    assert reviewed.status is AssertionStatus.REJECTED
    assert updated.modifications_log == (first, reviewed)


def test_review_assertion_errors() -> None:
    done = Assertion(id="A1", provenance=HARVESTER, timestamp=T0, status=AssertionStatus.ACCEPTED)
    latest = make_record(modifications_log=(done,))

    with pytest.raises(ValidationFailed):
        review_assertion(latest, "A1", AssertionStatus.PENDING)
    with pytest.raises(NotFound):
        review_assertion(latest, "missing", AssertionStatus.ACCEPTED)
    with pytest.raises(Conflict):
        review_assertion(latest, "A1", AssertionStatus.REJECTED)
