from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from dmphub.domain.errors import AlreadyHistorical, Unchanged
from dmphub.domain.keys import LATEST, TOMBSTONE, snapshot_key
from dmphub.domain.model import AssertionStatus, FundingStatus, Provenance
from dmphub.domain.registry import RecordRegistry
from tests.helpers.fakes import FakeCitationLookup, FixedClock
from tests.helpers.records import T0, make_funding, make_record, make_work

if TYPE_CHECKING:
    from collections.abc import Callable

    from dmphub.adapters.sqlalchemy.unit_of_work import SqlAlchemyRegistryUnitOfWork

AWARD = "https://www.nsf.gov/awards/2012345"


def test_registry_flow_over_sqlite(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRegistryUnitOfWork],
) -> None:
    clock = FixedClock(T0)
    registry = RecordRegistry(
        unit_of_work_factory=sqlite_unit_of_work,
        shoulder="10.48321/D1",
        citation_lookup=FakeCitationLookup("Doe, J. (2024). Paper."),
        clock=clock,
    )
    registry.register_provenance(Provenance(key="dmptool", name="DMPTool"))
    registry.register_provenance(Provenance(key="nsf", name="NSF", owner_capable=False))

    draft = make_record(identifier=None, funding=(make_funding(status=FundingStatus.PLANNED),))
    created = registry.create_record("dmptool", draft)
    identifier = created.identifier
    assert identifier is not None
    assert registry.get_record(identifier) == created

    # the funder supplies the grant for the pending entry
    clock.advance(minutes=5)
    completed = registry.update_record(
        "nsf",
        identifier,
        make_record(identifier=None, funding=(make_funding(status=None, grant=AWARD),)),
    )
    (funding,) = completed.projects[0].funding
    assert funding.funding_status is FundingStatus.GRANTED
    assert funding.provenance_id == "nsf"
    assert [entry.version_key for entry in registry.list_versions(identifier)] == [LATEST]

    # the owner's edit cannot drop the funder's contribution
    clock.advance(hours=2)
    edited = registry.update_record("dmptool", identifier, draft)
    assert [entry.grant_id for entry in edited.iter_funding()][-1] == funding.grant_id
    with pytest.raises(Unchanged):
        registry.update_record("dmptool", identifier, draft)

    clock.advance(days=1)
    added = registry.augment(
        "nsf",
        registry.get_record(identifier),
        [make_work("10.5555/paper.9", award=AWARD)],
    )
    assert added == 1
    augmented = registry.get_record(identifier)
    (assertion,) = augmented.modifications_log
    assert assertion.related_identifiers[0].citation == "Doe, J. (2024). Paper."

    reviewed = registry.review_assertion(
        "dmptool", identifier, assertion.id, AssertionStatus.ACCEPTED
    )
    assert reviewed.modifications_log[0].status is AssertionStatus.ACCEPTED
    assert reviewed.related_identifiers[-1].identifier == "https://doi.org/10.5555/paper.9"

    final = registry.tombstone_record("dmptool", identifier)
    with pytest.raises(AlreadyHistorical):
        registry.update_record("dmptool", identifier, draft)

    versions = registry.list_versions(identifier)
    assert versions[0].version_key == TOMBSTONE
    assert LATEST not in {entry.version_key for entry in versions}
    completed_at = T0 + timedelta(minutes=5)
    assert versions[-1].timestamp == completed_at
    assert registry.get_record(identifier, snapshot_key(completed_at).removeprefix("VERSION#")) == (
        completed
    )
    assert registry.get_record(identifier, "tombstone") == final

    events = registry.pending_events()
    assert [pending.event.changed_by_owner for pending in events] == [
        True,
        False,
        True,
        False,
        True,
        True,
    ]
    registry.mark_events_delivered([pending.id for pending in events[:2]])
    assert len(registry.pending_events()) == 4
    assert registry.pending_events(limit=1)[0].id == events[2].id


def test_records_survive_a_new_unit_of_work(
    sqlite_unit_of_work: Callable[[], SqlAlchemyRegistryUnitOfWork],
) -> None:
    registry = RecordRegistry(
        unit_of_work_factory=sqlite_unit_of_work,
        shoulder="10.48321/D1",
        clock=FixedClock(T0 + timedelta(days=3)),
    )
    registry.register_provenance(Provenance(key="dmptool"))
    created = registry.create_record(
        "dmptool",
        make_record(identifier=None, extras={"dataset": [{"title": "Drone imagery"}]}),
    )

    assert created.identifier is not None
    assert registry.score_candidate(make_work(award="nope"), records=[]) is None
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.records.get(created.identifier)
    assert stored == created
    assert stored is not None
    assert stored.extras == {"dataset": [{"title": "Drone imagery"}]}
