from __future__ import annotations

from datetime import timedelta

import pytest

from dmphub.domain.errors import AlreadyHistorical, Forbidden, NotFound
from dmphub.domain.finder import get_record
from dmphub.domain.keys import LATEST, TOMBSTONE
from dmphub.domain.tombstoner import Tombstoner
from tests.helpers.fakes import FakeEventSink, FakeRecordStore, FixedClock
from tests.helpers.records import DMP_ID, HARVESTER, OWNER, T0, make_provenance, make_record


def _tombstoner(store: FakeRecordStore, events: FakeEventSink | None = None) -> Tombstoner:
    return Tombstoner(
        store=store, events=events or FakeEventSink(), clock=FixedClock(T0 + timedelta(days=1))
    )


def test_tombstone_round_trip() -> None:
    store = FakeRecordStore()
    events = FakeEventSink()
    store.put(make_record(), LATEST)

    final = _tombstoner(store, events).tombstone(make_provenance(OWNER), DMP_ID)

    assert final.title == "OBSOLETE: Coastal erosion monitoring plan"
    assert final.tombstoned_at == T0 + timedelta(days=1)
    assert not store.exists(DMP_ID, LATEST)
    assert get_record(store, DMP_ID, "tombstone") == final
    with pytest.raises(NotFound):
        get_record(store, DMP_ID)
    with pytest.raises(AlreadyHistorical):
        _tombstoner(store).tombstone(make_provenance(OWNER), DMP_ID)
    (event,) = events.events
    assert event.version_key == TOMBSTONE


def test_only_the_owner_can_tombstone() -> None:
    store = FakeRecordStore()
    store.put(make_record(), LATEST)

    with pytest.raises(Forbidden):
        _tombstoner(store).tombstone(make_provenance(HARVESTER), DMP_ID)
    assert store.exists(DMP_ID, LATEST)


def test_obsolete_prefix_is_not_doubled() -> None:
    store = FakeRecordStore()
    store.put(make_record(title="OBSOLETE: Old plan"), LATEST)

    final = _tombstoner(store).tombstone(make_provenance(OWNER), DMP_ID)

    assert final.title == "OBSOLETE: Old plan"
