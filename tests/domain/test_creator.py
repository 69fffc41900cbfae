from __future__ import annotations

import pytest

from dmphub.domain.creator import Creator, validate_draft
from dmphub.domain.errors import Conflict, Forbidden, ValidationFailed
from dmphub.domain.keys import LATEST, TOMBSTONE
from dmphub.domain.model import Assertion, RelatedIdentifier, RelationDescriptor
from tests.helpers.fakes import FakeCitationLookup, FakeEventSink, FakeRecordStore, FixedClock
from tests.helpers.records import OWNER, T0, make_provenance, make_record

SHOULDER = "10.48321/D1"


class Suffixes:
    def __init__(self, *values: str) -> None:
        self.values = list(values)

    def __call__(self) -> str:
        return self.values.pop(0)


def _creator(
    store: FakeRecordStore | None = None,
    *,
    suffixes: tuple[str, ...] = ("ABC123",),
    citations: FakeCitationLookup | None = None,
    events: FakeEventSink | None = None,
) -> Creator:
    return Creator(
        store=store or FakeRecordStore(),
        events=events or FakeEventSink(),
        shoulder=SHOULDER,
        citation_lookup=citations,
        clock=FixedClock(T0),
        suffix_factory=Suffixes(*suffixes),
    )


def test_create_mints_an_identifier_and_stamps_bookkeeping() -> None:
    store = FakeRecordStore()
    events = FakeEventSink()
    draft = make_record(
        identifier=None,
        owner=None,
        modified=None,
        modifications_log=(Assertion(id="X", provenance="x", timestamp=T0),),
    )

    record = _creator(store, events=events).create(make_provenance(OWNER), draft)

    assert record.identifier == "doi.org/10.48321/D1ABC123"
    assert record.owner_provenance_id == OWNER
    assert record.created == record.modified == record.registered == T0
    assert record.modifications_log == ()
    assert store.get("doi.org/10.48321/D1ABC123", LATEST) == record
    (event,) = events.events
    assert event.identifier == record.identifier
    assert event.changed_by_owner is True


def test_minting_retries_on_collisions() -> None:
    store = FakeRecordStore()
    store.put(make_record(identifier="doi.org/10.48321/D1TAKEN"), LATEST)
    store.put(make_record(identifier="doi.org/10.48321/D1GONE"), TOMBSTONE)

    record = _creator(store, suffixes=("TAKEN", "GONE", "FREE")).create(
        make_provenance(), make_record(identifier=None)
    )

    assert record.identifier == "doi.org/10.48321/D1FREE"


def test_minting_gives_up_after_repeated_collisions() -> None:
    store = FakeRecordStore()
    store.put(make_record(identifier="doi.org/10.48321/D1TAKEN"), LATEST)

    with pytest.raises(Conflict):
        _creator(store, suffixes=("TAKEN",) * 10).create(
            make_provenance(), make_record(identifier=None)
        )


def test_duplicate_owner_identifier_is_a_conflict() -> None:
    store = FakeRecordStore()
    draft = make_record(identifier=None, external_system_identifier="plan/1")
    _creator(store).create(make_provenance(), draft)

    with pytest.raises(Conflict):
        _creator(store, suffixes=("OTHER",)).create(make_provenance(), draft)


def test_existing_identifier_in_the_body_is_a_conflict() -> None:
    store = FakeRecordStore()
    store.put(make_record(identifier="doi.org/10.48321/D1ABC123"), LATEST)

    with pytest.raises(Conflict):
        _creator(store).create(
            make_provenance(), make_record(identifier="https://doi.org/10.48321/D1ABC123")
        )


def test_seeding_provenance_keeps_its_own_dmp_id() -> None:
    seeder = make_provenance("seeder", seeding_mode=True)
    draft = make_record(identifier=None, external_system_identifier="https://doi.org/10.80030/abc")

    record = _creator().create(seeder, draft)

    assert record.identifier == "doi.org/10.80030/ABC"
    assert record.provenance_identifier == "seeder#https://doi.org/10.80030/abc"


def test_seeding_requires_a_doi() -> None:
    seeder = make_provenance("seeder", seeding_mode=True)

    with pytest.raises(ValidationFailed):
        _creator().create(seeder, make_record(identifier=None, external_system_identifier="x-1"))


def test_non_owner_capable_provenance_cannot_create() -> None:
    with pytest.raises(Forbidden):
        _creator().create(make_provenance("harvester", owner_capable=False), make_record())


def test_citations_are_fetched_for_related_dois_only() -> None:
    citations = FakeCitationLookup("Cited.")
    draft = make_record(
        identifier=None,
        related=(
            RelatedIdentifier(identifier="https://doi.org/10.5555/x", work_type="dataset"),
            RelatedIdentifier(identifier="https://example.org/page"),
            RelatedIdentifier(
                identifier="https://doi.org/10.48321/D1SELF",
                descriptor=RelationDescriptor.IS_METADATA_FOR,
            ),
        ),
    )

    record = _creator(citations=citations).create(make_provenance(), draft)

    assert [entry.citation for entry in record.related_identifiers] == ["Cited.", None, None]
    assert citations.calls == [("https://doi.org/10.5555/x", "dataset")]


def test_validate_draft() -> None:
    validate_draft(make_record())
    with pytest.raises(ValidationFailed):
        validate_draft(make_record(title="  "))
    with pytest.raises(ValidationFailed):
        validate_draft(make_record(contact=None))
