"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, Any, TypeAlias

from dmphub.adapters.citation import DoiCitationClient
from dmphub.adapters.dmp_json import (
    parse_candidate_works,
    parse_dmp_document,
    record_to_document,
)
from dmphub.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyRegistryUnitOfWork,
    is_started,
    startup,
)
from dmphub.config import get_citation_config, get_registry_config
from dmphub.domain.errors import ValidationFailed
from dmphub.domain.keys import format_dmp_id, format_timestamp
from dmphub.domain.model import AssertionStatus, Provenance
from dmphub.domain.ports import RegistryUnitOfWork
from dmphub.domain.registry import RecordRegistry

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dmphub.config import RegistryConfig
    from dmphub.domain.ports import CitationLookup

UnitOfWorkFactory = Callable[[], RegistryUnitOfWork]
Document: TypeAlias = dict[str, Any]

log = getLogger(__name__)


def build_registry(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    registry_config: RegistryConfig | None = None,
    citation_lookup: CitationLookup | None = None,
    fetch_citations: bool = True,
) -> RecordRegistry:
    """Wire a registry to the configured store and citation service."""

    config = registry_config or get_registry_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyRegistryUnitOfWork
    if citation_lookup is None and fetch_citations:
        citation_lookup = DoiCitationClient(config=get_citation_config())

    return RecordRegistry(
        unit_of_work_factory=unit_of_work_factory,
        shoulder=config.dmp_id_shoulder,
        base_url=config.dmp_id_base_url,
        api_base_url=config.api_base_url,
        version_window=config.version_window,
        citation_lookup=citation_lookup,
    )


def resolve_identifier(registry: RecordRegistry, value: str) -> str:
    """Accept a DMP ID as a bare DOI, ``doi:`` value or resolver URL."""

    identifier = format_dmp_id(value, base_url=registry.base_url)
    if identifier is None:
        raise ValidationFailed(f"{value} is not a DMP ID")
    return identifier


def register_provenance(
    registry: RecordRegistry,
    key: str,
    *,
    name: str | None = None,
    homepage: str | None = None,
    callback_uri: str | None = None,
    owner_capable: bool = True,
    seeding_mode: bool = False,
) -> Provenance:
    return registry.register_provenance(
        Provenance(
            key=key,
            name=name,
            homepage=homepage,
            callback_uri=callback_uri,
            owner_capable=owner_capable,
            seeding_mode=seeding_mode,
        )
    )


def create_dmp(registry: RecordRegistry, owner_key: str, document: Mapping[str, Any]) -> Document:
    draft = parse_dmp_document(document, base_url=registry.base_url)
    record = registry.create_record(owner_key, draft)
    log.info("Created %s", record.identifier)
    return record_to_document(record)


def update_dmp(
    registry: RecordRegistry,
    updater_key: str,
    identifier: str,
    document: Mapping[str, Any],
    *,
    note: str | None = None,
) -> Document:
    incoming = parse_dmp_document(document, base_url=registry.base_url)
    record = registry.update_record(
        updater_key, resolve_identifier(registry, identifier), incoming, note=note
    )
    return record_to_document(record)


def tombstone_dmp(registry: RecordRegistry, owner_key: str, identifier: str) -> Document:
    record = registry.tombstone_record(owner_key, resolve_identifier(registry, identifier))
    return record_to_document(record)


def get_dmp(registry: RecordRegistry, identifier: str, version: str | None = None) -> Document:
    record = registry.get_record(resolve_identifier(registry, identifier), version)
    return record_to_document(record)


def list_dmp_versions(registry: RecordRegistry, identifier: str) -> list[Document]:
    entries = registry.list_versions(resolve_identifier(registry, identifier))
    return [
        {"timestamp": format_timestamp(entry.timestamp), "url": entry.locator} for entry in entries
    ]


def review_dmp_assertion(
    registry: RecordRegistry,
    owner_key: str,
    identifier: str,
    assertion_id: str,
    status: str,
) -> Document:
    try:
        parsed_status = AssertionStatus(status.strip().lower())
    except ValueError as exc:
        raise ValidationFailed(f"Unknown assertion status: {status}") from exc
    record = registry.review_assertion(
        owner_key, resolve_identifier(registry, identifier), assertion_id, parsed_status
    )
    return record_to_document(record)


def score_works(registry: RecordRegistry, document: Mapping[str, Any]) -> list[Document]:
    """Best match per candidate work among every live record."""

    results: list[Document] = []
    for work in parse_candidate_works(document):
        match = registry.score_candidate(work)
        results.append(
            {
                "id": work.identifier,
                "match": (
                    {
                        "dmp_id": match.identifier,
                        "confidence": match.confidence.value,
                        "score": match.score,
                        "notes": list(match.notes),
                    }
                    if match is not None
                    else None
                ),
            }
        )
    return results


def augment_dmp(
    registry: RecordRegistry,
    augmenter_key: str,
    identifier: str,
    document: Mapping[str, Any],
) -> int:
    record = registry.get_record(resolve_identifier(registry, identifier))
    added = registry.augment(augmenter_key, record, parse_candidate_works(document))
    log.info("Augmented %s with %d modification(s)", record.identifier, added)
    return added


def pending_events(
    registry: RecordRegistry,
    *,
    limit: int | None = None,
    acknowledge: bool = False,
) -> list[Document]:
    events = registry.pending_events(limit=limit)
    if acknowledge and events:
        registry.mark_events_delivered([event.id for event in events])
    return [
        {
            "id": pending.id,
            "created_at": format_timestamp(pending.created_at),
            "dmp_id": pending.event.identifier,
            "version": pending.event.version_key,
            "owner": pending.event.owner_provenance_id,
            "changed_by_owner": pending.event.changed_by_owner,
        }
        for pending in events
    ]
