"""Translate DMP JSON documents to and from registry records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from dmphub.domain.errors import ValidationFailed
from dmphub.domain.keys import dmp_id_url, format_dmp_id
from dmphub.domain.model import (
    Affiliation,
    Assertion,
    CandidateWork,
    Funding,
    FundingReference,
    IdentifierType,
    MatchResult,
    Person,
    Privacy,
    Project,
    Record,
    RelatedIdentifier,
    RelationDescriptor,
    TypedIdentifier,
    WorkAffiliation,
    WorkContributor,
    WorkRepository,
    WorkType,
)

from .schema import (
    AffiliationSchema,
    CandidateWorkSchema,
    ContactSchema,
    ContributorSchema,
    DmpBaseModel,
    DmpSchema,
    FundingSchema,
    ModificationSchema,
    ProjectSchema,
    RelatedIdentifierSchema,
    TypedIdentifierSchema,
    WorksDocument,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)


def parse_dmp_document(
    payload: Mapping[str, Any],
    *,
    base_url: str = "https://doi.org/",
) -> Record:
    """Build a record from a ``{"dmp": {...}}`` document (or the bare ``dmp`` object)."""

    body = payload.get("dmp", payload)
    try:
        schema = DmpSchema.model_validate(body)
    except ValidationError as exc:
        raise ValidationFailed(f"Invalid DMP document: {exc}") from exc
    return _record_from_schema(schema, base_url=base_url)


def record_to_document(record: Record) -> dict[str, Any]:
    """Serialize a record to a ``{"dmp": {...}}`` document.

    Unmodelled sections are written back next to the modelled ones; a modelled key always wins.
    """

    schema = DmpSchema(
        title=record.title,
        description=record.description,
        dmp_id=(
            TypedIdentifierSchema(type=IdentifierType.DOI, identifier=dmp_id_url(record.identifier))
            if record.identifier
            else None
        ),
        contact=_contact_schema(record.contact) if record.contact else None,
        contributor=[_contributor_schema(person) for person in record.contributors],
        project=[_project_schema(project) for project in record.projects],
        dmproadmap_related_identifiers=[
            _related_schema(entry) for entry in record.related_identifiers
        ],
        dmproadmap_privacy=record.privacy,
        dmproadmap_external_system_identifier=record.external_system_identifier,
        dmphub_provenance_id=record.owner_provenance_id,
        dmphub_provenance_identifier=record.provenance_identifier,
        created=record.created,
        modified=record.modified,
        registered=record.registered,
        dmphub_tombstoned_at=record.tombstoned_at,
        dmphub_modifications=[_modification_schema(entry) for entry in record.modifications_log],
    )
    body = schema.model_dump(by_alias=True, exclude_none=True, mode="json")
    for key in ("contributor", "project", "dmproadmap_related_identifiers", "dmphub_modifications"):
        if not body.get(key):
            body.pop(key, None)
    return {"dmp": {**dict(record.extras), **body}}


def parse_candidate_works(payload: Mapping[str, Any]) -> list[CandidateWork]:
    """Candidate works from a ``{"works": [...]}`` harvester document."""

    try:
        document = WorksDocument.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailed(f"Invalid works document: {exc}") from exc
    return [_candidate_work(work) for work in document.works]


def _record_from_schema(schema: DmpSchema, *, base_url: str) -> Record:
    identifier = None
    if schema.dmp_id is not None:
        identifier = format_dmp_id(schema.dmp_id.identifier, base_url=base_url)
        if identifier is None:
            raise ValidationFailed(f"dmp_id {schema.dmp_id.identifier} is not a DOI")

    return Record(
        identifier=identifier,
        title=schema.title,
        description=schema.description,
        contact=_person(schema.contact) if schema.contact else None,
        contributors=tuple(_person(contributor) for contributor in schema.contributor),
        projects=tuple(_project(project) for project in schema.project),
        related_identifiers=tuple(
            _related_identifier(entry) for entry in schema.dmproadmap_related_identifiers
        ),
        privacy=schema.dmproadmap_privacy or Privacy.PRIVATE,
        owner_provenance_id=schema.dmphub_provenance_id,
        provenance_identifier=schema.dmphub_provenance_identifier,
        external_system_identifier=schema.dmproadmap_external_system_identifier,
        created=schema.created,
        modified=schema.modified,
        registered=schema.registered,
        tombstoned_at=schema.dmphub_tombstoned_at,
        modifications_log=tuple(_assertion(entry) for entry in schema.dmphub_modifications),
        extras=_extras(schema),
    )


def _extras(schema: DmpBaseModel) -> dict[str, Any]:
    return dict(schema.model_extra or {})


S = TypeVar("S", bound=DmpBaseModel)


def _with_extras(schema: type[S], extras: Mapping[str, Any], **fields: Any) -> S:
    """Build ``schema`` with unmodelled keys written back; modelled fields always win."""

    unmodelled = {key: value for key, value in extras.items() if key not in schema.model_fields}
    return schema(**unmodelled, **fields)


def _typed(schema: TypedIdentifierSchema | None) -> TypedIdentifier | None:
    if schema is None:
        return None
    return TypedIdentifier(
        type=schema.type or IdentifierType.OTHER,
        identifier=schema.identifier,
    )


def _typed_schema(value: TypedIdentifier | None) -> TypedIdentifierSchema | None:
    if value is None:
        return None
    return TypedIdentifierSchema(type=value.type, identifier=value.identifier)


def _affiliation(schema: AffiliationSchema | None) -> Affiliation | None:
    if schema is None:
        return None
    return Affiliation(name=schema.name, affiliation_id=_typed(schema.affiliation_id))


def _affiliation_schema(value: Affiliation | None) -> AffiliationSchema | None:
    if value is None:
        return None
    return AffiliationSchema(name=value.name, affiliation_id=_typed_schema(value.affiliation_id))


def _person(schema: ContactSchema | ContributorSchema) -> Person:
    if isinstance(schema, ContributorSchema):
        person_id = schema.contributor_id
        roles = tuple(schema.role)
    else:
        person_id = schema.contact_id
        roles = ()
    return Person(
        name=schema.name,
        mbox=schema.mbox,
        person_id=_typed(person_id),
        affiliation=_affiliation(schema.dmproadmap_affiliation),
        roles=roles,
        extras=_extras(schema),
    )


def _contact_schema(person: Person) -> ContactSchema:
    return _with_extras(
        ContactSchema,
        person.extras,
        name=person.name,
        mbox=person.mbox,
        contact_id=_typed_schema(person.person_id),
        dmproadmap_affiliation=_affiliation_schema(person.affiliation),
    )


def _contributor_schema(person: Person) -> ContributorSchema:
    return _with_extras(
        ContributorSchema,
        person.extras,
        name=person.name,
        mbox=person.mbox,
        contributor_id=_typed_schema(person.person_id),
        dmproadmap_affiliation=_affiliation_schema(person.affiliation),
        role=list(person.roles),
    )


def _funding(schema: FundingSchema) -> Funding:
    return Funding(
        name=schema.name,
        funder_id=_typed(schema.funder_id),
        funding_status=schema.funding_status,
        grant_id=_typed(schema.grant_id),
        opportunity_id=_typed(schema.dmproadmap_funding_opportunity_id),
        project_number=schema.dmproadmap_project_number,
        provenance_id=schema.dmphub_provenance_id,
        created_at=schema.dmphub_created_at,
        extras=_extras(schema),
    )


def _funding_schema(funding: Funding) -> FundingSchema:
    return _with_extras(
        FundingSchema,
        funding.extras,
        name=funding.name,
        funder_id=_typed_schema(funding.funder_id),
        funding_status=funding.funding_status,
        grant_id=_typed_schema(funding.grant_id),
        dmproadmap_funding_opportunity_id=_typed_schema(funding.opportunity_id),
        dmproadmap_project_number=funding.project_number,
        dmphub_provenance_id=funding.provenance_id,
        dmphub_created_at=funding.created_at,
    )


def _project(schema: ProjectSchema) -> Project:
    return Project(
        title=schema.title,
        description=schema.description,
        start=schema.start,
        end=schema.end,
        funding=tuple(_funding(entry) for entry in schema.funding),
        extras=_extras(schema),
    )


def _project_schema(project: Project) -> ProjectSchema:
    return _with_extras(
        ProjectSchema,
        project.extras,
        title=project.title,
        description=project.description,
        start=project.start,
        end=project.end,
        funding=[_funding_schema(entry) for entry in project.funding],
    )


def _related_identifier(schema: RelatedIdentifierSchema) -> RelatedIdentifier:
    return RelatedIdentifier(
        identifier=schema.identifier,
        type=schema.type or "",
        descriptor=schema.descriptor or RelationDescriptor.REFERENCES,
        work_type=schema.work_type or WorkType.OTHER,
        citation=schema.citation,
        provenance_id=schema.dmphub_provenance_id,
        confidence=schema.confidence,
        score=schema.score,
        notes=tuple(schema.notes),
    )


def _related_schema(entry: RelatedIdentifier) -> RelatedIdentifierSchema:
    return RelatedIdentifierSchema(
        type=entry.type,
        identifier=entry.identifier,
        descriptor=entry.descriptor,
        work_type=entry.work_type,
        citation=entry.citation,
        dmphub_provenance_id=entry.provenance_id,
        confidence=entry.confidence,
        score=entry.score,
        notes=list(entry.notes),
    )


def _assertion(schema: ModificationSchema) -> Assertion:
    return Assertion(
        id=schema.id,
        provenance=schema.provenance,
        timestamp=schema.timestamp,
        status=schema.status,
        provenance_name=schema.provenance_name,
        note=schema.note,
        confidence=schema.confidence,
        related_identifiers=tuple(
            _related_identifier(entry) for entry in schema.dmproadmap_related_identifiers
        ),
        funding=tuple(_funding(entry) for entry in schema.funding),
    )


def _modification_schema(assertion: Assertion) -> ModificationSchema:
    return ModificationSchema(
        id=assertion.id,
        provenance=assertion.provenance,
        timestamp=assertion.timestamp,
        status=assertion.status,
        provenance_name=assertion.provenance_name,
        note=assertion.note,
        confidence=assertion.confidence,
        dmproadmap_related_identifiers=[
            _related_schema(entry) for entry in assertion.related_identifiers
        ],
        funding=[_funding_schema(entry) for entry in assertion.funding],
    )


def _candidate_work(schema: CandidateWorkSchema) -> CandidateWork:
    match = None
    if schema.match is not None:
        match = MatchResult(
            identifier=format_dmp_id(schema.match.dmp_id) or schema.match.dmp_id,
            confidence=schema.match.confidence,
            score=schema.match.score,
            notes=tuple(schema.match.notes),
        )
    return CandidateWork(
        identifier=schema.id,
        work_type=schema.type or WorkType.OTHER,
        title=schema.title,
        abstract=schema.abstract,
        contributors=tuple(
            WorkContributor(
                name=person.name,
                last_name=person.last_name or Person(name=person.name).last_name,
                orcid=person.id,
                affiliations=tuple(
                    WorkAffiliation(name=affiliation.name, identifier=affiliation.id)
                    for affiliation in person.affiliation
                ),
            )
            for person in schema.people
        ),
        funding_references=tuple(
            FundingReference(
                funder_name=reference.funder_name,
                funder_id=reference.funder_id,
                funder_id_type=reference.funder_id_type,
                award_uri=reference.award_uri,
                award_number=reference.award_number,
                award_title=reference.award_title,
            )
            for reference in schema.funding_references
        ),
        repositories=tuple(
            WorkRepository(name=repository.name, identifiers=tuple(repository.id))
            for repository in schema.repositories
        ),
        citation=schema.citation,
        match=match,
    )
