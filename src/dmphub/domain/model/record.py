"""DMP record value objects.

Everything here is a frozen dataclass. Merge code never mutates a record in place; it builds
a new one with ``dataclasses.replace``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .enums import (
    PENDING_FUNDING_STATUSES,
    AssertionStatus,
    Confidence,
    FundingStatus,
    IdentifierType,
    Privacy,
    RelationDescriptor,
    WorkType,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from datetime import datetime

DOI_PATTERN = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:)?10\.\d{4,}(?:\.\d+)*/\S+$", re.I)


def normalize_identifier(value: str) -> str:
    """Comparison form of an identifier: case-folded with all whitespace removed."""

    return "".join(value.split()).casefold()


def infer_identifier_type(value: str) -> str:
    return IdentifierType.DOI if DOI_PATTERN.match(value.strip()) else IdentifierType.URL


@dataclass(frozen=True, slots=True, kw_only=True)
class TypedIdentifier:
    type: str
    identifier: str

    @property
    def normalized(self) -> str:
        return normalize_identifier(self.identifier)


@dataclass(frozen=True, slots=True, kw_only=True)
class Affiliation:
    name: str | None = None
    affiliation_id: TypedIdentifier | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Person:
    name: str | None = None
    mbox: str | None = None
    person_id: TypedIdentifier | None = None
    affiliation: Affiliation | None = None
    roles: tuple[str, ...] = ()
    extras: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @property
    def last_name(self) -> str | None:
        """Family name from either ``"Doe, Jane"`` or ``"Jane Doe"`` forms."""

        if not self.name or not self.name.strip():
            return None
        name = self.name.strip()
        if "," in name:
            return name.split(",", 1)[0].strip() or None
        return name.split()[-1]


@dataclass(frozen=True, slots=True, kw_only=True)
class Funding:
    name: str | None = None
    funder_id: TypedIdentifier | None = None
    funding_status: FundingStatus | None = None
    grant_id: TypedIdentifier | None = None
    opportunity_id: TypedIdentifier | None = None
    project_number: str | None = None
    # set when the entry was contributed by a provenance other than the owner
    provenance_id: str | None = None
    created_at: datetime | None = None
    extras: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @property
    def is_pending(self) -> bool:
        return self.grant_id is None and self.funding_status in PENDING_FUNDING_STATUSES

    def same_funder(self, other: Funding) -> bool:
        if self.funder_id is not None and other.funder_id is not None:
            return self.funder_id.normalized == other.funder_id.normalized
        if self.funder_id is None and other.funder_id is None and self.name and other.name:
            return normalize_identifier(self.name) == normalize_identifier(other.name)
        return False


@dataclass(frozen=True, slots=True, kw_only=True)
class Project:
    title: str | None = None
    description: str | None = None
    start: str | None = None
    end: str | None = None
    funding: tuple[Funding, ...] = ()
    extras: Mapping[str, Any] = field(default_factory=dict, hash=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class RelatedIdentifier:
    identifier: str
    type: str = ""
    descriptor: str = RelationDescriptor.REFERENCES
    work_type: str = WorkType.OTHER
    citation: str | None = None
    provenance_id: str | None = None
    # match details when the entry was proposed by the augmenter
    confidence: Confidence | None = None
    score: int | None = None
    notes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.type:
            object.__setattr__(self, "type", infer_identifier_type(self.identifier))

    @property
    def normalized(self) -> str:
        return normalize_identifier(self.identifier)

    @property
    def is_citable(self) -> bool:
        """Whether a citation should be looked up: a DOI that is not the plan itself."""

        if self.descriptor == RelationDescriptor.IS_METADATA_FOR:
            return False
        if self.work_type == WorkType.OUTPUT_MANAGEMENT_PLAN:
            return False
        return self.type == IdentifierType.DOI and not self.citation


@dataclass(frozen=True, slots=True, kw_only=True)
class Assertion:
    """One entry of a record's modifications log.

    The payload is the pair of proposed ``related_identifiers`` and ``funding`` entries; an
    assertion carries at least one of them.
    """

    id: str
    provenance: str
    timestamp: datetime
    status: AssertionStatus = AssertionStatus.PENDING
    provenance_name: str | None = None
    note: str | None = None
    confidence: Confidence | None = None
    related_identifiers: tuple[RelatedIdentifier, ...] = ()
    funding: tuple[Funding, ...] = ()

    @property
    def is_pending(self) -> bool:
        return self.status is AssertionStatus.PENDING


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    identifier: str | None = None
    title: str
    description: str | None = None
    contact: Person | None = None
    contributors: tuple[Person, ...] = ()
    projects: tuple[Project, ...] = ()
    related_identifiers: tuple[RelatedIdentifier, ...] = ()
    privacy: Privacy = Privacy.PRIVATE
    owner_provenance_id: str | None = None
    provenance_identifier: str | None = None
    external_system_identifier: str | None = None
    created: datetime | None = None
    modified: datetime | None = None
    registered: datetime | None = None
    tombstoned_at: datetime | None = None
    modifications_log: tuple[Assertion, ...] = ()
    # unmodelled DMP sections (dataset, ethical issues, language, ...) kept verbatim
    extras: Mapping[str, Any] = field(default_factory=dict)

    @property
    def people(self) -> tuple[Person, ...]:
        if self.contact is None:
            return self.contributors
        return (self.contact, *self.contributors)

    def iter_funding(self) -> Iterator[Funding]:
        for project in self.projects:
            yield from project.funding

    def known_related_identifiers(self) -> frozenset[str]:
        """Normalized related identifiers on the record, authoritative and ledger combined."""

        known = {entry.normalized for entry in self.related_identifiers}
        for assertion in self.modifications_log:
            known.update(entry.normalized for entry in assertion.related_identifiers)
        return frozenset(known)

    def known_grant_ids(self) -> frozenset[str]:
        """Normalized grant ids, authoritative and ledger combined."""

        return frozenset(
            funding.grant_id.normalized
            for funding in self._all_funding()
            if funding.grant_id is not None
        )

    def known_award_ids(self) -> frozenset[str]:
        """Known grant ids plus funding opportunity ids."""

        opportunities = {
            funding.opportunity_id.normalized
            for funding in self._all_funding()
            if funding.opportunity_id is not None
        }
        return self.known_grant_ids() | opportunities

    def _all_funding(self) -> Iterator[Funding]:
        yield from self.iter_funding()
        for assertion in self.modifications_log:
            yield from assertion.funding

    def find_assertion(self, assertion_id: str) -> Assertion | None:
        return next((entry for entry in self.modifications_log if entry.id == assertion_id), None)
