"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Relationship between the provenance making a change and the record it changes."""

    OWNER = "owner"
    NON_OWNER = "non_owner"

    @classmethod
    def for_updater(cls, owner_provenance_id: str | None, updater_key: str) -> Role:
        return cls.OWNER if owner_provenance_id == updater_key else cls.NON_OWNER


class AssertionStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Confidence(StrEnum):
    ABSOLUTE = "Absolute"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {
    Confidence.LOW: 1,
    Confidence.MEDIUM: 2,
    Confidence.HIGH: 3,
    Confidence.ABSOLUTE: 4,
}


class FundingStatus(StrEnum):
    PLANNED = "planned"
    APPLIED = "applied"
    GRANTED = "granted"
    REJECTED = "rejected"


PENDING_FUNDING_STATUSES = frozenset({FundingStatus.PLANNED, FundingStatus.APPLIED})


class IdentifierType(StrEnum):
    DOI = "doi"
    URL = "url"
    ORCID = "orcid"
    ROR = "ror"
    FUNDREF = "fundref"
    ARK = "ark"
    HANDLE = "handle"
    OTHER = "other"


class RelationDescriptor(StrEnum):
    REFERENCES = "references"
    IS_REFERENCED_BY = "is_referenced_by"
    IS_CITED_BY = "is_cited_by"
    CITES = "cites"
    IS_SUPPLEMENT_TO = "is_supplement_to"
    IS_SUPPLEMENTED_BY = "is_supplemented_by"
    IS_METADATA_FOR = "is_metadata_for"
    IS_DESCRIBED_BY = "is_described_by"
    DOCUMENTS = "documents"
    IS_DOCUMENTED_BY = "is_documented_by"


class WorkType(StrEnum):
    OTHER = "other"
    ARTICLE = "article"
    DATASET = "dataset"
    OUTPUT_MANAGEMENT_PLAN = "output_management_plan"
    PREPRINT = "preprint"
    PUBLICATION = "publication"
    SOFTWARE = "software"


class Privacy(StrEnum):
    PUBLIC = "public"
    PRIVATE = "private"
