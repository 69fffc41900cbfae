"""Domain model for DMP records."""

from __future__ import annotations

from .enums import (
    PENDING_FUNDING_STATUSES,
    AssertionStatus,
    Confidence,
    FundingStatus,
    IdentifierType,
    Privacy,
    RelationDescriptor,
    Role,
    WorkType,
)
from .provenance import Provenance
from .record import (
    DOI_PATTERN,
    Affiliation,
    Assertion,
    Funding,
    Person,
    Project,
    Record,
    RelatedIdentifier,
    TypedIdentifier,
    infer_identifier_type,
    normalize_identifier,
)
from .works import (
    CandidateWork,
    FundingReference,
    MatchResult,
    WorkAffiliation,
    WorkContributor,
    WorkRepository,
)

__all__ = [
    "DOI_PATTERN",
    "PENDING_FUNDING_STATUSES",
    "Affiliation",
    "Assertion",
    "AssertionStatus",
    "CandidateWork",
    "Confidence",
    "Funding",
    "FundingReference",
    "FundingStatus",
    "IdentifierType",
    "MatchResult",
    "Person",
    "Privacy",
    "Project",
    "Provenance",
    "Record",
    "RelatedIdentifier",
    "RelationDescriptor",
    "Role",
    "TypedIdentifier",
    "WorkAffiliation",
    "WorkContributor",
    "WorkRepository",
    "WorkType",
    "infer_identifier_type",
    "normalize_identifier",
]
