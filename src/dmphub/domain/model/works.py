"""Candidate works discovered outside the registry and their match results."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import Confidence, WorkType


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchResult:
    identifier: str
    confidence: Confidence
    score: int
    notes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class WorkAffiliation:
    name: str | None = None
    identifier: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class WorkContributor:
    name: str | None = None
    last_name: str | None = None
    orcid: str | None = None
    affiliations: tuple[WorkAffiliation, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class FundingReference:
    funder_name: str | None = None
    funder_id: str | None = None
    funder_id_type: str | None = None
    award_uri: str | None = None
    award_number: str | None = None
    award_title: str | None = None

    @property
    def award_ids(self) -> tuple[str, ...]:
        return tuple(value for value in (self.award_uri, self.award_number) if value)


@dataclass(frozen=True, slots=True, kw_only=True)
class WorkRepository:
    name: str | None = None
    identifiers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class CandidateWork:
    """A publication, dataset or award found by a harvester.

    ``match`` is filled in when the work has already been scored against the record it is
    being attached to.
    """

    identifier: str
    work_type: str = WorkType.OTHER
    title: str | None = None
    abstract: str | None = None
    contributors: tuple[WorkContributor, ...] = ()
    funding_references: tuple[FundingReference, ...] = ()
    repositories: tuple[WorkRepository, ...] = ()
    citation: str | None = None
    match: MatchResult | None = None

    @property
    def grant_ids(self) -> tuple[str, ...]:
        return tuple(
            award_id for reference in self.funding_references for award_id in reference.award_ids
        )
