"""Scores candidate works against known records.

Every signal is an exact-match count over normalized identifier sets except titles and
abstracts, which use letter-pair similarity. A shared grant id is treated as proof and ends
scoring for that record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from dmphub.domain.model import Confidence, MatchResult, normalize_identifier
from dmphub.domain.text_similarity import cleanse, white_similarity

if TYPE_CHECKING:
    from dmphub.domain.model import CandidateWork, Record

log = logging.getLogger(__name__)

ABSOLUTE_SCORE: Final[int] = 100
MINIMUM_SCORE: Final[int] = 2
HIGH_SCORE: Final[int] = 10
MEDIUM_SCORE: Final[int] = 5
OPPORTUNITY_BONUS: Final[int] = 5
ORCID_WEIGHT: Final[int] = 2
STRONG_TEXT_SIMILARITY: Final[float] = 0.75
WEAK_TEXT_SIMILARITY: Final[float] = 0.5
STRONG_TEXT_BONUS: Final[int] = 5
WEAK_TEXT_BONUS: Final[int] = 2


def _normalized(values: Iterable[str | None]) -> frozenset[str]:
    return frozenset(normalize_identifier(value) for value in values if value and value.strip())


@dataclass(frozen=True, slots=True, kw_only=True)
class MatchProfile:
    """The parts of a record the comparator looks at, pre-normalized."""

    identifier: str
    title: str = ""
    abstract: str = ""
    grant_ids: frozenset[str] = frozenset()
    opportunity_ids: frozenset[str] = frozenset()
    person_ids: frozenset[str] = frozenset()
    last_names: frozenset[str] = frozenset()
    affiliation_ids: frozenset[str] = frozenset()
    affiliation_names: frozenset[str] = frozenset()
    repository_ids: frozenset[str] = frozenset()

    @classmethod
    def from_record(cls, record: Record) -> MatchProfile:
        fundings = tuple(record.iter_funding())
        people = record.people
        affiliations = [person.affiliation for person in people if person.affiliation]
        return cls(
            identifier=record.identifier or "",
            title=cleanse(record.title),
            abstract=cleanse(record.description),
            grant_ids=_normalized(
                funding.grant_id.identifier for funding in fundings if funding.grant_id is not None
            ),
            opportunity_ids=_normalized(
                value
                for funding in fundings
                for value in (
                    funding.opportunity_id.identifier if funding.opportunity_id else None,
                    funding.project_number,
                )
            ),
            person_ids=_normalized(
                person.person_id.identifier for person in people if person.person_id
            ),
            last_names=_normalized(person.last_name for person in people),
            affiliation_ids=_normalized(
                affiliation.affiliation_id.identifier
                for affiliation in affiliations
                if affiliation.affiliation_id
            ),
            affiliation_names=frozenset(
                affiliation.name.strip().casefold()
                for affiliation in affiliations
                if affiliation.name and affiliation.name.strip()
            ),
            repository_ids=_normalized(_repository_ids(record.extras)),
        )


def _repository_ids(extras: Mapping[str, Any]) -> Iterable[str]:
    datasets = extras.get("dataset")
    if not isinstance(datasets, Sequence) or isinstance(datasets, str):
        return
    for dataset in datasets:
        if not isinstance(dataset, Mapping):
            continue
        distributions = dataset.get("distribution")
        if not isinstance(distributions, Sequence) or isinstance(distributions, str):
            continue
        for distribution in distributions:
            host = distribution.get("host") if isinstance(distribution, Mapping) else None
            if not isinstance(host, Mapping):
                continue
            url = host.get("url")
            if isinstance(url, str):
                yield url
            host_id = host.get("dmproadmap_host_id")
            if isinstance(host_id, Mapping) and isinstance(host_id.get("identifier"), str):
                yield host_id["identifier"]


def confidence_for(score: int) -> Confidence:
    if score > HIGH_SCORE:
        return Confidence.HIGH
    if score > MEDIUM_SCORE:
        return Confidence.MEDIUM
    return Confidence.LOW


def score_profile(work: CandidateWork, profile: MatchProfile) -> MatchResult:
    """Score one work against one profile, without discarding weak matches."""

    grant_ids = _normalized(work.grant_ids)
    if grant_ids & profile.grant_ids:
        return MatchResult(
            identifier=profile.identifier,
            confidence=Confidence.ABSOLUTE,
            score=ABSOLUTE_SCORE,
            notes=("the grant ID matched",),
        )

    score = 0
    notes: list[str] = []

    if grant_ids & profile.opportunity_ids:
        score += OPPORTUNITY_BONUS
        notes.append("the funding opportunity number matched")

    orcids = _normalized(contributor.orcid for contributor in work.contributors)
    matched_orcids = len(orcids & profile.person_ids)
    if matched_orcids:
        score += matched_orcids * ORCID_WEIGHT
        notes.append("contributor ORCIDs matched")

    affiliations = [
        affiliation for contributor in work.contributors for affiliation in contributor.affiliations
    ]
    people_matched = (
        len(_normalized(c.last_name for c in work.contributors) & profile.last_names)
        + len(_normalized(a.identifier for a in affiliations) & profile.affiliation_ids)
        + len(
            frozenset(a.name.strip().casefold() for a in affiliations if a.name)
            & profile.affiliation_names
        )
    )
    if people_matched:
        score += people_matched
        notes.append("contributor names and affiliations matched")

    if score > 0:
        repositories = _normalized(
            value for repository in work.repositories for value in repository.identifiers
        )
        matched_repositories = len(repositories & profile.repository_ids)
        if matched_repositories:
            score += matched_repositories
            notes.append("repositories matched")

    if score > 0:
        score += _text_bonus(work.title, profile.title, "titles", notes)
    if score > 0:
        score += _text_bonus(work.abstract, profile.abstract, "abstracts", notes)

    return MatchResult(
        identifier=profile.identifier,
        confidence=confidence_for(score),
        score=score,
        notes=tuple(notes),
    )


def _text_bonus(text: str | None, known: str, label: str, notes: list[str]) -> int:
    cleansed = cleanse(text)
    if not cleansed or not known:
        return 0
    similarity = white_similarity(known, cleansed)
    log.debug("%s similarity %.3f", label, similarity)
    if similarity < WEAK_TEXT_SIMILARITY:
        return 0
    notes.append(f"{label} are similar")
    return STRONG_TEXT_BONUS if similarity >= STRONG_TEXT_SIMILARITY else WEAK_TEXT_BONUS


def rank(work: CandidateWork, profiles: Iterable[MatchProfile]) -> list[MatchResult]:
    """All matches above the minimum score, best first. Equal scores keep input order."""

    results = [score_profile(work, profile) for profile in profiles]
    kept = [result for result in results if result.score > MINIMUM_SCORE]
    return sorted(kept, key=lambda result: result.score, reverse=True)


def compare(work: CandidateWork, records: Iterable[Record | MatchProfile]) -> MatchResult | None:
    """Best match for ``work`` among ``records``, or ``None`` when nothing scores high enough."""

    profiles = (
        record if isinstance(record, MatchProfile) else MatchProfile.from_record(record)
        for record in records
    )
    ranked = rank(work, profiles)
    return ranked[0] if ranked else None
