"""Turns matched external works into ledger entries on a record."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from dmphub.domain.clock import Clock, new_run_id, utcnow
from dmphub.domain.comparator import MatchProfile, rank
from dmphub.domain.errors import NotFound, ValidationFailed
from dmphub.domain.keys import LATEST
from dmphub.domain.model import (
    DOI_PATTERN,
    Assertion,
    Funding,
    FundingStatus,
    IdentifierType,
    RelatedIdentifier,
    RelationDescriptor,
    TypedIdentifier,
    WorkType,
    normalize_identifier,
)
from dmphub.domain.notifications import emit_change

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import datetime

    from dmphub.domain.model import (
        CandidateWork,
        Confidence,
        FundingReference,
        MatchResult,
        Provenance,
        Record,
    )
    from dmphub.domain.ports import CitationLookup, RecordEventSink, RecordStore

log = logging.getLogger(__name__)

_WORK_TYPE_ALIASES = {"text": WorkType.PUBLICATION, "journal-article": WorkType.ARTICLE}
_DOI_PREFIX = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:)", re.I)


def doi_url(value: str) -> str:
    """Resolver URL form for DOIs; anything else is returned stripped."""

    stripped = value.strip()
    if not DOI_PATTERN.match(stripped) or stripped.lower().startswith("http"):
        return stripped
    return f"https://doi.org/{stripped.removeprefix('doi:').removeprefix('DOI:')}"


def work_key(value: str) -> str:
    """Comparison form of a work identifier: DOIs lose any resolver or ``doi:`` prefix."""

    normalized = normalize_identifier(value)
    if DOI_PATTERN.match(normalized):
        return _DOI_PREFIX.sub("", normalized)
    return normalized


def award_forms(value: str) -> frozenset[str]:
    """A normalized award id plus, for award URLs, its trailing path segment."""

    normalized = normalize_identifier(value)
    if "://" not in normalized:
        return frozenset((normalized,))
    tail = normalized.rstrip("/").rsplit("/", 1)[-1]
    return frozenset((normalized, tail)) if tail else frozenset((normalized,))


def known_work_keys(record: Record) -> set[str]:
    return {work_key(value) for value in record.known_related_identifiers()}


def known_award_forms(record: Record) -> set[str]:
    return {form for value in record.known_award_ids() for form in award_forms(value)}


def match_for(work: CandidateWork, profile: MatchProfile) -> MatchResult | None:
    if work.match is not None:
        return work.match if work.match.identifier == profile.identifier else None
    ranked = rank(work, (profile,))
    return ranked[0] if ranked else None


def new_works(latest: Record, works: Iterable[CandidateWork]) -> list[CandidateWork]:
    """Works that match ``latest`` and are not yet on it or its ledger."""

    profile = MatchProfile.from_record(latest)
    known = known_work_keys(latest)
    found: list[CandidateWork] = []
    for work in works:
        key = work_key(work.identifier)
        if key in known or match_for(work, profile) is None:
            continue
        known.add(key)
        found.append(work)
    return found


def lookup_citation(lookup: CitationLookup, doi: str, work_type: str) -> str | None:
    try:
        return lookup(doi, work_type=work_type)
    except Exception:  # noqa: BLE001
        log.warning("Citation lookup failed for %s", doi, exc_info=True)
        return None


def resolve_citations(
    latest: Record,
    works: Sequence[CandidateWork],
    lookup: CitationLookup,
) -> list[CandidateWork]:
    """``works`` with citations filled in for the ones that would join ``latest``."""

    pending = {work.identifier for work in new_works(latest, works) if not work.citation}
    resolved: list[CandidateWork] = []
    for work in works:
        citation = None
        if work.identifier in pending:
            pending.discard(work.identifier)
            citation = lookup_citation(lookup, doi_url(work.identifier), _work_type(work.work_type))
        resolved.append(replace(work, citation=citation) if citation else work)
    return resolved


def _work_type(value: str | None) -> str:
    if not value:
        return WorkType.OTHER
    normalized = value.strip().lower()
    return _WORK_TYPE_ALIASES.get(normalized, normalized)


def _typed(value: str, *, hint: str | None = None) -> TypedIdentifier:
    lowered = value.lower()
    if hint == IdentifierType.ROR or "ror.org/" in lowered:
        kind = IdentifierType.ROR
    elif "doi.org/" in lowered or DOI_PATTERN.match(value.strip()):
        kind = IdentifierType.DOI
    elif lowered.startswith("http"):
        kind = IdentifierType.URL
    else:
        kind = IdentifierType.OTHER
    return TypedIdentifier(type=kind, identifier=value.strip())


@dataclass(slots=True)
class Augmenter:
    """Appends one combined assertion per run with every new work and award found.

    ``provenance`` is the system the harvested works came from; its name is recorded on the
    ledger header. Works that arrive without a citation are looked up through
    ``citation_lookup`` when one is set.
    """

    store: RecordStore
    events: RecordEventSink
    provenance: Provenance
    citation_lookup: CitationLookup | None = None
    clock: Clock = utcnow
    run_id_factory: Callable[[datetime], str] = new_run_id

    def latest_for(self, record: Record) -> Record:
        if record.identifier is None:
            raise ValidationFailed("Cannot augment a record without an identifier")
        latest = self.store.get(record.identifier, LATEST)
        if latest is None:
            raise NotFound(f"No latest version of {record.identifier}")
        return latest

    def add_modifications(self, record: Record, works: Iterable[CandidateWork]) -> int:
        latest = self.latest_for(record)
        works = list(works)
        if self.citation_lookup is not None:
            works = resolve_citations(latest, works, self.citation_lookup)

        profile = MatchProfile.from_record(latest)
        known_works = known_work_keys(latest)
        known_awards = known_award_forms(latest)
        related: list[RelatedIdentifier] = []
        funding: list[Funding] = []
        confidences: list[Confidence] = []

        for work in works:
            match = match_for(work, profile)
            if match is None:
                log.debug("Skipping %s: no match with %s", work.identifier, latest.identifier)
                continue

            key = work_key(work.identifier)
            if key not in known_works:
                known_works.add(key)
                related.append(_related_identifier(work, match))
                confidences.append(match.confidence)

            for reference in work.funding_references:
                award_ids = {form for value in reference.award_ids for form in award_forms(value)}
                if not award_ids or award_ids & known_awards:
                    continue
                known_awards |= award_ids
                funding.append(_funding_entry(reference))
                confidences.append(match.confidence)

        if not related and not funding:
            log.info("No new works or awards for %s", latest.identifier)
            return 0

        now = self.clock()
        name = self.provenance.name or self.provenance.key
        header = Assertion(
            id=self.run_id_factory(now),
            provenance=self.provenance.key,
            provenance_name=name,
            timestamp=now,
            note=f"data received from {name}",
            confidence=max(confidences, key=lambda value: value.rank) if confidences else None,
            related_identifiers=tuple(related),
            funding=tuple(funding),
        )
        updated = replace(latest, modifications_log=(*latest.modifications_log, header))
        self.store.put(updated, LATEST)
        emit_change(self.events, updated, version_key=LATEST, changed_by_owner=False)

        added = len(related) + len(funding)
        log.info("Added %d modification(s) to %s in run %s", added, latest.identifier, header.id)
        return added


def _related_identifier(work: CandidateWork, match: MatchResult) -> RelatedIdentifier:
    work_id = doi_url(work.identifier)
    return RelatedIdentifier(
        identifier=work_id,
        type=IdentifierType.DOI if DOI_PATTERN.match(work_id) else IdentifierType.URL,
        descriptor=RelationDescriptor.REFERENCES,
        work_type=_work_type(work.work_type),
        citation=work.citation,
        confidence=match.confidence,
        score=match.score,
        notes=match.notes,
    )


def _funding_entry(reference: FundingReference) -> Funding:
    award = reference.award_uri or reference.award_number or ""
    return Funding(
        name=reference.funder_name,
        funder_id=(
            _typed(reference.funder_id, hint=reference.funder_id_type)
            if reference.funder_id
            else None
        ),
        funding_status=FundingStatus.GRANTED,
        grant_id=_typed(award),
    )
