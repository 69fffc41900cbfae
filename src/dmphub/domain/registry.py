"""Operation-level entry points, each running inside one unit of work."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from dmphub.domain.augmenter import Augmenter, resolve_citations
from dmphub.domain.clock import Clock, utcnow
from dmphub.domain.comparator import compare
from dmphub.domain.creator import Creator, cite_related_identifiers
from dmphub.domain.errors import Forbidden, NotFound
from dmphub.domain.finder import VersionEntry, get_record, list_versions
from dmphub.domain.tombstoner import Tombstoner
from dmphub.domain.updater import Updater
from dmphub.domain.versioner import DEFAULT_VERSION_WINDOW, Versioner

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from dmphub.domain.model import (
        AssertionStatus,
        CandidateWork,
        MatchResult,
        Provenance,
        Record,
    )
    from dmphub.domain.ports import (
        CitationLookup,
        PendingEvent,
        RegistryRepositories,
        RegistryUnitOfWork,
    )

log = logging.getLogger(__name__)


def _provenance(repositories: RegistryRepositories, key: str) -> Provenance:
    provenance = repositories.provenances.get(key)
    if provenance is None:
        raise Forbidden(f"Unknown provenance {key}")
    return provenance


@dataclass(slots=True)
class RecordRegistry:
    unit_of_work_factory: Callable[[], RegistryUnitOfWork]
    shoulder: str
    base_url: str = "https://doi.org/"
    api_base_url: str = "https://api.dmphub.example.org/"
    version_window: timedelta = DEFAULT_VERSION_WINDOW
    citation_lookup: CitationLookup | None = None
    clock: Clock = utcnow

    def register_provenance(self, provenance: Provenance) -> Provenance:
        with self.unit_of_work_factory() as uow:
            uow.repositories.provenances.add(provenance)
            uow.commit()
        log.info("Registered provenance %s", provenance.key)
        return provenance

    def get_provenance(self, key: str) -> Provenance:
        with self.unit_of_work_factory() as uow:
            provenance = uow.repositories.provenances.get(key)
        if provenance is None:
            raise NotFound(f"Unknown provenance {key}")
        return provenance

    def create_record(self, owner_key: str, draft: Record) -> Record:
        if self.citation_lookup is not None:
            draft = cite_related_identifiers(draft, self.citation_lookup)
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            creator = Creator(
                store=repositories.records,
                events=repositories.events,
                shoulder=self.shoulder,
                base_url=self.base_url,
                clock=self.clock,
            )
            record = creator.create(_provenance(repositories, owner_key), draft)
            uow.commit()
        return record

    def update_record(
        self,
        updater_key: str,
        identifier: str,
        incoming: Record,
        *,
        note: str | None = None,
    ) -> Record:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = self._updater(repositories).update(
                _provenance(repositories, updater_key), identifier, incoming, note=note
            )
            uow.commit()
        return record

    def review_assertion(
        self,
        owner_key: str,
        identifier: str,
        assertion_id: str,
        status: AssertionStatus,
    ) -> Record:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = self._updater(repositories).review(
                _provenance(repositories, owner_key), identifier, assertion_id, status
            )
            uow.commit()
        return record

    def tombstone_record(self, owner_key: str, identifier: str) -> Record:
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            tombstoner = Tombstoner(
                store=repositories.records, events=repositories.events, clock=self.clock
            )
            record = tombstoner.tombstone(_provenance(repositories, owner_key), identifier)
            uow.commit()
        return record

    def get_record(self, identifier: str, version: str | None = None) -> Record:
        with self.unit_of_work_factory() as uow:
            return get_record(uow.repositories.records, identifier, version)

    def list_versions(self, identifier: str) -> list[VersionEntry]:
        with self.unit_of_work_factory() as uow:
            return list_versions(
                uow.repositories.records, identifier, api_base_url=self.api_base_url
            )

    def score_candidate(
        self,
        work: CandidateWork,
        records: Iterable[Record] | None = None,
    ) -> MatchResult | None:
        """Best match for ``work``; scores against every live record when none are given."""

        if records is not None:
            return compare(work, records)
        with self.unit_of_work_factory() as uow:
            return compare(work, list(uow.repositories.records.iter_latest()))

    def augment(
        self,
        augmenter_key: str,
        record: Record,
        works: Iterable[CandidateWork],
    ) -> int:
        """Attach matched ``works`` to ``record``; citations are looked up before the write."""

        works = list(works)
        if self.citation_lookup is not None:
            with self.unit_of_work_factory() as uow:
                latest = self._augmenter(uow.repositories, augmenter_key).latest_for(record)
            works = resolve_citations(latest, works, self.citation_lookup)
        with self.unit_of_work_factory() as uow:
            added = self._augmenter(uow.repositories, augmenter_key).add_modifications(
                record, works
            )
            if added:
                uow.commit()
        return added

    def pending_events(self, *, limit: int | None = None) -> Sequence[PendingEvent]:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.events.pending(limit=limit)

    def mark_events_delivered(self, event_ids: Sequence[int]) -> None:
        with self.unit_of_work_factory() as uow:
            uow.repositories.events.mark_delivered(event_ids)
            uow.commit()

    def _augmenter(self, repositories: RegistryRepositories, augmenter_key: str) -> Augmenter:
        return Augmenter(
            store=repositories.records,
            events=repositories.events,
            provenance=_provenance(repositories, augmenter_key),
            clock=self.clock,
        )

    def _updater(self, repositories: RegistryRepositories) -> Updater:
        return Updater(
            store=repositories.records,
            events=repositories.events,
            versioner=Versioner(
                store=repositories.records, window=self.version_window, clock=self.clock
            ),
            clock=self.clock,
        )
