"""Registration of new records."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from dmphub.domain.augmenter import lookup_citation
from dmphub.domain.clock import Clock, IdFactory, utcnow
from dmphub.domain.errors import Conflict, Forbidden, ValidationFailed
from dmphub.domain.keys import LATEST, TOMBSTONE, format_dmp_id, provenance_identifier
from dmphub.domain.notifications import emit_change

if TYPE_CHECKING:
    from dmphub.domain.model import Provenance, Record, RelatedIdentifier
    from dmphub.domain.ports import CitationLookup, RecordEventSink, RecordStore

log = logging.getLogger(__name__)

MAX_MINT_ATTEMPTS: Final[int] = 10


def new_dmp_id_suffix() -> str:
    return secrets.token_hex(4).upper()


def cite_related_identifiers(record: Record, lookup: CitationLookup) -> Record:
    """``record`` with citations looked up for its citable related identifiers."""

    cited: list[RelatedIdentifier] = []
    for entry in record.related_identifiers:
        citation = None
        if entry.is_citable:
            citation = lookup_citation(lookup, entry.identifier, entry.work_type)
        cited.append(replace(entry, citation=citation) if citation else entry)
    return replace(record, related_identifiers=tuple(cited))


def validate_draft(draft: Record) -> None:
    if not draft.title or not draft.title.strip():
        raise ValidationFailed("A record needs a title")
    if draft.contact is None or not (draft.contact.name or draft.contact.mbox):
        raise ValidationFailed("A record needs a contact with a name or email")


@dataclass(slots=True)
class Creator:
    store: RecordStore
    events: RecordEventSink
    shoulder: str
    base_url: str = "https://doi.org/"
    citation_lookup: CitationLookup | None = None
    clock: Clock = utcnow
    suffix_factory: IdFactory = new_dmp_id_suffix

    def create(self, owner: Provenance, draft: Record) -> Record:
        if not owner.owner_capable:
            raise Forbidden(f"Provenance {owner.key} may not register records")
        validate_draft(draft)

        owner_scoped = draft.identifier or draft.external_system_identifier
        scoped_id = provenance_identifier(owner.key, owner_scoped) if owner_scoped else None
        if scoped_id and self.store.find_by_provenance_identifier(scoped_id) is not None:
            raise Conflict(f"{owner.key} already registered a record for {owner_scoped}")

        identifier = self._identifier_for(owner, draft)
        now = self.clock()
        record = replace(
            draft,
            identifier=identifier,
            owner_provenance_id=owner.key,
            provenance_identifier=scoped_id,
            created=now,
            modified=now,
            registered=now,
            tombstoned_at=None,
            modifications_log=(),
        )
        if self.citation_lookup is not None:
            record = cite_related_identifiers(record, self.citation_lookup)
        self.store.put_if_absent(record, LATEST)
        log.info("Registered %s for %s", identifier, owner.key)
        emit_change(self.events, record, version_key=LATEST, changed_by_owner=True)
        return record

    def _identifier_for(self, owner: Provenance, draft: Record) -> str:
        proposed = draft.external_system_identifier if owner.seeding_mode else None
        if proposed:
            seeded = format_dmp_id(proposed, base_url=self.base_url)
            if seeded is None:
                raise ValidationFailed(f"{proposed} is not a DOI")
            if self._taken(seeded):
                raise Conflict(f"Record {seeded} already exists")
            return seeded

        if draft.identifier:
            existing = format_dmp_id(draft.identifier, base_url=self.base_url)
            if existing is not None and self._taken(existing):
                raise Conflict(f"Record {existing} already exists")

        for _ in range(MAX_MINT_ATTEMPTS):
            candidate = format_dmp_id(
                f"{self.shoulder}{self.suffix_factory()}", base_url=self.base_url
            )
            if candidate is None:
                raise ValidationFailed(f"Shoulder {self.shoulder} does not produce a DOI")
            if not self._taken(candidate):
                return candidate
        raise Conflict(f"Unable to mint a unique identifier after {MAX_MINT_ATTEMPTS} attempts")

    def _taken(self, identifier: str) -> bool:
        return self.store.exists(identifier, LATEST) or self.store.exists(identifier, TOMBSTONE)
