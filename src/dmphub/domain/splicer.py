"""Field-level merge of an incoming record body into the current state.

``splice_for_owner`` applies an owner's edit, ``splice_for_other`` folds in contributions from
any other provenance. Both are pure: they return a new record and never touch the store.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Final

from dmphub.domain.model import FundingStatus, Project

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from dmphub.domain.model import Funding, Record, RelatedIdentifier

# bookkeeping fields that only the registry itself writes
RESERVED_FIELDS: Final[tuple[str, ...]] = (
    "identifier",
    "owner_provenance_id",
    "provenance_identifier",
    "external_system_identifier",
    "created",
    "modified",
    "registered",
    "tombstoned_at",
    "modifications_log",
)


def carry_reserved_fields(base: Record, merged: Record) -> Record:
    return replace(merged, **{name: getattr(base, name) for name in RESERVED_FIELDS})


def splice_for_owner(base: Record, incoming: Record) -> Record:
    """Merge an owner's full-body edit.

    The incoming lists become authoritative, but entries other provenances contributed to
    ``base`` survive: the owner cannot drop them by omission.
    """

    owner = base.owner_provenance_id
    related = _append_unseen(
        incoming.related_identifiers,
        (entry for entry in base.related_identifiers if _contributed(entry.provenance_id, owner)),
    )

    incoming_grants = {
        funding.grant_id.normalized
        for funding in incoming.iter_funding()
        if funding.grant_id is not None
    }
    preserved: list[Funding] = []
    for funding in base.iter_funding():
        if not _contributed(funding.provenance_id, owner):
            continue
        if funding.grant_id is not None and funding.grant_id.normalized in incoming_grants:
            continue
        preserved.append(funding)

    merged = replace(
        incoming,
        related_identifiers=related,
        projects=_append_to_first_project(incoming.projects, preserved),
    )
    return carry_reserved_fields(base, merged)


def splice_for_other(base: Record, incoming: Record, updater: str, *, now: datetime) -> Record:
    """Fold a non-owner's funding and related identifiers into ``base``.

    Every other field of ``base`` is kept as is.
    """

    projects = _update_funding(base.projects, tuple(incoming.iter_funding()), updater, now=now)
    related = _update_related_identifiers(
        base.related_identifiers, incoming.related_identifiers, updater
    )
    return replace(base, projects=projects, related_identifiers=related)


def complete_pending_funding(
    base: Record,
    completions: Sequence[Funding],
    updater: str,
    *,
    now: datetime,
) -> Record:
    """Apply only the funding half of ``splice_for_other``."""

    if not completions:
        return base
    return replace(base, projects=_update_funding(base.projects, completions, updater, now=now))


def apply_contribution(
    base: Record,
    *,
    related_identifiers: Sequence[RelatedIdentifier],
    funding: Sequence[Funding],
    provenance: str,
    now: datetime,
) -> Record:
    """Fold an accepted assertion into the authoritative lists, tagged with its provenance.

    Unlike ``splice_for_other`` the related identifiers are added to what the provenance
    already contributed instead of replacing it.
    """

    projects = _update_funding(base.projects, funding, provenance, now=now)
    related = _append_unseen(
        base.related_identifiers,
        (replace(entry, provenance_id=provenance) for entry in related_identifiers),
    )
    return replace(base, projects=projects, related_identifiers=related)


def pending_funding_completions(base: Record, incoming: Record) -> tuple[Funding, ...]:
    """Incoming funding entries that supply the grant for a pending entry on ``base``."""

    known = base.known_grant_ids()
    pending = [funding for funding in base.iter_funding() if funding.is_pending]
    completions: list[Funding] = []
    for funding in incoming.iter_funding():
        if funding.grant_id is None or funding.grant_id.normalized in known:
            continue
        if any(candidate.same_funder(funding) for candidate in pending):
            completions.append(funding)
    return tuple(completions)


def _contributed(provenance_id: str | None, owner: str | None) -> bool:
    return provenance_id is not None and provenance_id != owner


def _append_unseen(
    first: Sequence[RelatedIdentifier],
    rest: Iterable[RelatedIdentifier],
) -> tuple[RelatedIdentifier, ...]:
    seen = {entry.normalized for entry in first}
    merged = list(first)
    for entry in rest:
        if entry.normalized in seen:
            continue
        seen.add(entry.normalized)
        merged.append(entry)
    return tuple(merged)


def _append_to_first_project(
    projects: tuple[Project, ...],
    funding: Sequence[Funding],
) -> tuple[Project, ...]:
    if not funding:
        return projects
    if not projects:
        return (Project(funding=tuple(funding)),)
    first, *rest = projects
    return (replace(first, funding=(*first.funding, *funding)), *rest)


def _update_funding(
    projects: tuple[Project, ...],
    incoming: Sequence[Funding],
    updater: str,
    *,
    now: datetime,
) -> tuple[Project, ...]:
    slots = [list(project.funding) for project in projects]
    appended: list[Funding] = []

    for funding in incoming:
        if funding.funding_status is None and funding.grant_id is None:
            continue

        if funding.grant_id is None:
            if not _already_contributed(slots, appended, funding, updater):
                appended.append(replace(funding, provenance_id=updater, created_at=now))
            continue

        known = {
            entry.grant_id.normalized
            for entry in (*(entry for slot in slots for entry in slot), *appended)
            if entry.grant_id is not None
        }
        if funding.grant_id.normalized in known:
            continue

        position = _newest_pending_position(slots, funding)
        if position is None:
            appended.append(
                replace(
                    funding,
                    funding_status=FundingStatus.GRANTED,
                    provenance_id=updater,
                    created_at=now,
                )
            )
            continue

        project_index, funding_index = position
        current = slots[project_index][funding_index]
        slots[project_index][funding_index] = replace(
            funding,
            name=current.name or funding.name,
            funder_id=current.funder_id or funding.funder_id,
            funding_status=FundingStatus.GRANTED,
            opportunity_id=current.opportunity_id or funding.opportunity_id,
            project_number=current.project_number or funding.project_number,
            provenance_id=updater,
            created_at=now,
        )

    updated = tuple(
        replace(project, funding=tuple(slot)) for project, slot in zip(projects, slots, strict=True)
    )
    return _append_to_first_project(updated, appended)


def _newest_pending_position(
    slots: Sequence[Sequence[Funding]],
    funding: Funding,
) -> tuple[int, int] | None:
    candidates = [
        (project_index, funding_index, entry)
        for project_index, slot in enumerate(slots)
        for funding_index, entry in enumerate(slot)
        if entry.is_pending and entry.same_funder(funding)
    ]
    if not candidates:
        return None
    # newest first; entries without a timestamp are oldest
    candidates.sort(
        key=lambda item: item[2].created_at.timestamp() if item[2].created_at else float("-inf"),
        reverse=True,
    )
    project_index, funding_index, _ = candidates[0]
    return project_index, funding_index


def _already_contributed(
    slots: Sequence[Sequence[Funding]],
    appended: Sequence[Funding],
    funding: Funding,
    updater: str,
) -> bool:
    existing = [entry for slot in slots for entry in slot]
    existing.extend(appended)
    return any(
        entry.provenance_id == updater
        and entry.funding_status == funding.funding_status
        and entry.same_funder(funding)
        for entry in existing
    )


def _update_related_identifiers(
    current: Sequence[RelatedIdentifier],
    incoming: Sequence[RelatedIdentifier],
    updater: str,
) -> tuple[RelatedIdentifier, ...]:
    kept = tuple(entry for entry in current if entry.provenance_id != updater)
    tagged = (replace(entry, provenance_id=updater) for entry in incoming)
    return _append_unseen(kept, tagged)
