"""Change notifications emitted after a record write."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime


class EventEmissionError(RuntimeError):
    """Raised by a sink that could not accept an event."""


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordChanged:
    identifier: str
    version_key: str
    owner_provenance_id: str | None
    changed_by_owner: bool


@dataclass(frozen=True, slots=True, kw_only=True)
class PendingEvent:
    id: int
    event: RecordChanged
    created_at: datetime


@runtime_checkable
class RecordEventSink(Protocol):
    def emit(self, event: RecordChanged) -> None: ...


@runtime_checkable
class RecordEventOutbox(RecordEventSink, Protocol):
    """Sink that keeps events until a downstream consumer marks them delivered."""

    def pending(self, *, limit: int | None = None) -> Sequence[PendingEvent]: ...

    def mark_delivered(self, event_ids: Sequence[int]) -> None: ...
