"""Ports the registry core depends on."""

from __future__ import annotations

from .citation import CitationLookup
from .events import (
    EventEmissionError,
    PendingEvent,
    RecordChanged,
    RecordEventOutbox,
    RecordEventSink,
)
from .persistence import ProvenanceRepository, RecordStore
from .unit_of_work import (
    RegistryRepositories,
    RegistryUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "CitationLookup",
    "EventEmissionError",
    "PendingEvent",
    "ProvenanceRepository",
    "RecordChanged",
    "RecordEventOutbox",
    "RecordEventSink",
    "RecordStore",
    "RegistryRepositories",
    "RegistryUnitOfWork",
    "RepositoryCollection",
    "UnitOfWork",
]
