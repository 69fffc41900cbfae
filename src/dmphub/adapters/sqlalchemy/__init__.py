"""SQLAlchemy adapter package for the registry item store."""

from __future__ import annotations

from .mappings import create_all_tables, dmp_item_table, metadata, record_event_table
from .repositories import (
    SqlAlchemyProvenanceRepository,
    SqlAlchemyRecordEventOutbox,
    SqlAlchemyRecordStore,
)

__all__ = [
    "SqlAlchemyProvenanceRepository",
    "SqlAlchemyRecordEventOutbox",
    "SqlAlchemyRecordStore",
    "create_all_tables",
    "dmp_item_table",
    "metadata",
    "record_event_table",
]
