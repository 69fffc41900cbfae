"""SQLAlchemy table metadata for the registry item store and its event outbox."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# One row per (partition, version): DMP#<id> / VERSION#latest, VERSION#<ts>, VERSION#tombstone
# and PROVENANCE#<key> / PROFILE.
dmp_item_table = Table(
    "dmp_item",
    metadata,
    Column("pk", String, primary_key=True),
    Column("sk", String, primary_key=True),
    Column("provenance_identifier", String, nullable=True),
    Column("modified", UTCDateTime(), nullable=True),
    Column("body", JSON, nullable=False),
    Index("ix_dmp_item_provenance_identifier", "provenance_identifier"),
)

record_event_table = Table(
    "record_event",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("identifier", String, nullable=False),
    Column("version_key", String, nullable=False),
    Column("owner_provenance_id", String, nullable=True),
    Column("changed_by_owner", Boolean, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("delivered_at", UTCDateTime(), nullable=True),
    Index("ix_record_event_delivered_at", "delivered_at"),
)


def create_all_tables(engine: Engine) -> None:
    """Create the tables directly, bypassing migrations."""

    log.info("Creating all tables")
    metadata.create_all(engine)
