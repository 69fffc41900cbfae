from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, insert, inspect, select

from dmphub.adapters.sqlalchemy import create_all_tables, dmp_item_table, record_event_table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_create_all_tables_registers_registry_tables() -> None:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    inspector = inspect(engine)

    assert {"dmp_item", "record_event"} <= set(inspector.get_table_names())
    assert inspector.get_pk_constraint("dmp_item")["constrained_columns"] == ["pk", "sk"]
    engine.dispose()


def test_migrations_create_the_indexes(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    item_indexes = {index["name"] for index in inspector.get_indexes("dmp_item")}
    event_indexes = {index["name"] for index in inspector.get_indexes("record_event")}
    assert "ix_dmp_item_provenance_identifier" in item_indexes
    assert "ix_record_event_delivered_at" in event_indexes


def test_timestamps_come_back_in_utc(sqlite_session: Session) -> None:
    local = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    sqlite_session.execute(
        insert(dmp_item_table).values(pk="DMP#x", sk="VERSION#latest", modified=local, body={})
    )
    sqlite_session.execute(
        insert(record_event_table).values(
            identifier="x",
            version_key="VERSION#latest",
            changed_by_owner=True,
            created_at=datetime(2024, 1, 1, 12, 0),  # noqa: DTZ001
        )
    )

    modified = sqlite_session.execute(select(dmp_item_table.c.modified)).scalar_one()
    created_at = sqlite_session.execute(select(record_event_table.c.created_at)).scalar_one()

    assert modified == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    assert modified.tzinfo is not None
    assert created_at == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
