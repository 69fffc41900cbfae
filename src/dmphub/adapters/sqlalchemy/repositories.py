"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import asdict, replace
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, OperationalError

from dmphub.adapters.dmp_json import parse_dmp_document, record_to_document
from dmphub.adapters.sqlalchemy.mappings import dmp_item_table, record_event_table
from dmphub.domain.clock import utcnow
from dmphub.domain.errors import Conflict, SnapshotConflict, StoreUnavailable
from dmphub.domain.keys import (
    LATEST,
    PROVENANCE_PROFILE,
    RECORD_PREFIX,
    TOMBSTONE,
    identifier_from_pk,
    provenance_pk,
    record_pk,
)
from dmphub.domain.model import Provenance, Record
from dmphub.domain.ports import PendingEvent, RecordChanged

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from sqlalchemy import Insert
    from sqlalchemy.orm import Session

log = logging.getLogger(__name__)


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except OperationalError as exc:
        raise StoreUnavailable(f"Store unavailable while trying to {action}") from exc


def _insert_ignoring_duplicates(session: Session, values: Mapping[str, Any]) -> bool:
    """Insert a row unless its key exists; return whether a row was written."""

    dialect = session.get_bind().dialect.name
    stmt: Insert
    if dialect == "sqlite":
        stmt = sqlite.insert(dmp_item_table).values(**values).on_conflict_do_nothing()
    elif dialect == "postgresql":
        stmt = postgresql.insert(dmp_item_table).values(**values).on_conflict_do_nothing()
    else:
        try:
            session.execute(insert(dmp_item_table).values(**values))
        except IntegrityError:
            return False
        return True
    return session.execute(stmt).rowcount > 0


def _row_from_record(record: Record, version_key: str) -> dict[str, Any]:
    if record.identifier is None:
        raise ValueError("Cannot store a record without an identifier")
    return {
        "pk": record_pk(record.identifier),
        "sk": version_key,
        "provenance_identifier": record.provenance_identifier,
        "modified": record.modified,
        "body": record_to_document(record)["dmp"],
    }


def _record_from_row(pk: str, body: Mapping[str, Any]) -> Record:
    record = parse_dmp_document(body)
    # the partition key is authoritative for the identifier
    return replace(record, identifier=identifier_from_pk(pk))


class SqlAlchemyRecordStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, identifier: str, version_key: str = LATEST) -> Record | None:
        stmt = select(dmp_item_table.c.pk, dmp_item_table.c.body).where(
            dmp_item_table.c.pk == record_pk(identifier),
            dmp_item_table.c.sk == version_key,
        )
        with _store_errors(f"read {identifier}"):
            row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return _record_from_row(row.pk, row.body)

    def exists(self, identifier: str, version_key: str = LATEST) -> bool:
        stmt = select(dmp_item_table.c.sk).where(
            dmp_item_table.c.pk == record_pk(identifier),
            dmp_item_table.c.sk == version_key,
        )
        with _store_errors(f"read {identifier}"):
            return self.session.execute(stmt).first() is not None

    def put(self, record: Record, version_key: str = LATEST) -> None:
        row = _row_from_record(record, version_key)
        stmt = (
            update(dmp_item_table)
            .where(dmp_item_table.c.pk == row["pk"], dmp_item_table.c.sk == version_key)
            .values(
                provenance_identifier=row["provenance_identifier"],
                modified=row["modified"],
                body=row["body"],
            )
        )
        with _store_errors(f"write {record.identifier}"):
            if self.session.execute(stmt).rowcount == 0:
                self.session.execute(insert(dmp_item_table).values(**row))
        log.debug("Stored %s at %s", record.identifier, version_key)

    def put_if_absent(self, record: Record, version_key: str) -> None:
        row = _row_from_record(record, version_key)
        with _store_errors(f"write {record.identifier}"):
            written = _insert_ignoring_duplicates(self.session, row)
        if written:
            log.debug("Stored %s at %s", record.identifier, version_key)
            return
        if version_key in {LATEST, TOMBSTONE}:
            raise Conflict(f"{record.identifier} already has an item at {version_key}")
        raise SnapshotConflict(f"Snapshot {version_key} of {record.identifier} already exists")

    def delete(self, identifier: str, version_key: str) -> None:
        stmt = delete(dmp_item_table).where(
            dmp_item_table.c.pk == record_pk(identifier),
            dmp_item_table.c.sk == version_key,
        )
        with _store_errors(f"delete {identifier}"):
            self.session.execute(stmt)

    def version_keys(self, identifier: str) -> tuple[str, ...]:
        stmt = (
            select(dmp_item_table.c.sk)
            .where(dmp_item_table.c.pk == record_pk(identifier))
            .order_by(dmp_item_table.c.sk)
        )
        with _store_errors(f"list versions of {identifier}"):
            return tuple(self.session.execute(stmt).scalars())

    def find_by_provenance_identifier(self, value: str) -> Record | None:
        stmt = (
            select(dmp_item_table.c.pk, dmp_item_table.c.body)
            .where(dmp_item_table.c.provenance_identifier == value)
            .where(dmp_item_table.c.sk.in_((LATEST, TOMBSTONE)))
            .order_by(dmp_item_table.c.sk)
            .limit(1)
        )
        with _store_errors(f"look up {value}"):
            row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return _record_from_row(row.pk, row.body)

    def iter_latest(self) -> Iterator[Record]:
        stmt = (
            select(dmp_item_table.c.pk, dmp_item_table.c.body)
            .where(dmp_item_table.c.pk.startswith(RECORD_PREFIX, autoescape=True))
            .where(dmp_item_table.c.sk == LATEST)
            .order_by(dmp_item_table.c.pk)
        )
        with _store_errors("scan latest records"):
            rows = self.session.execute(stmt).all()
        for row in rows:
            yield _record_from_row(row.pk, row.body)


class SqlAlchemyProvenanceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> Provenance | None:
        stmt = select(dmp_item_table.c.body).where(
            dmp_item_table.c.pk == provenance_pk(key),
            dmp_item_table.c.sk == PROVENANCE_PROFILE,
        )
        with _store_errors(f"read provenance {key}"):
            body = self.session.execute(stmt).scalar_one_or_none()
        if body is None:
            return None
        return Provenance(**body)

    def add(self, provenance: Provenance) -> None:
        pk = provenance_pk(provenance.key)
        body = asdict(provenance)
        with _store_errors(f"write provenance {provenance.key}"):
            result = self.session.execute(
                update(dmp_item_table)
                .where(dmp_item_table.c.pk == pk, dmp_item_table.c.sk == PROVENANCE_PROFILE)
                .values(body=body)
            )
            if result.rowcount == 0:
                self.session.execute(
                    insert(dmp_item_table).values(pk=pk, sk=PROVENANCE_PROFILE, body=body)
                )


class SqlAlchemyRecordEventOutbox:
    """Change events written in the same transaction as the record they describe."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def emit(self, event: RecordChanged) -> None:
        stmt = insert(record_event_table).values(
            identifier=event.identifier,
            version_key=event.version_key,
            owner_provenance_id=event.owner_provenance_id,
            changed_by_owner=event.changed_by_owner,
            created_at=utcnow(),
        )
        with _store_errors(f"queue an event for {event.identifier}"):
            self.session.execute(stmt)

    def pending(self, *, limit: int | None = None) -> Sequence[PendingEvent]:
        stmt = (
            select(record_event_table)
            .where(record_event_table.c.delivered_at.is_(None))
            .order_by(record_event_table.c.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with _store_errors("read pending events"):
            rows = self.session.execute(stmt).all()
        return [
            PendingEvent(
                id=row.id,
                created_at=row.created_at,
                event=RecordChanged(
                    identifier=row.identifier,
                    version_key=row.version_key,
                    owner_provenance_id=row.owner_provenance_id,
                    changed_by_owner=row.changed_by_owner,
                ),
            )
            for row in rows
        ]

    def mark_delivered(self, event_ids: Sequence[int]) -> None:
        if not event_ids:
            return
        stmt = (
            update(record_event_table)
            .where(record_event_table.c.id.in_(list(event_ids)))
            .values(delivered_at=utcnow())
        )
        with _store_errors("mark events delivered"):
            self.session.execute(stmt)


if TYPE_CHECKING:
    from dmphub.domain.ports import ProvenanceRepository, RecordEventOutbox, RecordStore

    def _store_check(session: Session) -> None:
        _records: RecordStore = SqlAlchemyRecordStore(session)
        _provenances: ProvenanceRepository = SqlAlchemyProvenanceRepository(session)
        _events: RecordEventOutbox = SqlAlchemyRecordEventOutbox(session)
