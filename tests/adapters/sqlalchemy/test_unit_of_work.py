from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from dmphub.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyRegistryUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from tests.helpers.records import DMP_ID, make_provenance, make_record

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    with pytest.raises(StartupError):
        SqlAlchemyRegistryUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b
    assert is_started()


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyRegistryUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_persists_committed_writes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyRegistryUnitOfWork() as uow:
        uow.repositories.records.put(make_record())
        uow.repositories.provenances.add(make_provenance())
        uow.commit()

    with SqlAlchemyRegistryUnitOfWork() as uow:
        assert uow.repositories.records.exists(DMP_ID)
        assert uow.repositories.provenances.get("dmptool") is not None


def test_unit_of_work_discards_uncommitted_writes(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyRegistryUnitOfWork() as uow:
        uow.repositories.records.put(make_record())
        raise RuntimeError("boom")

    with SqlAlchemyRegistryUnitOfWork() as uow:
        uow.repositories.records.put(make_record(title="Never committed"))

    with SqlAlchemyRegistryUnitOfWork() as uow:
        assert not uow.repositories.records.exists(DMP_ID)
