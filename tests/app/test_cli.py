from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from dmphub.app import build_registry
from dmphub.config import MissingConfigurationError, RegistryConfig
from dmphub.ui import cli
from tests.helpers.fakes import FakeUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from dmphub.domain.registry import RecordRegistry

DOCUMENT = {
    "dmp": {
        "title": "Coastal erosion monitoring plan",
        "contact": {"name": "Jane Doe", "mbox": "jane@example.org"},
        "dmproadmap_external_system_identifier": "plan/1",
    }
}


@pytest.fixture
def uow() -> FakeUnitOfWork:
    return FakeUnitOfWork()


@pytest.fixture
def registry_factory(uow: FakeUnitOfWork) -> Callable[..., RecordRegistry]:
    def factory(**kwargs: Any) -> RecordRegistry:
        assert kwargs == {"fetch_citations": False}
        return build_registry(
            unit_of_work_factory=lambda: uow,
            registry_config=RegistryConfig(dmp_id_shoulder="10.48321/D1"),
            fetch_citations=False,
        )

    return factory


def _write(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def _run(
    factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
    *argv: str,
) -> Any:
    cli.main(["--no-citations", *argv], registry_factory=factory)
    output = capsys.readouterr().out
    return json.loads(output) if output.strip() else None


def test_cli_create_update_and_read(
    registry_factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    document = _write(tmp_path / "dmp.json", DOCUMENT)
    _run(registry_factory, capsys, "provenance", "add", "dmptool", "--name", "DMPTool")
    _run(registry_factory, capsys, "provenance", "add", "datacite", "--no-owner")

    created = _run(registry_factory, capsys, "create", "--provenance", "dmptool", str(document))
    dmp_id = created["dmp"]["dmp_id"]["identifier"]
    assert dmp_id.startswith("https://doi.org/10.48321/D1")
    assert created["dmp"]["dmphub_provenance_identifier"] == "dmptool#plan/1"

    harvested = _write(
        tmp_path / "harvested.json",
        {
            "dmp": {
                **DOCUMENT["dmp"],
                "dmproadmap_related_identifiers": [
                    {"identifier": "https://doi.org/10.5555/paper.1", "work_type": "article"}
                ],
            }
        },
    )
    updated = _run(
        registry_factory,
        capsys,
        "update",
        "--provenance",
        "datacite",
        "--note",
        "found in DataCite",
        dmp_id,
        str(harvested),
    )
    (assertion,) = updated["dmp"]["dmphub_modifications"]
    assert assertion["note"] == "found in DataCite"
    assert assertion["status"] == "pending"

    reviewed = _run(
        registry_factory,
        capsys,
        "review",
        "--provenance",
        "dmptool",
        dmp_id,
        assertion["id"],
        "accepted",
    )
    assert reviewed["dmp"]["dmproadmap_related_identifiers"][0]["dmphub_provenance_id"] == (
        "datacite"
    )

    fetched = _run(registry_factory, capsys, "get", dmp_id)
    assert fetched == reviewed
    versions = _run(registry_factory, capsys, "versions", dmp_id)
    assert versions[0]["url"].startswith("https://api.dmphub.example.org/dmps/doi.org/")
    events = _run(registry_factory, capsys, "events", "--ack")
    assert [event["changed_by_owner"] for event in events] == [True, False, True]
    assert _run(registry_factory, capsys, "events") == []


def test_cli_tombstone(
    registry_factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    document = _write(tmp_path / "dmp.json", DOCUMENT)
    _run(registry_factory, capsys, "provenance", "add", "dmptool")
    created = _run(registry_factory, capsys, "create", "--provenance", "dmptool", str(document))
    dmp_id = created["dmp"]["dmp_id"]["identifier"]

    final = _run(registry_factory, capsys, "tombstone", "--provenance", "dmptool", dmp_id)

    assert final["dmp"]["title"] == "OBSOLETE: Coastal erosion monitoring plan"
    assert _run(registry_factory, capsys, "get", dmp_id, "--version", "tombstone") == final


def test_cli_unchanged_update_exits_cleanly(
    registry_factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    document = _write(tmp_path / "dmp.json", DOCUMENT)
    _run(registry_factory, capsys, "provenance", "add", "dmptool")
    created = _run(registry_factory, capsys, "create", "--provenance", "dmptool", str(document))
    dmp_id = created["dmp"]["dmp_id"]["identifier"]

    assert (
        _run(registry_factory, capsys, "update", "--provenance", "dmptool", dmp_id, str(document))
        is None
    )


def test_cli_invalid_documents_exit_with_2(
    registry_factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    _run(registry_factory, capsys, "provenance", "add", "dmptool")
    missing_title = _write(tmp_path / "bad.json", {"dmp": {"description": "x"}})
    not_json = tmp_path / "broken.json"
    not_json.write_text("{", encoding="utf-8")

    for path in (missing_title, not_json):
        with pytest.raises(SystemExit) as excinfo:
            _run(registry_factory, capsys, "create", "--provenance", "dmptool", str(path))
        assert excinfo.value.code == 2


def test_cli_unknown_records_exit_with_1(
    registry_factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(registry_factory, capsys, "get", "10.48321/D1NOPE")

    assert excinfo.value.code == 1


def test_cli_rejects_unknown_review_status(
    registry_factory: Callable[..., RecordRegistry],
    capsys: pytest.CaptureFixture[str],
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        _run(registry_factory, capsys, "review", "--provenance", "x", "10.1/x", "A1", "maybe")

    assert excinfo.value.code == 2


def test_cli_configuration_errors_exit_with_1() -> None:
    def factory(**kwargs: Any) -> RecordRegistry:
        del kwargs
        raise MissingConfigurationError("Missing configuration for: DMP_ID_SHOULDER")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["events"], registry_factory=factory)

    assert excinfo.value.code == 1
