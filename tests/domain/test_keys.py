from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from dmphub.domain.errors import ValidationFailed
from dmphub.domain.keys import (
    LATEST,
    TOMBSTONE,
    dmp_id_url,
    format_dmp_id,
    format_timestamp,
    identifier_from_pk,
    parse_timestamp,
    provenance_identifier,
    provenance_pk,
    record_pk,
    snapshot_key,
    version_key,
    version_timestamp,
)


@pytest.mark.parametrize(
    "value",
    [
        "10.48321/d1abc",
        "doi:10.48321/D1ABC",
        "https://doi.org/10.48321/D1ABC",
        "http://dx.doi.org/10.48321/d1abc",
        "doi.org/10.48321/D1ABC",
        "  10.48321/D1ABC  ",
    ],
)
def test_format_dmp_id_normalizes_every_written_form(value: str) -> None:
    assert format_dmp_id(value) == "doi.org/10.48321/D1ABC"


def test_format_dmp_id_uses_the_configured_resolver_host() -> None:
    assert (
        format_dmp_id("10.48321/D1ABC", base_url="https://doi.test.example/")
        == "doi.test.example/10.48321/D1ABC"
    )


def test_format_dmp_id_rejects_non_dois() -> None:
    assert format_dmp_id("https://example.org/plans/1") is None
    assert format_dmp_id("") is None


def test_dmp_id_url_round_trips_through_format_dmp_id() -> None:
    url = dmp_id_url("doi.org/10.48321/D1ABC")

    assert url == "https://doi.org/10.48321/D1ABC"
    assert format_dmp_id(url) == "doi.org/10.48321/D1ABC"


def test_partition_keys() -> None:
    assert record_pk("doi.org/10.1/X") == "DMP#doi.org/10.1/X"
    assert record_pk("DMP#doi.org/10.1/X") == "DMP#doi.org/10.1/X"
    assert identifier_from_pk("DMP#doi.org/10.1/X") == "doi.org/10.1/X"
    assert provenance_pk("dmptool") == "PROVENANCE#dmptool"
    assert provenance_identifier("dmptool", " plan/12 ") == "dmptool#plan/12"


def test_timestamps_are_utc_with_second_precision() -> None:
    local = datetime(2024, 1, 1, 14, 0, 0, 123456, tzinfo=timezone(timedelta(hours=2)))

    assert format_timestamp(local) == "2024-01-01T12:00:00+00:00"
    assert format_timestamp(datetime(2024, 1, 1, 12, 0)) == "2024-01-01T12:00:00+00:00"


def test_parse_timestamp_accepts_zulu_and_rejects_garbage() -> None:
    assert parse_timestamp("2024-01-01T12:00:00Z") == datetime(2024, 1, 1, 12, tzinfo=UTC)
    with pytest.raises(ValidationFailed):
        parse_timestamp("yesterday")


def test_version_key_resolution() -> None:
    assert version_key(None) == LATEST
    assert version_key(" ") == LATEST
    assert version_key("latest") == LATEST
    assert version_key("TOMBSTONE") == TOMBSTONE
    assert version_key("2024-01-01T12:00:00Z") == "VERSION#2024-01-01T12:00:00+00:00"
    assert version_key("VERSION#2024-01-01T12:00:00+00:00") == "VERSION#2024-01-01T12:00:00+00:00"


def test_version_timestamp_only_for_snapshots() -> None:
    moment = datetime(2024, 1, 1, 12, tzinfo=UTC)

    assert version_timestamp(snapshot_key(moment)) == moment
    assert version_timestamp(LATEST) is None
    assert version_timestamp(TOMBSTONE) is None
