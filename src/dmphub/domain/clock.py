"""Time and id sources, injectable for tests."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


class IdFactory(Protocol):
    def __call__(self) -> str: ...


def utcnow() -> datetime:
    """Current UTC time truncated to seconds, the resolution of version keys."""

    return datetime.now(UTC).replace(microsecond=0)


def new_assertion_id() -> str:
    return secrets.token_hex(4).upper()


def new_run_id(now: datetime) -> str:
    return f"{now.date().isoformat()}-{secrets.token_hex(4)}"


__all__ = ["Clock", "IdFactory", "new_assertion_id", "new_run_id", "utcnow"]
