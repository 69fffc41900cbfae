"""Port for best-effort citation lookups."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CitationLookup(Protocol):
    def __call__(self, doi: str, *, work_type: str) -> str | None:
        """Return a formatted citation for ``doi``; ``None`` when nothing can be built."""
        ...
