"""Ports for persisting records and provenance profiles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from dmphub.domain.keys import LATEST

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dmphub.domain.model import Provenance, Record


@runtime_checkable
class RecordStore(Protocol):
    """Item store keyed by (identifier, version key).

    Implementations raise ``StoreUnavailable`` for transient backend failures.
    """

    def get(self, identifier: str, version_key: str = LATEST) -> Record | None: ...

    def exists(self, identifier: str, version_key: str = LATEST) -> bool: ...

    def put(self, record: Record, version_key: str = LATEST) -> None:
        """Write unconditionally, replacing any item at the key."""
        ...

    def put_if_absent(self, record: Record, version_key: str) -> None:
        """Write only when no item exists at the key; raise ``Conflict`` otherwise."""
        ...

    def delete(self, identifier: str, version_key: str) -> None: ...

    def version_keys(self, identifier: str) -> tuple[str, ...]:
        """Every version key stored for the identifier, in key order."""
        ...

    def find_by_provenance_identifier(self, value: str) -> Record | None: ...

    def iter_latest(self) -> Iterator[Record]: ...


@runtime_checkable
class ProvenanceRepository(Protocol):
    """Lookup of provenance profiles by key."""

    def get(self, key: str) -> Provenance | None: ...

    def add(self, provenance: Provenance) -> None: ...
