"""Error kinds raised by registry operations.

Callers map each kind to a distinct response; ``Unchanged`` is a signal rather than a failure.
"""

from __future__ import annotations


class RegistryError(RuntimeError):
    """Base class for registry errors."""


class NotFound(RegistryError):
    """No record, or no record version, exists at the requested key."""


class Forbidden(RegistryError):
    """The caller may not perform this operation on the record."""


class AlreadyHistorical(Forbidden):
    """The record has been tombstoned; its latest state no longer exists."""


class Conflict(RegistryError):
    """A write collided with existing state."""


class SnapshotConflict(Conflict):
    """A snapshot with the same version key already exists."""


class ValidationFailed(RegistryError):
    """The incoming body is malformed."""


class Unchanged(RegistryError):  # noqa: N818
    """The update would not change the record; nothing was written or emitted."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"No changes to record {identifier}")
        self.identifier = identifier


class StoreUnavailable(RegistryError):
    """The backing store failed transiently; nothing was written."""
