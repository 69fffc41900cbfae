"""Emission of change events after a successful write."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dmphub.domain.ports.events import EventEmissionError, RecordChanged

if TYPE_CHECKING:
    from dmphub.domain.model import Record
    from dmphub.domain.ports import RecordEventSink

log = logging.getLogger(__name__)


def emit_change(
    sink: RecordEventSink,
    record: Record,
    *,
    version_key: str,
    changed_by_owner: bool,
) -> RecordChanged | None:
    """Hand a ``RecordChanged`` event to the sink.

    The write has already succeeded at this point; a sink failure is logged and left to the
    messaging layer to redeliver.
    """

    if record.identifier is None:
        raise ValueError("Cannot emit a change event for a record without an identifier")
    event = RecordChanged(
        identifier=record.identifier,
        version_key=version_key,
        owner_provenance_id=record.owner_provenance_id,
        changed_by_owner=changed_by_owner,
    )
    try:
        sink.emit(event)
    except EventEmissionError:
        log.exception("Could not emit change event for %s", record.identifier)
        return None
    return event
