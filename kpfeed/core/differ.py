"""Change detection between a parsed file and the persisted cursor."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from kpfeed.core.models import KpRecord


def select_new(records: Sequence[KpRecord], cursor: datetime | None) -> list[KpRecord]:
    """Return the records strictly newer than ``cursor``, in source order.

    Without a cursor (first run) every record is new. A record whose
    timestamp equals the cursor was already emitted. A naive cursor is
    read as UTC.
    """
    if cursor is None:
        return list(records)
    if cursor.tzinfo is None:
        cursor = cursor.replace(tzinfo=UTC)
    return [record for record in records if record.timestamp > cursor]


def advance_cursor(cursor: datetime | None, emitted: Sequence[KpRecord]) -> datetime | None:
    """Cursor value after ``emitted`` has been written."""
    if not emitted:
        return cursor
    return emitted[-1].timestamp
