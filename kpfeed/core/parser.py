"""Parser for the GFZ "Kp and ap" text files.

Data lines carry ten whitespace separated columns::

    YYYY MM DD hh.h hh._m        days      days_m     Kp   ap D
    2022 07 31 18.0 19.50 33084.75000 33084.81250  2.000    7 1

``hh.h`` is the start hour of the three-hour interval and ``hh._m`` its
midpoint. A record is timestamped at the interval midpoint. Intervals
not yet computed upstream are published as ``-1.000 -1`` and skipped.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from kpfeed.core.exceptions import FormatError
from kpfeed.core.logging import get_logger
from kpfeed.core.models import KpDataset, KpRecord, KpStatus

logger = get_logger(__name__)

COLUMN_COUNT = 10
KP_MAX = 9.0


def parse_line(line: str, line_number: int | None = None) -> KpRecord | None:
    """Parse one data line.

    Returns ``None`` for placeholder lines whose Kp or ap is negative.

    Raises:
        FormatError: If the line does not match the column schema
    """
    parts = line.split()
    if len(parts) != COLUMN_COUNT:
        raise FormatError(
            f"Expected {COLUMN_COUNT} columns, found {len(parts)}",
            line_number=line_number,
            line=line,
        )

    year = _parse_int(parts[0], "year", line_number, line)
    month = _parse_int(parts[1], "month", line_number, line)
    day = _parse_int(parts[2], "day", line_number, line)
    start_hour = _parse_float(parts[3], "hh.h", line_number, line)
    mid_hour = _parse_float(parts[4], "hh._m", line_number, line)
    _parse_float(parts[5], "days", line_number, line)
    _parse_float(parts[6], "days_m", line_number, line)
    kp = _parse_float(parts[7], "Kp", line_number, line)
    ap = _parse_int(parts[8], "ap", line_number, line)
    flag = _parse_int(parts[9], "D", line_number, line)

    try:
        status = KpStatus.from_flag(flag)
    except ValueError as exc:
        raise FormatError(str(exc), line_number=line_number, line=line) from exc

    try:
        day_start = datetime(year, month, day, tzinfo=UTC)
    except ValueError as exc:
        raise FormatError(f"Invalid date: {exc}", line_number=line_number, line=line) from exc

    timestamp = day_start + _hours_to_delta(mid_hour, "hh._m", line_number, line)
    interval_start = day_start + _hours_to_delta(start_hour, "hh.h", line_number, line)

    # placeholders are still checked against the schema above
    if kp < 0 or ap < 0:
        return None

    if kp > KP_MAX:
        raise FormatError(f"Kp value {kp} exceeds {KP_MAX}", line_number=line_number, line=line)

    return KpRecord(
        timestamp=timestamp,
        interval_start=interval_start,
        kp=kp,
        ap=ap,
        status=status,
    )


def parse_dataset(text: str) -> KpDataset:
    """Parse a whole file into a :class:`KpDataset`.

    Comment lines (starting with ``#``) and blank lines are skipped. The
    first malformed line aborts the parse. Records must be strictly
    ascending by timestamp; a duplicate or out-of-order record is a
    :class:`FormatError`.
    """
    records: list[KpRecord] = []
    last_definitive_index: int | None = None
    skipped = 0

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        record = parse_line(line, line_number)
        if record is None:
            skipped += 1
            continue

        if records and record.timestamp <= records[-1].timestamp:
            kind = "Duplicate" if record.timestamp == records[-1].timestamp else "Out-of-order"
            raise FormatError(
                f"{kind} record at {record.timestamp.isoformat()}",
                line_number=line_number,
                line=line,
                details={"previous_timestamp": records[-1].timestamp.isoformat()},
            )

        if record.status is KpStatus.DEFINITIVE:
            last_definitive_index = len(records)
        records.append(record)

    logger.debug("Parsed Kp file", records=len(records), placeholders_skipped=skipped)
    return KpDataset(records=tuple(records), last_definitive_index=last_definitive_index)


def parse_records(text: str) -> list[KpRecord]:
    """Parse a whole file into an ascending list of records."""
    return list(parse_dataset(text).records)


def _parse_int(value: str, column: str, line_number: int | None, line: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise FormatError(
            f"Column {column} is not an integer: {value!r}",
            line_number=line_number,
            line=line,
        ) from exc


def _parse_float(value: str, column: str, line_number: int | None, line: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise FormatError(
            f"Column {column} is not a number: {value!r}",
            line_number=line_number,
            line=line,
        ) from exc
    # float() accepts "nan" and "inf"
    if number != number or number in (float("inf"), float("-inf")):
        raise FormatError(f"Column {column} is not finite: {value!r}", line_number=line_number, line=line)
    return number


def _hours_to_delta(hours: float, column: str, line_number: int | None, line: str) -> timedelta:
    if not 0 <= hours < 24:
        raise FormatError(f"Column {column} out of range: {hours}", line_number=line_number, line=line)
    return timedelta(minutes=round(hours * 60))
