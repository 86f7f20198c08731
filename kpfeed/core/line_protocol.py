"""InfluxDB line protocol encoding.

A line has the shape::

    measurement[,tag=value...] field=value[,field=value...] [timestamp]

Tags are written sorted by key. Fields keep insertion order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from kpfeed.core.exceptions import EncodingError
from kpfeed.core.models import KpRecord

DEFAULT_MEASUREMENT = "iono_activity"
DEFAULT_SOURCE = "gfz"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_UINT64_MAX = 2**64 - 1

_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


class TimestampPrecision(str, Enum):
    """Unit of the trailing timestamp. ``NONE`` omits it."""

    NONE = "none"
    S = "s"
    MS = "ms"
    US = "us"
    NS = "ns"

    @property
    def per_second(self) -> int:
        return {"none": 1, "s": 1, "ms": 10**3, "us": 10**6, "ns": 10**9}[self.value]


class Unsigned(int):
    """Marks an integer field to be written as ``<n>u``."""


FieldValue = float | int | bool | str


def _escape(value: str, *, equals: bool, commas: bool, spaces: bool) -> str:
    out: list[str] = []
    for char in value:
        if char in _CONTROL_ESCAPES:
            out.append(_CONTROL_ESCAPES[char])
        elif (char == "=" and equals) or (char == "," and commas) or (char == " " and spaces):
            out.append("\\" + char)
        else:
            out.append(char)
    return "".join(out)


def escape_measurement(name: str) -> str:
    return _escape(name, equals=False, commas=True, spaces=True)


def escape_key(key: str) -> str:
    """Escape a tag key, tag value or field key."""
    return _escape(key, equals=True, commas=True, spaces=True)


def escape_string_field(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_field_value(key: str, value: FieldValue) -> str:
    """Render a field value with the line protocol type suffix."""
    # bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Unsigned):
        if not 0 <= value <= _UINT64_MAX:
            raise EncodingError(f"Unsigned field {key} out of range: {value}", field=key)
        return f"{int(value)}u"
    if isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise EncodingError(f"Integer field {key} out of range: {value}", field=key)
        return f"{value}i"
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodingError(f"Float field {key} is not finite: {value}", field=key)
        return repr(value)
    if isinstance(value, str):
        return escape_string_field(value)
    raise EncodingError(f"Unsupported field type for {key}: {type(value).__name__}", field=key)


def to_epoch(timestamp: datetime, precision: TimestampPrecision = TimestampPrecision.NS) -> int:
    """Convert ``timestamp`` to an integer count of ``precision`` units since the epoch.

    Naive datetimes are read as UTC. Sub-unit remainders are truncated
    toward negative infinity.

    Raises:
        EncodingError: If the value does not fit a signed 64-bit integer
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    delta = timestamp - _EPOCH
    micros = (delta.days * 86_400 + delta.seconds) * 10**6 + delta.microseconds
    value = (micros * 1000 * precision.per_second) // 10**9
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise EncodingError(
            f"Timestamp {timestamp.isoformat()} does not fit into int64 {precision.value}",
            field="time",
        )
    return value


@dataclass
class Measurement:
    """One line protocol point."""

    name: str
    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, FieldValue] = field(default_factory=dict)
    time: datetime | None = None

    def add_field(self, key: str, value: FieldValue, replace: bool = False) -> "Measurement":
        key = key.strip()
        if replace or key not in self.fields:
            self.fields[key] = value
        return self

    def add_tag(self, key: str, value: str, replace: bool = False) -> "Measurement":
        key = key.strip()
        if replace or key not in self.tags:
            self.tags[key] = value
        return self

    def set_time(self, time: datetime) -> "Measurement":
        self.time = time
        return self

    def to_line_protocol(self, precision: TimestampPrecision = TimestampPrecision.NS) -> str:
        """Render the point as a single line (without a trailing newline).

        Raises:
            EncodingError: On an empty name, key or field set, or a value
                that cannot be represented
        """
        if not self.name:
            raise EncodingError("Measurement name must not be empty")
        if not self.fields:
            raise EncodingError(f"Measurement {self.name} has no fields")

        parts = [escape_measurement(self.name)]
        for key in sorted(self.tags):
            value = self.tags[key]
            # empty tag values are not allowed by the protocol
            if not key or value == "":
                raise EncodingError(f"Empty tag in measurement {self.name}", field=key or None)
            parts.append(f",{escape_key(key)}={escape_key(value)}")

        field_parts = []
        for key, value in self.fields.items():
            if not key:
                raise EncodingError(f"Empty field key in measurement {self.name}")
            field_parts.append(f"{escape_key(key)}={format_field_value(key, value)}")
        line = "".join(parts) + " " + ",".join(field_parts)

        if self.time is not None and precision is not TimestampPrecision.NONE:
            line += f" {to_epoch(self.time, precision)}"
        return line

    def __str__(self) -> str:
        return self.to_line_protocol()


def record_to_measurement(
    record: KpRecord,
    *,
    measurement: str = DEFAULT_MEASUREMENT,
    source: str | None = DEFAULT_SOURCE,
) -> Measurement:
    """Build the point for a Kp record: ``kp`` float, ``ap`` integer, ``def`` tag."""
    point = Measurement(measurement)
    point.add_field("kp", float(record.kp)).add_field("ap", int(record.ap))
    point.add_tag("def", str(record.status.flag))
    if source:
        point.add_tag("source", source)
    point.set_time(record.timestamp)
    return point


def format_record(
    record: KpRecord,
    *,
    measurement: str = DEFAULT_MEASUREMENT,
    source: str | None = DEFAULT_SOURCE,
    precision: TimestampPrecision = TimestampPrecision.NS,
) -> str:
    """Render ``record`` as one line protocol line."""
    return record_to_measurement(record, measurement=measurement, source=source).to_line_protocol(precision)
