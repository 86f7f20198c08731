"""Geomagnetic index record models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class KpStatus(str, Enum):
    """Publication status of a three-hour Kp interval."""

    NOWCAST = "nowcast"
    DEFINITIVE = "definitive"

    @classmethod
    def from_flag(cls, flag: int) -> "KpStatus":
        """Map the source ``D`` column (0 or 1) to a status."""
        if flag == 1:
            return cls.DEFINITIVE
        if flag == 0:
            return cls.NOWCAST
        raise ValueError(f"unknown definitive flag {flag}")

    @property
    def flag(self) -> int:
        return 1 if self is KpStatus.DEFINITIVE else 0


class KpRecord(BaseModel):
    """One three-hour Kp/ap value, identified by its midpoint timestamp."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    interval_start: datetime | None = None
    kp: float = Field(ge=0, le=9)
    ap: int = Field(ge=0)
    status: KpStatus = KpStatus.NOWCAST

    @field_validator("timestamp", "interval_start")
    @classmethod
    def ensure_utc(cls, value: datetime | None) -> datetime | None:
        """Treat naive datetimes as UTC and normalise aware ones."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @field_serializer("timestamp", "interval_start", when_used="json")
    def serialize_datetime(self, value: datetime | None) -> str | None:
        return value.isoformat() if value is not None else None


class KpDataset(BaseModel):
    """Parsed content of a Kp and ap file."""

    model_config = ConfigDict(frozen=True)

    records: tuple[KpRecord, ...] = ()
    last_definitive_index: int | None = None

    @property
    def last(self) -> KpRecord | None:
        return self.records[-1] if self.records else None

    @property
    def last_definitive(self) -> KpRecord | None:
        if self.last_definitive_index is None:
            return None
        return self.records[self.last_definitive_index]

    def __len__(self) -> int:
        return len(self.records)
