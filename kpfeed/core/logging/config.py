"""Logging configuration primitives for structured logging."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class LogConfig(BaseModel):
    """Configuration model used to initialise structured logging."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: str = "WARNING"
    console_output: bool = True
    # None means "whatever sys.stderr is when the event is written"
    console_stream: Any = None
    file_output: bool = False
    file_path: str | None = None


__all__ = ["LogConfig"]
