"""Cursor persistence.

The cursor is the timestamp of the last emitted record. Stores expose a
``load()``/``save()`` pair and nothing else.
"""

from __future__ import annotations

import json
import os
import stat
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from kpfeed.core.exceptions import CursorStoreError, FormatError
from kpfeed.core.logging import get_logger
from kpfeed.core.parser import parse_dataset

logger = get_logger(__name__)

CURSOR_KEY = "last_timestamp"


@runtime_checkable
class CursorStore(Protocol):
    """Persistence capability for the cursor."""

    def load(self) -> datetime | None: ...

    def save(self, cursor: datetime) -> None: ...


class MemoryCursorStore:
    """In-process store, used for tests and dry runs."""

    def __init__(self, cursor: datetime | None = None) -> None:
        self.cursor = cursor
        self.saves: list[datetime] = []

    def load(self) -> datetime | None:
        return self.cursor

    def save(self, cursor: datetime) -> None:
        self.cursor = cursor
        self.saves.append(cursor)


class FileCursorStore:
    """JSON file store: ``{"last_timestamp": "<ISO-8601>"}``.

    A file that instead holds a raw Kp text file, as cached by earlier
    releases of the tool, is accepted on load; its last record becomes the
    cursor. Saves always write the JSON form, atomically.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> datetime | None:
        if not self.path.exists():
            logger.info("No cursor file, starting from scratch", path=str(self.path))
            return None
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CursorStoreError(f"Unable to read cursor file: {exc}", location=str(self.path)) from exc

        if not content.strip():
            return None
        if content.lstrip().startswith("{"):
            return self._load_json(content)
        return self._load_legacy(content)

    def save(self, cursor: datetime) -> None:
        payload = json.dumps({CURSOR_KEY: _to_utc(cursor).isoformat()})
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".cursor-", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.write("\n")
                if self.path.exists():
                    os.chmod(tmp_name, stat.S_IMODE(self.path.stat().st_mode))
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise CursorStoreError(f"Unable to write cursor file: {exc}", location=str(self.path)) from exc
        logger.debug("Cursor saved", path=str(self.path), cursor=cursor)

    def clear(self) -> bool:
        """Delete the cursor file. Returns ``False`` if there was none."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise CursorStoreError(f"Unable to delete cursor file: {exc}", location=str(self.path)) from exc
        return True

    def _load_json(self, content: str) -> datetime | None:
        try:
            data = json.loads(content)
            value = data.get(CURSOR_KEY)
            if value is None:
                return None
            return _to_utc(datetime.fromisoformat(value))
        except (ValueError, TypeError, AttributeError) as exc:
            raise CursorStoreError(f"Corrupt cursor file: {exc}", location=str(self.path)) from exc

    def _load_legacy(self, content: str) -> datetime | None:
        try:
            last = parse_dataset(content).last
        except FormatError as exc:
            raise CursorStoreError(
                f"Cursor file is neither JSON nor a Kp file: {exc.message}",
                location=str(self.path),
                details=exc.details,
            ) from exc
        logger.info("Read cursor from cached Kp file", path=str(self.path))
        return last.timestamp if last is not None else None


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
