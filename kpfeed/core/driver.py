"""Fetch, parse, diff, emit and save the cursor, in that order.

The run moves through ``START -> FETCHED -> PARSED -> DIFFED -> EMITTED ->
CURSOR_SAVED -> DONE``. Any :class:`KpFeedError` ends it in ``ERROR``.
Records are written one at a time, so output produced before a late
failure stays written; the cursor only moves once every new record has
been emitted.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, TextIO

from kpfeed.core.cursor import CursorStore
from kpfeed.core.differ import advance_cursor, select_new
from kpfeed.core.exceptions import KpFeedError
from kpfeed.core.line_protocol import DEFAULT_MEASUREMENT, DEFAULT_SOURCE, TimestampPrecision, format_record
from kpfeed.core.logging import get_logger, log_context
from kpfeed.core.models import KpDataset, KpRecord
from kpfeed.core.parser import parse_dataset

logger = get_logger(__name__)


class RunState(str, Enum):
    START = "start"
    FETCHED = "fetched"
    PARSED = "parsed"
    DIFFED = "diffed"
    EMITTED = "emitted"
    CURSOR_SAVED = "cursor_saved"
    DONE = "done"
    ERROR = "error"


class RecordWriter(Protocol):
    """Destination for new records."""

    def begin(self, dataset: KpDataset, cursor: datetime | None, new_records: Sequence[KpRecord]) -> None: ...

    def write(self, record: KpRecord) -> None: ...

    def end(self) -> None: ...


class LineProtocolWriter:
    """Writes each record as a line protocol line and flushes immediately."""

    def __init__(
        self,
        stream: TextIO,
        *,
        measurement: str = DEFAULT_MEASUREMENT,
        source: str | None = DEFAULT_SOURCE,
        precision: TimestampPrecision = TimestampPrecision.NS,
    ) -> None:
        self.stream = stream
        self.measurement = measurement
        self.source = source
        self.precision = precision

    def begin(self, dataset: KpDataset, cursor: datetime | None, new_records: Sequence[KpRecord]) -> None:
        pass

    def write(self, record: KpRecord) -> None:
        line = format_record(record, measurement=self.measurement, source=self.source, precision=self.precision)
        self.stream.write(line)
        self.stream.write("\n")
        self.stream.flush()

    def end(self) -> None:
        pass


@dataclass
class RunResult:
    state: RunState
    previous_cursor: datetime | None = None
    cursor: datetime | None = None
    emitted: int = 0
    dataset: KpDataset | None = None
    new_records: tuple[KpRecord, ...] = field(default_factory=tuple)


def run_pipeline(
    *,
    fetch: Callable[[], str],
    writer: RecordWriter,
    store: CursorStore | None = None,
    run_id: str | None = None,
) -> RunResult:
    """Execute one run.

    Args:
        fetch: Returns the raw source text
        writer: Receives the new records
        store: Cursor persistence; without one every record is new on every run
        run_id: Id bound to log events of this run

    Raises:
        KpFeedError: Any fetch, parse, encode or cursor failure. The error's
            ``details["state"]`` names the last state reached.
    """
    result = RunResult(state=RunState.START)

    with log_context(run_id=run_id):
        try:
            result.previous_cursor = result.cursor = store.load() if store is not None else None
            _advance(result, RunState.START, cursor=result.previous_cursor)

            text = fetch()
            _advance(result, RunState.FETCHED, size=len(text))

            result.dataset = parse_dataset(text)
            _advance(result, RunState.PARSED, records=len(result.dataset))

            result.new_records = tuple(select_new(result.dataset.records, result.previous_cursor))
            _advance(result, RunState.DIFFED, new_records=len(result.new_records))

            writer.begin(result.dataset, result.previous_cursor, result.new_records)
            for record in result.new_records:
                writer.write(record)
                result.emitted += 1
            writer.end()
            _advance(result, RunState.EMITTED, emitted=result.emitted)

            result.cursor = advance_cursor(result.previous_cursor, result.new_records)
            if store is not None and result.new_records:
                store.save(result.cursor)
                _advance(result, RunState.CURSOR_SAVED, cursor=result.cursor)

            _advance(result, RunState.DONE)
        except KpFeedError as error:
            error.details.setdefault("state", result.state.value)
            error.details.setdefault("emitted", result.emitted)
            result.state = RunState.ERROR
            logger.error(
                "Run failed",
                error_code=error.error_code,
                failed_after=error.details["state"],
                emitted=result.emitted,
            )
            raise

    return result


def _advance(result: RunResult, state: RunState, **context: object) -> None:
    result.state = state
    logger.info("Run state {}", state.value, **context)
