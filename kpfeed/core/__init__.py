"""Core pipeline: fetch, parse, diff, format and cursor persistence."""

from kpfeed.core.cursor import CursorStore, FileCursorStore, MemoryCursorStore
from kpfeed.core.differ import advance_cursor, select_new
from kpfeed.core.driver import LineProtocolWriter, RecordWriter, RunResult, RunState, run_pipeline
from kpfeed.core.fetcher import DEFAULT_URL, fetch_text
from kpfeed.core.line_protocol import Measurement, TimestampPrecision, format_record, record_to_measurement
from kpfeed.core.models import KpDataset, KpRecord, KpStatus
from kpfeed.core.parser import parse_dataset, parse_line, parse_records

__all__ = [
    "CursorStore",
    "FileCursorStore",
    "MemoryCursorStore",
    "advance_cursor",
    "select_new",
    "LineProtocolWriter",
    "RecordWriter",
    "RunResult",
    "RunState",
    "run_pipeline",
    "DEFAULT_URL",
    "fetch_text",
    "Measurement",
    "TimestampPrecision",
    "format_record",
    "record_to_measurement",
    "KpDataset",
    "KpRecord",
    "KpStatus",
    "parse_dataset",
    "parse_line",
    "parse_records",
]
