"""Tests for the run pipeline."""

import io
from datetime import UTC, datetime

import pytest

from kpfeed.core.cursor import MemoryCursorStore
from kpfeed.core.driver import LineProtocolWriter, RunState, run_pipeline
from kpfeed.core.exceptions import CursorStoreError, EncodingError, FormatError, NetworkError
from kpfeed.core.line_protocol import to_epoch

SOURCE = """\
2024 05 10 00.0 01.50 33732.00000 33732.06250  4.333   32 0
2024 05 10 03.0 04.50 33732.12500 33732.18750  5.000   48 0
2024 05 10 06.0 07.50 33732.25000 33732.31250  8.667  300 0
"""
T1 = datetime(2024, 5, 10, 1, 30, tzinfo=UTC)
T2 = datetime(2024, 5, 10, 4, 30, tzinfo=UTC)
T3 = datetime(2024, 5, 10, 7, 30, tzinfo=UTC)


class FailingStore(MemoryCursorStore):
    def save(self, cursor: datetime) -> None:
        raise CursorStoreError("disk full", location="memory")


class FailingStream(io.StringIO):
    """Accepts ``limit`` lines, then fails like a broken pipe."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit

    def flush(self) -> None:
        if self.getvalue().count("\n") > self.limit:
            raise EncodingError("stream rejected the line")


def _run(store, source=SOURCE, stream=None):
    stream = stream if stream is not None else io.StringIO()
    result = run_pipeline(fetch=lambda: source, writer=LineProtocolWriter(stream), store=store)
    return result, stream.getvalue().splitlines()


def test_emits_records_after_cursor(lp_reader):
    store = MemoryCursorStore(T1)

    result, lines = _run(store)

    assert [lp_reader(line)["time"] for line in lines] == [to_epoch(T2), to_epoch(T3)]
    assert result.state is RunState.DONE
    assert result.emitted == 2
    assert result.previous_cursor == T1
    assert result.cursor == T3
    assert store.cursor == T3


def test_first_run_emits_everything():
    store = MemoryCursorStore()

    result, lines = _run(store)

    assert len(lines) == 3
    assert store.cursor == T3


def test_second_run_against_unchanged_source_is_empty():
    store = MemoryCursorStore()
    _run(store)

    result, lines = _run(store)

    assert lines == []
    assert result.emitted == 0
    assert result.state is RunState.DONE
    assert store.saves == [T3]


def test_without_store_everything_is_new_every_time():
    _, first = _run(None)
    result, second = _run(None)

    assert first == second
    assert result.cursor == T3


def test_network_error_leaves_cursor_untouched():
    store = MemoryCursorStore(T1)

    def fetch() -> str:
        raise NetworkError("down", "https://example.test")

    with pytest.raises(NetworkError) as exc_info:
        run_pipeline(fetch=fetch, writer=LineProtocolWriter(io.StringIO()), store=store)

    assert exc_info.value.details["state"] == "start"
    assert store.saves == []


def test_format_error_leaves_cursor_untouched():
    store = MemoryCursorStore(T1)
    stream = io.StringIO()
    broken = SOURCE.replace("  5.000   48 0", "  5.000   4x 0")

    with pytest.raises(FormatError) as exc_info:
        _run(store, broken, stream)

    assert exc_info.value.details["state"] == "fetched"
    assert stream.getvalue() == ""
    assert store.saves == []
    assert store.cursor == T1


def test_cursor_save_failure_keeps_streamed_output():
    store = FailingStore()
    stream = io.StringIO()

    with pytest.raises(CursorStoreError) as exc_info:
        _run(store, stream=stream)

    assert len(stream.getvalue().splitlines()) == 3
    assert exc_info.value.details["state"] == "emitted"


def test_late_encoding_error_does_not_retract_output():
    store = MemoryCursorStore()
    stream = FailingStream(limit=1)

    with pytest.raises(EncodingError) as exc_info:
        _run(store, stream=stream)

    assert exc_info.value.details["emitted"] == 1
    assert exc_info.value.details["state"] == "diffed"
    assert stream.getvalue().count("\n") == 2
    assert store.saves == []


def test_load_failure():
    class BrokenStore(MemoryCursorStore):
        def load(self):
            raise CursorStoreError("corrupt", location="memory")

    with pytest.raises(CursorStoreError) as exc_info:
        _run(BrokenStore())

    assert exc_info.value.details["state"] == "start"


def test_writer_receives_dataset_and_cursor():
    class Recorder:
        def __init__(self):
            self.events = []

        def begin(self, dataset, cursor, new_records):
            self.events.append(("begin", len(dataset), cursor, len(new_records)))

        def write(self, record):
            self.events.append(("write", record.timestamp))

        def end(self):
            self.events.append(("end",))

    recorder = Recorder()
    run_pipeline(fetch=lambda: SOURCE, writer=recorder, store=MemoryCursorStore(T2))

    assert recorder.events == [("begin", 3, T2, 1), ("write", T3), ("end",)]
