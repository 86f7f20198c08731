"""Tests for cursor stores."""

import json
import stat
from datetime import UTC, datetime, timedelta, timezone

import pytest

from kpfeed.core.cursor import CursorStore, FileCursorStore, MemoryCursorStore
from kpfeed.core.exceptions import CursorStoreError

CURSOR = datetime(2022, 8, 18, 7, 30, tzinfo=UTC)


class TestMemoryCursorStore:
    def test_round_trip(self):
        store = MemoryCursorStore()
        assert store.load() is None

        store.save(CURSOR)

        assert store.load() == CURSOR
        assert store.saves == [CURSOR]

    def test_satisfies_protocol(self):
        assert isinstance(MemoryCursorStore(), CursorStore)
        assert isinstance(FileCursorStore("unused"), CursorStore)


class TestFileCursorStore:
    def test_missing_file_means_first_run(self, tmp_path):
        assert FileCursorStore(tmp_path / "cursor.json").load() is None

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "state" / "cursor.json"
        store = FileCursorStore(path)

        store.save(CURSOR)

        assert json.loads(path.read_text()) == {"last_timestamp": "2022-08-18T07:30:00+00:00"}
        assert FileCursorStore(path).load() == CURSOR
        assert [p.name for p in path.parent.iterdir()] == ["cursor.json"]

    def test_save_normalises_to_utc(self, tmp_path):
        store = FileCursorStore(tmp_path / "cursor.json")
        store.save(datetime(2022, 8, 18, 9, 30, tzinfo=timezone(timedelta(hours=2))))

        assert store.load() == CURSOR
        assert store.load().utcoffset() == timedelta(0)

    def test_save_keeps_existing_file_mode(self, tmp_path):
        path = tmp_path / "cursor.json"
        path.write_text("{}")
        path.chmod(0o644)

        FileCursorStore(path).save(CURSOR)

        assert stat.S_IMODE(path.stat().st_mode) == 0o644
        assert FileCursorStore(path).load() == CURSOR

    def test_empty_file(self, tmp_path):
        path = tmp_path / "cursor.json"
        path.write_text("\n")

        assert FileCursorStore(path).load() is None

    def test_json_without_key(self, tmp_path):
        path = tmp_path / "cursor.json"
        path.write_text("{}")

        assert FileCursorStore(path).load() is None

    @pytest.mark.parametrize("content", ['{"last_timestamp": "yesterday"}', "{not json", '{"last_timestamp": 5}'])
    def test_corrupt_json(self, tmp_path, content):
        path = tmp_path / "cursor.json"
        path.write_text(content)

        with pytest.raises(CursorStoreError) as exc_info:
            FileCursorStore(path).load()

        assert exc_info.value.error_code == "CURSOR_ERROR"
        assert exc_info.value.details["location"] == str(path)

    def test_cached_kp_file_is_accepted(self, tmp_path, kp_file_one):
        path = tmp_path / "kp.cache"
        path.write_text(kp_file_one)

        assert FileCursorStore(path).load() == CURSOR

    def test_unparseable_cache(self, tmp_path):
        path = tmp_path / "kp.cache"
        path.write_text("hello world\n")

        with pytest.raises(CursorStoreError, match="neither JSON nor a Kp file"):
            FileCursorStore(path).load()

    def test_clear(self, tmp_path):
        path = tmp_path / "cursor.json"
        store = FileCursorStore(path)
        store.save(CURSOR)

        assert store.clear() is True
        assert not path.exists()
        assert store.clear() is False

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = FileCursorStore(blocker / "cursor.json")

        with pytest.raises(CursorStoreError, match="Unable to write"):
            store.save(CURSOR)
