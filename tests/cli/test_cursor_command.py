from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from kpfeed.cli.constants import VALIDATION_EXIT_CODE
from kpfeed.cli.main import create_app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr("kpfeed.core.config.settings.DEFAULT_CONFIG_PATH", tmp_path / "absent.toml")
    monkeypatch.delenv("KPFEED_CURSOR_FILE", raising=False)


def test_show_stored_cursor(runner, tmp_path):
    cursor_file = tmp_path / "cursor.json"
    cursor_file.write_text(json.dumps({"last_timestamp": "2024-05-10T07:30:00+00:00"}))

    result = runner.invoke(create_app(), ["cursor", "show", "-c", str(cursor_file)])

    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "2024-05-10T07:30:00+00:00"


def test_show_from_environment(runner, tmp_path, monkeypatch):
    cursor_file = tmp_path / "cursor.json"
    monkeypatch.setenv("KPFEED_CURSOR_FILE", str(cursor_file))

    result = runner.invoke(create_app(), ["cursor", "show"])

    assert result.exit_code == 0, result.output
    assert "No cursor stored." in result.stdout


def test_reset(runner, tmp_path):
    cursor_file = tmp_path / "cursor.json"
    cursor_file.write_text(json.dumps({"last_timestamp": "2024-05-10T07:30:00+00:00"}))

    result = runner.invoke(create_app(), ["cursor", "reset", "-c", str(cursor_file)])

    assert result.exit_code == 0, result.output
    assert "Cursor removed." in result.stdout
    assert not cursor_file.exists()


def test_missing_cursor_path(runner):
    result = runner.invoke(create_app(), ["cursor", "show"])

    assert result.exit_code == VALIDATION_EXIT_CODE
    assert "CURSOR_FILE_MISSING" in result.output
