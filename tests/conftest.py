"""Pytest configuration for the kpfeed test suite."""

from __future__ import annotations

import re

import pytest

from kpfeed.core.logging import configure_logging

KP_FILE_ONE = """
# Foo bar
2022 07 31 18.0 19.50 33084.75000 33084.81250  2.000    7 1
2022 07 31 21.0 22.50 33084.87500 33084.93750  3.000   15 1
2022 08 01 00.0 01.50 33085.00000 33085.06250  2.667   12 0
2022 08 01 03.0 04.50 33085.12500 33085.18750  2.333    9 0
2022 08 18 03.0 04.50 33102.12500 33102.18750  2.333    9 0
2022 08 18 06.0 07.50 33102.25000 33102.31250  3.000   15 0
2022 08 18 09.0 10.50 33102.37500 33102.43750 -1.000   -1 0
2022 08 18 12.0 13.50 33102.50000 33102.56250 -1.000   -1 0
"""

KP_FILE_TWO = """
2022 07 31 18.0 19.50 33084.75000 33084.81250  2.000    7 1
2022 07 31 21.0 22.50 33084.87500 33084.93750  3.000   15 1
2022 08 01 00.0 01.50 33085.00000 33085.06250  2.667   12 0
2022 08 01 03.0 04.50 33085.12500 33085.18750  2.333    9 0
2022 08 18 00.0 01.50 33102.00000 33102.06250  2.667   12 0
2022 08 18 03.0 04.50 33102.12500 33102.18750  2.333    9 0
2022 08 18 06.0 07.50 33102.25000 33102.31250  3.333   18 0
2022 08 18 09.0 10.50 33102.37500 33102.43750  2.667   12 0
2022 08 18 12.0 13.50 33102.50000 33102.56250  5.000   48 0
2022 08 27 12.0 13.50 33111.50000 33111.56250 -1.000   -1 0
"""

_LINE_RE = re.compile(r"^(?P<measurement>[^, ]+)(?P<tags>(?:,[^ ]+)?) (?P<fields>\S+)(?: (?P<time>-?\d+))?$")


def read_line_protocol(line: str) -> dict[str, object]:
    """Decode a line produced by kpfeed (no escaped characters) back into its parts."""

    match = _LINE_RE.match(line)
    assert match is not None, f"not a line protocol line: {line!r}"
    tags = dict(item.split("=", 1) for item in match["tags"].lstrip(",").split(",") if item)
    fields: dict[str, object] = {}
    for item in match["fields"].split(","):
        key, raw = item.split("=", 1)
        if raw.endswith("i"):
            fields[key] = int(raw[:-1])
        elif raw.endswith("u"):
            fields[key] = int(raw[:-1])
        elif raw in ("true", "false"):
            fields[key] = raw == "true"
        elif raw.startswith('"'):
            fields[key] = raw[1:-1]
        else:
            fields[key] = float(raw)
    return {
        "measurement": match["measurement"],
        "tags": tags,
        "fields": fields,
        "time": int(match["time"]) if match["time"] is not None else None,
    }


@pytest.fixture
def kp_file_one() -> str:
    return KP_FILE_ONE


@pytest.fixture
def kp_file_two() -> str:
    return KP_FILE_TWO


@pytest.fixture
def lp_reader():
    return read_line_protocol


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Keep log events out of captured stdout/stderr unless a test configures them."""

    configure_logging("CRITICAL")
    yield
    configure_logging("CRITICAL")


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--kpfeed-run-integration",
        action="store_true",
        default=False,
        help="Run kpfeed integration tests that download from GFZ.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for kpfeed tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks kpfeed tests requiring network access",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--kpfeed-run-integration"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration tests require --kpfeed-run-integration",
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
