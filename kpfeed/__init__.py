"""kpfeed - GFZ Kp/ap nowcast to InfluxDB line protocol.

Downloads the Kp and ap nowcast file, keeps only the records that are
newer than the previous run and prints them for a Telegraf ``exec`` input.
"""

__version__ = "0.1.0"

from kpfeed.core import (  # noqa: E402
    FileCursorStore,
    KpRecord,
    KpStatus,
    MemoryCursorStore,
    format_record,
    parse_records,
    run_pipeline,
    select_new,
)

__all__ = [
    "__version__",
    "FileCursorStore",
    "KpRecord",
    "KpStatus",
    "MemoryCursorStore",
    "format_record",
    "parse_records",
    "run_pipeline",
    "select_new",
]
