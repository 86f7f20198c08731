"""Human readable diagnostic output for the ``run`` command."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import TextIO

from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table

from kpfeed.core.models import KpDataset, KpRecord

COLUMNS = ("timestamp", "interval_start", "kp", "ap", "status")


class DiagnosticWriter:
    """Render a run as a Rich summary and table instead of line protocol."""

    def __init__(self, stream: TextIO, *, no_color: bool = False) -> None:
        self.no_color = no_color
        self.console = Console(
            file=stream,
            color_system=None if no_color else "auto",
            no_color=no_color,
            width=120,
        )
        self._table: Table | None = None
        self._rows = 0

    def begin(self, dataset: KpDataset, cursor: datetime | None, new_records: Sequence[KpRecord]) -> None:
        last = dataset.last
        definitive = dataset.last_definitive
        self.console.print(
            f"Downloaded Kp file: {len(dataset)} entries, last entry: {_describe(last)}",
            highlight=False,
        )
        self.console.print(f"Last definitive entry: {_describe(definitive)}", highlight=False)
        self.console.print(f"Cursor: {cursor.isoformat() if cursor else 'none'}", highlight=False)
        self.console.print(f"New entries: {len(new_records)}", highlight=False)
        self._table = self._create_table()
        self._rows = 0

    def write(self, record: KpRecord) -> None:
        if self._table is None:
            self._table = self._create_table()
        self._table.add_row(
            record.timestamp.isoformat(),
            record.interval_start.isoformat() if record.interval_start else "-",
            f"{record.kp:.3f}",
            str(record.ap),
            record.status.value,
        )
        self._rows += 1

    def end(self) -> None:
        if self._table is not None and self._rows:
            self.console.print(self._table)
        self._table = None

    def _create_table(self) -> Table:
        table = Table(box=SIMPLE, show_lines=False)
        header_style = "" if self.no_color else "bold"
        for column in COLUMNS:
            table.add_column(column, header_style=header_style)
        return table


def _describe(record: KpRecord | None) -> str:
    if record is None:
        return "none"
    return f"Time = {record.timestamp.isoformat()}, Kp = {record.kp}, ap = {record.ap}, d = {record.status.flag}"


__all__ = ["DiagnosticWriter"]
