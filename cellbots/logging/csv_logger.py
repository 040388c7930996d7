"""
CSV Logger for Cellbots.

Writes one row per logged tick with every KPI column. The header goes in
with the first row; later rows are appended, so a crashed run still leaves
a readable file behind.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Optional

from cellbots.simulation.metrics import MetricsCollector


class CSVLogger:
    """
    Appends KPI rows to a CSV file.

    Usage:
        logger = CSVLogger("runs/my_run/metrics.csv")
        logger.log_row(kpis)                # one tick
        logger.log_all(metrics.history)     # rewrite the whole file

    Attributes:
        file_path: Path to the CSV file.
        columns: Ordered column names; keys outside this list are dropped.
        rows_written: Rows written through this logger instance.
    """

    def __init__(
        self,
        file_path: str | Path,
        columns: Optional[list[str]] = None,
    ):
        self.file_path = Path(file_path)
        self.columns = columns or MetricsCollector.kpi_names()
        self.rows_written = 0
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def _has_content(self) -> bool:
        return self.file_path.exists() and self.file_path.stat().st_size > 0

    def _write(self, rows: Iterable[dict], mode: str) -> None:
        header = mode == "w" or not self._has_content()
        with open(self.file_path, mode, newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns, extrasaction="ignore")
            if header:
                writer.writeheader()
            for row in rows:
                writer.writerow(row)
                self.rows_written += 1

    def log_row(self, kpi_dict: dict) -> None:
        """Append a single KPI row (header first if the file is new or empty)."""
        self._write([kpi_dict], mode="a")

    def log_all(self, kpi_list: list[dict]) -> None:
        """Overwrite the file with a header and all rows."""
        self._write(kpi_list, mode="w")

    def read_back(self) -> list[dict]:
        """
        Read every row back, converting numeric cells to int or float.

        Returns:
            List of dicts (one per row); empty if the file does not exist.
        """
        if not self.file_path.exists():
            return []

        with open(self.file_path, "r", encoding="utf-8") as f:
            return [
                {key: _parse_cell(value) for key, value in row.items()}
                for row in csv.DictReader(f)
            ]


def _parse_cell(value: str) -> int | float | str:
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    return value
