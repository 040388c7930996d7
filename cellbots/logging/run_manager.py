"""
Run Manager for Cellbots.

Owns the output directory of one simulation run:

    {base_dir}/{run_name}/
        config.json     - configuration the run was started with
        metrics.csv     - per-tick KPIs
        snapshots/      - world snapshots (tick_000100.json, ...)
        summary.json    - final summary, written by finalize()
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from cellbots.core.config import SimConfig, save_config
from cellbots.core.world import World
from cellbots.logging.csv_logger import CSVLogger
from cellbots.logging.snapshot import SnapshotManager


CONFIG_FILE = "config.json"
METRICS_FILE = "metrics.csv"
SUMMARY_FILE = "summary.json"


def default_run_name(config: SimConfig) -> str:
    """Timestamp plus seed, e.g. 20260101_120000_seed92."""
    return f"{datetime.now():%Y%m%d_%H%M%S}_seed{config.world.seed}"


class RunManager:
    """
    One run's directory and the writers that fill it.

    Attributes:
        run_dir: Directory all outputs of the run go into.
        csv_logger: Writer for metrics.csv.
        snapshot_manager: Writer for snapshots/.
    """

    def __init__(
        self,
        config: SimConfig,
        base_dir: Optional[str | Path] = None,
        run_name: Optional[str] = None,
    ):
        """
        Create the run directory and record the config in it.

        Args:
            config: Configuration the run uses.
            base_dir: Parent directory. None = config.output.output_dir.
            run_name: Directory name. None = `default_run_name(config)`.
        """
        parent = Path(base_dir if base_dir is not None else config.output.output_dir)
        self.run_dir = parent / (run_name or default_run_name(config))
        self.run_dir.mkdir(parents=True, exist_ok=True)

        save_config(config, self.config_path)
        self.csv_logger = CSVLogger(self.run_dir / METRICS_FILE)
        self.snapshot_manager = SnapshotManager(self.run_dir)

    @property
    def config_path(self) -> Path:
        return self.run_dir / CONFIG_FILE

    @property
    def metrics_path(self) -> Path:
        return self.csv_logger.file_path

    @property
    def snapshots_dir(self) -> Path:
        return self.snapshot_manager.snapshot_dir

    @property
    def summary_path(self) -> Path:
        return self.run_dir / SUMMARY_FILE

    def log_tick(self, kpis: dict) -> None:
        self.csv_logger.log_row(kpis)

    def save_snapshot(self, world: World) -> Path:
        """Snapshot the world under its current tick number."""
        return self.snapshot_manager.save(world)

    def finalize(self, summary: Optional[dict] = None) -> None:
        """Write summary.json; nothing is written when `summary` is None."""
        if summary is None:
            return
        self.summary_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")

    @staticmethod
    def list_runs(base_dir: str | Path) -> list[str]:
        """Names of the run directories under `base_dir`, sorted."""
        base = Path(base_dir)
        if not base.is_dir():
            return []
        return sorted(
            entry.name for entry in base.iterdir()
            if (entry / CONFIG_FILE).is_file()
        )

    def __repr__(self) -> str:
        return f"RunManager(run_dir='{self.run_dir}')"
