"""
Snapshot manager for Cellbots.

Saves and loads full world state snapshots as JSON. A snapshot records the
world geometry, the resource pool and every bot (position, color, timers,
reserve and program), enough to inspect or re-draw any logged tick.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from cellbots.core.world import World


class SnapshotManager:
    """
    Saves and loads world state snapshots as JSON files.

    Each snapshot is saved to: {output_dir}/snapshots/tick_{N:06d}.json

    Attributes:
        output_dir: Base output directory for the run.
        snapshot_dir: Directory holding the snapshot files.
    """

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.snapshot_dir = self.output_dir / "snapshots"
        self.snapshot_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, tick: int) -> Path:
        return self.snapshot_dir / f"tick_{tick:06d}.json"

    def save(self, world: World) -> Path:
        """
        Save a snapshot of the current world state, keyed by its tick.

        Returns:
            Path to the saved snapshot file.
        """
        file_path = self._path(world.tick_count)
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(world_to_dict(world), f, indent=2, ensure_ascii=False, default=_json_default)
        return file_path

    def load(self, tick: int) -> dict:
        """
        Load the snapshot taken at `tick`.

        Raises:
            FileNotFoundError: If snapshot doesn't exist.
        """
        file_path = self._path(tick)
        if not file_path.exists():
            raise FileNotFoundError(f"Snapshot not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def list_snapshots(self) -> list[int]:
        """Sorted tick numbers of all available snapshots."""
        ticks = []
        for p in self.snapshot_dir.glob("tick_*.json"):
            try:
                ticks.append(int(p.stem.split("_")[1]))
            except (IndexError, ValueError):
                continue
        return sorted(ticks)


def world_to_dict(world: World) -> dict:
    """Convert world state to a serializable dict (bots in coordinate order)."""
    topology = world.bots.topology
    return {
        "tick": world.tick_count,
        "width": world.width,
        "height": world.height,
        "topology": topology.kind,
        "repeat_x": topology.repeat_x,
        "repeat_y": topology.repeat_y,
        "resources": world.resources.to_dict(),
        "bot_count": world.bot_count,
        "bots": [
            bot.to_dict(position=pos)
            for pos, bot in sorted(world.bots, key=lambda item: item[0])
        ],
    }


def _json_default(obj: Any) -> Any:
    """JSON serialization fallback for NumPy types."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
