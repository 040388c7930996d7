"""
KPI Metrics collection for Cellbots.

MetricsCollector gathers per-tick Key Performance Indicators (KPIs) from
the world state and the tick's counters. It produces a flat dictionary
per sample suitable for CSV export and analysis.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from cellbots.core.bot import Bot
from cellbots.core.world import World
from cellbots.simulation.engine import TickStats


# ---------------------------------------------------------------------------
# MetricsCollector
# ---------------------------------------------------------------------------

class MetricsCollector:
    """
    Collects and computes KPIs per logged tick.

    Usage:
      1. After a tick (or a batch of ticks), call `collect(world, tick_stats)`
      2. Resulting dict is appended to `history`
      3. Call `get_history()` to retrieve all collected samples

    Attributes:
        history: List of KPI dicts, one per sample.
    """

    def __init__(self):
        self.history: list[dict] = []

    def collect(self, world: World, tick_stats: Optional[dict[str, int]] = None) -> dict:
        """
        Compute all KPIs for the current world state and append to history.

        Args:
            world: Current world state.
            tick_stats: Counters since the previous sample, as returned by
                        `SimulationEngine.get_accumulated_stats()`. None = zeros.

        Returns:
            Dict of KPI_name -> value.
        """
        if tick_stats is None:
            tick_stats = {}

        bots = [bot for _, bot in world.bots]
        alive = [bot for bot in bots if bot.alive]
        pool = world.resources

        kpis: dict = {}

        # --- Population ---
        kpis["tick"] = world.tick_count
        kpis["bot_count"] = len(bots)
        kpis["alive_count"] = len(alive)
        kpis["dead_count"] = len(bots) - len(alive)

        # --- Resources ---
        stored = np.array([bot.stored_resource for bot in bots], dtype=np.int64)
        stored_total = int(stored.sum()) if len(stored) else 0
        kpis["free_protein"] = pool.free_protein
        kpis["oxygen"] = pool.oxygen
        kpis["carbon"] = pool.carbon
        kpis["stored_protein"] = stored_total
        kpis["total_protein"] = pool.free_protein + stored_total
        kpis["total_gas"] = pool.total_gas

        # --- Bot statistics ---
        if alive:
            kpis["avg_timer"] = float(np.mean([bot.timer for bot in alive]))
            kpis["avg_stored"] = float(np.mean([bot.stored_resource for bot in alive]))
            kpis["max_stored"] = int(np.max([bot.stored_resource for bot in alive]))
        else:
            kpis["avg_timer"] = 0.0
            kpis["avg_stored"] = 0.0
            kpis["max_stored"] = 0

        # --- Genetic diversity ---
        kpis["unique_programs"] = self._count_unique_programs(alive)
        kpis["dominant_opcode"] = self._dominant_opcode(alive)

        # --- Events (from tick stats) ---
        for name in self.event_names():
            kpis[name] = tick_stats.get(name, 0)

        self.history.append(kpis)
        return kpis

    # ------------------------------------------------------------------
    # Genetics
    # ------------------------------------------------------------------

    @staticmethod
    def _count_unique_programs(bots: list[Bot]) -> int:
        """Count distinct programs among living bots."""
        return len({bot.genome_key for bot in bots})

    @staticmethod
    def _dominant_opcode(bots: list[Bot]) -> str:
        """Most common opcode across all living programs ('' if none)."""
        if not bots:
            return ""
        counts: dict[str, int] = {}
        for bot in bots:
            for ins in bot.program:
                counts[ins.opcode.name] = counts.get(ins.opcode.name, 0) + 1
        # Ties resolved by name for a stable result
        return max(sorted(counts), key=lambda name: counts[name])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_history(self) -> list[dict]:
        """Return all collected KPI samples."""
        return list(self.history)

    def get_last(self) -> Optional[dict]:
        """Return the last collected KPI sample, or None."""
        return self.history[-1] if self.history else None

    def get_kpi_series(self, kpi_name: str) -> list:
        """Extract a single KPI as a list across all samples."""
        return [snap[kpi_name] for snap in self.history if kpi_name in snap]

    @staticmethod
    def event_names() -> list[str]:
        """Tick counters copied into every sample."""
        return TickStats.names()

    @staticmethod
    def kpi_names() -> list[str]:
        """Return the ordered list of all KPI names."""
        return [
            "tick",
            "bot_count",
            "alive_count",
            "dead_count",
            "free_protein",
            "oxygen",
            "carbon",
            "stored_protein",
            "total_protein",
            "total_gas",
            "avg_timer",
            "avg_stored",
            "max_stored",
            "unique_programs",
            "dominant_opcode",
        ] + MetricsCollector.event_names()
