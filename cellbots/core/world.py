"""
World (Simulation Environment) for Cellbots.

Bundles the grid of bots with the shared resource pool and the logical
world size. The size bounds initial placement even when the topology is
an unbounded plane.

All protein in the world lives either in `resources.free_protein` or in
some bot's `stored_resource`; `total_protein` is conserved by every
operation of the engine. Likewise oxygen + carbon.
"""

from __future__ import annotations

from typing import Iterator, Optional

import numpy as np

from cellbots.core.bot import Bot
from cellbots.core.config import SimConfig
from cellbots.core.grid import Grid, make_grid
from cellbots.core.resources import ResourcePool, steal_all
from cellbots.core.topology import make_topology
from cellbots.utils.spatial import Coordinate


class World:
    """
    The simulation world: a grid of bots plus the global resource pool.

    Attributes:
        size: Logical (width, height), used for seeding.
        resources: Shared counters.
        bots: Grid holding every bot, alive or dead.
        tick_count: Number of ticks processed so far.
    """

    def __init__(
        self,
        size: tuple[int, int],
        resources: ResourcePool,
        bots: Grid[Bot],
    ):
        self.size = size
        self.resources = resources
        self.bots = bots
        self.tick_count: int = 0

    @classmethod
    def from_config(cls, config: SimConfig) -> World:
        """
        Build an empty world (no bots) from a configuration.

        Raises:
            ValueError: If the configuration is invalid.
        """
        config.check()
        w = config.world
        topology = make_topology(w.topology, w.width, w.height)
        r = config.resources
        return cls(
            size=(w.width, w.height),
            resources=ResourcePool(
                free_protein=r.free_protein,
                oxygen=r.oxygen,
                carbon=r.carbon,
            ),
            bots=make_grid(w.storage, topology),
        )

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def populate(self, config: SimConfig, rng: np.random.Generator) -> int:
        """
        Scatter `population.initial_count` random bots over the world.

        Each bot is funded with up to `population.initial_protein` units
        taken from the free pool. Bots that land on an occupied cell
        forfeit their funding back to the pool and are dropped.

        Returns:
            Number of bots actually placed.
        """
        placed = 0
        for _ in range(config.population.initial_count):
            bot = Bot.make_random(
                rng,
                program_size=config.bot.program_size,
                live_time=config.bot.live_time,
            )
            x = int(rng.integers(0, self.width))
            y = int(rng.integers(0, self.height))

            funding = min(config.population.initial_protein, self.resources.free_protein)
            self.resources.free_protein -= funding
            bot.stored_resource += funding

            if self.settle((x, y), bot) is None:
                placed += 1
        return placed

    def settle(self, pos: Coordinate, bot: Bot) -> Optional[int]:
        """
        Place a bot, forfeiting it if the cell is taken or not admitted.

        A bot that cannot be placed is discarded and its whole reserve goes
        back to the free pool.

        Returns:
            None if placed, otherwise the amount of protein forfeited.
        """
        leftover = self.bots.place(pos, bot)
        if leftover is None:
            return None
        return steal_all(leftover, "stored_resource", self.resources, "free_protein")

    # ------------------------------------------------------------------
    # State queries
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[tuple[Coordinate, Bot]]:
        return iter(self.bots)

    @property
    def bot_count(self) -> int:
        """Number of bots on the grid (alive and dead)."""
        return self.bots.count()

    @property
    def alive_count(self) -> int:
        return sum(1 for _, bot in self.bots if bot.alive)

    @property
    def dead_count(self) -> int:
        return self.bot_count - self.alive_count

    @property
    def is_extinct(self) -> bool:
        """True once no bot, living or dead, remains."""
        return self.bots.count() == 0

    @property
    def stored_protein(self) -> int:
        """Protein held privately by bots."""
        return sum(bot.stored_resource for _, bot in self.bots)

    @property
    def total_protein(self) -> int:
        """Free plus stored protein (conserved)."""
        return self.resources.free_protein + self.stored_protein

    @property
    def total_gas(self) -> int:
        """Oxygen plus carbon (conserved)."""
        return self.resources.total_gas

    def __repr__(self) -> str:
        return (
            f"World(size={self.width}x{self.height}, tick={self.tick_count}, "
            f"bots={self.bot_count}, free_protein={self.resources.free_protein}, "
            f"oxygen={self.resources.oxygen}, carbon={self.resources.carbon})"
        )


def init_world(config: SimConfig, rng: np.random.Generator) -> World:
    """
    Build and seed a world.

    Args:
        config: Simulation configuration (validated here).
        rng: Seeded generator; the same seed yields the same world.

    Raises:
        ValueError: If the configuration is invalid.
    """
    world = World.from_config(config)
    world.populate(config, rng)
    return world
