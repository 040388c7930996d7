"""
Simulation Engine - main tick loop for Cellbots.

One tick visits every bot that was on the grid when the tick started,
in coordinate order, and lets it act:

  1. take the bot out of its cell
  2. count its timer down; handle death and corpse destruction
  3. living bots run up to `max_commands_per_step` program instructions,
     stopping at the first one that succeeds
  4. corpses fade and leak one unit of protein back to the pool
  5. the bot is placed back (possibly in a new cell)

Positions are snapshotted and sorted before anything moves, so a run is
fully determined by the seed. Bots born or moved during a tick are not
visited again until the next one. When a bot cannot be placed because
its target cell was filled earlier in the same tick, it is discarded and
its protein forfeited to the pool.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Callable, Optional

import numpy as np

from cellbots.core import color as palette
from cellbots.core.bot import Bot
from cellbots.core.config import SimConfig
from cellbots.core.program import Opcode, OPCODE_TINTS
from cellbots.core.resources import steal_all, steal_one
from cellbots.core.world import World, init_world
from cellbots.utils.spatial import Coordinate


# Forced reproduction kicks in at this multiple of the multiply cost
FORCED_MULTIPLY_FACTOR = 10

# Extra timer drain when a bot feeds
FEED_TIMER_COST = 10


# ---------------------------------------------------------------------------
# Tick statistics - lightweight counters for one tick
# ---------------------------------------------------------------------------

@dataclass
class TickStats:
    """Statistics collected during a single tick."""
    bots_processed: int = 0
    deaths: int = 0
    destructions: int = 0
    births: int = 0
    forced_births: int = 0
    photosyntheses: int = 0
    attacks: int = 0
    failed_attacks: int = 0
    feeds: int = 0
    moves: int = 0
    idle: int = 0
    collisions: int = 0
    forfeited_protein: int = 0

    def add(self, other: TickStats) -> None:
        """Accumulate another tick's counters into this one."""
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]


# ---------------------------------------------------------------------------
# Tick processor
# ---------------------------------------------------------------------------

class TickProcessor:
    """
    Advances a world by exactly one tick.

    A processor is single-use: build one per tick with `process_world`.

    Attributes:
        config: Simulation configuration.
        rng: Shared random generator.
        world: World being advanced (mutated in place).
        stats: Counters for this tick.
    """

    def __init__(self, config: SimConfig, rng: np.random.Generator, world: World):
        self.config = config
        self.rng = rng
        self.world = world
        self.stats = TickStats()
        self._tick = world.tick_count

        self._actions: dict[Opcode, Callable[..., Optional[Coordinate]]] = {
            Opcode.MULTIPLY: self._do_multiply,
            Opcode.PHOTOSYNTHESIZE: self._do_photosynthesize,
            Opcode.ATTACK: self._do_attack,
            Opcode.FEED: self._do_feed,
            Opcode.MOVE: self._do_move,
        }

    def run(self) -> TickStats:
        positions = sorted(self.world.bots.positions())
        for pos in positions:
            self._process(pos)
        self.world.tick_count += 1
        return self.stats

    # ------------------------------------------------------------------
    # Per-bot state machine
    # ------------------------------------------------------------------

    def _process(self, pos: Coordinate) -> None:
        world = self.world
        bot = world.bots.take(pos)
        if bot is None:
            return
        if bot.last_tick == self._tick:
            # Moved or born onto this cell earlier in the tick
            world.bots.place_unchecked(pos, bot)
            return
        bot.last_tick = self._tick
        self.stats.bots_processed += 1

        bot.timer = max(bot.timer - 1, 0)

        if bot.alive and bot.timer == 0:
            bot.die(self.config.bot.die_time)
            self.stats.deaths += 1

        if not bot.alive and bot.timer == 0:
            steal_all(bot, "stored_resource", world.resources, "free_protein")
            self.stats.destructions += 1
            return

        if bot.alive:
            target = self._live(pos, bot)
        else:
            self._decay(bot)
            target = pos

        self._settle(target, bot)

    def _live(self, pos: Coordinate, bot: Bot) -> Coordinate:
        """Run the bot's program; return the cell it should end up in."""
        void, alive_neighbors = self._survey(pos)
        cfg = self.config.bot

        for _ in range(cfg.max_commands_per_step):
            if bot.stored_resource >= FORCED_MULTIPLY_FACTOR * cfg.multiply_cost:
                if self._multiply(bot, void):
                    self.stats.forced_births += 1
                bot.tint(palette.BLUE)
                return pos

            instruction = bot.current_instruction
            target = self._actions[instruction.opcode](pos, bot, void, alive_neighbors)
            if target is not None:
                bot.tint(OPCODE_TINTS[instruction.opcode])
                bot.jump(instruction.goto_success)
                return target
            bot.jump(instruction.goto_fail)

        self.stats.idle += 1
        return pos

    def _decay(self, bot: Bot) -> None:
        """A corpse fades and returns one unit of protein per tick."""
        bot.tint(palette.BLACK, 1.0 / self.config.bot.die_time)
        if bot.stored_resource > 0:
            steal_one(bot, "stored_resource", self.world.resources, "free_protein")

    def _survey(self, pos: Coordinate) -> tuple[list[Coordinate], list[Coordinate]]:
        """Split reachable neighbours into empty cells and cells with living bots."""
        grid = self.world.bots
        void: list[Coordinate] = []
        alive_neighbors: list[Coordinate] = []
        for cell in grid.topology.neighbors(pos):
            neighbor = grid.peek(cell)
            if neighbor is None:
                void.append(cell)
            elif neighbor.alive:
                alive_neighbors.append(cell)
        return void, alive_neighbors

    def _choose(self, cells: list[Coordinate]) -> Coordinate:
        return cells[int(self.rng.integers(0, len(cells)))]

    def _settle(self, pos: Coordinate, bot: Bot) -> None:
        forfeited = self.world.settle(pos, bot)
        if forfeited is not None:
            self.stats.collisions += 1
            self.stats.forfeited_protein += forfeited

    def _multiply(self, bot: Bot, void: list[Coordinate]) -> bool:
        """Split a child into a random empty neighbour. False if there is none."""
        if not void:
            return False
        cell = self._choose(void)
        cfg = self.config.bot
        child = bot.reproduce(self.rng, cfg.live_time, cfg.mutation_chance)
        child.last_tick = self._tick
        self._settle(cell, child)
        self.stats.births += 1
        return True

    # ------------------------------------------------------------------
    # Instructions
    #
    # Each returns the bot's destination cell on success, None on failure.
    # ------------------------------------------------------------------

    def _do_multiply(
        self,
        pos: Coordinate,
        bot: Bot,
        void: list[Coordinate],
        alive_neighbors: list[Coordinate],
    ) -> Optional[Coordinate]:
        if bot.stored_resource < self.config.bot.multiply_cost:
            return None
        if not self._multiply(bot, void):
            return None
        return pos

    def _do_photosynthesize(
        self,
        pos: Coordinate,
        bot: Bot,
        void: list[Coordinate],
        alive_neighbors: list[Coordinate],
    ) -> Optional[Coordinate]:
        pool = self.world.resources
        if pool.free_protein <= 0 or pool.carbon <= 0:
            return None
        steal_one(pool, "free_protein", bot, "stored_resource")
        steal_one(pool, "carbon", pool, "oxygen")
        self.stats.photosyntheses += 1
        return pos

    def _do_attack(
        self,
        pos: Coordinate,
        bot: Bot,
        void: list[Coordinate],
        alive_neighbors: list[Coordinate],
    ) -> Optional[Coordinate]:
        pool = self.world.resources
        if not alive_neighbors or pool.oxygen <= 0:
            return None
        cell = self._choose(alive_neighbors)
        victim = self.world.bots.take(cell)
        if victim is None:
            return None
        if victim.stored_resource <= 0:
            self._settle(cell, victim)
            self.stats.failed_attacks += 1
            return None
        steal_one(victim, "stored_resource", bot, "stored_resource")
        steal_one(pool, "oxygen", pool, "carbon")
        self._settle(cell, victim)
        self.stats.attacks += 1
        return pos

    def _do_feed(
        self,
        pos: Coordinate,
        bot: Bot,
        void: list[Coordinate],
        alive_neighbors: list[Coordinate],
    ) -> Optional[Coordinate]:
        pool = self.world.resources
        if pool.free_protein <= 0:
            return None
        steal_one(pool, "free_protein", bot, "stored_resource")
        bot.timer = max(bot.timer - FEED_TIMER_COST, 0)
        self.stats.feeds += 1
        return pos

    def _do_move(
        self,
        pos: Coordinate,
        bot: Bot,
        void: list[Coordinate],
        alive_neighbors: list[Coordinate],
    ) -> Optional[Coordinate]:
        if not void:
            return None
        self.stats.moves += 1
        return self._choose(void)


def process_world(config: SimConfig, rng: np.random.Generator, world: World) -> TickStats:
    """
    Advance `world` by exactly one tick, in place.

    Returns:
        Counters describing what happened during the tick.
    """
    return TickProcessor(config, rng, world).run()


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------

@dataclass
class RunResult:
    """Result of a complete simulation run."""
    config: SimConfig
    seed: int
    total_ticks: int = 0
    final_bot_count: int = 0
    final_alive_count: int = 0
    extinct: bool = False
    extinction_tick: Optional[int] = None
    tick_stats_history: list[TickStats] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Simulation Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """
    Owns a world, its random generator and the tick loop.

    Attributes:
        config: Simulation configuration.
        rng: Master random generator (seeded).
        world: The simulation world (None until `initialize()`).
        tick_stats: Statistics for the most recent tick.
        on_tick: Optional callback invoked after each tick(tick_number, engine).
    """

    def __init__(self, config: SimConfig, seed: Optional[int] = None):
        """
        Create a simulation engine.

        Args:
            config: Simulation configuration.
            seed: Random seed override. None = use config.world.seed.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config

        if seed is not None:
            self.config.world.seed = seed

        self.config.check()

        self.rng = np.random.default_rng(self.config.world.seed)
        self.world: Optional[World] = None

        self.tick_stats = TickStats()
        self._accumulated_tick_stats: list[TickStats] = []

        self.on_tick: Optional[Callable[[int, "SimulationEngine"], None]] = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self) -> World:
        """Build and seed the world."""
        self.world = init_world(self.config, self.rng)
        return self.world

    def _require_world(self) -> World:
        if self.world is None:
            raise RuntimeError("SimulationEngine.initialize() must be called before ticking")
        return self.world

    # ------------------------------------------------------------------
    # Core tick
    # ------------------------------------------------------------------

    def tick(self) -> TickStats:
        """Execute one simulation tick and fire the tick callback."""
        world = self._require_world()
        stats = process_world(self.config, self.rng, world)

        self.tick_stats = stats
        self._accumulated_tick_stats.append(stats)

        if self.on_tick is not None:
            self.on_tick(world.tick_count, self)

        return stats

    def run(self, max_ticks: Optional[int] = None) -> RunResult:
        """
        Run the simulation until `max_ticks` or extinction.

        Args:
            max_ticks: Tick limit. None = config.output.max_ticks.

        Returns:
            RunResult with summary statistics.
        """
        world = self._require_world()
        if max_ticks is None:
            max_ticks = self.config.output.max_ticks

        result = RunResult(config=self.config, seed=self.config.world.seed)
        history: list[TickStats] = []

        ticks_run = 0
        while ticks_run < max_ticks and not world.is_extinct:
            history.append(self.tick())
            ticks_run += 1

        if world.is_extinct:
            result.extinct = True
            result.extinction_tick = world.tick_count

        result.total_ticks = ticks_run
        result.final_bot_count = world.bot_count
        result.final_alive_count = world.alive_count
        result.tick_stats_history = history
        return result

    # ------------------------------------------------------------------
    # Accumulated statistics helpers
    # ------------------------------------------------------------------

    def get_accumulated_stats(self) -> dict[str, int]:
        """
        Sum all tick stats from the current accumulation period.

        Returns:
            Dict of stat_name -> total_value.
        """
        totals = TickStats()
        for stats in self._accumulated_tick_stats:
            totals.add(stats)
        return {name: getattr(totals, name) for name in TickStats.names()}

    def reset_accumulated_stats(self) -> list[TickStats]:
        """
        Reset and return the accumulated tick stats (e.g., after logging).

        Returns:
            The accumulated stats before reset.
        """
        old = self._accumulated_tick_stats
        self._accumulated_tick_stats = []
        return old

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_extinct(self) -> bool:
        return self._require_world().is_extinct

    @property
    def bot_count(self) -> int:
        return self._require_world().bot_count

    @property
    def current_tick(self) -> int:
        return self._require_world().tick_count

    def __repr__(self) -> str:
        if self.world is None:
            return "SimulationEngine(uninitialized)"
        return (
            f"SimulationEngine(tick={self.world.tick_count}, "
            f"bots={self.world.bot_count}, "
            f"free_protein={self.world.resources.free_protein})"
        )
