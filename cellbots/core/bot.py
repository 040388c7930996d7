"""
Bot (Agent) for Cellbots.

A bot is a tiny organism occupying one grid cell. It carries a color, a
life timer, a private protein reserve and a fixed-length program that it
steps through a few instructions per tick.

Lifecycle:
  - born alive with timer = live_time and nothing stored
  - when the timer runs out while alive, the bot dies: it darkens and its
    timer restarts at die_time while the corpse lingers
  - when the timer runs out again, the corpse is destroyed

Bots are owned by exactly one grid cell at a time. Moving a bot means
taking it out of one cell and placing it in another.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from cellbots.core import color as palette
from cellbots.core.color import Color
from cellbots.core.program import (
    Instruction,
    Program,
    mutate_program,
    program_key,
    random_program,
)


class Bot:
    """
    A simulated organism.

    Attributes:
        color: Display color and hereditary marker.
        timer: Remaining life while alive, remaining linger time while dead.
        stored_resource: Private protein reserve.
        alive: Whether the bot is alive.
        program: Fixed-length instruction list.
        instruction_pointer: Index of the next instruction to execute.
        last_tick: Tick on which the bot last acted or was born (-1 = never).
    """

    __slots__ = (
        "color", "timer", "stored_resource", "alive",
        "program", "instruction_pointer", "last_tick",
    )

    def __init__(
        self,
        color: Color,
        program: Program,
        timer: int = 0,
        stored_resource: int = 0,
        alive: bool = True,
        instruction_pointer: int = 0,
        last_tick: int = -1,
    ):
        if not program:
            raise ValueError("Bot program must contain at least one instruction")
        self.color = color
        self.program = program
        self.timer = timer
        self.stored_resource = stored_resource
        self.alive = alive
        self.instruction_pointer = instruction_pointer
        self.last_tick = last_tick

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def make_random(
        cls,
        rng: np.random.Generator,
        program_size: int,
        live_time: int,
    ) -> Bot:
        """Create a fresh living bot with a random color and program."""
        return cls(
            color=Color.random(rng),
            program=random_program(program_size, rng),
            timer=live_time,
        )

    def copy(self) -> Bot:
        """Independent deep copy."""
        return Bot(
            color=self.color.copy(),
            program=[ins.copy() for ins in self.program],
            timer=self.timer,
            stored_resource=self.stored_resource,
            alive=self.alive,
            instruction_pointer=self.instruction_pointer,
            last_tick=self.last_tick,
        )

    # ------------------------------------------------------------------
    # Genetics
    # ------------------------------------------------------------------

    @property
    def program_size(self) -> int:
        return len(self.program)

    @property
    def current_instruction(self) -> Instruction:
        return self.program[self.instruction_pointer]

    def mutate(self, rng: np.random.Generator) -> None:
        """Point mutation of one color channel and one program field."""
        self.color.mutate(rng)
        mutate_program(self.program, rng)

    def reproduce(
        self,
        rng: np.random.Generator,
        live_time: int,
        mutation_chance: float,
    ) -> Bot:
        """
        Split off a child.

        The child is a clone that is mutated with probability
        `mutation_chance`. It takes half of the parent's reserve (rounded
        down); the parent keeps the rest, so the total is unchanged.

        Args:
            rng: Random generator.
            live_time: Child's starting timer.
            mutation_chance: Probability of mutating the child.

        Returns:
            The child, not yet placed on any grid.
        """
        child = self.copy()
        if rng.random() < mutation_chance:
            child.mutate(rng)
        child.stored_resource //= 2
        child.timer = live_time
        child.instruction_pointer = 0
        child.alive = True
        self.stored_resource -= child.stored_resource
        return child

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def tint(self, target: Color, amount: float = palette.ACTION_TINT) -> None:
        """Blend own color toward `target`."""
        self.color = self.color.interpolate(target, amount)

    def die(self, die_time: int) -> None:
        """Alive -> dead. The corpse lingers for `die_time` ticks."""
        self.tint(palette.BLACK, palette.DEATH_TINT)
        self.alive = False
        self.timer = die_time

    def jump(self, target: int) -> None:
        """Move the instruction pointer."""
        assert 0 <= target < len(self.program), f"instruction pointer {target} out of range"
        self.instruction_pointer = target

    @property
    def genome_key(self) -> tuple:
        return program_key(self.program)

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bot):
            return NotImplemented
        return (
            self.color == other.color
            and self.timer == other.timer
            and self.stored_resource == other.stored_resource
            and self.alive == other.alive
            and self.program == other.program
            and self.instruction_pointer == other.instruction_pointer
        )

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        status = "alive" if self.alive else "dead"
        return (
            f"Bot(timer={self.timer}, stored={self.stored_resource}, "
            f"ip={self.instruction_pointer}, status={status})"
        )

    def to_dict(self, position: Optional[tuple[int, int]] = None) -> dict:
        """Serialize bot state for snapshots/logging."""
        data = {
            "color": self.color.to_list(),
            "timer": self.timer,
            "stored_resource": self.stored_resource,
            "alive": self.alive,
            "instruction_pointer": self.instruction_pointer,
            "program": [ins.to_dict() for ins in self.program],
        }
        if position is not None:
            data["x"], data["y"] = position
        return data
