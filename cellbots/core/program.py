"""
Bot programs for Cellbots.

A program is a fixed-length list of instructions. Each instruction names
an action and two jump targets: where the instruction pointer goes when
the action succeeds and where it goes when it fails. Programs are the
genome of a bot; mutation re-rolls a single field of a single
instruction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from cellbots.core import color as palette
from cellbots.core.color import Color


class Opcode(Enum):
    """Actions a bot can attempt."""
    MULTIPLY = 0
    PHOTOSYNTHESIZE = 1
    ATTACK = 2
    FEED = 3
    MOVE = 4

    @classmethod
    def random(cls, rng: np.random.Generator) -> Opcode:
        return cls(int(rng.integers(0, len(cls))))


# Color a bot is tinted toward when the opcode succeeds
OPCODE_TINTS: dict[Opcode, Color] = {
    Opcode.MULTIPLY: palette.BLUE,
    Opcode.PHOTOSYNTHESIZE: palette.GREEN,
    Opcode.ATTACK: palette.RED,
    Opcode.FEED: palette.GRAY,
    Opcode.MOVE: palette.WHITE,
}


@dataclass(slots=True)
class Instruction:
    """
    One program step.

    Attributes:
        opcode: Action to attempt.
        goto_success: Next instruction index if the action succeeds.
        goto_fail: Next instruction index if the action fails.
    """
    opcode: Opcode
    goto_success: int = 0
    goto_fail: int = 0

    @classmethod
    def random(cls, program_size: int, rng: np.random.Generator) -> Instruction:
        return cls(
            opcode=Opcode.random(rng),
            goto_success=int(rng.integers(0, program_size)),
            goto_fail=int(rng.integers(0, program_size)),
        )

    def mutate(self, program_size: int, rng: np.random.Generator) -> None:
        """Re-roll exactly one of opcode / goto_success / goto_fail."""
        field_index = int(rng.integers(0, 3))
        if field_index == 0:
            self.opcode = Opcode.random(rng)
        elif field_index == 1:
            self.goto_success = int(rng.integers(0, program_size))
        else:
            self.goto_fail = int(rng.integers(0, program_size))

    def copy(self) -> Instruction:
        return Instruction(self.opcode, self.goto_success, self.goto_fail)

    def to_dict(self) -> dict:
        return {
            "opcode": self.opcode.name,
            "goto_success": self.goto_success,
            "goto_fail": self.goto_fail,
        }


Program = list[Instruction]


def random_program(program_size: int, rng: np.random.Generator) -> Program:
    """Generate `program_size` random instructions."""
    return [Instruction.random(program_size, rng) for _ in range(program_size)]


def mutate_program(program: Program, rng: np.random.Generator) -> None:
    """Mutate one randomly chosen instruction in place."""
    index = int(rng.integers(0, len(program)))
    program[index].mutate(len(program), rng)


def program_key(program: Program) -> tuple:
    """Hashable summary of a program (used to count distinct genomes)."""
    return tuple(
        (ins.opcode.value, ins.goto_success, ins.goto_fail) for ins in program
    )
