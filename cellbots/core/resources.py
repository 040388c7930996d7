"""
Shared resources for Cellbots.

The world holds three global counters: free protein (food waiting to be
absorbed), oxygen and carbon. Bots hold a private protein reserve
(`stored_resource`). Every movement of a resource goes through one of two
primitives so that nothing is ever created or lost:

  - steal_one: move a single unit; the source must be non-empty.
  - steal_all: move everything; always safe.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class ResourcePool:
    """
    Global resource counters.

    Attributes:
        free_protein: Protein available to photosynthesis and feeding.
        oxygen: Consumed by attacks, produced by photosynthesis.
        carbon: Consumed by photosynthesis, produced by attacks.
    """
    free_protein: int = 0
    oxygen: int = 0
    carbon: int = 0

    @property
    def total_gas(self) -> int:
        """oxygen + carbon (conserved)."""
        return self.oxygen + self.carbon

    def to_dict(self) -> dict[str, int]:
        return {
            "free_protein": self.free_protein,
            "oxygen": self.oxygen,
            "carbon": self.carbon,
        }


def steal_one(source: Any, source_field: str, target: Any, target_field: str) -> None:
    """
    Move one unit from `source.source_field` to `target.target_field`.

    Raises:
        RuntimeError: If the source counter is already empty. This means a
            caller skipped its availability check and is a bug, not a
            simulation condition.
    """
    available = getattr(source, source_field)
    if available <= 0:
        raise RuntimeError(
            f"Cannot take one unit of '{source_field}' from {source!r}: counter is {available}"
        )
    setattr(source, source_field, available - 1)
    setattr(target, target_field, getattr(target, target_field) + 1)


def steal_all(source: Any, source_field: str, target: Any, target_field: str) -> int:
    """
    Move the whole of `source.source_field` to `target.target_field`.

    Returns:
        The amount moved.
    """
    amount = getattr(source, source_field)
    setattr(source, source_field, 0)
    setattr(target, target_field, getattr(target, target_field) + amount)
    return amount
