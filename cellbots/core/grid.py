"""
Grid storage for Cellbots.

A grid maps canonical coordinates to at most one occupant under a fixed
topology. Two interchangeable backends implement the same contract:

  - DenseGrid:  flat NumPy object array, index y * width + x. Finite
                topologies only; never resizes.
  - SparseGrid: dict keyed by canonical coordinate. Works for every
                topology, including the unbounded plane.

Callers are written against `Grid` and never care which backend they hold.
`place` never overwrites: when the target is occupied or not admitted the
occupant is handed back and the caller decides what happens to it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Iterator, Optional, TypeVar

import numpy as np
from numpy.typing import NDArray

from cellbots.core.topology import Topology
from cellbots.utils.spatial import Coordinate


T = TypeVar("T")

STORAGE_KINDS = ("dense", "sparse")


class Grid(ABC, Generic[T]):
    """
    Abstract grid contract.

    Attributes:
        topology: Coordinate policy shared by every operation.
    """

    def __init__(self, topology: Topology):
        self.topology = topology

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def admits(self, pos: Coordinate) -> bool:
        """Whether `pos` is a legal coordinate under the topology."""
        return self.topology.admits(pos)

    @abstractmethod
    def occupied(self, pos: Coordinate) -> bool:
        """Whether a cell holds an occupant. Inadmissible cells are never occupied."""

    @abstractmethod
    def peek(self, pos: Coordinate) -> Optional[T]:
        """Return the occupant without removing it."""

    @abstractmethod
    def count(self) -> int:
        """Number of occupied cells."""

    @abstractmethod
    def __iter__(self) -> Iterator[tuple[Coordinate, T]]:
        """Yield (canonical position, occupant) for every occupied cell."""

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    @abstractmethod
    def take(self, pos: Coordinate) -> Optional[T]:
        """Remove and return the occupant, or None if the cell is empty."""

    def place(self, pos: Coordinate, item: T) -> Optional[T]:
        """
        Put `item` at `pos` if the cell is admitted and free.

        Returns:
            None on success, otherwise `item` itself (unplaced).
        """
        if self.admits(pos) and not self.occupied(pos):
            self.place_unchecked(pos, item)
            return None
        return item

    @abstractmethod
    def place_unchecked(self, pos: Coordinate, item: T) -> None:
        """Insert or overwrite without checking vacancy. `pos` must be admitted."""

    @abstractmethod
    def clear(self) -> None:
        """Empty every cell."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def peek_mut(self, pos: Coordinate) -> Optional[T]:
        """Same as `peek`; occupants are mutable references."""
        return self.peek(pos)

    def positions(self) -> list[Coordinate]:
        """Snapshot of all occupied coordinates (safe to iterate while mutating)."""
        return [pos for pos, _ in self]

    def __len__(self) -> int:
        return self.count()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.topology!r}, count={self.count()})"


class DenseGrid(Grid[T]):
    """Array-backed grid for finite topologies."""

    def __init__(self, topology: Topology):
        if not topology.is_finite:
            raise ValueError(f"DenseGrid cannot represent {topology!r}")
        super().__init__(topology)
        self.width, self.height = topology.size
        self._cells: NDArray[np.object_] = np.full(self.width * self.height, None, dtype=object)
        self._count = 0

    def _index(self, pos: Coordinate) -> int:
        x, y = self.topology.canonicalize(pos)
        return y * self.width + x

    def occupied(self, pos: Coordinate) -> bool:
        if not self.admits(pos):
            return False
        return self._cells[self._index(pos)] is not None

    def peek(self, pos: Coordinate) -> Optional[T]:
        if not self.admits(pos):
            return None
        return self._cells[self._index(pos)]

    def take(self, pos: Coordinate) -> Optional[T]:
        if not self.admits(pos):
            return None
        index = self._index(pos)
        item = self._cells[index]
        if item is not None:
            self._cells[index] = None
            self._count -= 1
        return item

    def place_unchecked(self, pos: Coordinate, item: T) -> None:
        index = self._index(pos)
        if self._cells[index] is None:
            self._count += 1
        self._cells[index] = item

    def count(self) -> int:
        return self._count

    def clear(self) -> None:
        self._cells[:] = None
        self._count = 0

    def __iter__(self) -> Iterator[tuple[Coordinate, T]]:
        for index, item in enumerate(self._cells):
            if item is not None:
                y, x = divmod(index, self.width)
                yield (x, y), item


class SparseGrid(Grid[T]):
    """Dict-backed grid for any topology."""

    def __init__(self, topology: Topology):
        super().__init__(topology)
        self._cells: dict[Coordinate, T] = {}

    def occupied(self, pos: Coordinate) -> bool:
        if not self.admits(pos):
            return False
        return self.topology.canonicalize(pos) in self._cells

    def peek(self, pos: Coordinate) -> Optional[T]:
        if not self.admits(pos):
            return None
        return self._cells.get(self.topology.canonicalize(pos))

    def take(self, pos: Coordinate) -> Optional[T]:
        if not self.admits(pos):
            return None
        return self._cells.pop(self.topology.canonicalize(pos), None)

    def place_unchecked(self, pos: Coordinate, item: T) -> None:
        self._cells[self.topology.canonicalize(pos)] = item

    def count(self) -> int:
        return len(self._cells)

    def clear(self) -> None:
        self._cells.clear()

    def __iter__(self) -> Iterator[tuple[Coordinate, T]]:
        yield from self._cells.items()


_BACKENDS: dict[str, type[Grid]] = {
    "dense": DenseGrid,
    "sparse": SparseGrid,
}


def make_grid(storage: str, topology: Topology) -> Grid:
    """
    Build an empty grid backend by config name.

    Raises:
        ValueError: Unknown storage kind, or a dense grid over an infinite topology.
    """
    try:
        cls = _BACKENDS[storage]
    except KeyError:
        raise ValueError(
            f"Unknown storage '{storage}', expected one of {', '.join(STORAGE_KINDS)}"
        ) from None
    return cls(topology)
