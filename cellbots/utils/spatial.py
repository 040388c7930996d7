"""
Spatial utilities for Cellbots.

Provides axis wrapping math and Moore-neighbourhood enumeration.
Neighbour enumeration is a pure function of a topology's `admits`
predicate: diagonal steps are only offered when both orthogonal steps
that make them up are admitted, so bots never cut corners across a
non-wrapping border.
"""

from __future__ import annotations

from typing import Callable

Coordinate = tuple[int, int]


# Orthogonal steps first, then diagonals with the two orthogonal steps they
# depend on.
MOORE_DEPENDENT_NEIGHBORHOOD: tuple[tuple[Coordinate, tuple[Coordinate, Coordinate] | None], ...] = (
    ((-1, 0), None),
    ((1, 0), None),
    ((0, -1), None),
    ((0, 1), None),
    ((-1, 1), ((-1, 0), (0, 1))),
    ((1, 1), ((1, 0), (0, 1))),
    ((1, -1), ((1, 0), (0, -1))),
    ((-1, -1), ((-1, 0), (0, -1))),
)

MOORE_NEIGHBORHOOD: tuple[Coordinate, ...] = tuple(
    offset for offset, _ in MOORE_DEPENDENT_NEIGHBORHOOD
)


def wrap_axis(value: int, size: int) -> int:
    """
    Wrap a single coordinate onto a repeating axis.

    Args:
        value: Raw coordinate (may be negative or >= size).
        size: Axis period, must be positive.

    Returns:
        Representative in [0, size).
    """
    return ((value % size) + size) % size


def offset(pos: Coordinate, delta: Coordinate) -> Coordinate:
    """Translate a coordinate by a step."""
    return (pos[0] + delta[0], pos[1] + delta[1])


def dependent_neighbors(
    pos: Coordinate,
    admits: Callable[[Coordinate], bool],
) -> list[Coordinate]:
    """
    Enumerate the raw Moore neighbours of `pos` a bot may step into.

    Orthogonal neighbours are kept when admitted. Diagonal neighbours are
    kept when the diagonal cell and both orthogonal cells it depends on
    are admitted.

    Args:
        pos: Centre cell.
        admits: Topology predicate.

    Returns:
        Raw (non-canonical) neighbour coordinates in neighbourhood order.
    """
    result = []
    for delta, dependency in MOORE_DEPENDENT_NEIGHBORHOOD:
        cell = offset(pos, delta)
        if not admits(cell):
            continue
        if dependency is not None:
            first, second = dependency
            if not (admits(offset(pos, first)) and admits(offset(pos, second))):
                continue
        result.append(cell)
    return result
