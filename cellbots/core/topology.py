"""
Spatial topologies for the Cellbots grid.

A topology decides which coordinates exist and how coordinates that run
off one edge come back on the other. Five policies are provided:

  - Bounded:        finite rectangle, nothing wraps
  - Torus:          both axes wrap
  - VerticalWrap:   y wraps, x is bounded to [0, width)
  - HorizontalWrap: x wraps, y is bounded to [0, height)
  - Unbounded:      infinite plane, nothing wraps

Topologies are stateless apart from their size and can be shared freely.
"""

from __future__ import annotations

from typing import Optional

from cellbots.utils.spatial import Coordinate, dependent_neighbors, wrap_axis


TOPOLOGY_KINDS = ("bounded", "torus", "vertical_wrap", "horizontal_wrap", "unbounded")


class Topology:
    """
    Base class for coordinate policies.

    Subclasses set `wraps_x` / `wraps_y` and implement `admits`.
    `canonicalize` wraps every wrapping axis and leaves the others alone.

    Attributes:
        width: Logical width (None when unbounded).
        height: Logical height (None when unbounded).
    """

    kind: str = ""
    wraps_x: bool = False
    wraps_y: bool = False
    is_finite: bool = True

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError(f"topology size must be positive, got {width}x{height}")
        self.width: Optional[int] = width
        self.height: Optional[int] = height

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def admits(self, pos: Coordinate) -> bool:
        raise NotImplementedError

    def canonicalize(self, pos: Coordinate) -> Coordinate:
        """
        Reduce an admitted coordinate to its in-range representative.

        Raises:
            AssertionError: If the coordinate is not admitted.
        """
        assert self.admits(pos), f"{self!r} does not admit {pos}"
        x, y = pos
        if self.wraps_x:
            x = wrap_axis(x, self.width)
        if self.wraps_y:
            y = wrap_axis(y, self.height)
        return (x, y)

    def neighbors(self, pos: Coordinate) -> list[Coordinate]:
        """
        Canonical Moore neighbours reachable from `pos`.

        Duplicates produced by wrapping on tiny axes are dropped, as is
        `pos` itself.
        """
        centre = self.canonicalize(pos)
        result: list[Coordinate] = []
        for cell in dependent_neighbors(pos, self.admits):
            cell = self.canonicalize(cell)
            if cell != centre and cell not in result:
                result.append(cell)
        return result

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    @property
    def size(self) -> Optional[tuple[int, int]]:
        """(width, height), or None for an unbounded plane."""
        return (self.width, self.height)

    @property
    def repeat_x(self) -> Optional[int]:
        """Period of the x axis, or None if it does not wrap."""
        return self.width if self.wraps_x else None

    @property
    def repeat_y(self) -> Optional[int]:
        """Period of the y axis, or None if it does not wrap."""
        return self.height if self.wraps_y else None

    def __eq__(self, other: object) -> bool:
        return (
            type(self) is type(other)
            and self.size == other.size  # type: ignore[attr-defined]
        )

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.size))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.width}x{self.height})"


class Bounded(Topology):
    """Finite rectangle with hard walls."""

    kind = "bounded"

    def admits(self, pos: Coordinate) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height


class Torus(Topology):
    """Both axes wrap."""

    kind = "torus"
    wraps_x = True
    wraps_y = True

    def admits(self, pos: Coordinate) -> bool:
        return True


class VerticalWrap(Topology):
    """Cylinder standing upright: y wraps, x has walls."""

    kind = "vertical_wrap"
    wraps_y = True

    def admits(self, pos: Coordinate) -> bool:
        return 0 <= pos[0] < self.width


class HorizontalWrap(Topology):
    """Cylinder lying down: x wraps, y has walls."""

    kind = "horizontal_wrap"
    wraps_x = True

    def admits(self, pos: Coordinate) -> bool:
        return 0 <= pos[1] < self.height


class Unbounded(Topology):
    """Infinite plane. Every coordinate is its own canonical form."""

    kind = "unbounded"
    is_finite = False

    def __init__(self, width: Optional[int] = None, height: Optional[int] = None):
        self.width = None
        self.height = None

    def admits(self, pos: Coordinate) -> bool:
        return True

    def canonicalize(self, pos: Coordinate) -> Coordinate:
        return (pos[0], pos[1])

    @property
    def size(self) -> Optional[tuple[int, int]]:
        return None

    def __repr__(self) -> str:
        return "Unbounded()"


_TOPOLOGIES: dict[str, type[Topology]] = {
    cls.kind: cls
    for cls in (Bounded, Torus, VerticalWrap, HorizontalWrap, Unbounded)
}


def make_topology(kind: str, width: int, height: int) -> Topology:
    """
    Build a topology from its config name.

    Args:
        kind: One of TOPOLOGY_KINDS.
        width, height: World size (ignored for "unbounded").

    Raises:
        ValueError: Unknown kind.
    """
    try:
        cls = _TOPOLOGIES[kind]
    except KeyError:
        raise ValueError(
            f"Unknown topology '{kind}', expected one of {', '.join(TOPOLOGY_KINDS)}"
        ) from None
    return cls(width, height)
