"""
Unit tests for grid storage backends.

Tests cover:
- place / take / peek / occupied contract on both backends
- place returns the item when occupied or inadmissible
- place_unchecked overwrite keeps the count right
- Canonicalization of wrapped coordinates
- clear, iteration, positions snapshot
- Dense backend rejects unbounded topologies
- Cross-backend equivalence under random operation sequences
"""

import numpy as np
import pytest

from cellbots.core.grid import DenseGrid, SparseGrid, make_grid
from cellbots.core.topology import (
    Bounded,
    Torus,
    VerticalWrap,
    HorizontalWrap,
    Unbounded,
)


BACKENDS = [DenseGrid, SparseGrid]


# ---------------------------------------------------------------------------
# Basic contract
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("backend", BACKENDS, ids=lambda b: b.__name__)
class TestGridContract:
    def test_empty(self, backend):
        grid = backend(Bounded(5, 5))
        assert grid.count() == 0
        assert len(grid) == 0
        assert not grid.occupied((2, 2))
        assert grid.peek((2, 2)) is None
        assert grid.take((2, 2)) is None

    def test_place_and_peek(self, backend):
        grid = backend(Bounded(5, 5))
        assert grid.place((2, 3), "a") is None
        assert grid.occupied((2, 3))
        assert grid.peek((2, 3)) == "a"
        assert grid.peek_mut((2, 3)) == "a"
        assert grid.count() == 1

    def test_place_occupied_returns_item(self, backend):
        grid = backend(Bounded(5, 5))
        grid.place((1, 1), "a")
        assert grid.place((1, 1), "b") == "b"
        assert grid.peek((1, 1)) == "a"
        assert grid.count() == 1

    def test_place_inadmissible_returns_item(self, backend):
        grid = backend(Bounded(5, 5))
        assert grid.place((5, 0), "a") == "a"
        assert grid.place((-1, 0), "b") == "b"
        assert grid.count() == 0

    def test_inadmissible_queries_are_empty(self, backend):
        grid = backend(Bounded(5, 5))
        assert not grid.occupied((-1, -1))
        assert grid.peek((7, 7)) is None
        assert grid.take((7, 7)) is None

    def test_take_removes(self, backend):
        grid = backend(Bounded(5, 5))
        grid.place((4, 4), "a")
        assert grid.take((4, 4)) == "a"
        assert grid.count() == 0
        assert not grid.occupied((4, 4))
        assert grid.take((4, 4)) is None
        assert grid.count() == 0

    def test_place_unchecked_overwrite_keeps_count(self, backend):
        grid = backend(Bounded(5, 5))
        grid.place_unchecked((0, 0), "a")
        grid.place_unchecked((0, 0), "b")
        assert grid.count() == 1
        assert grid.peek((0, 0)) == "b"

    def test_clear(self, backend):
        grid = backend(Bounded(5, 5))
        for i in range(5):
            grid.place((i, i), i)
        grid.clear()
        assert grid.count() == 0
        assert list(grid) == []

    def test_iteration_yields_every_occupant(self, backend):
        grid = backend(Bounded(5, 5))
        grid.place((1, 2), "a")
        grid.place((4, 0), "b")
        grid.place((0, 4), "c")
        assert sorted(grid) == [((0, 4), "c"), ((1, 2), "a"), ((4, 0), "b")]

    def test_iteration_is_repeatable(self, backend):
        grid = backend(Bounded(5, 5))
        for pos in [(3, 1), (0, 0), (2, 4)]:
            grid.place(pos, pos)
        assert list(grid) == list(grid)

    def test_positions_snapshot(self, backend):
        grid = backend(Bounded(5, 5))
        grid.place((1, 1), "a")
        grid.place((2, 2), "b")
        for pos in grid.positions():
            grid.take(pos)
        assert grid.count() == 0

    def test_torus_canonicalizes(self, backend):
        grid = backend(Torus(10, 10))
        assert grid.place((-1, 10), "a") is None
        assert grid.occupied((9, 0))
        assert grid.peek((19, -10)) == "a"
        assert list(grid) == [((9, 0), "a")]
        assert grid.place((9, 0), "b") == "b"

    def test_vertical_wrap(self, backend):
        grid = backend(VerticalWrap(4, 4))
        assert grid.place((0, -1), "a") is None
        assert grid.occupied((0, 3))
        assert grid.place((-1, 0), "b") == "b"

    def test_horizontal_wrap(self, backend):
        grid = backend(HorizontalWrap(4, 4))
        assert grid.place((-1, 0), "a") is None
        assert grid.occupied((3, 0))
        assert grid.place((0, 4), "b") == "b"


class TestDenseGrid:
    def test_rejects_unbounded(self):
        with pytest.raises(ValueError):
            DenseGrid(Unbounded())

    def test_row_major_iteration(self):
        grid = DenseGrid(Bounded(3, 3))
        grid.place((2, 0), "a")
        grid.place((0, 1), "b")
        grid.place((1, 0), "c")
        assert [pos for pos, _ in grid] == [(1, 0), (2, 0), (0, 1)]

    def test_never_resizes(self):
        grid = DenseGrid(Bounded(4, 3))
        for x in range(4):
            grid.place((x, 0), x)
            grid.take((x, 0))
        assert len(grid._cells) == 12


class TestSparseGrid:
    def test_unbounded_far_coordinates(self):
        grid = SparseGrid(Unbounded())
        assert grid.place((-10**6, 10**6), "a") is None
        assert grid.occupied((-10**6, 10**6))
        assert grid.count() == 1


class TestMakeGrid:
    def test_dense(self):
        assert isinstance(make_grid("dense", Torus(5, 5)), DenseGrid)

    def test_sparse(self):
        assert isinstance(make_grid("sparse", Unbounded()), SparseGrid)

    def test_dense_unbounded(self):
        with pytest.raises(ValueError):
            make_grid("dense", Unbounded())

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            make_grid("quadtree", Torus(5, 5))


# ---------------------------------------------------------------------------
# Backend equivalence
# ---------------------------------------------------------------------------

class TestBackendEquivalence:
    @pytest.mark.parametrize("topology", [
        Bounded(7, 5),
        Torus(7, 5),
        VerticalWrap(7, 5),
        HorizontalWrap(7, 5),
    ], ids=repr)
    def test_random_operation_sequence(self, topology):
        rng = np.random.default_rng(1234)
        dense = DenseGrid(topology)
        sparse = SparseGrid(topology)

        for step in range(2000):
            pos = (int(rng.integers(-10, 18)), int(rng.integers(-10, 16)))
            op = int(rng.integers(0, 4))
            if op == 0:
                assert dense.place(pos, step) == sparse.place(pos, step)
            elif op == 1:
                assert dense.take(pos) == sparse.take(pos)
            elif op == 2:
                assert dense.peek(pos) == sparse.peek(pos)
            else:
                assert dense.occupied(pos) == sparse.occupied(pos)

            assert dense.count() == sparse.count()

        assert set(dense.positions()) == set(sparse.positions())
        assert dict(dense) == dict(sparse)

    def test_count_matches_occupied_cells(self):
        rng = np.random.default_rng(7)
        for grid in (DenseGrid(Torus(6, 6)), SparseGrid(Torus(6, 6))):
            for step in range(500):
                pos = (int(rng.integers(-6, 12)), int(rng.integers(-6, 12)))
                if rng.random() < 0.6:
                    grid.place(pos, step)
                else:
                    grid.take(pos)
            occupied = sum(
                1 for x in range(6) for y in range(6) if grid.occupied((x, y))
            )
            assert grid.count() == occupied
