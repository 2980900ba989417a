"""Tests for map discretization into coarse tiles."""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from tide_coverage.costmap import COVERAGE_COST, LETHAL_OBSTACLE, OccupancyMap
from tide_coverage.coverage_path import make_pose
from tide_coverage.grid_discretizer import TileGeometry, discretize, node_size_for, scale_grid

# ---------------------------------------------------------------------------
# Test-data helpers
# ---------------------------------------------------------------------------


def make_map(
    n_rows: int = 20,
    n_cols: int = 13,
    resolution: float = 0.05,
    origin: tuple = (0.0, 0.0),
    obstacles: tuple = (),
    cost: int = LETHAL_OBSTACLE,
) -> OccupancyMap:
    """Free map with `cost` written at each (mx, my) in obstacles."""
    costs = np.zeros((n_rows, n_cols), dtype=np.uint8)
    for mx, my in obstacles:
        costs[my, mx] = cost
    return OccupancyMap(costs=costs, resolution=resolution, origin_x=origin[0], origin_y=origin[1])


# ---------------------------------------------------------------------------
# Tile sizing
# ---------------------------------------------------------------------------


class TestTileSizing:
    def test_documented_example(self):
        """0.05 m cells and a 0.3 m request give 6-cell, 0.30 m tiles."""
        dg = discretize(make_map(), 0.3, make_pose(0.1, 0.1, 0.0))
        assert dg.geometry.node_size == 6
        assert dg.geometry.tile_size == pytest.approx(0.30)

    @pytest.mark.parametrize("requested", [0.01, 0.07, 0.3, 0.33, 1.0])
    def test_tile_never_smaller_than_request(self, requested):
        dg = discretize(make_map(), requested, make_pose(0.1, 0.1, 0.0))
        geo = dg.geometry
        assert geo.node_size == max(1, math.ceil(requested / 0.05))
        assert geo.tile_size == pytest.approx(geo.node_size * 0.05)
        assert geo.tile_size >= requested - 1e-9

    @pytest.mark.parametrize("requested", [0.0, -1.0])
    def test_non_positive_request_gives_single_cell_tiles(self, requested):
        assert node_size_for(requested, 0.05) == 1

    def test_grid_dimensions_round_up(self):
        dg = discretize(make_map(n_rows=20, n_cols=13), 0.3, make_pose(0.1, 0.1, 0.0))
        assert dg.grid.shape == (math.ceil(20 / 6), math.ceil(13 / 6))
        assert (dg.rows, dg.cols) == (4, 3)

    def test_grid_origin_is_center_of_first_cell(self):
        dg = discretize(make_map(origin=(-1.0, 2.0)), 0.3, make_pose(0.0, 2.5, 0.0))
        assert dg.geometry.origin_x == pytest.approx(-0.975)
        assert dg.geometry.origin_y == pytest.approx(2.025)


# ---------------------------------------------------------------------------
# Empty maps
# ---------------------------------------------------------------------------


class TestEmptyMap:
    @pytest.mark.parametrize("shape", [(0, 5), (5, 0), (0, 0)])
    def test_empty_map_fails(self, shape, caplog):
        m = OccupancyMap(costs=np.zeros(shape, dtype=np.uint8), resolution=0.05)
        with caplog.at_level(logging.WARNING):
            assert discretize(m, 0.3, make_pose(0.0, 0.0, 0.0)) is None
        assert "empty map" in caplog.text


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------


class TestOccupancy:
    def test_free_map_has_no_occupied_tiles(self):
        dg = discretize(make_map(), 0.3, make_pose(0.1, 0.1, 0.0))
        assert not dg.grid.any()

    def test_single_obstacle_marks_its_tile(self):
        dg = discretize(make_map(obstacles=[(7, 13)]), 0.3, make_pose(0.1, 0.1, 0.0))
        assert dg.grid[2, 1]
        assert np.count_nonzero(dg.grid) == 1

    def test_obstacle_in_clipped_edge_tile(self):
        dg = discretize(make_map(obstacles=[(12, 19)]), 0.3, make_pose(0.1, 0.1, 0.0))
        assert dg.grid[3, 2]
        assert np.count_nonzero(dg.grid) == 1

    def test_threshold_is_strict(self):
        at = discretize(make_map(obstacles=[(0, 0)], cost=COVERAGE_COST), 0.3, make_pose(0.1, 0.1, 0.0))
        above = discretize(make_map(obstacles=[(0, 0)], cost=COVERAGE_COST + 1), 0.3, make_pose(0.1, 0.1, 0.0))
        assert not at.grid[0, 0]
        assert above.grid[0, 0]

    def test_custom_lethal_cost(self):
        dg = discretize(make_map(obstacles=[(0, 0)], cost=100), 0.3, make_pose(0.1, 0.1, 0.0), lethal_cost=200)
        assert not dg.grid[0, 0]

    def test_grid_is_read_only(self):
        dg = discretize(make_map(), 0.3, make_pose(0.1, 0.1, 0.0))
        with pytest.raises(ValueError):
            dg.grid[0, 0] = True

    def test_scale_grid_matches_cellwise_scan(self):
        rng = np.random.default_rng(3)
        costs = (rng.random((17, 11)) > 0.97).astype(np.uint8) * LETHAL_OBSTACLE
        grid = scale_grid(costs, 4)
        for row in range(grid.shape[0]):
            for col in range(grid.shape[1]):
                block = costs[row * 4 : row * 4 + 4, col * 4 : col * 4 + 4]
                assert grid[row, col] == bool((block > COVERAGE_COST).any())

    def test_tile_center_lies_inside_the_tile_it_marks(self):
        """Tile centers map back onto cells of the tile that was marked."""
        m = make_map(obstacles=[(7, 13)])
        dg = discretize(m, 0.3, make_pose(0.1, 0.1, 0.0))
        wx, wy = dg.geometry.tile_center(1, 2)
        mx = int(math.floor((wx - m.origin_x) / m.resolution))
        my = int(math.floor((wy - m.origin_y) / m.resolution))
        assert 6 <= mx < 12
        assert 12 <= my < 18
        assert (wx, wy) == pytest.approx((dg.geometry.origin_x + 1.5 * 0.3, dg.geometry.origin_y + 2.5 * 0.3))


# ---------------------------------------------------------------------------
# Start pose
# ---------------------------------------------------------------------------


class TestStart:
    def test_scaled_start_inside_map(self):
        dg = discretize(make_map(), 0.3, make_pose(0.7, 0.4, 0.0))
        assert dg.scaled_start == (2, 1)

    def test_start_below_origin_clamps_to_zero(self):
        dg = discretize(make_map(), 0.3, make_pose(-0.01, -3.0, 0.0))
        assert dg.scaled_start == (0, 0)

    def test_start_far_outside_clamps_to_upper_bound(self):
        dg = discretize(make_map(n_rows=20, n_cols=13), 0.3, make_pose(100.0, 100.0, 0.0))
        tile = dg.geometry.tile_size
        assert dg.scaled_start == (math.floor(13 / tile), math.floor(20 / tile))

    def test_heading_is_rotation_magnitude(self):
        dg = discretize(make_map(), 0.3, make_pose(0.1, 0.1, -math.pi / 2))
        assert dg.start_heading == pytest.approx(math.pi / 2)
        assert dg.start_yaw == pytest.approx(-math.pi / 2)

    def test_accepts_bare_pose(self):
        start = make_pose(0.7, 0.4, math.pi / 2)
        dg = discretize(make_map(), 0.3, start.pose)
        assert dg.scaled_start == (2, 1)
        assert dg.start_heading == pytest.approx(math.pi / 2)


def test_tile_geometry_center():
    geo = TileGeometry(node_size=2, tile_size=0.2, origin_x=1.0, origin_y=-1.0)
    assert geo.tile_center(0, 0) == pytest.approx((1.1, -0.9))
    assert geo.tile_center(3, 2) == pytest.approx((1.7, -0.5))
