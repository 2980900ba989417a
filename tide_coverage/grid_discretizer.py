"""
Grid discretizer: downsample a fine costmap into a coarse boolean tile grid.

Each tile covers node_size x node_size map cells and is occupied if any of
those cells costs more than the lethal coverage threshold. Tiles along the far
edges are clipped to the map bounds.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

from .costmap import COVERAGE_COST, OccupancyMap
from .geometry import quaternion_angle, yaw_from_quaternion

log = logging.getLogger(__name__)

GridPoint = Tuple[int, int]


@dataclass(frozen=True)
class TileGeometry:
    node_size: int
    tile_size: float
    origin_x: float
    origin_y: float

    def tile_center(self, ix: int, iy: int) -> Tuple[float, float]:
        x = self.origin_x + (ix + 0.5) * self.tile_size
        y = self.origin_y + (iy + 0.5) * self.tile_size
        return x, y


@dataclass(frozen=True, eq=False)
class DiscretizedGrid:
    grid: np.ndarray
    geometry: TileGeometry
    scaled_start: GridPoint
    start_heading: float
    start_yaw: float

    @property
    def rows(self) -> int:
        return int(self.grid.shape[0])

    @property
    def cols(self) -> int:
        return int(self.grid.shape[1])


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _unpack_pose(real_start: Any) -> Tuple[float, float, Tuple[float, float, float, float]]:
    # Accept PoseStamped (has .pose) or a bare Pose3D
    pose = getattr(real_start, "pose", real_start)
    pos = pose.position
    ori = pose.orientation
    return float(pos.x), float(pos.y), (float(ori.w), float(ori.x), float(ori.y), float(ori.z))


def node_size_for(tile_size: float, resolution: float) -> int:
    """Map cells per tile edge; never smaller than the requested tile, never zero."""
    return max(int(math.ceil(tile_size / resolution)), 1)


def scale_grid(costs: np.ndarray, node_size: int, lethal_cost: int = COVERAGE_COST) -> np.ndarray:
    """Row-major tile occupancy: True where any cell in the tile exceeds lethal_cost."""
    n_rows, n_cols = costs.shape
    blocked = costs > lethal_cost
    grid = np.zeros(
        (int(math.ceil(n_rows / node_size)), int(math.ceil(n_cols / node_size))),
        dtype=bool,
    )
    for row, iy in enumerate(range(0, n_rows, node_size)):
        for col, ix in enumerate(range(0, n_cols, node_size)):
            # Slicing clips the far-edge tiles; np.any stops at the first hit
            grid[row, col] = bool(np.any(blocked[iy : iy + node_size, ix : ix + node_size]))
    grid.flags.writeable = False
    return grid


def discretize(
    occupancy_map: OccupancyMap,
    tile_size: float,
    real_start: Any,
    lethal_cost: int = COVERAGE_COST,
) -> Optional[DiscretizedGrid]:
    """
    Build the coarse tile grid for one planning request.

    Args:
        occupancy_map: Source costmap (read only).
        tile_size: Requested tile edge in meters. The actual tile size is
            rounded up to a whole number of map cells.
        real_start: Robot start pose (PoseStamped or Pose3D) in world frame.
        lethal_cost: Cells costing strictly more than this block their tile.

    Returns:
        DiscretizedGrid, or None if the map has no rows or no columns.
    """
    n_rows = occupancy_map.size_in_cells_y
    n_cols = occupancy_map.size_in_cells_x
    node_size = node_size_for(tile_size, occupancy_map.resolution)
    log.info("n_rows: %d, n_cols: %d, node_size: %d", n_rows, n_cols, node_size)

    if n_rows == 0 or n_cols == 0:
        log.warning("Cannot discretize an empty map (%d x %d cells)", n_rows, n_cols)
        return None

    origin_x, origin_y = occupancy_map.map_to_world(0, 0)
    geometry = TileGeometry(
        node_size=node_size,
        tile_size=node_size * occupancy_map.resolution,
        origin_x=origin_x,
        origin_y=origin_y,
    )

    sx, sy, (qw, qx, qy, qz) = _unpack_pose(real_start)
    # Clamp keeps a start that rounds marginally off the map on a valid tile
    scaled_start = (
        int(_clamp((sx - origin_x) / geometry.tile_size, 0.0, math.floor(n_cols / geometry.tile_size))),
        int(_clamp((sy - origin_y) / geometry.tile_size, 0.0, math.floor(n_rows / geometry.tile_size))),
    )

    grid = scale_grid(occupancy_map.costs, node_size, lethal_cost)
    log.debug(
        "Tile grid %dx%d, tile_size %.3f m, origin (%.3f, %.3f), %d occupied tiles, start tile %s",
        grid.shape[1],
        grid.shape[0],
        geometry.tile_size,
        origin_x,
        origin_y,
        int(np.count_nonzero(grid)),
        scaled_start,
    )

    return DiscretizedGrid(
        grid=grid,
        geometry=geometry,
        scaled_start=scaled_start,
        start_heading=quaternion_angle(qw, qx, qy, qz),
        start_yaw=yaw_from_quaternion(qw, qx, qy, qz),
    )
