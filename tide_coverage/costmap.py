"""
Read-only 2D costmap used as input to the grid discretizer.

Costs follow the usual costmap byte convention:
    0 free, 1..252 scaled occupancy, 253 inscribed, 254 lethal, 255 unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

import numpy as np

FREE_SPACE = 0
INSCRIBED_INFLATED_OBSTACLE = 253
LETHAL_OBSTACLE = 254
NO_INFORMATION = 255

# Tiles containing any cell above this cost are treated as blocked.
COVERAGE_COST = 65


@dataclass(frozen=True, eq=False)
class OccupancyMap:
    """
    - costs: (n_rows, n_cols) array; row index is map y, column index is map x
    - resolution: meters per cell
    - origin_x, origin_y: world coordinates (meters) of the outer corner of cell (0,0)
    """

    costs: np.ndarray
    resolution: float
    origin_x: float = 0.0
    origin_y: float = 0.0

    def __post_init__(self):
        if self.resolution <= 0.0:
            raise ValueError(f"Map resolution must be positive, got {self.resolution}")
        arr = np.asarray(self.costs)
        if arr.ndim != 2:
            raise ValueError(f"Costs must be a 2D array, got shape {arr.shape}")
        arr = arr.view()
        arr.flags.writeable = False
        object.__setattr__(self, "costs", arr)

    @property
    def size_in_cells_x(self) -> int:
        return int(self.costs.shape[1])

    @property
    def size_in_cells_y(self) -> int:
        return int(self.costs.shape[0])

    def map_to_world(self, mx: int, my: int) -> Tuple[float, float]:
        """World coordinates of the center of cell (mx, my)."""
        wx = self.origin_x + (mx + 0.5) * self.resolution
        wy = self.origin_y + (my + 0.5) * self.resolution
        return wx, wy

    @classmethod
    def from_occupancy_values(
        cls,
        data: Sequence[int],
        width: int,
        height: int,
        resolution: float,
        origin_x: float = 0.0,
        origin_y: float = 0.0,
        *,
        allow_unknown: bool = False,
    ) -> "OccupancyMap":
        """
        Build a costmap from occupancy values (-1 unknown, 0 free, 100 occupied).

        Intermediate occupancy probabilities scale linearly onto 1..252.
        """
        if width < 0 or height < 0:
            raise ValueError(f"Invalid grid size {width}x{height}")
        if len(data) < width * height:
            raise ValueError(f"Expected {width * height} occupancy values, got {len(data)}")
        occ = np.asarray(data[: width * height], dtype=np.int16).reshape((height, width))

        costs = np.clip(np.rint(occ.astype(np.float64) * 252.0 / 100.0), 0, 252).astype(np.uint8)
        costs[occ >= 100] = LETHAL_OBSTACLE
        costs[occ < 0] = FREE_SPACE if allow_unknown else NO_INFORMATION
        return cls(costs=costs, resolution=float(resolution), origin_x=float(origin_x), origin_y=float(origin_y))

    @classmethod
    def from_grid_msg(cls, msg: Any, *, allow_unknown: bool = False) -> "OccupancyMap":
        """Build from an OccupancyGrid2D, either the model or its dict form."""
        if not isinstance(msg, dict):
            msg = msg.model_dump()
        return cls.from_occupancy_values(
            msg.get("data") or [],
            int(msg.get("width", 0)),
            int(msg.get("height", 0)),
            float(msg.get("resolution", 0.0)),
            float(msg.get("origin_x", 0.0)),
            float(msg.get("origin_y", 0.0)),
            allow_unknown=allow_unknown,
        )
