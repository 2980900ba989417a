from __future__ import annotations

from typing import List

from pydantic import Field, model_validator
from tide.models.common import TideMessage, Header


class OccupancyGrid2D(TideMessage):
    """
    Occupancy map consumed by the coverage planner (mapping/occupancy).

    - width, height: number of cells
    - resolution: meters per cell
    - origin_x, origin_y: world coordinates (meters) of the grid's (0,0) cell
    - data: row-major flattened list of int16 values sized width*height
            -1 = unknown, 0 = free, >=100 = occupied
    """

    header: Header = Field(default_factory=Header)
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    resolution: float = Field(gt=0.0)
    origin_x: float
    origin_y: float
    data: List[int]

    @model_validator(mode="after")
    def _check_size(self) -> "OccupancyGrid2D":
        if len(self.data) != self.width * self.height:
            raise ValueError(
                f"data holds {len(self.data)} cells, expected {self.width}x{self.height}"
            )
        return self


class CoverageGrid2D(TideMessage):
    """
    Coarse tile grid handed to the coverage-ordering node.

    - request_id: planning request this grid belongs to; echo it in the ordering
    - width, height: number of tiles
    - node_size: map cells per tile edge
    - tile_size: meters per tile (node_size * map resolution)
    - origin_x, origin_y: world coordinates of the center of map cell (0,0);
      tile (ix, iy) is centered at origin + (index + 0.5) * tile_size
    - start_x, start_y: robot start position in tile coordinates
    - start_heading: rotation angle of the start orientation (radians, unsigned)
    - start_yaw: signed yaw of the start orientation (radians)
    - data: row-major flattened list sized width*height, 1 = occupied, 0 = free
    """

    header: Header = Field(default_factory=Header)
    request_id: int = 0
    width: int
    height: int
    node_size: int
    tile_size: float
    origin_x: float
    origin_y: float
    start_x: int
    start_y: int
    start_heading: float
    start_yaw: float = 0.0
    data: List[int]
