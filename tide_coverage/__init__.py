from .costmap import COVERAGE_COST, OccupancyMap
from .coverage_path import CoveragePath, PoseStamped, build_path, make_pose
from .directions import Direction, TurnDirection
from .grid_discretizer import DiscretizedGrid, TileGeometry, discretize
from .occupancy_grid2d import CoverageGrid2D, OccupancyGrid2D
from .waypoint_synthesizer import TurnHintsExhaustedError, compress, synthesize

__all__ = [
    "COVERAGE_COST",
    "OccupancyMap",
    "CoveragePath",
    "PoseStamped",
    "build_path",
    "make_pose",
    "Direction",
    "TurnDirection",
    "DiscretizedGrid",
    "TileGeometry",
    "discretize",
    "CoverageGrid2D",
    "OccupancyGrid2D",
    "TurnHintsExhaustedError",
    "compress",
    "synthesize",
]
