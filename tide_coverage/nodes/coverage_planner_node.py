#!/usr/bin/env python3
"""
CoveragePlannerNode: discretizes the occupancy map into a coarse tile grid for
an external coverage-ordering node, then turns the ordering it returns into a
sparse path of oriented waypoints.

Subscribes:
- mapping/occupancy (OccupancyGrid2D as dict)
- state/pose3d (Pose3D)
- cmd/coverage/start (any; arms a planning request)
- planning/coverage/order (dict: {request_id, cells:[[x,y],...], turn_hints:["cw"|"ccw",...]})
- cmd/nav/cancel (any)

Publishes:
- planning/coverage/grid (CoverageGrid2D)
- planning/coverage/path (CoveragePath)
- planning/path (dict: {poses:[{x,y,yaw}], frame:"map"})

Turn hints are consumed last-first: list them in reverse order of the 180
degree reversals they resolve.

Parameters:
- hz: float, loop rate (default 2.0)
- tile_size_m: float, requested tile edge in meters (default 0.3)
- lethal_cost: int, cells above this cost block their tile (default 65)
- allow_unknown: bool, treat unknown cells (-1) as free (default False)
- frame_id: str, frame of the published path (default "map")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from tide.core.node import BaseNode
from tide.models.common import Header
from tide.models.serialization import to_zenoh_value

from ..costmap import COVERAGE_COST, OccupancyMap
from ..coverage_path import PoseStamped, build_path
from ..grid_discretizer import DiscretizedGrid, discretize
from ..occupancy_grid2d import CoverageGrid2D, OccupancyGrid2D
from ..waypoint_synthesizer import TurnHintsExhaustedError, synthesize

log = logging.getLogger(__name__)


def parse_order(msg: Any) -> Optional[Tuple[int, List[Tuple[int, int]], List[Any]]]:
    """Return (request_id, cells, turn_hints) from an ordering dict; None if malformed."""
    if not isinstance(msg, dict):
        return None
    try:
        request_id = int(msg.get("request_id", 0))
        cells = [(int(c[0]), int(c[1])) for c in (msg.get("cells") or [])]
        hints = list(msg.get("turn_hints") or [])
    except (TypeError, ValueError, IndexError):
        return None
    return request_id, cells, hints


def grid_message(request_id: int, dg: DiscretizedGrid, frame_id: str = "map") -> CoverageGrid2D:
    geo = dg.geometry
    return CoverageGrid2D(
        header=Header(frame_id=frame_id),
        request_id=request_id,
        width=dg.cols,
        height=dg.rows,
        node_size=geo.node_size,
        tile_size=geo.tile_size,
        origin_x=geo.origin_x,
        origin_y=geo.origin_y,
        start_x=dg.scaled_start[0],
        start_y=dg.scaled_start[1],
        start_heading=dg.start_heading,
        start_yaw=dg.start_yaw,
        data=dg.grid.ravel().astype(int).tolist(),
    )


class CoveragePlannerNode(BaseNode):
    GROUP = ""

    def __init__(self, *, config: Optional[Dict[str, Any]] = None):
        super().__init__(config=config)
        p = config or {}
        self.hz: float = float(p.get("update_rate", p.get("hz", 2.0)))
        self.tile_size_m: float = float(p.get("tile_size_m", 0.3))
        self.lethal_cost: int = int(p.get("lethal_cost", COVERAGE_COST))
        self.allow_unknown: bool = bool(p.get("allow_unknown", False))
        self.frame_id: str = str(p.get("frame_id", "map"))

        self.map_topic: str = str(p.get("map_topic", "mapping/occupancy"))
        self.pose_topic: str = str(p.get("pose_topic", "state/pose3d"))
        self.request_topic: str = str(p.get("request_topic", "cmd/coverage/start"))
        self.order_topic: str = str(p.get("order_topic", "planning/coverage/order"))
        self.grid_topic: str = str(p.get("grid_topic", "planning/coverage/grid"))
        self.path_topic: str = str(p.get("path_topic", "planning/path"))
        self.coverage_path_topic: str = str(p.get("coverage_path_topic", "planning/coverage/path"))

        # Inputs
        self._grid: Optional[OccupancyGrid2D] = None
        self._pose: Optional[Dict[str, Any]] = None
        self._order: Optional[Dict[str, Any]] = None

        # One in-flight request at a time
        self._request_id: int = 0
        self._armed: bool = False
        self._start: Optional[PoseStamped] = None
        self._discretized: Optional[DiscretizedGrid] = None

        self.subscribe(self.map_topic, self._on_grid)
        self.subscribe(self.pose_topic, self._on_pose)
        self.subscribe(self.request_topic, self._on_request)
        self.subscribe(self.order_topic, self._on_order)
        self.subscribe("cmd/nav/cancel", self._on_cancel)

    # ---- Callbacks ----
    def _on_grid(self, msg: Dict[str, Any]):
        if not isinstance(msg, dict):
            return
        try:
            self._grid = OccupancyGrid2D.model_validate(msg)
        except ValidationError as e:
            log.warning(f"[CoveragePlanner] Ignoring invalid occupancy grid: {e.error_count()} error(s)")

    def _on_pose(self, msg: Dict[str, Any]):
        if isinstance(msg, dict):
            self._pose = msg

    def _on_request(self, _msg: Any):
        self._request_id += 1
        self._armed = True
        self._discretized = None
        self._start = None
        log.info(f"[CoveragePlanner] Request {self._request_id} armed")

    def _on_order(self, msg: Any):
        self._order = msg

    def _on_cancel(self, _msg: Any):
        self._drop_request()
        self._publish_empty_path()

    # ---- Helpers ----
    def _drop_request(self) -> None:
        self._armed = False
        self._discretized = None
        self._start = None
        self._order = None

    def _publish_empty_path(self) -> None:
        self.put(self.path_topic, {"poses": [], "frame": self.frame_id})

    def _discretize_request(self) -> None:
        if self._grid is None or self._pose is None:
            return
        occupancy = OccupancyMap.from_grid_msg(self._grid, allow_unknown=self.allow_unknown)
        start = PoseStamped.from_pose_msg(self._pose, frame_id=self.frame_id)
        dg = discretize(occupancy, self.tile_size_m, start, lethal_cost=self.lethal_cost)
        if dg is None:
            log.error(f"[CoveragePlanner] Request {self._request_id}: empty map, nothing to cover")
            self._drop_request()
            return
        self._start = start
        self._discretized = dg
        self.put(self.grid_topic, to_zenoh_value(grid_message(self._request_id, dg, self.frame_id)))
        log.info(
            f"[CoveragePlanner] Request {self._request_id}: published {dg.cols}x{dg.rows} tile grid, "
            f"start tile {dg.scaled_start}"
        )

    def _synthesize_request(self, cells: List[Tuple[int, int]], hints: List[Any]) -> None:
        if self._start is None or self._discretized is None:
            return
        try:
            poses = synthesize(self._start, cells, hints, self._discretized.geometry, frame_id=self.frame_id)
        except TurnHintsExhaustedError as e:
            log.error(f"[CoveragePlanner] Request {self._request_id}: {e}")
            self._drop_request()
            return
        except ValueError as e:
            log.error(f"[CoveragePlanner] Request {self._request_id}: invalid ordering: {e}")
            self._drop_request()
            return

        self._drop_request()
        if not poses:
            self._publish_empty_path()
            return
        path = build_path(poses)
        self.put(self.coverage_path_topic, to_zenoh_value(path))
        self.put(self.path_topic, path.to_simple_dict())

    # ---- Main loop ----
    def step(self) -> None:
        if not self._armed:
            return

        if self._discretized is None:
            if self._grid is None or self._pose is None:
                return
            self._discretize_request()
            return

        order = self._order
        if order is None:
            return
        self._order = None
        parsed = parse_order(order)
        if parsed is None:
            log.warning("[CoveragePlanner] Ignoring malformed coverage ordering")
            return
        request_id, cells, hints = parsed
        if request_id != self._request_id:
            log.warning(
                f"[CoveragePlanner] Ignoring ordering for request {request_id} "
                f"(waiting for {self._request_id})"
            )
            return
        self._synthesize_request(cells, hints)
