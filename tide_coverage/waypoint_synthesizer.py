"""
Waypoint synthesizer: turn an ordered list of visited tiles into a sparse path
of oriented poses.

Only tiles where the direction of travel changes (plus the first and last tile)
become waypoints. At every direction change the previous waypoint is repeated
with the new heading so a follower rotates in place before driving on. A 180
degree reversal is ambiguous about which way to rotate, so one turn hint is
consumed per reversal and an extra quarter-turn pose is inserted.

Turn hints are consumed from the END of the hint sequence: the producer lists
them in reverse order of the reversals they resolve.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from tide.models.common import Header

from .coverage_path import PoseStamped, make_pose
from .directions import Direction, TurnDirection
from .geometry import POSITION_TOLERANCE, is_antipodal
from .grid_discretizer import GridPoint, TileGeometry

log = logging.getLogger(__name__)


class TurnHintsExhaustedError(RuntimeError):
    """The path reverses direction more often than turn hints were supplied."""


@dataclass(frozen=True)
class KeptWaypoint:
    point: GridPoint
    direction: Direction
    heading: float


@dataclass
class SynthesisState:
    """Per-call accumulator; never shared between planning requests."""

    header: Header
    hints: List[TurnDirection]
    plan: List[PoseStamped] = field(default_factory=list)
    previous: Optional[PoseStamped] = None
    previous_heading: float = 0.0
    reversals: int = 0

    def pop_hint(self, at: GridPoint) -> TurnDirection:
        if not self.hints:
            raise TurnHintsExhaustedError(
                f"No turn hint left for reversal #{self.reversals + 1} at tile {at}"
            )
        self.reversals += 1
        return self.hints.pop()


def _as_point(p: Sequence[int]) -> GridPoint:
    return int(p[0]), int(p[1])


def compress(points: Sequence[Sequence[int]]) -> List[KeptWaypoint]:
    """
    Keep the first point, the last point and every point where the direction
    of travel changes. Headings follow the direction of travel into the point;
    a point with no distinguishable direction keeps the previous heading.
    """
    pts = [_as_point(p) for p in points]
    n = len(pts)
    if n == 0:
        return []
    if n == 1:
        return [KeptWaypoint(pts[0], Direction.NONE, 0.0)]

    kept: List[KeptWaypoint] = []
    heading = 0.0
    for i, (x, y) in enumerate(pts):
        if i == 0:
            nx, ny = pts[1]
            move_now = Direction.from_delta(nx - x, ny - y)
            move_next = move_now
        else:
            px, py = pts[i - 1]
            move_now = Direction.from_delta(x - px, y - py)
            if i < n - 1:
                nx, ny = pts[i + 1]
                move_next = Direction.from_delta(nx - x, ny - y)
            else:
                move_next = move_now

        if i == 0 or i == n - 1 or move_next != move_now:
            if move_now is not Direction.NONE:
                heading = move_now.heading
            kept.append(KeptWaypoint((x, y), move_now, heading))
    return kept


def _emit(state: SynthesisState, kept: KeptWaypoint, geometry: TileGeometry, first: bool) -> None:
    wx, wy = geometry.tile_center(*kept.point)
    goal = make_pose(wx, wy, kept.heading, header=state.header)

    if not first and state.previous is not None:
        if is_antipodal(kept.heading, state.previous_heading):
            hint = state.pop_hint(kept.point)
            log.debug("Reversal at tile %s, turning %s", kept.point, hint.name.lower())
            state.plan.append(state.previous.with_yaw(kept.heading + hint.quarter_turn))
        state.plan.append(state.previous.with_yaw(kept.heading))

    state.plan.append(goal)
    state.previous = goal
    state.previous_heading = kept.heading


def _lead_in(start: PoseStamped, first: PoseStamped) -> List[PoseStamped]:
    """Poses preceding the plan: the start itself, then turn toward and drive to the first waypoint."""
    dx = first.x - start.x
    dy = first.y - start.y
    if abs(dx) < POSITION_TOLERANCE and abs(dy) < POSITION_TOLERANCE:
        return [start]
    yaw = math.atan2(dy, dx)
    return [start, start.with_yaw(yaw), first.with_yaw(yaw)]


def synthesize(
    real_start: PoseStamped,
    points: Sequence[Sequence[int]],
    turn_hints: Iterable[Any],
    geometry: TileGeometry,
    frame_id: str = "map",
    header: Optional[Header] = None,
) -> List[PoseStamped]:
    """
    Build the oriented pose sequence for a coverage ordering.

    Args:
        real_start: Current robot pose; returned untouched as element zero.
        points: Ordered tile coordinates (x, y) produced by the coverage ordering.
        turn_hints: One clockwise/counter-clockwise hint per 180 degree reversal,
            consumed last-first. Accepts TurnDirection, bools or "cw"/"ccw".
        geometry: Tile geometry from the discretizer.
        frame_id: Frame of the synthesized poses.
        header: Header shared by all synthesized poses; a fresh one is stamped
            when omitted.

    Returns:
        The pose list, or an empty list when points is empty.

    Raises:
        TurnHintsExhaustedError: more reversals than hints.
        ValueError: diagonal step between consecutive points, or bad hint value.
    """
    log.info("Received goalpoints with length: %d", len(points))
    if len(points) < 1:
        log.warning("Empty point list")
        return []

    state = SynthesisState(
        header=header if header is not None else Header(frame_id=frame_id),
        hints=[TurnDirection.parse(h) for h in turn_hints],
    )

    for i, kept in enumerate(compress(points)):
        _emit(state, kept, geometry, first=(i == 0))

    if state.hints:
        log.warning("%d turn hint(s) left unused after %d reversal(s)", len(state.hints), state.reversals)

    plan = _lead_in(real_start, state.plan[0]) + state.plan
    log.info("Plan ready containing %d goals!", len(plan))
    return plan
