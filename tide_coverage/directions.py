"""
Travel directions between neighbouring tiles and turn-around hints.
"""

from __future__ import annotations

import math
from enum import Enum, IntEnum
from typing import Any, Dict


class Direction(IntEnum):
    """Axis-aligned direction of travel on the tile grid."""

    NONE = 0
    POS_X = 1
    POS_Y = 2
    NEG_X = -1
    NEG_Y = -2

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> "Direction":
        """
        Direction of a step (dx, dy) between consecutive grid points.

        Axis-aligned steps of any length map by sign. A repeated point is NONE.
        Diagonal steps have no heading on this grid and raise ValueError.
        """
        if dx != 0 and dy != 0:
            raise ValueError(f"Diagonal step ({dx}, {dy}) between grid points")
        if dx > 0:
            return cls.POS_X
        if dx < 0:
            return cls.NEG_X
        if dy > 0:
            return cls.POS_Y
        if dy < 0:
            return cls.NEG_Y
        return cls.NONE

    @property
    def heading(self) -> float:
        """Heading in radians; NONE has no heading and raises."""
        if self is Direction.NONE:
            raise ValueError("Direction.NONE has no heading")
        return _HEADINGS[self]


_HEADINGS: Dict[Direction, float] = {
    Direction.POS_X: 0.0,
    Direction.POS_Y: math.pi / 2,
    Direction.NEG_X: math.pi,
    Direction.NEG_Y: math.pi * 1.5,
}


class TurnDirection(Enum):
    """Which way to rotate in place when the path turns around 180 degrees."""

    CLOCKWISE = "cw"
    COUNTER_CLOCKWISE = "ccw"

    @property
    def quarter_turn(self) -> float:
        """Signed rotation applied to the new heading for the intermediate pose."""
        return -math.pi / 2 if self is TurnDirection.CLOCKWISE else math.pi / 2

    @classmethod
    def parse(cls, value: Any) -> "TurnDirection":
        """
        Accept an enum member, a bool (True = clockwise) or a string spelling.

        Plain integers are rejected: producers number the two turn directions
        differently, so 0/1 carries no agreed meaning.
        """
        if isinstance(value, TurnDirection):
            return value
        if isinstance(value, bool):
            return cls.CLOCKWISE if value else cls.COUNTER_CLOCKWISE
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "").replace("_", "")
            if key in ("cw", "clockwise"):
                return cls.CLOCKWISE
            if key in ("ccw", "counterclockwise", "anticlockwise"):
                return cls.COUNTER_CLOCKWISE
        raise ValueError(f"Unrecognised turn direction: {value!r}")
