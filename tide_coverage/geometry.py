"""
Planar angle and quaternion helpers.

Quaternions are (w, x, y, z) tuples, the field order Tide's Quaternion model
uses. Only rotations about the vertical axis are produced here.
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

# Minimum offset (meters) for which the start pose counts as displaced from the
# first waypoint. 100 * float32 epsilon.
POSITION_TOLERANCE: float = 100.0 * float(np.finfo(np.float32).eps)

# Angular tolerance (radians) for detecting an exact 180 degree reversal.
ANGLE_TOLERANCE: float = 1e-9

Quat = Tuple[float, float, float, float]


def angle_normalize(a: float) -> float:
    """Wrap an angle into [-pi, pi]."""
    while a > math.pi:
        a -= 2 * math.pi
    while a < -math.pi:
        a += 2 * math.pi
    return a


def quaternion_from_yaw(yaw: float) -> Quat:
    half = 0.5 * yaw
    return (math.cos(half), 0.0, 0.0, math.sin(half))


def yaw_from_quaternion(qw: float, qx: float, qy: float, qz: float) -> float:
    return math.atan2(2.0 * (qw * qz + qx * qy), 1.0 - 2.0 * (qy * qy + qz * qz))


def quaternion_angle(qw: float, qx: float, qy: float, qz: float) -> float:
    """
    Rotation angle of a quaternion, in [0, 2*pi].

    This is the magnitude of the rotation about whatever axis the quaternion
    encodes, not a signed yaw: a yaw of -pi/2 comes back as +pi/2.
    """
    norm = math.sqrt(qw * qw + qx * qx + qy * qy + qz * qz)
    if norm == 0.0:
        return 0.0
    w = max(-1.0, min(1.0, qw / norm))
    return 2.0 * math.acos(w)


def is_antipodal(a: float, b: float, tol: float = ANGLE_TOLERANCE) -> bool:
    """True when headings a and b point in exactly opposite directions."""
    return abs(angle_normalize(a - b - math.pi)) < tol
