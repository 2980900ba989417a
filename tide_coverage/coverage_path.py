"""
Stamped pose and path messages produced by the waypoint synthesizer.

Poses reuse Tide's Pose3D/Quaternion/Vector3 models so they serialize with
to_zenoh_value like any other Tide message.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pydantic import Field
from tide.models import Pose3D, Quaternion, Vector3
from tide.models.common import TideMessage, Header

from .geometry import quaternion_from_yaw, yaw_from_quaternion


class PoseStamped(TideMessage):
    """A world-frame pose tagged with a frame id and stamp."""

    header: Header = Field(default_factory=Header)
    pose: Pose3D

    @property
    def x(self) -> float:
        return float(self.pose.position.x)

    @property
    def y(self) -> float:
        return float(self.pose.position.y)

    @property
    def yaw(self) -> float:
        q = self.pose.orientation
        return yaw_from_quaternion(float(q.w), float(q.x), float(q.y), float(q.z))

    def with_yaw(self, yaw: float) -> "PoseStamped":
        """Copy of this pose (same position and header) facing `yaw`."""
        return PoseStamped(
            header=self.header,
            pose=Pose3D(position=self.pose.position, orientation=quaternion_msg_from_yaw(yaw)),
        )

    @classmethod
    def from_pose_msg(cls, msg: Dict[str, Any], frame_id: str = "map") -> "PoseStamped":
        """Build from a Pose3D received as a dict ({position:{x,y,z}, orientation:{w,x,y,z}})."""
        pos = msg.get("position") or {}
        ori = msg.get("orientation") or {}
        return cls(
            header=Header(frame_id=frame_id),
            pose=Pose3D(
                position=Vector3(
                    x=float(pos.get("x", 0.0)),
                    y=float(pos.get("y", 0.0)),
                    z=float(pos.get("z", 0.0)),
                ),
                orientation=Quaternion(
                    w=float(ori.get("w", 1.0)),
                    x=float(ori.get("x", 0.0)),
                    y=float(ori.get("y", 0.0)),
                    z=float(ori.get("z", 0.0)),
                ),
            ),
        )


class CoveragePath(TideMessage):
    """Ordered coverage path; header is shared with the first pose."""

    header: Header = Field(default_factory=Header)
    poses: List[PoseStamped] = Field(default_factory=list)

    def to_simple_dict(self) -> Dict[str, Any]:
        """The {poses:[{x,y,yaw}], frame} form path followers subscribe to."""
        return {
            "poses": [{"x": p.x, "y": p.y, "yaw": p.yaw} for p in self.poses],
            "frame": self.header.frame_id,
        }


def quaternion_msg_from_yaw(yaw: float) -> Quaternion:
    qw, qx, qy, qz = quaternion_from_yaw(yaw)
    return Quaternion(w=qw, x=qx, y=qy, z=qz)


def make_pose(x: float, y: float, yaw: float, header: Optional[Header] = None, frame_id: str = "map") -> PoseStamped:
    if header is None:
        header = Header(frame_id=frame_id)
    return PoseStamped(
        header=header,
        pose=Pose3D(position=Vector3(x=float(x), y=float(y), z=0.0), orientation=quaternion_msg_from_yaw(yaw)),
    )


def build_path(poses: Sequence[PoseStamped]) -> CoveragePath:
    """Wrap poses into a path carrying the frame id and stamp of the first pose."""
    if not poses:
        raise ValueError("Cannot build a path from an empty pose list")
    return CoveragePath(header=poses[0].header, poses=list(poses))
