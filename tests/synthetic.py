"""
Synthetic landmark builders for tests.
"""
import math
from typing import List, Optional, Tuple

from sign_to_health.types import Landmark


# index, middle, ring, pinky: (mcp, pip, dip, tip)
FINGERS = [(5, 6, 7, 8), (9, 10, 11, 12), (13, 14, 15, 16), (17, 18, 19, 20)]
FINGER_X_OFFSETS = [-0.03, -0.01, 0.01, 0.03]

SHAPES = {
    "fist": (False, False, False, False),
    "point": (True, False, False, False),
    "open_palm": (True, True, True, True),
    # index and middle up, ring and pinky curled: no named shape
    "peace": (True, True, False, False),
}


def make_hand(shape: str = "open_palm", wrist: Tuple[float, float] = (0.5, 0.6)) -> List[Landmark]:
    """
    Build 21 hand landmarks for a shape with the wrist at a frame position.

    Extended fingertips sit 0.1 above their MCP joint, curled ones 0.02 below.
    """
    wx, wy = wrist
    extended = SHAPES[shape]
    points = [Landmark(x=wx, y=wy)] + [Landmark(x=wx, y=wy)] * 20
    points = list(points)

    # Thumb
    for i, idx in enumerate((1, 2, 3, 4)):
        points[idx] = Landmark(x=wx - 0.02 * (i + 1), y=wy - 0.02 * (i + 1))

    mcp_y = wy - 0.1
    for (mcp, pip, dip, tip), is_up, dx in zip(FINGERS, extended, FINGER_X_OFFSETS):
        x = wx + dx
        points[mcp] = Landmark(x=x, y=mcp_y)
        if is_up:
            points[pip] = Landmark(x=x, y=mcp_y - 0.04)
            points[dip] = Landmark(x=x, y=mcp_y - 0.07)
            points[tip] = Landmark(x=x, y=mcp_y - 0.1)
        else:
            points[pip] = Landmark(x=x, y=mcp_y - 0.02)
            points[dip] = Landmark(x=x, y=mcp_y)
            points[tip] = Landmark(x=x, y=mcp_y + 0.02)
    return points


def make_pose(
    shoulder_center: Tuple[float, float] = (0.5, 0.3),
    hip_center: Tuple[float, float] = (0.5, 0.55),
    nose: Optional[Tuple[float, float]] = None,
    knee_y: float = 0.75,
    ankle_y: float = 0.95,
) -> List[Landmark]:
    """Build 33 pose landmarks from a few body anchors."""
    sx, sy = shoulder_center
    hx, hy = hip_center
    if nose is None:
        nose = (sx, sy - 0.15)

    points = [Landmark(x=0.5, y=0.5, visibility=0.9) for _ in range(33)]
    points[0] = Landmark(x=nose[0], y=nose[1])
    points[11] = Landmark(x=sx - 0.1, y=sy)
    points[12] = Landmark(x=sx + 0.1, y=sy)
    points[23] = Landmark(x=hx - 0.08, y=hy)
    points[24] = Landmark(x=hx + 0.08, y=hy)
    points[25] = Landmark(x=hx - 0.08, y=knee_y)
    points[26] = Landmark(x=hx + 0.08, y=knee_y)
    points[27] = Landmark(x=hx - 0.08, y=ankle_y)
    points[28] = Landmark(x=hx + 0.08, y=ankle_y)
    return points


def standing_pose() -> List[Landmark]:
    return make_pose()


def sitting_pose() -> List[Landmark]:
    return make_pose(hip_center=(0.5, 0.6), knee_y=0.65, ankle_y=0.9)


def crouching_pose() -> List[Landmark]:
    return make_pose(shoulder_center=(0.5, 0.5), hip_center=(0.5, 0.7), knee_y=0.85, ankle_y=0.8)


def tilted_pose(angle_deg: float, nose_y: float = 0.5) -> List[Landmark]:
    """Torso tilted `angle_deg` from vertical, head kept at `nose_y`."""
    dy = 0.1
    dx = math.tan(math.radians(angle_deg)) * dy
    return make_pose(
        shoulder_center=(0.3, 0.5),
        hip_center=(0.3 + dx, 0.5 + dy),
        nose=(0.2, nose_y),
        knee_y=0.9,
        ankle_y=0.95,
    )


def fallen_pose() -> List[Landmark]:
    """Lying almost flat, well past the prone angle."""
    return tilted_pose(85.0, nose_y=0.7)
