"""
Gesture token extraction from hand landmarks.

MediaPipe hand topology:
    0: wrist
    1-4: thumb (CMC, MCP, IP, TIP)
    5-8: index finger (MCP, PIP, DIP, TIP)
    9-12: middle finger
    13-16: ring finger
    17-20: pinky
"""
import math
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from .regions import body_region_from_position


HAND_POINT_COUNT = 21
EXTENSION_MARGIN = 0.03

WRIST = 0
INDEX_TIP = 8
# index, middle, ring, pinky
FINGER_TIPS = np.array([8, 12, 16, 20])
FINGER_MCPS = np.array([5, 9, 13, 17])


def _as_point(item: Any) -> Optional[Tuple[float, float, float]]:
    try:
        if hasattr(item, "x") and hasattr(item, "y"):
            x, y, z = item.x, item.y, getattr(item, "z", 0.0)
        elif isinstance(item, dict):
            x, y, z = item["x"], item["y"], item.get("z", 0.0)
        else:
            x, y = item[0], item[1]
            z = item[2] if len(item) > 2 else 0.0
        point = (float(x), float(y), float(z or 0.0))
    except (TypeError, ValueError, KeyError, IndexError):
        return None
    if not all(math.isfinite(v) for v in point):
        return None
    return point


def as_points(hand: Any) -> List[Tuple[float, float, float]]:
    """
    Normalize one hand or pose into (x, y, z) rows.

    Accepts Landmark objects, {x, y, z} mappings, (x, y[, z]) sequences or a
    flat [x, y, z, x, y, z, ...] list. Unreadable entries are skipped; callers
    slice to the landmark count they need.

    Args:
        hand: Landmarks for a single hand or pose in any supported layout

    Returns:
        List of (x, y, z) tuples, possibly empty
    """
    if hand is None:
        return []
    try:
        items = list(hand)
    except TypeError:
        return []
    if not items:
        return []

    if isinstance(items[0], (int, float)):
        out = []
        for i in range(len(items) // 3):
            point = _as_point(items[i * 3:i * 3 + 3])
            if point is not None:
                out.append(point)
        return out

    points = []
    for item in items:
        point = _as_point(item)
        if point is not None:
            points.append(point)
    return points


def finger_states(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Extension and curl flags for index, middle, ring and pinky.

    A finger is extended when its tip sits more than EXTENSION_MARGIN above
    its MCP joint (y grows downward), and curled when the tip is at or below
    the MCP joint. A finger can be neither.
    """
    tip_y = points[FINGER_TIPS, 1]
    mcp_y = points[FINGER_MCPS, 1]
    extended = tip_y < mcp_y - EXTENSION_MARGIN
    curled = tip_y >= mcp_y
    return extended, curled


def fingers_extended(points: Sequence[Tuple[float, float, float]]) -> int:
    """Number of extended non-thumb fingers (0-4), 0 for partial hands."""
    if len(points) < HAND_POINT_COUNT:
        return 0
    extended, _ = finger_states(np.asarray(points[:HAND_POINT_COUNT], dtype=float))
    return int(extended.sum())


def _add(tokens: List[str], *new: str) -> None:
    for token in new:
        if token not in tokens:
            tokens.append(token)


def extract_gesture_tokens(hand_landmarks: Optional[Sequence[Any]]) -> List[str]:
    """
    Turn up to two detected hands into symbolic gesture tokens.

    Only the first hand is classified. Output is de-duplicated and keeps
    insertion order for display.

    Args:
        hand_landmarks: Sequence of hands, each a set of 21 landmarks

    Returns:
        Gesture tokens, empty when no hand is present
    """
    if not hand_landmarks:
        return []

    points = as_points(hand_landmarks[0])
    if not points:
        return []
    if len(points) < HAND_POINT_COUNT:
        # Hand seen but too few landmarks to read its shape
        return ["hand_visible"]

    pts = np.asarray(points[:HAND_POINT_COUNT], dtype=float)
    extended, curled = finger_states(pts)

    wrist_x, wrist_y = float(pts[WRIST, 0]), float(pts[WRIST, 1])
    index_x, index_y = float(pts[INDEX_TIP, 0]), float(pts[INDEX_TIP, 1])

    is_fist = bool(curled.all())
    is_pointing = bool(extended[0] and curled[1:].all())
    is_open_palm = int(extended.sum()) >= 3

    body_region = body_region_from_position(wrist_y, wrist_x)

    tokens: List[str] = []
    if is_fist:
        _add(tokens, "closed_fist", "pain", body_region)
    elif is_pointing:
        # Pointing names the region under the fingertip, not the wrist
        _add(tokens, "pointing", body_region_from_position(index_y, index_x))
    elif is_open_palm:
        _add(tokens, "open_palm")
    else:
        _add(tokens, "touching_body", body_region)

    # Coarse position tokens
    if wrist_y > 0.45:
        if "point_head" not in tokens and "point_chest" not in tokens:
            _add(tokens, "abdomen", "stomach")
    elif wrist_y < 0.3:
        if "point_abdomen" not in tokens:
            _add(tokens, "head")

    return tokens
