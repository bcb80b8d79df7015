"""
Posture classification from MediaPipe pose landmarks.

Thresholds are in normalized frame units, so camera framing changes what
counts as "low in the frame". A patient filmed from far away or with the
camera tilted can read as crouching or fallen while standing; this is a
known sensitivity of frame-space heuristics.
"""
from math import atan2, degrees
from typing import Optional, Sequence

import numpy as np

from .gestures import as_points
from .types import BodyState


POSE_POINT_COUNT = 33

NOSE = 0
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12
LEFT_HIP = 23
RIGHT_HIP = 24
LEFT_KNEE = 25
RIGHT_KNEE = 26
LEFT_ANKLE = 27
RIGHT_ANKLE = 28

FALLEN_ANGLE_DEG = 60.0
FALLEN_HEAD_Y = 0.85
CROUCH_HIP_Y = 0.6
CROUCH_HIP_ANKLE_GAP = 0.2
SIT_HIP_KNEE_GAP = 0.1

NEUTRAL_BODY_STATE = BodyState(
    is_standing=True,
    is_sitting=False,
    is_fallen=False,
    is_crouching=False,
    body_angle=0.0,
)


def angle_from_vertical(top: np.ndarray, bottom: np.ndarray) -> float:
    """Angle of the top->bottom segment to the vertical axis, in degrees."""
    dx = float(top[0] - bottom[0])
    dy = float(top[1] - bottom[1])
    return degrees(atan2(abs(dx), abs(dy)))


def analyze_body_state(pose_landmarks: Optional[Sequence]) -> BodyState:
    """
    Classify posture from one frame of pose landmarks.

    Args:
        pose_landmarks: 33 pose landmarks, or None when no person is visible

    Returns:
        BodyState with exactly one primary posture; a neutral standing state
        when the landmark set is missing or partial
    """
    points = as_points(pose_landmarks)
    if len(points) < POSE_POINT_COUNT:
        return NEUTRAL_BODY_STATE

    pts = np.asarray(points[:POSE_POINT_COUNT], dtype=float)
    nose = pts[NOSE]
    shoulder_center = (pts[LEFT_SHOULDER] + pts[RIGHT_SHOULDER]) / 2.0
    hip_center = (pts[LEFT_HIP] + pts[RIGHT_HIP]) / 2.0
    knee_center = (pts[LEFT_KNEE] + pts[RIGHT_KNEE]) / 2.0
    ankle_center = (pts[LEFT_ANKLE] + pts[RIGHT_ANKLE]) / 2.0
    torso_center = (shoulder_center + hip_center) / 2.0

    body_angle = angle_from_vertical(shoulder_center, hip_center)

    # y grows downward: 0 = top of frame
    is_fallen = body_angle > FALLEN_ANGLE_DEG or nose[1] > FALLEN_HEAD_Y
    is_crouching = (
        not is_fallen
        and hip_center[1] > CROUCH_HIP_Y
        and (hip_center[1] - ankle_center[1]) < CROUCH_HIP_ANKLE_GAP
    )
    is_sitting = (
        not is_fallen
        and not is_crouching
        and abs(hip_center[1] - knee_center[1]) < SIT_HIP_KNEE_GAP
    )
    is_standing = not (is_fallen or is_crouching or is_sitting)

    return BodyState(
        is_standing=bool(is_standing),
        is_sitting=bool(is_sitting),
        is_fallen=bool(is_fallen),
        is_crouching=bool(is_crouching),
        body_angle=body_angle,
        head_position=tuple(float(v) for v in nose),
        torso_center=tuple(float(v) for v in torso_center),
    )
