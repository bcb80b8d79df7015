"""
Body region mapping from frame position and gesture tokens.
"""
from typing import Iterable

from .types import PainRegion


HEAD_TOKENS = ("point_head", "head", "point_temple")
CHEST_TOKENS = ("point_chest", "chest")
LOWER_RIGHT_TOKENS = ("point_lower_right", "lower_right")
LOWER_LEFT_TOKENS = ("point_lower_left", "lower_left")
ABDOMEN_TOKENS = ("point_abdomen", "point_stomach", "abdomen", "stomach", "touching_body")

PAIN_REGION_LABELS = {
    "head": "Head",
    "chest": "Chest",
    "abdomen": "Abdomen",
    "lower-right": "Lower Right Abdomen",
    "lower-left": "Lower Left Abdomen",
}


def body_region_from_position(y: float, x: float) -> str:
    """
    Map a normalized frame position to a body-region token.

    The camera is assumed to frame the upper body, so height in the frame
    stands in for height on the body. Thresholds are in frame units, not
    metric, and move with camera framing.

    Args:
        y: Normalized vertical position (0 = top of frame)
        x: Normalized horizontal position

    Returns:
        One of point_head, point_chest, point_abdomen, point_lower_left, point_lower_right
    """
    if y < 0.25:
        return "point_head"
    if y < 0.45:
        return "point_chest"
    if y < 0.65:
        return "point_abdomen"
    if y < 0.85:
        # Mirrored camera: right side of the frame is the patient's left
        if x > 0.6:
            return "point_lower_left"
        if x < 0.4:
            return "point_lower_right"
        return "point_abdomen"
    return "point_abdomen"


def pain_region_from_tokens(tokens: Iterable[str]) -> PainRegion:
    """Pick the avatar pain region for a token set, head first."""
    lowered = {t.lower() for t in tokens}
    if not lowered:
        return None

    if lowered.intersection(HEAD_TOKENS):
        return "head"
    if lowered.intersection(CHEST_TOKENS):
        return "chest"
    if lowered.intersection(LOWER_RIGHT_TOKENS):
        return "lower-right"
    if lowered.intersection(LOWER_LEFT_TOKENS):
        return "lower-left"
    if lowered.intersection(ABDOMEN_TOKENS):
        return "abdomen"
    return None


def pain_region_label(region: PainRegion) -> str:
    return PAIN_REGION_LABELS.get(region, "") if region else ""
