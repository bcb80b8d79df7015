"""
Emergency detection: posture-derived tokens and the emergency flag.
"""
from typing import Iterable, List, Optional

from .types import BodyState, EmotionState


FALL_TOKENS = frozenset({"fallen", "collapse", "fall", "critical", "prone_position"})
STROKE_TOKENS = frozenset({"stroke", "help", "emergency"})
CHEST_TOKENS = frozenset({"point_chest", "chest"})
EMERGENCY_PHRASES = (
    "urgency: high",
    "emergency",
    "critical",
    "cardiac",
    "respiratory distress",
    "collapsed",
)

PRONE_ANGLE_DEG = 75.0


def fall_emergency_tokens(body_state: Optional[BodyState]) -> List[str]:
    """Emergency tokens implied by a posture reading."""
    if body_state is None:
        return []
    if body_state.is_fallen:
        tokens = ["fallen", "collapse", "emergency"]
        # Face-down is the more dangerous fall
        if body_state.body_angle > PRONE_ANGLE_DEG:
            tokens += ["prone_position", "critical"]
        return tokens
    if body_state.is_crouching:
        return ["crouching", "distress"]
    return []


def is_emergency_situation(
    tokens: Iterable[str],
    emotion: Optional[EmotionState],
    interpretation: Optional[str],
) -> bool:
    """
    Decide whether the current reading warrants the silent emergency alert.

    Independent of the triage urgency level: the flag can be raised by text
    or emotion alone.
    """
    lowered = {t.lower() for t in tokens}
    distress = emotion.distress if emotion is not None else 0.0
    text = (interpretation or "").lower()

    if lowered & FALL_TOKENS:
        return True
    if lowered & STROKE_TOKENS:
        return True
    if lowered & CHEST_TOKENS and distress > 0.7:
        return True
    if "breathing" in lowered and distress > 0.6:
        return True
    if distress > 0.9:
        return True
    return any(phrase in text for phrase in EMERGENCY_PHRASES)
