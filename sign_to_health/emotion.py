"""
Emotion fusion: external emotion readings with a gesture-based fallback.
"""
import time
from typing import Callable, Iterable, Optional

from .types import EmotionResult, EmotionState, GestureState


PAIN_TOKENS = frozenset({"pain", "sharp", "burning", "cramping", "closed_fist"})
DISTRESS_TOKENS = frozenset({"breathing", "chest", "point_chest"})
ANXIETY_TOKENS = frozenset({"breathing"})
CRITICAL_TOKENS = frozenset({"fallen", "collapse", "critical"})

# Fixed midpoints of the fallback ranges: pain [0.6, 0.9], distress [0.7, 0.9]
FALLBACK_PAIN_LEVEL = 0.75
FALLBACK_DISTRESS = 0.8
ANXIETY_DISTRESS_FLOOR = 0.6
FALLBACK_CONFIDENCE = 0.85

CRITICAL_DISTRESS = 0.9
CRITICAL_PAIN_FLOOR = 0.7
CRITICAL_CONFIDENCE = 0.9


def infer_emotion_from_tokens(tokens: Iterable[str]) -> Optional[EmotionState]:
    """
    Estimate pain and distress from gesture tokens alone.

    Emergency tokens override every other rule.

    Args:
        tokens: Stabilized gesture tokens

    Returns:
        EmotionState, or None when there are no tokens
    """
    lowered = {t.lower() for t in tokens}
    if not lowered:
        return None

    pain_level = 0.0
    distress = 0.0
    emotion = "neutral"
    confidence = FALLBACK_CONFIDENCE

    if lowered & PAIN_TOKENS:
        pain_level = FALLBACK_PAIN_LEVEL
        emotion = "pain"
    if lowered & DISTRESS_TOKENS:
        distress = FALLBACK_DISTRESS
        if emotion == "neutral":
            emotion = "distressed"
    if lowered & ANXIETY_TOKENS:
        distress = max(distress, ANXIETY_DISTRESS_FLOOR)
        emotion = "anxious"

    if lowered & CRITICAL_TOKENS:
        distress = CRITICAL_DISTRESS
        pain_level = max(pain_level, CRITICAL_PAIN_FLOOR)
        emotion = "Critical distress"
        confidence = CRITICAL_CONFIDENCE

    return EmotionState(
        pain_level=pain_level,
        distress=distress,
        emotion=emotion,
        confidence=confidence,
    )


def infer_emotion_from_gestures(gesture_state: Optional[GestureState]) -> Optional[EmotionState]:
    if gesture_state is None:
        return None
    return infer_emotion_from_tokens(gesture_state.gesture_tokens)


class EmotionFusion:
    """
    Merges the latest external emotion reading with the gesture fallback.

    The external reading is authoritative while younger than `freshness_ms`;
    a stale or absent reading falls through to the gesture estimate. The
    cached reading belongs to this instance and only changes through
    `update`.
    """

    def __init__(self, freshness_ms: int = 2000, clock: Callable[[], float] = time.monotonic):
        self.freshness_ms = freshness_ms
        self.clock = clock
        self.latest: Optional[EmotionResult] = None
        self.last_source: Optional[str] = None  # "service", "gesture" or None

    def update(self, result: Optional[EmotionResult]) -> None:
        """Replace the cached external reading."""
        self.latest = result

    def clear(self) -> None:
        self.latest = None
        self.last_source = None

    def is_fresh(self, t_now: float) -> bool:
        if self.latest is None:
            return False
        return (t_now - self.latest.timestamp) * 1000 < self.freshness_ms

    def fuse(self, gesture_state: Optional[GestureState],
             t_now: Optional[float] = None) -> Optional[EmotionState]:
        """
        Pick the emotion reading for this frame.

        Args:
            gesture_state: Current stabilized gesture state, if any
            t_now: Current timestamp in seconds (defaults to the injected clock)

        Returns:
            EmotionState from the fresh external reading, else the gesture
            estimate, else None
        """
        if t_now is None:
            t_now = self.clock()

        if self.is_fresh(t_now):
            self.last_source = "service"
            return self.latest.to_emotion_state()

        fallback = infer_emotion_from_gestures(gesture_state)
        self.last_source = "gesture" if fallback is not None else None
        return fallback
