"""
Sign-to-Health

Reads hand and body landmarks from a camera, turns them into stable gesture
tokens, fuses them with facial-emotion readings and classifies medical
urgency for patients who cannot describe their symptoms verbally.
"""

__version__ = "0.1.0"
__author__ = "Healthcare Intake Assistant Team"

from .types import (
    AvatarUpdate,
    BodyState,
    ConsumerProto,
    EmotionResult,
    EmotionState,
    GestureState,
    Landmark,
    Matched,
    NoMatch,
    TriagePattern,
)
from .config import Cfg, load_config
from .emergency import fall_emergency_tokens, is_emergency_situation
from .emotion import EmotionFusion, infer_emotion_from_gestures
from .gestures import extract_gesture_tokens
from .pipeline import FrameResult, IntakeSession
from .posture import analyze_body_state
from .session import SessionRecord, build_session_record
from .stabilizer import TemporalStabilizer
from .triage import TRIAGE_PATTERNS, infer_triage_urgency, match_triage_pattern

__all__ = [
    "AvatarUpdate",
    "BodyState",
    "ConsumerProto",
    "EmotionResult",
    "EmotionState",
    "GestureState",
    "Landmark",
    "Matched",
    "NoMatch",
    "TriagePattern",
    "Cfg",
    "load_config",
    "fall_emergency_tokens",
    "is_emergency_situation",
    "EmotionFusion",
    "infer_emotion_from_gestures",
    "extract_gesture_tokens",
    "FrameResult",
    "IntakeSession",
    "analyze_body_state",
    "SessionRecord",
    "build_session_record",
    "TemporalStabilizer",
    "TRIAGE_PATTERNS",
    "infer_triage_urgency",
    "match_triage_pattern",
]
