"""
Triage classification.

Two views over the same signals:
- `infer_triage_urgency`: the ordered rule cascade. This is the urgency the
  pipeline reports and stores.
- `match_triage_pattern`: the pattern registry, used only to show which
  known presentation the reading resembles. It can disagree with the
  cascade (its thresholds are ">=" and its rules are fewer) and is never
  used to change the urgency.
"""
from typing import Dict, Iterable, List, Optional

from .types import (
    EmotionState,
    EmotionThreshold,
    Matched,
    NoMatch,
    PatternMatch,
    TriagePattern,
    TriageUrgency,
)


FALL_TOKENS = frozenset({"fallen", "collapse", "fall", "critical", "prone_position"})
STROKE_TOKENS = frozenset({"stroke", "help", "emergency"})
CHEST_TOKENS = frozenset({"point_chest", "chest"})
ABDOMINAL_TOKENS = frozenset({"point_abdomen", "point_lower_right", "point_lower_left",
                              "abdomen", "stomach"})
HEAD_TOKENS = frozenset({"point_head", "point_temple", "head"})
PAIN_TOKENS = frozenset({"pain", "closed_fist"})

TRIAGE_LABELS: Dict[str, str] = {
    "immediate": "🚨 Immediate",
    "emergency": "🚑 Emergency",
    "urgent": "⚠️ Urgent",
    "non-urgent": "🟡 Non-urgent",
    "mental-health": "🧠 Mental Health",
}

TRIAGE_DEPARTMENTS: Dict[str, str] = {
    "immediate": "Emergency Department",
    "emergency": "Emergency Department",
    "urgent": "Urgent Care",
    "non-urgent": "General Medicine",
    "mental-health": "Psychiatry / Mental Health",
}

TRIAGE_PATTERNS: List[TriagePattern] = [
    TriagePattern(
        id="stroke",
        name="Stroke Gestures",
        tokens=("stroke", "help"),
        urgency="immediate",
        department="Emergency - Neurology",
    ),
    TriagePattern(
        id="collapse",
        name="Fall / Collapse",
        tokens=("fallen", "collapse", "fall", "critical", "prone_position"),
        urgency="immediate",
        department="Emergency - Trauma",
    ),
    TriagePattern(
        id="chest_distress",
        name="Chest Pain + Fear",
        tokens=("point_chest", "chest"),
        emotion_threshold=EmotionThreshold(distress=0.6),
        urgency="emergency",
        department="Emergency - Cardiology",
    ),
    TriagePattern(
        id="breathing",
        name="Breathing Difficulty",
        tokens=("breathing",),
        emotion_threshold=EmotionThreshold(distress=0.5),
        urgency="emergency",
        department="Emergency - Respiratory",
    ),
    TriagePattern(
        id="migraine",
        name="Migraine / Headache",
        tokens=("point_head", "point_temple", "head"),
        urgency="non-urgent",
        department="General Medicine / Neurology",
    ),
    # Shadowed by "breathing" above, which has the same tokens and threshold
    TriagePattern(
        id="anxiety",
        name="Anxiety / Panic Attack",
        tokens=("breathing",),
        emotion_threshold=EmotionThreshold(distress=0.5),
        urgency="mental-health",
        department="Psychiatry / Mental Health",
    ),
    TriagePattern(
        id="abdominal_acute",
        name="Acute Abdominal Pain",
        tokens=("point_lower_right",),
        emotion_threshold=EmotionThreshold(pain_level=0.7),
        urgency="urgent",
        department="Emergency - Surgery",
    ),
    TriagePattern(
        id="abdominal_general",
        name="Abdominal Discomfort",
        tokens=("point_abdomen", "abdomen", "stomach", "point_stomach", "point_lower_left"),
        urgency="urgent",
        department="Gastroenterology",
    ),
]


def _lower(tokens: Optional[Iterable[str]]) -> frozenset:
    return frozenset(t.lower() for t in tokens or ())


def infer_triage_urgency(
    tokens: Optional[Iterable[str]],
    emotion: Optional[EmotionState],
    interpretation: Optional[str],
) -> TriageUrgency:
    """
    Classify urgency with the ordered rule cascade; first matching rule wins.

    Args:
        tokens: Stabilized gesture tokens (case-insensitive)
        emotion: Fused emotion for this frame, or None
        interpretation: Free-text clinical interpretation, or None

    Returns:
        One of the urgency levels, or None when nothing indicates urgency
    """
    t = _lower(tokens)
    text = (interpretation or "").lower()
    distress = emotion.distress if emotion is not None else 0.0
    pain_level = emotion.pain_level if emotion is not None else 0.0
    label = emotion.emotion if emotion is not None else None

    if t & FALL_TOKENS:
        return "immediate"
    if t & STROKE_TOKENS:
        return "immediate"
    if t & CHEST_TOKENS and distress > 0.6:
        return "emergency"

    if "breathing" in t:
        if "mental" in text or "anxiety" in text or "panic" in text:
            return "mental-health"
        if "respiratory" in text or "breathing" in text or "dyspnea" in text:
            return "emergency"
        if label == "anxious":
            return "mental-health"
        return "emergency"

    if distress > 0.7 and label == "anxious":
        return "mental-health"
    if "point_lower_right" in t and pain_level > 0.5:
        return "urgent"
    if t & ABDOMINAL_TOKENS:
        return "urgent"
    if t & HEAD_TOKENS and t & PAIN_TOKENS:
        return "non-urgent"

    # Nothing in the tokens; fall back to hints in the text
    if "emergency" in text or "critical" in text or "immediate" in text:
        return "emergency"
    if "urgency: high" in text:
        return "emergency"
    if "urgent" in text:
        return "urgent"
    return None


def _threshold_met(threshold: Optional[EmotionThreshold], emotion: Optional[EmotionState]) -> bool:
    if threshold is None:
        return True
    pain_level = emotion.pain_level if emotion is not None else 0.0
    distress = emotion.distress if emotion is not None else 0.0
    if threshold.pain_level is not None and pain_level < threshold.pain_level:
        return False
    if threshold.distress is not None and distress < threshold.distress:
        return False
    return True


def match_triage_pattern(
    tokens: Optional[Iterable[str]],
    emotion: Optional[EmotionState],
    patterns: Optional[List[TriagePattern]] = None,
) -> PatternMatch:
    """
    Find the first registry pattern the reading fits.

    A pattern fits when any of its tokens is present and every declared
    emotion threshold is met (">=").

    Returns:
        Matched(pattern) or NoMatch()
    """
    t = _lower(tokens)
    if not t:
        return NoMatch()
    for pattern in patterns if patterns is not None else TRIAGE_PATTERNS:
        if not t.intersection(pattern.tokens):
            continue
        if _threshold_met(pattern.emotion_threshold, emotion):
            return Matched(pattern)
    return NoMatch()


def triage_label(urgency: TriageUrgency) -> str:
    if urgency is None:
        return "Not assessed"
    return TRIAGE_LABELS[urgency]


def department_recommendation(urgency: TriageUrgency, tokens: Optional[Iterable[str]]) -> str:
    """Where to send the patient, given the urgency and what they indicated."""
    t = _lower(tokens)

    if urgency in ("immediate", "emergency"):
        if t & {"stroke", "fallen", "collapse"}:
            return "Emergency Department - Neurology consult recommended"
        if t & {"chest", "point_chest", "breathing"}:
            return "Emergency Department - Cardiology consult recommended"
        return "Emergency Department"

    if urgency == "mental-health":
        return "Psychiatry / Mental Health Services"

    if t & ABDOMINAL_TOKENS:
        if "point_lower_right" in t:
            return "General Surgery (possible appendicitis)"
        return "Gastroenterology / General Medicine"

    if t & HEAD_TOKENS:
        return "Neurology / General Medicine"

    return "General Medicine / Triage Desk"
