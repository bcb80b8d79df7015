"""
Clinical output: ICD-10 suggestions and SOAP notes.

Code suggestions are a simplified demonstration mapping, not certified
medical coding.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from .types import EmotionState, GestureState, SoapNote


ICD10_MAPPINGS: Dict[str, List[Tuple[str, str]]] = {
    # Head / neurological
    "point_head": [("R51.9", "Headache, unspecified"), ("G43.909", "Migraine, unspecified")],
    "head": [("R51.9", "Headache, unspecified")],
    "point_temple": [("G43.909", "Migraine, unspecified"), ("R51.9", "Headache, unspecified")],
    # Chest / cardiac / respiratory
    "point_chest": [("R07.9", "Chest pain, unspecified"), ("R07.89", "Other chest pain")],
    "chest": [("R07.9", "Chest pain, unspecified")],
    "breathing": [("R06.00", "Dyspnea, unspecified"), ("R06.02", "Shortness of breath")],
    # Abdominal
    "point_abdomen": [("R10.9", "Unspecified abdominal pain"), ("R10.84", "Generalized abdominal pain")],
    "abdomen": [("R10.9", "Unspecified abdominal pain")],
    "stomach": [("R10.13", "Epigastric pain"), ("K30", "Functional dyspepsia")],
    "point_stomach": [("R10.13", "Epigastric pain")],
    "point_lower_right": [("R10.31", "Right lower quadrant pain"),
                          ("K35.80", "Unspecified acute appendicitis")],
    "point_lower_left": [("R10.32", "Left lower quadrant pain"), ("K57.92", "Diverticulitis, unspecified")],
    # Pain
    "pain": [("R52", "Pain, unspecified")],
    "closed_fist": [("R52", "Pain, unspecified")],
    # Mental health
    "distress": [("F41.9", "Anxiety disorder, unspecified"), ("R45.7", "State of emotional shock")],
    # Emergency
    "stroke": [("I63.9", "Cerebral infarction, unspecified"),
               ("G45.9", "Transient cerebral ischemic attack")],
    "emergency": [("R55", "Syncope and collapse")],
}

MAX_ICD10_CODES = 5

# Tokens that say nothing about the complaint itself
NON_CLINICAL_TOKENS = frozenset({"hand_visible", "hand_detected", "touching_body", "communicating"})


def get_icd10_codes(tokens: Iterable[str]) -> List[Tuple[str, str]]:
    """
    Suggest ICD-10 codes for the given tokens.

    Args:
        tokens: Gesture tokens, in display order

    Returns:
        Up to five (code, description) pairs, de-duplicated by code, in
        token order
    """
    codes: List[Tuple[str, str]] = []
    seen = set()
    for token in tokens:
        for code, description in ICD10_MAPPINGS.get(token.lower(), []):
            if code not in seen:
                seen.add(code)
                codes.append((code, description))
    return codes[:MAX_ICD10_CODES]


def format_icd10(codes: Iterable[Tuple[str, str]]) -> List[str]:
    return [f"{code} - {description}" for code, description in codes]


def _round(value: float) -> int:
    # Half-up rounding for non-negative display values
    return int(value + 0.5)


def _soap_body_region(tokens: Tuple[str, ...]) -> str:
    present = set(tokens)
    if present & {"point_head", "head", "point_temple"}:
        return "head"
    if present & {"point_chest", "chest"}:
        return "chest"
    if present & {"point_abdomen", "abdomen", "stomach", "point_stomach"}:
        return "abdomen"
    if "point_lower_right" in present:
        return "right lower quadrant"
    if "point_lower_left" in present:
        return "left lower quadrant"
    return "unspecified area"


def _subjective(region: str, has_pain: bool, has_breathing: bool,
                emotion: Optional[EmotionState], is_emergency: bool) -> str:
    parts = []
    if is_emergency:
        parts.append("Patient presents with signs of acute distress requiring immediate attention.")
    if has_pain:
        parts.append(f"Patient indicates pain in the {region} region via gesture.")
    if has_breathing:
        parts.append("Patient signals difficulty breathing.")
    if emotion is not None and emotion.distress > 0.5:
        parts.append(f"Patient appears to be in significant emotional distress ({emotion.emotion}).")
    if not parts:
        parts.append(f"Patient is indicating the {region} area through gestures.")
    return " ".join(parts)


def _objective(gesture_state: GestureState, emotion: Optional[EmotionState]) -> str:
    parts = [
        "Communication via sign language/gesture interpretation system.",
        f"Gesture recognition confidence: {_round(gesture_state.confidence * 100)}%.",
    ]
    meaningful = [t for t in gesture_state.gesture_tokens if t not in NON_CLINICAL_TOKENS]
    if meaningful:
        parts.append(f"Detected gestures: {', '.join(meaningful)}.")
    if emotion is not None:
        if emotion.pain_level > 0:
            parts.append(f"Apparent pain level: {_round(emotion.pain_level * 10)}/10.")
        if emotion.distress > 0.3:
            parts.append(f"Emotional state: {emotion.emotion}.")
    return " ".join(parts)


def _plan(region: str, has_pain: bool, has_breathing: bool,
          is_emergency: bool, emotion: Optional[EmotionState]) -> str:
    if is_emergency:
        return "\n".join([
            "1. IMMEDIATE: Activate emergency response protocol.",
            "2. Obtain vital signs stat.",
            "3. Prepare for potential rapid deterioration.",
        ])

    steps = [
        f"Conduct focused physical examination of {region}.",
        "Obtain vital signs.",
    ]
    if has_pain:
        steps.append("Assess pain characteristics (location, quality, duration, severity).")
    if has_breathing:
        steps.append("Assess respiratory status, consider pulse oximetry.")
    if emotion is not None and emotion.distress > 0.5:
        steps.append("Provide emotional support and reassurance.")
    steps.append("Continue gesture-based communication for symptom clarification.")
    return "\n".join(f"{i}. {step}" for i, step in enumerate(steps, start=1))


def generate_soap_note(
    gesture_state: Optional[GestureState],
    interpretation: Optional[str],
    emotion: Optional[EmotionState],
) -> Optional[SoapNote]:
    """
    Build a SOAP note from the current reading.

    The assessment is the interpretation text itself.

    Returns:
        SoapNote, or None without both a gesture state and an interpretation
    """
    if gesture_state is None or not interpretation:
        return None

    tokens = gesture_state.gesture_tokens
    present = set(tokens)
    region = _soap_body_region(tokens)
    has_pain = bool(present & {"pain", "closed_fist"})
    has_breathing = "breathing" in present
    is_emergency = bool(present & {"stroke", "emergency"})

    return SoapNote(
        subjective=_subjective(region, has_pain, has_breathing, emotion, is_emergency),
        objective=_objective(gesture_state, emotion),
        assessment=interpretation,
        plan=_plan(region, has_pain, has_breathing, is_emergency, emotion),
    )
