"""
Rule-based clinical interpretation of gesture tokens.

Produces the short free-text note shown to clinicians and fed back into
triage and the emergency flag (phrases such as "Urgency: High" matter).
"""
from typing import Iterable, List, Optional


# Checked in this order when naming the region of a generic pain reading
BODY_REGIONS = {
    "point_head": "head",
    "point_chest": "chest",
    "point_abdomen": "abdomen",
    "point_stomach": "stomach/abdomen",
    "point_lower_right": "lower right abdomen",
    "point_lower_left": "lower left abdomen",
    "point_back": "back",
    "point_throat": "throat",
    "point_temple": "head (temple)",
}

GESTURE_SYMPTOMS = {
    "pain": "pain",
    "sharp": "sharp pain",
    "dull": "dull ache",
    "burning": "burning sensation",
    "cramping": "cramping",
    "pressure": "pressure",
    "nausea": "nausea",
    "dizzy": "dizziness",
    "breathing": "difficulty breathing",
    "chest": "chest discomfort",
}

PAIN_WORDS = frozenset({"pain", "sharp", "dull", "burning", "cramping", "fist", "closed_fist"})
ABDOMEN_WORDS = frozenset({"point_abdomen", "point_stomach", "point_lower_right",
                           "point_lower_left", "abdomen", "stomach"})
HEAD_WORDS = frozenset({"point_head", "point_temple", "head"})
HAND_WORDS = frozenset({"hand_raised", "hand_detected", "communicating", "hand_visible"})


def infer_clinical_interpretation(tokens: Optional[Iterable[str]]) -> Optional[str]:
    """
    Describe what the patient appears to be communicating.

    Args:
        tokens: Stabilized gesture tokens

    Returns:
        Interpretation text, or None when there are no tokens
    """
    t = [tok.lower() for tok in tokens or ()]
    if not t:
        return None
    present = set(t)

    has_pain = bool(present & PAIN_WORDS)
    has_chest = bool(present & {"chest", "point_chest"})
    has_abdomen = bool(present & ABDOMEN_WORDS)
    has_head = bool(present & HEAD_WORDS)
    has_breathing = "breathing" in present
    has_fallen = bool(present & {"fallen", "collapse"})
    has_critical = bool(present & {"critical", "prone_position"})
    has_distress = bool(present & {"distress", "crouching"})

    if has_fallen:
        if has_critical:
            return ("CRITICAL EMERGENCY: Patient has collapsed and is in prone position. "
                    "Immediate medical intervention required. Check airway, breathing, "
                    "circulation. Call emergency services immediately.")
        return ("EMERGENCY: Patient has fallen or collapsed. This may indicate stroke, "
                "cardiac event, syncope, or severe pain reaction. Immediate assessment "
                "required. Check responsiveness and vital signs.")

    if has_distress:
        return ("Patient is in a crouched/distressed position. This may indicate severe "
                "pain, nausea, or pre-syncope. Assist patient to safe position and assess "
                "symptoms.")

    if has_chest and (has_pain or has_breathing):
        return ("Patient reports chest discomfort with possible pain or breathing "
                "difficulty. Consider cardiac or respiratory assessment. Urgency: High.")
    if has_abdomen and has_pain:
        return ("Patient indicates pain in the abdominal/stomach region. Symptoms may "
                "suggest gastrointestinal or appendiceal concern. Urgency: Assess severity.")
    if has_abdomen:
        return ("Patient is indicating the abdominal/stomach area. Ask about type of "
                "discomfort (pain, nausea, cramping).")
    if has_head and has_pain:
        return ("Patient reports head pain or headache. Consider migraine, tension, or "
                "other neurological causes. Urgency: Assess severity and accompanying "
                "symptoms.")
    if has_head:
        return ("Patient is indicating the head area. Ask about type of discomfort "
                "(headache, dizziness, vision issues).")
    if has_breathing:
        return "Patient signals difficulty breathing. Respiratory distress possible. Urgency: High."
    if has_pain:
        region = next((name for key, name in BODY_REGIONS.items() if key in present), "body")
        return f"Patient expresses pain or discomfort in the {region} area. Further assessment recommended."

    if "touching_body" in present:
        return ("Patient is touching/indicating a body area. This may represent the "
                "location of discomfort. Ask for clarification.")
    if "pointing" in present:
        return ("Patient is pointing. They may be indicating a location of discomfort. "
                "Ask them to point to the affected body area.")
    if present & {"open_palm", "palm"}:
        return ("Patient showing open palm. This may indicate 'stop', 'wait', or an "
                "attempt to communicate. Engage for clarification.")
    if present & HAND_WORDS:
        return ("Patient's hand detected. Ready for communication. Point to indicate a "
                "body area or make a fist to indicate pain.")

    symptoms = [GESTURE_SYMPTOMS[tok] for tok in t if tok in GESTURE_SYMPTOMS]
    if symptoms:
        return f"Patient may be indicating: {', '.join(symptoms)}. Clinical assessment recommended."

    return ("Patient is communicating via gestures. Interpreted signals suggest medical "
            "concern. Please engage for detailed assessment.")


def infer_possible_conditions(tokens: Optional[Iterable[str]]) -> List[str]:
    """Broad complaint categories for the report, never empty."""
    t = [tok.lower() for tok in tokens or ()]
    conditions = []
    if any("chest" in tok for tok in t):
        conditions.append("Chest pain - cardiac evaluation recommended")
    if any("abdomen" in tok or "stomach" in tok for tok in t):
        conditions.append("Abdominal complaint")
    if any("head" in tok for tok in t):
        conditions.append("Headache/Head-related complaint")
    if any("breathing" in tok for tok in t):
        conditions.append("Respiratory complaint")
    if "fallen" in t or "collapse" in t:
        conditions.append("Fall/Collapse - multiple causes possible")
    return conditions or ["Requires clinical evaluation"]
