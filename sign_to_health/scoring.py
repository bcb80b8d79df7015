"""
Scoring of raw facial-expression readings into pain, distress and a
medical emotion category.

Input is the expression taxonomy of the external service: a list of
{name, score} pairs with scores in [0, 1].
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .types import EmotionResult, EmotionScore


# (threshold, label), checked top-down with a strict ">"
ANGER_LADDER = [
    (0.8, "Furious"),
    (0.7, "Outraged"),
    (0.6, "Hostile"),
    (0.5, "Irate"),
    (0.4, "Frustrated"),
    (0.3, "Irritated"),
    (0.2, "Annoyed"),
]
STRESS_LADDER = [
    (0.8, "Overwhelmed"),
    (0.7, "Frazzled"),
    (0.6, "Exhausted"),
    (0.5, "Burned out"),
    (0.4, "Depleted"),
    (0.3, "Rattled"),
    (0.2, "Anxious"),
]
SPECTRUM_FLOOR = 0.1


def to_scores(raw: Iterable[Any]) -> List[EmotionScore]:
    """Coerce {name, score} mappings or EmotionScore items, dropping bad rows."""
    scores = []
    for item in raw or []:
        if isinstance(item, EmotionScore):
            scores.append(item)
            continue
        try:
            scores.append(EmotionScore(name=str(item["name"]), score=float(item["score"])))
        except (TypeError, KeyError, ValueError):
            continue
    return scores


def _lookup(scores: Sequence[EmotionScore]) -> Dict[str, float]:
    table: Dict[str, float] = {}
    for s in scores:
        # First occurrence wins, as a linear find would
        table.setdefault(s.name, s.score)
    return table


def calculate_pain_level(scores: Sequence[EmotionScore]) -> float:
    e = _lookup(scores)
    raw = (e.get("Pain", 0.0) * 3 + e.get("Empathic Pain", 0.0) * 2
           + e.get("Distress", 0.0) + e.get("Fear", 0.0)) / 7
    return min(1.0, raw)


def calculate_distress_level(scores: Sequence[EmotionScore]) -> float:
    e = _lookup(scores)
    raw = (e.get("Distress", 0.0) * 2 + e.get("Anxiety", 0.0) * 2 + e.get("Fear", 0.0) * 1.5
           + e.get("Sadness", 0.0) + e.get("Horror", 0.0)) / 7.5
    return min(1.0, raw)


def _ladder_label(intensity: float, ladder: List[Tuple[float, str]], bottom: str) -> str:
    for threshold, label in ladder:
        if intensity > threshold:
            return label
    return bottom


def anger_spectrum(scores: Sequence[EmotionScore]) -> Optional[Tuple[str, float]]:
    """(label, intensity) on the anger spectrum, None when barely present."""
    e = _lookup(scores)
    intensity = (e.get("Anger", 0.0) * 2 + e.get("Annoyance", 0.0) + e.get("Contempt", 0.0)
                 + e.get("Disgust", 0.0) + e.get("Disapproval", 0.0)) / 6
    if intensity < SPECTRUM_FLOOR:
        return None
    return _ladder_label(intensity, ANGER_LADDER, "Agitated"), intensity


def stress_spectrum(scores: Sequence[EmotionScore]) -> Optional[Tuple[str, float]]:
    """(label, intensity) on the stress spectrum, None when barely present."""
    e = _lookup(scores)
    intensity = (e.get("Anxiety", 0.0) * 2 + e.get("Fear", 0.0) + e.get("Distress", 0.0)
                 + e.get("Tiredness", 0.0) + e.get("Confusion", 0.0)) / 6
    if intensity < SPECTRUM_FLOOR:
        return None
    return _ladder_label(intensity, STRESS_LADDER, "Stressed"), intensity


def medical_category(scores: Sequence[EmotionScore]) -> Tuple[str, float, str]:
    """
    Pick the medical emotion category.

    Priority: pain > distress (anxiety) > confusion > anger > stress >
    positive > neutral.

    Returns:
        (category, confidence, label)
    """
    e = _lookup(scores)
    pain = calculate_pain_level(scores)
    distress = calculate_distress_level(scores)
    confusion = e.get("Confusion", 0.0)
    calmness = e.get("Calmness", 0.0)
    joy = e.get("Joy", 0.0)

    if pain > 0.5:
        return "pain", pain, "In pain"
    if distress > 0.5:
        return "anxiety", distress, "Distressed"
    if confusion > 0.4:
        return "confusion", confusion, "Confused"

    anger = anger_spectrum(scores)
    if anger is not None and anger[1] > 0.3:
        return "anger", anger[1], anger[0]
    stress = stress_spectrum(scores)
    if stress is not None and stress[1] > 0.3:
        return "stress", stress[1], stress[0]

    if calmness > 0.5 or joy > 0.5:
        label = "Content" if joy > calmness else "Calm"
        return "positive", max(calmness, joy), label

    return "neutral", 0.5, "Neutral"


def top_emotions(scores: Sequence[EmotionScore], n: int = 5) -> List[EmotionScore]:
    return sorted(scores, key=lambda s: s.score, reverse=True)[:n]


def process_emotions(predictions: Sequence[Mapping[str, Any]],
                     timestamp: float) -> Optional[EmotionResult]:
    """
    Turn face predictions from the service into an EmotionResult.

    Only the first detected face is scored.

    Args:
        predictions: List of {"emotions": [{name, score}, ...]} entries
        timestamp: Time of the analyzed frame, on the frame-loop clock

    Returns:
        EmotionResult, or None when no face or no scores were returned

    Raises:
        ValueError: the first prediction is not a mapping
    """
    if not predictions:
        return None
    face = predictions[0]
    if not isinstance(face, Mapping):
        raise ValueError(f"Face prediction is not a mapping: {face!r}")
    scores = to_scores(face.get("emotions", []))
    if not scores:
        return None

    e = _lookup(scores)
    top = top_emotions(scores)
    category, confidence, label = medical_category(scores)

    return EmotionResult(
        pain_level=calculate_pain_level(scores),
        distress=calculate_distress_level(scores),
        anxiety=e.get("Anxiety", 0.0),
        confusion=e.get("Confusion", 0.0),
        anger=e.get("Anger", 0.0),
        primary_emotion=top[0].name,
        primary_emotion_score=top[0].score,
        category=category,
        category_label=label,
        top_emotions=tuple(top),
        confidence=confidence,
        timestamp=timestamp,
        source="service",
    )
