"""
Session records: the immutable summary of one intake session.
"""
import random
import string
import time
from typing import Iterable, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from .types import EmotionState, GestureState, PainRegion, SoapNote, TriageUrgency


EMERGENCY_RECORD_TOKENS = frozenset({"stroke", "emergency", "fallen", "collapse", "critical"})

_ID_ALPHABET = string.ascii_lowercase + string.digits


class SessionRecord(BaseModel):
    """One finished (or in-progress) intake session.

    Times are wall-clock: `timestamp` is the session start in epoch
    seconds and `duration` is in seconds.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: float
    duration: float = 0.0
    gesture_tokens: Tuple[str, ...] = ()
    pain_region: PainRegion = None
    emotion: Optional[EmotionState] = None
    clinical_interpretation: Optional[str] = None
    triage_urgency: TriageUrgency = None
    soap_note: Optional[SoapNote] = None
    icd10_codes: Tuple[str, ...] = ()
    patient_confirmed: Optional[bool] = None
    emergency_triggered: bool = False


def generate_session_id(now: Optional[float] = None) -> str:
    """`session_<epoch ms>_<9 random chars>`."""
    if now is None:
        now = time.time()
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"session_{int(now * 1000)}_{suffix}"


def is_emergency_record(tokens: Iterable[str]) -> bool:
    return any(t.lower() in EMERGENCY_RECORD_TOKENS for t in tokens)


def is_emotion_high_alert(emotion: Optional[EmotionState]) -> bool:
    if emotion is None:
        return False
    return emotion.pain_level > 0.7 or emotion.distress > 0.7


def build_session_record(
    session_id: str,
    start_time: float,
    gesture_state: Optional[GestureState],
    emotion: Optional[EmotionState],
    interpretation: Optional[str],
    triage_urgency: TriageUrgency,
    soap_note: Optional[SoapNote],
    icd10_codes: Sequence[str],
    pain_region: PainRegion = None,
    now: Optional[float] = None,
) -> SessionRecord:
    """
    Aggregate the current session state into a record.

    Pure apart from the default `now`: the same inputs and id give the same
    record except for `duration`. Saving is an upsert by id, so calling this
    repeatedly during a session and saving each result is safe.

    Args:
        session_id: Stable id for the session
        start_time: Session start, epoch seconds
        gesture_state: Last stabilized gesture state, if any
        emotion: Fused emotion, if any
        interpretation: Clinical interpretation text, if any
        triage_urgency: Urgency from the triage cascade
        soap_note: SOAP note, if generated
        icd10_codes: Formatted ICD-10 suggestions
        pain_region: Pain region for display
        now: Current time, epoch seconds (defaults to time.time())

    Returns:
        SessionRecord with `patient_confirmed` unset
    """
    if now is None:
        now = time.time()
    tokens = tuple(gesture_state.gesture_tokens) if gesture_state is not None else ()

    return SessionRecord(
        id=session_id,
        timestamp=start_time,
        duration=max(0.0, now - start_time),
        gesture_tokens=tokens,
        pain_region=pain_region,
        emotion=emotion,
        clinical_interpretation=interpretation,
        triage_urgency=triage_urgency,
        soap_note=soap_note,
        icd10_codes=tuple(icd10_codes),
        patient_confirmed=None,
        emergency_triggered=is_emergency_record(tokens),
    )


def confirm_session(record: SessionRecord, confirmed: bool) -> SessionRecord:
    """Return a copy of `record` with the patient's confirmation set."""
    return record.model_copy(update={"patient_confirmed": confirmed})
