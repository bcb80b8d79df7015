"""
Per-session pipeline: landmarks in, triage picture out.

One IntakeSession owns the stabilizer and fusion state for one patient.
Calls must be sequential (one frame loop); concurrent patients each get
their own session.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .clinical import format_icd10, generate_soap_note, get_icd10_codes
from .config import Cfg
from .emergency import fall_emergency_tokens, is_emergency_situation
from .emotion import EmotionFusion
from .gestures import as_points, extract_gesture_tokens
from .interpretation import infer_clinical_interpretation
from .posture import analyze_body_state
from .regions import pain_region_from_tokens
from .session import SessionRecord, build_session_record, generate_session_id
from .stabilizer import TemporalStabilizer
from .triage import infer_triage_urgency, match_triage_pattern
from .types import (
    AvatarUpdate,
    BodyState,
    EmotionResult,
    EmotionState,
    GestureState,
    NoMatch,
    PainRegion,
    PatternMatch,
    TriageUrgency,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameResult:
    """Everything the pipeline concluded for one frame."""
    raw_tokens: Tuple[str, ...]
    body_state: Optional[BodyState]
    gesture_state: Optional[GestureState]  # last published, None when cleared
    published: bool  # a new state (or a clear) was published on this frame
    interpretation: Optional[str]
    emotion: Optional[EmotionState]
    emotion_source: Optional[str]
    urgency: TriageUrgency
    is_emergency: bool
    pattern: PatternMatch = field(default_factory=NoMatch)
    pain_region: PainRegion = None

    @property
    def avatar_update(self) -> AvatarUpdate:
        tokens = self.gesture_state.gesture_tokens if self.gesture_state is not None else ()
        return AvatarUpdate(
            pain_region=self.pain_region,
            is_emergency=self.is_emergency,
            body_state=self.body_state,
            urgency=self.urgency,
            tokens=tokens,
        )


def frame_tokens(hand_landmarks: Optional[Sequence[Any]],
                 body_state: Optional[BodyState],
                 pose_present: bool) -> List[str]:
    """Candidate tokens for one frame: hand shape, then posture emergencies."""
    tokens = extract_gesture_tokens(hand_landmarks)
    for token in fall_emergency_tokens(body_state):
        if token not in tokens:
            tokens.append(token)
    if not tokens and pose_present:
        tokens = ["body_detected"]
    return tokens


class IntakeSession:
    """
    Runs the full signal-to-symbol chain for one patient.

    Per frame: posture -> tokens (+ posture emergencies) -> stabilizer ->
    interpretation -> emotion fusion -> triage -> emergency flag ->
    pattern -> pain region.
    """

    def __init__(self, cfg: Optional[Cfg] = None,
                 clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], float] = time.time,
                 session_id: Optional[str] = None):
        self.cfg = cfg or Cfg()
        self.clock = clock
        self.wall_clock = wall_clock

        self.stabilizer = TemporalStabilizer(
            debounce_ms=self.cfg.smoothing.debounce_ms,
            stable_frames=self.cfg.smoothing.stable_frames,
            clock=clock,
        )
        self.fusion = EmotionFusion(freshness_ms=self.cfg.emotion.freshness_ms, clock=clock)

        self.started_at = wall_clock()
        self.session_id = session_id or generate_session_id(self.started_at)
        self.gesture_state: Optional[GestureState] = None
        self.last_published_state: Optional[GestureState] = None  # survives clears
        self.interpretation: Optional[str] = None
        self.last_result: Optional[FrameResult] = None

    def update_emotion(self, result: Optional[EmotionResult]) -> None:
        """Hand the latest external emotion reading to fusion."""
        self.fusion.update(result)

    def process_frame(self, hand_landmarks: Optional[Sequence[Any]] = None,
                      pose_landmarks: Optional[Sequence[Any]] = None,
                      t_now: Optional[float] = None,
                      confidence: float = 0.9) -> FrameResult:
        """
        Process one frame of landmarks.

        Args:
            hand_landmarks: Up to two hands, 21 landmarks each
            pose_landmarks: 33 pose landmarks, or None
            t_now: Frame time in seconds (defaults to the injected clock)
            confidence: Hand detection confidence for published states

        Returns:
            FrameResult for this frame
        """
        if t_now is None:
            t_now = self.clock()

        pose_present = len(as_points(pose_landmarks)) > 0
        body_state = analyze_body_state(pose_landmarks) if pose_present else None
        tokens = frame_tokens(hand_landmarks, body_state, pose_present)

        primary_hand = as_points(hand_landmarks[0]) if hand_landmarks else []
        pose_points = tuple(as_points(pose_landmarks)) if pose_present else None

        publication = self.stabilizer.update(
            tokens,
            t_now=t_now,
            hand_landmarks=primary_hand,
            body_pose=pose_points,
            confidence=confidence,
        )
        if publication is not None:
            self.gesture_state = publication.state
            if publication.state is not None:
                self.last_published_state = publication.state
            self.interpretation = (
                infer_clinical_interpretation(publication.state.gesture_tokens)
                if publication.state is not None else None
            )

        return self._evaluate(tuple(tokens), body_state, t_now, publication is not None)

    def _evaluate(self, raw_tokens: Tuple[str, ...], body_state: Optional[BodyState],
                  t_now: float, published: bool) -> FrameResult:
        stable_tokens = self.gesture_state.gesture_tokens if self.gesture_state is not None else ()
        emotion = self.fusion.fuse(self.gesture_state, t_now)
        urgency = infer_triage_urgency(stable_tokens, emotion, self.interpretation)

        result = FrameResult(
            raw_tokens=raw_tokens,
            body_state=body_state,
            gesture_state=self.gesture_state,
            published=published,
            interpretation=self.interpretation,
            emotion=emotion,
            emotion_source=self.fusion.last_source,
            urgency=urgency,
            is_emergency=is_emergency_situation(stable_tokens, emotion, self.interpretation),
            pattern=match_triage_pattern(stable_tokens, emotion),
            pain_region=pain_region_from_tokens(stable_tokens),
        )
        self.last_result = result
        return result

    def stop(self, t_now: Optional[float] = None) -> FrameResult:
        """Reset stabilizer counters and publish a cleared state."""
        if t_now is None:
            t_now = self.clock()
        self.stabilizer.reset()
        self.gesture_state = None
        self.interpretation = None
        logger.debug("Session %s stopped, gesture state cleared", self.session_id)
        return self._evaluate((), None, t_now, True)

    def build_record(self, gesture_state: Optional[GestureState] = None,
                     now: Optional[float] = None) -> SessionRecord:
        """
        Summarize the session into a record.

        Args:
            gesture_state: State to summarize (defaults to the current one,
                or the last published one after a clear or stop)
            now: Wall-clock time, epoch seconds

        Returns:
            SessionRecord keyed by this session's id
        """
        state = gesture_state or self.gesture_state or self.last_published_state
        tokens = state.gesture_tokens if state is not None else ()
        interpretation = infer_clinical_interpretation(tokens)
        emotion = self.fusion.fuse(state, self.clock())
        urgency = infer_triage_urgency(tokens, emotion, interpretation)

        return build_session_record(
            session_id=self.session_id,
            start_time=self.started_at,
            gesture_state=state,
            emotion=emotion,
            interpretation=interpretation,
            triage_urgency=urgency,
            soap_note=generate_soap_note(state, interpretation, emotion),
            icd10_codes=format_icd10(get_icd10_codes(tokens)),
            pain_region=pain_region_from_tokens(tokens),
            now=now if now is not None else self.wall_clock(),
        )
