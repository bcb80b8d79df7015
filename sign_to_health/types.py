"""
Type definitions for the gesture-to-triage pipeline.
"""
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol, Tuple, Union, runtime_checkable


TriageUrgency = Optional[Literal["immediate", "emergency", "urgent", "non-urgent", "mental-health"]]
PainRegion = Optional[Literal["head", "chest", "abdomen", "lower-right", "lower-left"]]

Point3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Landmark:
    """Single normalized landmark as emitted by the detector."""
    x: float  # [0..1] frame space
    y: float  # [0..1] frame space, 0 = top
    z: float = 0.0  # relative depth
    visibility: Optional[float] = None


HandLandmarkSet = Tuple[Landmark, ...]  # 21 points, MediaPipe hand topology
PoseLandmarkSet = Tuple[Landmark, ...]  # 33 points, MediaPipe pose topology


@dataclass(frozen=True)
class BodyState:
    """Posture derived from one frame of pose landmarks."""
    is_standing: bool
    is_sitting: bool
    is_fallen: bool
    is_crouching: bool
    body_angle: float  # degrees from vertical, 0 = upright, 90 = horizontal
    head_position: Optional[Point3] = None
    torso_center: Optional[Point3] = None

    @property
    def primary(self) -> str:
        """Name of the single active posture, fallen first."""
        if self.is_fallen:
            return "fallen"
        if self.is_crouching:
            return "crouching"
        if self.is_sitting:
            return "sitting"
        return "standing"


@dataclass(frozen=True)
class GestureState:
    """Stabilized, publishable gesture reading."""
    gesture_tokens: Tuple[str, ...]
    hand_landmarks: Tuple[Point3, ...] = ()
    confidence: float = 0.0
    timestamp: float = 0.0
    body_pose: Optional[Tuple[Point3, ...]] = None

    @property
    def token_set(self) -> frozenset:
        return frozenset(t.lower() for t in self.gesture_tokens)


@dataclass(frozen=True)
class EmotionState:
    """Common emotion shape consumed by triage."""
    pain_level: float
    distress: float
    emotion: str
    confidence: float


@dataclass(frozen=True)
class EmotionScore:
    """One named score from the external emotion service."""
    name: str
    score: float  # [0..1]


@dataclass(frozen=True)
class EmotionResult:
    """Processed reading from the external emotion service."""
    pain_level: float
    distress: float
    anxiety: float
    confusion: float
    anger: float
    primary_emotion: str
    primary_emotion_score: float
    category: str
    category_label: str
    top_emotions: Tuple[EmotionScore, ...]
    confidence: float
    timestamp: float  # same clock as the frame loop
    source: Literal["service", "fallback"] = "service"

    def to_emotion_state(self) -> EmotionState:
        """Map into the shape shared with the gesture fallback."""
        label = "anxious" if self.category == "anxiety" else self.category_label
        return EmotionState(
            pain_level=self.pain_level,
            distress=self.distress,
            emotion=label,
            confidence=self.confidence,
        )


@dataclass(frozen=True)
class EmotionThreshold:
    pain_level: Optional[float] = None
    distress: Optional[float] = None


@dataclass(frozen=True)
class TriagePattern:
    """Static registry entry used to explain a triage decision."""
    id: str
    name: str
    tokens: Tuple[str, ...]
    urgency: TriageUrgency
    department: str
    emotion_threshold: Optional[EmotionThreshold] = None


@dataclass(frozen=True)
class Matched:
    pattern: TriagePattern


@dataclass(frozen=True)
class NoMatch:
    pass


PatternMatch = Union[Matched, NoMatch]


@dataclass(frozen=True)
class SoapNote:
    subjective: str
    objective: str
    assessment: str
    plan: str


@dataclass(frozen=True)
class AvatarUpdate:
    """What the 3D renderer needs each time the picture changes."""
    pain_region: PainRegion
    is_emergency: bool
    body_state: Optional[BodyState]
    urgency: TriageUrgency = None
    tokens: Tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class ConsumerProto(Protocol):
    """Abstract protocol for downstream consumers of pipeline output."""

    async def update_avatar(self, update: AvatarUpdate) -> None:
        """Receive posture, pain region and emergency state for rendering."""
        ...

    async def publish_record(self, record: "object") -> None:
        """Receive a finished session record for reporting."""
        ...
