"""
Hand and body landmark detection using MediaPipe.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import cv2
import mediapipe as mp
import numpy as np

from .config import HandsConfig, PoseConfig
from .types import HandLandmarkSet, Landmark, PoseLandmarkSet


@dataclass
class LandmarkFrame:
    """Detector output for one camera frame."""
    hand_landmarks: List[HandLandmarkSet] = field(default_factory=list)
    pose_landmarks: Optional[PoseLandmarkSet] = None
    hand_confidence: float = 0.0


def _to_landmarks(proto_landmarks) -> tuple:
    return tuple(
        Landmark(
            x=lm.x,
            y=lm.y,
            z=lm.z,
            visibility=getattr(lm, "visibility", None),
        )
        for lm in proto_landmarks.landmark
    )


class HandsTracker:
    """Hand landmark tracker using MediaPipe Hands."""

    def __init__(self, cfg: Optional[HandsConfig] = None):
        """
        Initialize the hands tracker.

        Args:
            cfg: Detection settings (max hands, confidence thresholds)
        """
        cfg = cfg or HandsConfig()
        self.mp_hands = mp.solutions.hands
        self.hands = self.mp_hands.Hands(
            static_image_mode=False,
            max_num_hands=cfg.max_num_hands,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence,
        )

    def process(self, frame_rgb: np.ndarray):
        """
        Detect hands in an RGB frame.

        Returns:
            (hands, confidence): up to two 21-point landmark sets and the
            handedness score of the first hand (0.0 when none)
        """
        results = self.hands.process(frame_rgb)
        if not results.multi_hand_landmarks:
            return [], 0.0

        hands = [_to_landmarks(h) for h in results.multi_hand_landmarks]
        confidence = 0.9
        if results.multi_handedness:
            confidence = float(results.multi_handedness[0].classification[0].score)
        return hands, confidence

    def close(self) -> None:
        self.hands.close()


class PoseTracker:
    """Body landmark tracker using MediaPipe Pose."""

    def __init__(self, cfg: Optional[PoseConfig] = None):
        cfg = cfg or PoseConfig()
        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            min_detection_confidence=cfg.min_detection_confidence,
            min_tracking_confidence=cfg.min_tracking_confidence,
        )

    def process(self, frame_rgb: np.ndarray) -> Optional[PoseLandmarkSet]:
        """Return 33 pose landmarks, or None if no person is visible."""
        results = self.pose.process(frame_rgb)
        if results.pose_landmarks is None:
            return None
        return _to_landmarks(results.pose_landmarks)

    def close(self) -> None:
        self.pose.close()


class LandmarkSource:
    """Runs both trackers on a BGR camera frame."""

    def __init__(self, hands_cfg: Optional[HandsConfig] = None, pose_cfg: Optional[PoseConfig] = None):
        self.hands = HandsTracker(hands_cfg)
        self.pose = PoseTracker(pose_cfg)

    def process(self, frame_bgr: np.ndarray) -> LandmarkFrame:
        # MediaPipe expects RGB
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        hands, confidence = self.hands.process(frame_rgb)
        return LandmarkFrame(
            hand_landmarks=hands,
            pose_landmarks=self.pose.process(frame_rgb),
            hand_confidence=confidence,
        )

    def close(self) -> None:
        self.hands.close()
        self.pose.close()


def draw_landmarks(frame: np.ndarray, landmarks: Sequence[Landmark],
                   color=(0, 255, 0), radius: int = 3, label: bool = False) -> np.ndarray:
    """
    Draw landmarks on the frame.

    Args:
        frame: BGR frame, drawn on in place
        landmarks: Normalized landmarks
        color: BGR dot color
        radius: Dot radius in pixels
        label: Write each landmark's index next to it

    Returns:
        The same frame
    """
    height, width = frame.shape[:2]
    for i, lm in enumerate(landmarks):
        px = int(lm.x * width)
        py = int(lm.y * height)
        cv2.circle(frame, (px, py), radius, color, -1)
        if label:
            cv2.putText(frame, str(i), (px + 5, py - 5), cv2.FONT_HERSHEY_SIMPLEX, 0.3, (255, 255, 255), 1)
    return frame
