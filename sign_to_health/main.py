"""
Camera intake application: gestures and posture in, triage picture out.
"""
import argparse
import asyncio
import base64
import logging
import os
import time
from typing import List, Optional

import cv2
import numpy as np
from dotenv import load_dotenv

from .config import Cfg, load_config
from .consumers import ConsoleConsumer
from .emotion_service import EmotionService, HttpEmotionAnalyzer
from .landmarks import LandmarkSource, draw_landmarks
from .pipeline import FrameResult, IntakeSession
from .regions import pain_region_label
from .storage import ApiSessionStore, ResilientSessionStore, SessionStore
from .triage import department_recommendation, triage_label
from .types import ConsumerProto


logger = logging.getLogger(__name__)

URGENCY_COLORS = {
    "immediate": (68, 68, 239),
    "emergency": (22, 115, 249),
    "urgent": (8, 179, 234),
    "non-urgent": (94, 197, 34),
    "mental-health": (247, 85, 168),
}


def encode_frame(frame_bgr: np.ndarray, quality: int = 80) -> str:
    """JPEG-encode a BGR frame as base64 for the emotion service."""
    ok, buffer = cv2.imencode(".jpg", frame_bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("Failed to encode frame")
    return base64.b64encode(buffer.tobytes()).decode("ascii")


def build_store(cfg: Cfg) -> ResilientSessionStore:
    if cfg.storage.api_url:
        primary = ApiSessionStore(cfg.storage.api_url)
    else:
        primary = SessionStore(cfg.storage.data_dir, max_history=cfg.storage.max_session_history)
    return ResilientSessionStore(primary, cache_size=cfg.storage.local_cache_size)


def build_emotion_service(cfg: Cfg) -> EmotionService:
    analyzer = None
    if cfg.emotion.service_url:
        analyzer = HttpEmotionAnalyzer(
            cfg.emotion.service_url,
            api_key=os.getenv(cfg.emotion.api_key_env),
            timeout=cfg.emotion.request_timeout_s,
        )
    return EmotionService(
        analyzer,
        cfg.emotion,
        on_status=lambda status: print(f"😶 Emotion service: {status}"),
        encoder=encode_frame,
    )


class IntakeApp:
    """Main application class for camera-based patient intake."""

    def __init__(self, config_path: Optional[str] = None,
                 consumers: Optional[List[ConsumerProto]] = None):
        """Initialize the application with configuration."""
        self.config = load_config(config_path)
        self.source = LandmarkSource(self.config.mediapipe.hands, self.config.mediapipe.pose)
        self.session = IntakeSession(self.config)
        self.emotion_service = build_emotion_service(self.config)
        self.store = build_store(self.config)
        self.consumers = consumers if consumers is not None else [ConsoleConsumer()]

        # Initialize camera
        self.cap = cv2.VideoCapture(self.config.camera.index)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.camera.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.camera.height)
        self.cap.set(cv2.CAP_PROP_FPS, self.config.camera.fps)

        if not self.cap.isOpened():
            raise RuntimeError(f"Failed to open camera {self.config.camera.index}")

    async def _publish_avatar(self, result: FrameResult) -> None:
        update = result.avatar_update
        for consumer in self.consumers:
            await consumer.update_avatar(update)

    def _draw_status(self, frame: np.ndarray, result: FrameResult) -> None:
        tokens = ", ".join(result.gesture_state.gesture_tokens) if result.gesture_state else "none"
        posture = result.body_state.primary if result.body_state is not None else "no body"
        emotion = (f"{result.emotion.emotion} pain={result.emotion.pain_level:.2f} "
                   f"distress={result.emotion.distress:.2f} ({result.emotion_source})"
                   if result.emotion is not None else "no emotion signal")
        color = URGENCY_COLORS.get(result.urgency, (255, 255, 255))

        cv2.putText(frame, f"Tokens: {tokens}", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
        cv2.putText(frame, f"Posture: {posture}", (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        cv2.putText(frame, f"Emotion: {emotion}", (10, 85), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        cv2.putText(frame, f"Triage: {triage_label(result.urgency)}", (10, 115),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
        region = pain_region_label(result.pain_region)
        if region:
            cv2.putText(frame, f"Pain region: {region}", (10, 145), cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)
        if result.is_emergency:
            cv2.putText(frame, "EMERGENCY", (frame.shape[1] - 220, 40), cv2.FONT_HERSHEY_SIMPLEX,
                        1.0, (0, 0, 255), 3)
        cv2.putText(frame, "Fist = pain | Point = location | Press 'q' to finish",
                    (10, frame.shape[0] - 20), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)

    async def run(self):
        """Run the main application loop."""
        print(f"Starting {self.config.display.window_name}")
        print(f"🆔 Session: {self.session.session_id}")
        print("Press 'q' to finish the session")

        try:
            while True:
                ret, frame = self.cap.read()
                if not ret:
                    print("Failed to read frame from camera")
                    break

                t_now = time.monotonic()
                landmarks = self.source.process(frame)

                latest = self.emotion_service.latest_result()
                if latest is not None:
                    self.session.update_emotion(latest)
                self.emotion_service.submit_frame(frame, t_now)

                result = self.session.process_frame(
                    landmarks.hand_landmarks,
                    landmarks.pose_landmarks,
                    t_now=t_now,
                    confidence=landmarks.hand_confidence or 0.9,
                )
                if result.published:
                    await self._publish_avatar(result)

                if self.config.display.show_landmarks:
                    for hand in landmarks.hand_landmarks:
                        draw_landmarks(frame, hand)
                    if landmarks.pose_landmarks is not None:
                        draw_landmarks(frame, landmarks.pose_landmarks, color=(255, 128, 0), radius=2)
                self._draw_status(frame, result)

                cv2.imshow(self.config.display.window_name, frame)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
                # Let consumer coroutines run between frames
                await asyncio.sleep(0)
        finally:
            await self.finish()

    async def finish(self):
        """Save the session record, clear displays and release the camera."""
        record = self.session.build_record()
        cleared = self.session.stop()
        await self._publish_avatar(cleared)

        if self.store.save_session(record):
            print(f"💾 Session saved: {record.id}")
        else:
            print(f"⚠️ Session kept in local cache only: {record.id}")
        print(f"🏥 Recommended: {department_recommendation(record.triage_urgency, record.gesture_tokens)}")
        for consumer in self.consumers:
            await consumer.publish_record(record)

        self.emotion_service.shutdown()
        self.source.close()
        self.cap.release()
        cv2.destroyAllWindows()


async def run_app(config_path: Optional[str] = None):
    try:
        app = IntakeApp(config_path)
        await app.run()
    except KeyboardInterrupt:
        print("\nApplication interrupted by user")
    except RuntimeError as e:
        logger.error(f"❌ {e}")


def main():
    """Entry point for the camera application."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Sign-to-Health camera intake")
    parser.add_argument("--config", help="Path to YAML config (default: config.default.yaml)")
    args = parser.parse_args()

    asyncio.run(run_app(args.config))


if __name__ == "__main__":
    main()
