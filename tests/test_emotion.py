"""
Test cases for the gesture emotion fallback and emotion fusion.
"""
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sign_to_health.emotion import (
    EmotionFusion,
    infer_emotion_from_gestures,
    infer_emotion_from_tokens,
)
from sign_to_health.types import EmotionResult, EmotionScore, GestureState


def make_result(timestamp, distress=0.2, pain_level=0.1, category="neutral",
                label="Neutral", confidence=0.5):
    return EmotionResult(
        pain_level=pain_level,
        distress=distress,
        anxiety=0.0,
        confusion=0.0,
        anger=0.0,
        primary_emotion="Calmness",
        primary_emotion_score=0.6,
        category=category,
        category_label=label,
        top_emotions=(EmotionScore("Calmness", 0.6),),
        confidence=confidence,
        timestamp=timestamp,
    )


class TestGestureFallback(unittest.TestCase):
    """Test emotion estimates from tokens alone."""

    def test_no_tokens(self):
        self.assertIsNone(infer_emotion_from_tokens([]))
        self.assertIsNone(infer_emotion_from_gestures(None))

    def test_pain_tokens(self):
        emotion = infer_emotion_from_tokens(["closed_fist", "pain"])

        self.assertEqual(emotion.emotion, "pain")
        self.assertGreaterEqual(emotion.pain_level, 0.6)
        self.assertLessEqual(emotion.pain_level, 0.9)
        self.assertEqual(emotion.distress, 0.0)
        self.assertEqual(emotion.confidence, 0.85)

    def test_distress_tokens(self):
        emotion = infer_emotion_from_tokens(["point_chest"])

        self.assertEqual(emotion.emotion, "distressed")
        self.assertGreaterEqual(emotion.distress, 0.7)
        self.assertLessEqual(emotion.distress, 0.9)
        self.assertEqual(emotion.pain_level, 0.0)

    def test_pain_label_kept_over_distress(self):
        emotion = infer_emotion_from_tokens(["closed_fist", "pain", "point_chest"])

        self.assertEqual(emotion.emotion, "pain")
        self.assertEqual(emotion.pain_level, 0.75)
        self.assertEqual(emotion.distress, 0.8)

    def test_breathing_is_anxious(self):
        emotion = infer_emotion_from_tokens(["breathing"])

        self.assertEqual(emotion.emotion, "anxious")
        self.assertGreaterEqual(emotion.distress, 0.6)

    def test_critical_overrides(self):
        emotion = infer_emotion_from_tokens(["fallen", "collapse", "emergency"])

        self.assertEqual(emotion.emotion, "Critical distress")
        self.assertEqual(emotion.distress, 0.9)
        self.assertGreaterEqual(emotion.pain_level, 0.7)
        self.assertEqual(emotion.confidence, 0.9)

    def test_critical_keeps_higher_pain(self):
        emotion = infer_emotion_from_tokens(["critical", "pain"])
        self.assertEqual(emotion.pain_level, 0.75)

    def test_neutral_tokens(self):
        emotion = infer_emotion_from_tokens(["open_palm"])

        self.assertEqual(emotion.emotion, "neutral")
        self.assertEqual(emotion.pain_level, 0.0)
        self.assertEqual(emotion.distress, 0.0)

    def test_case_insensitive(self):
        self.assertEqual(infer_emotion_from_tokens(["PAIN"]).emotion, "pain")

    def test_from_gesture_state(self):
        state = GestureState(gesture_tokens=("breathing",))
        self.assertEqual(infer_emotion_from_gestures(state).emotion, "anxious")


class TestEmotionFusion(unittest.TestCase):
    """Test freshness-based choice between service and fallback."""

    def setUp(self):
        self.fusion = EmotionFusion(freshness_ms=2000)
        self.state = GestureState(gesture_tokens=("closed_fist", "pain"))

    def test_fresh_reading_used(self):
        self.fusion.update(make_result(timestamp=9.0, distress=0.3))
        emotion = self.fusion.fuse(self.state, t_now=10.0)

        self.assertEqual(emotion.distress, 0.3)
        self.assertEqual(emotion.emotion, "Neutral")
        self.assertEqual(self.fusion.last_source, "service")

    def test_stale_reading_falls_back(self):
        self.fusion.update(make_result(timestamp=7.0, distress=0.3))
        emotion = self.fusion.fuse(self.state, t_now=10.0)

        self.assertEqual(emotion.emotion, "pain")
        self.assertEqual(emotion.pain_level, 0.75)
        self.assertEqual(self.fusion.last_source, "gesture")

    def test_no_reading_no_gesture(self):
        self.assertIsNone(self.fusion.fuse(None, t_now=10.0))
        self.assertIsNone(self.fusion.last_source)

    def test_fresh_reading_without_gesture(self):
        self.fusion.update(make_result(timestamp=9.5))
        self.assertIsNotNone(self.fusion.fuse(None, t_now=10.0))

    def test_anxiety_category_maps_to_anxious(self):
        self.fusion.update(make_result(timestamp=9.5, distress=0.8, category="anxiety",
                                       label="Distressed"))
        self.assertEqual(self.fusion.fuse(None, t_now=10.0).emotion, "anxious")

    def test_newer_reading_replaces_older(self):
        self.fusion.update(make_result(timestamp=9.0, distress=0.3))
        self.fusion.update(make_result(timestamp=9.5, distress=0.7))
        self.assertEqual(self.fusion.fuse(None, t_now=10.0).distress, 0.7)

    def test_clear(self):
        self.fusion.update(make_result(timestamp=9.5))
        self.fusion.clear()

        self.assertFalse(self.fusion.is_fresh(10.0))
        self.assertEqual(self.fusion.fuse(self.state, t_now=10.0).emotion, "pain")

    def test_injected_clock(self):
        fusion = EmotionFusion(freshness_ms=2000, clock=lambda: 20.0)
        fusion.update(make_result(timestamp=19.0))
        fusion.fuse(None)
        self.assertEqual(fusion.last_source, "service")


if __name__ == '__main__':
    unittest.main()
