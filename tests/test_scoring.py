"""
Test cases for scoring raw facial-expression readings.
"""
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sign_to_health.scoring import (
    anger_spectrum,
    calculate_distress_level,
    calculate_pain_level,
    medical_category,
    process_emotions,
    stress_spectrum,
    to_scores,
    top_emotions,
)


def scores(**named):
    return to_scores([{"name": name.replace("_", " "), "score": value}
                      for name, value in named.items()])


class TestLevels(unittest.TestCase):

    def test_pain_level_weights(self):
        level = calculate_pain_level(scores(Pain=1.0, Distress=0.5, Fear=0.5))
        self.assertAlmostEqual(level, 4.0 / 7)

    def test_empathic_pain(self):
        level = calculate_pain_level(scores(Empathic_Pain=0.7))
        self.assertAlmostEqual(level, 0.2)

    def test_distress_level_weights(self):
        level = calculate_distress_level(scores(Anxiety=0.9, Distress=0.9, Fear=0.6))
        self.assertAlmostEqual(level, 0.6)

    def test_levels_capped(self):
        maxed = scores(Pain=1.0, Empathic_Pain=1.0, Distress=1.0, Fear=1.0, Anxiety=1.0,
                       Sadness=1.0, Horror=1.0)
        self.assertLessEqual(calculate_pain_level(maxed), 1.0)
        self.assertLessEqual(calculate_distress_level(maxed), 1.0)

    def test_missing_names_count_as_zero(self):
        self.assertEqual(calculate_pain_level([]), 0.0)
        self.assertEqual(calculate_distress_level(scores(Joy=0.9)), 0.0)

    def test_first_occurrence_wins(self):
        raw = to_scores([{"name": "Pain", "score": 0.7}, {"name": "Pain", "score": 0.0}])
        self.assertAlmostEqual(calculate_pain_level(raw), 0.3)


class TestSpectra(unittest.TestCase):

    def test_anger_below_floor(self):
        self.assertIsNone(anger_spectrum(scores(Annoyance=0.3)))

    def test_anger_bottom_label(self):
        label, intensity = anger_spectrum(scores(Annoyance=0.9))
        self.assertEqual(label, "Agitated")
        self.assertAlmostEqual(intensity, 0.15)

    def test_anger_ladder(self):
        label, _ = anger_spectrum(scores(Anger=1.0, Annoyance=0.8, Contempt=0.4))
        self.assertEqual(label, "Irate")

    def test_stress_ladder(self):
        label, intensity = stress_spectrum(scores(Anxiety=0.6, Fear=0.3, Tiredness=1.0))
        self.assertEqual(label, "Depleted")
        self.assertAlmostEqual(intensity, 2.5 / 6)

    def test_stress_below_floor(self):
        self.assertIsNone(stress_spectrum(scores(Tiredness=0.3)))


class TestMedicalCategory(unittest.TestCase):
    """Test category priority."""

    def test_pain(self):
        category, confidence, label = medical_category(scores(Pain=1.0, Distress=0.5, Fear=0.5))
        self.assertEqual((category, label), ("pain", "In pain"))
        self.assertAlmostEqual(confidence, 4.0 / 7)

    def test_anxiety(self):
        category, _, label = medical_category(scores(Anxiety=0.9, Distress=0.9, Fear=0.6))
        self.assertEqual((category, label), ("anxiety", "Distressed"))

    def test_confusion(self):
        category, confidence, label = medical_category(scores(Confusion=0.6))
        self.assertEqual((category, label), ("confusion", "Confused"))
        self.assertEqual(confidence, 0.6)

    def test_anger(self):
        category, _, label = medical_category(scores(Anger=1.0, Annoyance=0.8, Contempt=0.4))
        self.assertEqual((category, label), ("anger", "Irate"))

    def test_stress(self):
        category, _, label = medical_category(scores(Anxiety=0.6, Fear=0.3, Tiredness=1.0))
        self.assertEqual((category, label), ("stress", "Depleted"))

    def test_positive_content(self):
        category, confidence, label = medical_category(scores(Joy=0.8, Calmness=0.6))
        self.assertEqual((category, label), ("positive", "Content"))
        self.assertEqual(confidence, 0.8)

    def test_positive_calm(self):
        category, _, label = medical_category(scores(Calmness=0.7))
        self.assertEqual((category, label), ("positive", "Calm"))

    def test_neutral(self):
        self.assertEqual(medical_category(scores(Boredom=0.3)), ("neutral", 0.5, "Neutral"))


class TestProcessEmotions(unittest.TestCase):

    def test_no_faces(self):
        self.assertIsNone(process_emotions([], timestamp=1.0))

    def test_face_without_scores(self):
        self.assertIsNone(process_emotions([{"emotions": []}], timestamp=1.0))

    def test_face_must_be_mapping(self):
        with self.assertRaises(ValueError):
            process_emotions(["not-a-face"], timestamp=1.0)

    def test_bad_rows_dropped(self):
        raw = [{"name": "Joy"}, {"name": "Calmness", "score": "high"}, {"name": "Fear", "score": 0.2}]
        self.assertEqual([s.name for s in to_scores(raw)], ["Fear"])

    def test_first_face_only(self):
        predictions = [
            {"emotions": [{"name": "Calmness", "score": 0.7}]},
            {"emotions": [{"name": "Pain", "score": 1.0}]},
        ]
        result = process_emotions(predictions, timestamp=3.5)

        self.assertEqual(result.category, "positive")
        self.assertEqual(result.pain_level, 0.0)
        self.assertEqual(result.timestamp, 3.5)
        self.assertEqual(result.source, "service")

    def test_full_result(self):
        raw = [
            {"name": "Anxiety", "score": 0.9},
            {"name": "Distress", "score": 0.9},
            {"name": "Fear", "score": 0.6},
            {"name": "Confusion", "score": 0.2},
            {"name": "Anger", "score": 0.1},
            {"name": "Joy", "score": 0.05},
            {"name": "Calmness", "score": 0.01},
        ]
        result = process_emotions([{"emotions": raw}], timestamp=1.0)

        self.assertEqual(result.category, "anxiety")
        self.assertEqual(result.anxiety, 0.9)
        self.assertEqual(result.confusion, 0.2)
        self.assertEqual(result.anger, 0.1)
        self.assertEqual(result.primary_emotion, "Anxiety")
        self.assertEqual(len(result.top_emotions), 5)
        self.assertEqual(result.to_emotion_state().emotion, "anxious")

    def test_top_emotions_sorted(self):
        top = top_emotions(scores(Joy=0.1, Fear=0.9, Pain=0.5), n=2)
        self.assertEqual([s.name for s in top], ["Fear", "Pain"])


if __name__ == '__main__':
    unittest.main()
