"""
Test cases for posture classification and posture-derived emergency tokens.
"""
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sign_to_health.emergency import fall_emergency_tokens
from sign_to_health.posture import NEUTRAL_BODY_STATE, analyze_body_state
from tests.synthetic import (
    crouching_pose,
    fallen_pose,
    make_pose,
    sitting_pose,
    standing_pose,
    tilted_pose,
)


class TestPostureClassification(unittest.TestCase):
    """Test the posture priority order."""

    def test_standing(self):
        state = analyze_body_state(standing_pose())
        self.assertTrue(state.is_standing)
        self.assertEqual(state.primary, "standing")
        self.assertAlmostEqual(state.body_angle, 0.0)

    def test_sitting(self):
        state = analyze_body_state(sitting_pose())
        self.assertTrue(state.is_sitting)
        self.assertFalse(state.is_standing)

    def test_crouching(self):
        state = analyze_body_state(crouching_pose())
        self.assertTrue(state.is_crouching)
        self.assertFalse(state.is_fallen)

    def test_fallen_by_angle(self):
        state = analyze_body_state(tilted_pose(65.0))
        self.assertTrue(state.is_fallen)
        self.assertAlmostEqual(state.body_angle, 65.0, places=3)

    def test_fallen_from_flat_list(self):
        flat = []
        for lm in fallen_pose():
            flat.extend([lm.x, lm.y, lm.z])

        state = analyze_body_state(flat)
        self.assertTrue(state.is_fallen)
        self.assertEqual(fall_emergency_tokens(state), fall_emergency_tokens(analyze_body_state(fallen_pose())))

    def test_fallen_by_head_height(self):
        """Head near the bottom of the frame means fallen even when upright."""
        state = analyze_body_state(make_pose(nose=(0.5, 0.9)))
        self.assertTrue(state.is_fallen)
        self.assertAlmostEqual(state.body_angle, 0.0)

    def test_exactly_one_primary_posture(self):
        for pose in (standing_pose(), sitting_pose(), crouching_pose(), fallen_pose(),
                     tilted_pose(30.0), tilted_pose(70.0)):
            state = analyze_body_state(pose)
            flags = [state.is_standing, state.is_sitting, state.is_fallen, state.is_crouching]
            self.assertEqual(sum(flags), 1)

    def test_angle_threshold_sweep(self):
        """Angle above 60 degrees is fallen; at or below (head high) it is not."""
        for angle in (0, 15, 30, 45, 55, 59):
            self.assertFalse(analyze_body_state(tilted_pose(angle)).is_fallen, angle)
        for angle in (61, 70, 80, 89):
            self.assertTrue(analyze_body_state(tilted_pose(angle)).is_fallen, angle)

    def test_angle_ignores_lean_direction(self):
        left = analyze_body_state(make_pose(shoulder_center=(0.4, 0.3), hip_center=(0.5, 0.55)))
        right = analyze_body_state(make_pose(shoulder_center=(0.6, 0.3), hip_center=(0.5, 0.55)))
        self.assertAlmostEqual(left.body_angle, right.body_angle)

    def test_torso_and_head_positions(self):
        state = analyze_body_state(standing_pose())
        self.assertAlmostEqual(state.head_position[0], 0.5)
        self.assertAlmostEqual(state.head_position[1], 0.15)
        self.assertAlmostEqual(state.torso_center[1], 0.425)


class TestPartialPose(unittest.TestCase):
    """Missing or partial pose data gives the neutral state."""

    def test_none(self):
        self.assertEqual(analyze_body_state(None), NEUTRAL_BODY_STATE)

    def test_too_few_points(self):
        self.assertEqual(analyze_body_state(standing_pose()[:20]), NEUTRAL_BODY_STATE)
        self.assertTrue(NEUTRAL_BODY_STATE.is_standing)
        self.assertEqual(NEUTRAL_BODY_STATE.body_angle, 0.0)

    def test_garbage(self):
        self.assertEqual(analyze_body_state("not a pose"), NEUTRAL_BODY_STATE)


class TestEmergencyTokens(unittest.TestCase):
    """Test tokens derived from posture."""

    def test_fallen(self):
        tokens = fall_emergency_tokens(analyze_body_state(tilted_pose(65.0)))
        self.assertEqual(tokens, ["fallen", "collapse", "emergency"])

    def test_prone(self):
        tokens = fall_emergency_tokens(analyze_body_state(fallen_pose()))
        self.assertEqual(tokens, ["fallen", "collapse", "emergency", "prone_position", "critical"])

    def test_crouching(self):
        tokens = fall_emergency_tokens(analyze_body_state(crouching_pose()))
        self.assertEqual(tokens, ["crouching", "distress"])

    def test_upright_postures_emit_nothing(self):
        self.assertEqual(fall_emergency_tokens(analyze_body_state(standing_pose())), [])
        self.assertEqual(fall_emergency_tokens(analyze_body_state(sitting_pose())), [])
        self.assertEqual(fall_emergency_tokens(None), [])


if __name__ == '__main__':
    unittest.main()
