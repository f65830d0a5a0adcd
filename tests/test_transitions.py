"""Tests for core/transitions.py."""

import sys
import unittest
from datetime import datetime
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from blocks.model import TimeBlock
from core.transitions import TransitionDetector

A = TimeBlock("a", "A", 9, 0, 10, 0)
B = TimeBlock("b", "B", 10, 0, 11, 0)
NOW = datetime(2026, 10, 19, 10, 0, 0)


class TestTransitionDetector(unittest.TestCase):

    def test_first_observation_only_primes(self):
        """The first observation primes without a transition."""
        detector = TransitionDetector()
        self.assertFalse(detector.primed)
        self.assertIsNone(detector.observe(A, NOW))
        self.assertTrue(detector.primed)
        self.assertEqual(detector.last_block_id, "a")

    def test_same_block_is_not_a_transition(self):
        """Staying in a block is not a transition."""
        detector = TransitionDetector()
        detector.observe(A, NOW)
        self.assertIsNone(detector.observe(A, NOW))

    def test_change_emits_transition(self):
        """A block change emits one transition."""
        detector = TransitionDetector()
        detector.observe(A, NOW)
        transition = detector.observe(B, NOW)
        self.assertIsNotNone(transition)
        self.assertEqual(transition.previous_block_id, "a")
        self.assertEqual(transition.block, B)
        self.assertEqual(transition.instant, NOW)
        # Reported once
        self.assertIsNone(detector.observe(B, NOW))

    def test_gap_in_and_out(self):
        """Entering and leaving a gap are transitions."""
        detector = TransitionDetector()
        detector.observe(A, NOW)
        into_gap = detector.observe(None, NOW)
        self.assertIsNone(into_gap.block)
        out_of_gap = detector.observe(B, NOW)
        self.assertIsNone(out_of_gap.previous_block_id)
        self.assertEqual(out_of_gap.block, B)

    def test_priming_in_gap(self):
        """Priming inside a gap still reports the first block entered."""
        detector = TransitionDetector()
        self.assertIsNone(detector.observe(None, NOW))
        self.assertEqual(detector.observe(A, NOW).block, A)

    def test_reset_primes_again(self):
        """Reset makes the next observation prime again."""
        detector = TransitionDetector()
        detector.observe(A, NOW)
        detector.reset()
        self.assertIsNone(detector.observe(B, NOW))


if __name__ == "__main__":
    unittest.main()
