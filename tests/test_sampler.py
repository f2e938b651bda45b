"""
Tests for freehand and click-to-add point capture.
"""

import unittest

from robospline.geometry import DEFAULT_VELOCITY, Path
from robospline.sampler import PathSampler, SamplerState, SamplingMode


class TestDragSampling(unittest.TestCase):
    """Tests for drag sampling."""

    def setUp(self):
        self.path = Path()
        self.sampler = PathSampler(self.path, 2.0)

    def test_begin_resets_path(self):
        """Starting a drag replaces the path."""
        self.path.append((50.0, 50.0))
        self.sampler.begin((0.0, 0.0))
        self.assertEqual(self.path.xy(), [(0.0, 0.0)])
        self.assertEqual(self.sampler.state, SamplerState.DRAWING)

    def test_points_closer_than_sampling_distance_are_dropped(self):
        """Points closer than samplingDistance are dropped."""
        self.sampler.begin((0.0, 0.0))
        self.assertEqual(self.sampler.continue_to((1.0, 0.0)), [])
        self.assertEqual(self.sampler.continue_to((2.0, 0.0)), [(2.0, 0.0)])
        self.assertEqual(self.path.xy(), [(0.0, 0.0), (2.0, 0.0)])

    def test_large_gap_is_filled(self):
        """Large gaps are filled with evenly spaced points."""
        self.sampler.begin((0.0, 0.0))
        self.sampler.continue_to((2.0, 0.0))
        added = self.sampler.continue_to((12.0, 0.0))
        self.assertEqual(len(added), 5)
        self.assertEqual([x for x, _ in self.path.xy()], [0.0, 2.0, 4.0, 6.0, 8.0, 10.0, 12.0])
        self.assertEqual(self.path.velocities(), [DEFAULT_VELOCITY] * 7)

    def test_gap_of_exactly_three_steps_is_not_filled(self):
        """A gap of exactly three steps is not filled."""
        self.sampler.begin((0.0, 0.0))
        self.assertEqual(self.sampler.continue_to((6.0, 0.0)), [(6.0, 0.0)])

    def test_fill_stops_short_of_target(self):
        """Filling stops before the target point."""
        self.sampler.begin((0.0, 0.0))
        self.sampler.continue_to((7.0, 0.0))
        self.assertEqual([x for x, _ in self.path.xy()], [0.0, 2.0, 4.0, 7.0])

    def test_consecutive_points_respect_spacing(self):
        """Consecutive points keep the minimum spacing."""
        self.sampler.begin((0.0, 0.0))
        for x in (0.5, 1.3, 2.1, 2.9, 4.4, 9.0, 9.5, 30.0):
            self.sampler.continue_to((x, x / 2))
        pts = self.path.xy()
        for a, b in zip(pts, pts[1:]):
            gap = ((b[0] - a[0]) ** 2 + (b[1] - a[1]) ** 2) ** 0.5
            self.assertGreaterEqual(gap, 2.0 - 1e-9)

    def test_release_ends_drag(self):
        """Releasing ends the drag."""
        self.sampler.begin((0.0, 0.0))
        self.sampler.release()
        self.assertFalse(self.sampler.is_drawing)
        self.assertEqual(self.sampler.continue_to((10.0, 0.0)), [])
        self.sampler.begin((5.0, 5.0))
        self.assertEqual(self.path.xy(), [(5.0, 5.0)])


class TestClickSampling(unittest.TestCase):
    """Tests for click sampling."""

    def setUp(self):
        self.path = Path()
        self.sampler = PathSampler(self.path, 2.0, mode=SamplingMode.CLICK)

    def test_each_press_adds_a_point(self):
        """Every press adds one point."""
        self.sampler.begin((0.0, 0.0))
        self.sampler.release()
        self.sampler.begin((0.5, 0.0))
        self.sampler.release()
        self.sampler.begin((20.0, 0.0))
        self.assertEqual(len(self.path), 3)
        self.assertEqual([p.id for p in self.path], [1, 2, 3])

    def test_moves_are_ignored(self):
        """Pointer moves add nothing in click mode."""
        self.sampler.begin((0.0, 0.0))
        self.assertEqual(self.sampler.continue_to((30.0, 0.0)), [])
        self.assertEqual(len(self.path), 1)

    def test_end_starts_a_new_path_next_time(self):
        """Ending the path starts a new one on the next click."""
        self.sampler.begin((0.0, 0.0))
        self.sampler.begin((10.0, 0.0))
        self.sampler.end()
        self.sampler.begin((3.0, 3.0))
        self.assertEqual(self.path.xy(), [(3.0, 3.0)])


if __name__ == "__main__":
    unittest.main()
