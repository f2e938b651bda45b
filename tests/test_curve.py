"""
Tests for curve evaluation, arc length and distance lookup.
"""

import math
import unittest

from robospline.curve import CurveModel


class TestEvaluation(unittest.TestCase):
    """Tests for Catmull-Rom style Bezier evaluation."""

    def test_two_points_are_a_straight_line(self):
        """Two points evaluate along the straight line."""
        curve = CurveModel([(0.0, 0.0), (10.0, 0.0)])
        self.assertTrue(curve.is_linear)
        self.assertEqual(curve.get_point_at(0, 0.0), (0.0, 0.0))
        self.assertEqual(curve.get_point_at(0, 1.0), (10.0, 0.0))
        x, y = curve.get_point_at(0, 0.25)
        self.assertAlmostEqual(x, 2.5)
        self.assertAlmostEqual(y, 0.0)

    def test_curve_interpolates_every_point(self):
        """Segments start and end on the path points."""
        pts = [(0.0, 0.0), (10.0, 20.0), (30.0, -5.0), (45.0, 10.0)]
        curve = CurveModel(pts, smoothing=0.8)
        for i in range(curve.segment_count):
            self.assertEqual(curve.get_point_at(i, 0.0), pts[i])
            self.assertEqual(curve.get_point_at(i, 1.0), pts[i + 1])

    def test_control_points_follow_neighbours(self):
        """Control points are offset along the neighbour tangent."""
        curve = CurveModel([(0.0, 0.0), (50.0, 0.0), (100.0, 0.0)], smoothing=0.5)
        p0, c1, c2, p3 = curve.control_points(0)
        self.assertEqual(p0, (0.0, 0.0))
        self.assertAlmostEqual(c1[0], 5.0)
        self.assertAlmostEqual(c2[0], 40.0)
        self.assertEqual(p3, (50.0, 0.0))

    def test_zero_smoothing_collapses_controls(self):
        """Zero smoothing puts controls on the end points."""
        curve = CurveModel([(0.0, 0.0), (10.0, 10.0), (20.0, 0.0)], smoothing=0.0)
        p0, c1, c2, p3 = curve.control_points(1)
        self.assertEqual(c1, p0)
        self.assertEqual(c2, p3)

    def test_bad_segment_raises(self):
        """Out of range segment indices raise."""
        curve = CurveModel([(0.0, 0.0), (1.0, 1.0)])
        with self.assertRaises(IndexError):
            curve.get_point_at(1, 0.5)


class TestArcLength(unittest.TestCase):
    """Tests for arc length estimation."""

    def test_straight_length(self):
        """A straight segment has its chord length."""
        curve = CurveModel([(0.0, 0.0), (30.0, 40.0)])
        self.assertAlmostEqual(curve.calculate_spline_length(), 50.0, places=9)

    def test_evenly_spaced_collinear_points(self):
        """Collinear points sum to the total distance."""
        curve = CurveModel([(0.0, 0.0), (50.0, 0.0), (100.0, 0.0)])
        self.assertAlmostEqual(curve.calculate_spline_length(), 100.0, places=6)

    def test_curve_is_never_shorter_than_polyline(self):
        """The curve is at least as long as the polyline."""
        curve = CurveModel([(0.0, 0.0), (10.0, 10.0), (20.0, 0.0), (30.0, 10.0)], smoothing=1.0)
        self.assertGreaterEqual(curve.calculate_spline_length(), curve.straight_length())

    def test_degenerate_paths_have_zero_length(self):
        """Empty and single point paths have zero length."""
        self.assertEqual(CurveModel([]).calculate_spline_length(), 0.0)
        self.assertEqual(CurveModel([(3.0, 4.0)]).calculate_spline_length(), 0.0)

    def test_total_is_sum_of_segments(self):
        """Total length is the sum of segment lengths."""
        curve = CurveModel([(0.0, 0.0), (10.0, 5.0), (20.0, -5.0)])
        self.assertAlmostEqual(curve.total_length(), sum(curve.segment_lengths()))


class TestPositionAtDistance(unittest.TestCase):
    """Tests for locating a point by travelled distance."""

    def setUp(self):
        self.curve = CurveModel([(0.0, 0.0), (10.0, 0.0)])

    def test_middle(self):
        """Half the length lands in the middle."""
        pos = self.curve.get_position_at_distance(5.0)
        self.assertEqual(pos.segment_index, 0)
        self.assertAlmostEqual(pos.x, 5.0)
        self.assertAlmostEqual(pos.local_parameter, 0.5)

    def test_negative_distance_is_start(self):
        """Negative distances clamp to the start."""
        pos = self.curve.get_position_at_distance(-3.0)
        self.assertEqual((pos.x, pos.y, pos.segment_index, pos.local_parameter), (0.0, 0.0, 0, 0.0))

    def test_past_the_end_is_last_point(self):
        """Distances past the end clamp to the last point."""
        pos = self.curve.get_position_at_distance(1000.0)
        self.assertEqual(pos.xy, (10.0, 0.0))
        self.assertEqual(pos.local_parameter, 1.0)

    def test_exact_total_length_is_last_point(self):
        """The total length lands on the last point."""
        curve = CurveModel([(0.0, 0.0), (10.0, 3.0), (20.0, 0.0)])
        pos = curve.get_position_at_distance(curve.calculate_spline_length())
        self.assertEqual(pos.xy, (20.0, 0.0))
        self.assertEqual(pos.segment_index, 1)

    def test_empty_and_single_point(self):
        """Empty and single point curves are handled."""
        self.assertIsNone(CurveModel([]).get_position_at_distance(1.0))
        pos = CurveModel([(4.0, 2.0)]).get_position_at_distance(1.0)
        self.assertEqual(pos.xy, (4.0, 2.0))

    def test_second_segment(self):
        """Distances past the first segment move into the second."""
        curve = CurveModel([(0.0, 0.0), (50.0, 0.0), (100.0, 0.0)])
        first = curve.segment_lengths()[0]
        pos = curve.get_position_at_distance(first + 1.0)
        self.assertEqual(pos.segment_index, 1)
        self.assertTrue(math.isfinite(pos.x))
        self.assertGreater(pos.x, 50.0)


if __name__ == "__main__":
    unittest.main()
