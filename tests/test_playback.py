"""
Tests for time-parameterised playback driven by a manual clock and frame host.
"""

import unittest

from robospline.config import ValidationError
from robospline.curve import CurveModel
from robospline.playback import (
    ManualClock,
    ManualFrameHost,
    PlaybackScheduler,
    segment_times_ms,
    total_time_ms,
)


class PlaybackTestCase(unittest.TestCase):

    def setUp(self):
        self.clock = ManualClock()
        self.host = ManualFrameHost()
        self.drawn = []
        self.cleared = []
        self.scheduler = PlaybackScheduler(
            clock=self.clock,
            host=self.host,
            draw_cb=lambda curve, position: self.drawn.append(position),
            clear_cb=lambda: self.cleared.append(True),
        )
        self.scheduler.set_path(CurveModel([(0.0, 0.0), (100.0, 0.0)]), [10.0, 10.0])

    def frame(self, delta_ms):
        self.clock.advance(delta_ms)
        return self.host.run_pending()


class TestTiming(unittest.TestCase):
    """Tests for animation time from velocities."""

    def test_total_time_uses_start_point_velocity(self):
        """Each segment is timed with its start point velocity."""
        curve = CurveModel([(0.0, 0.0), (100.0, 0.0)])
        self.assertAlmostEqual(total_time_ms(curve, [10.0, 999.0]), 10000.0, places=6)

    def test_each_segment_uses_its_own_velocity(self):
        """Segments use their own velocities."""
        curve = CurveModel([(0.0, 0.0), (10.0, 0.0), (20.0, 0.0)])
        times = segment_times_ms(curve, [10.0, 20.0, 5.0])
        self.assertAlmostEqual(times[0], 1000.0, places=6)
        self.assertAlmostEqual(times[1], 500.0, places=6)

    def test_non_positive_velocity_falls_back_to_default(self):
        """Non-positive velocities use the default."""
        curve = CurveModel([(0.0, 0.0), (30.0, 0.0)])
        self.assertAlmostEqual(total_time_ms(curve, [0.0, 0.0]), 1000.0, places=6)


class TestTransport(PlaybackTestCase):
    """Tests for play, pause and stop."""

    def test_start_requires_two_points(self):
        """Playback needs at least two points."""
        self.scheduler.set_path(CurveModel([(0.0, 0.0)]), [30.0])
        self.assertFalse(self.scheduler.start())
        self.assertEqual(self.host.pending, 0)

    def test_start_schedules_a_frame(self):
        """Starting requests one animation frame."""
        self.assertTrue(self.scheduler.start())
        self.assertEqual(self.scheduler.status, "playing")
        self.assertEqual(self.host.pending, 1)
        self.assertAlmostEqual(self.scheduler.state.total_animation_time, 10000.0, places=6)
        self.assertEqual(self.drawn[-1].xy, (0.0, 0.0))

    def test_frames_advance_position(self):
        """Each frame moves the marker forward."""
        self.scheduler.start()
        self.assertEqual(self.frame(2500), 1)
        self.assertAlmostEqual(self.scheduler.position.x, 25.0, places=6)
        self.assertEqual(self.host.pending, 1)

    def test_pause_and_resume_ignore_paused_time(self):
        """Time spent paused is not counted."""
        self.scheduler.start()
        self.frame(2500)
        self.scheduler.pause()
        self.assertEqual(self.scheduler.status, "paused")
        self.assertEqual(self.host.pending, 0)
        self.clock.advance(10000)
        self.assertTrue(self.scheduler.resume())
        self.frame(2500)
        self.assertAlmostEqual(self.scheduler.state.virtual_elapsed_time, 5000.0, places=6)
        self.assertAlmostEqual(self.scheduler.position.x, 50.0, places=6)

    def test_reaching_the_end_stops_animating(self):
        """Playback stops at the end with no frame pending."""
        self.scheduler.start()
        self.frame(20000)
        self.assertFalse(self.scheduler.state.is_animating)
        self.assertEqual(self.scheduler.state.progress, 1.0)
        self.assertEqual(self.scheduler.position.xy, (100.0, 0.0))
        self.assertEqual(self.host.pending, 0)

    def test_stop_resets_and_clears(self):
        """Stop rewinds and clears the overlay."""
        self.scheduler.start()
        self.frame(1000)
        self.scheduler.stop()
        self.assertEqual(self.scheduler.status, "stopped")
        self.assertEqual(self.scheduler.state.virtual_elapsed_time, 0.0)
        self.assertIsNone(self.scheduler.position)
        self.assertEqual(self.host.pending, 0)
        self.assertEqual(self.cleared, [True])

    def test_speed_scales_virtual_time(self):
        """Playback speed scales virtual time."""
        self.scheduler.set_speed(2.0)
        self.scheduler.start()
        self.frame(1000)
        self.assertAlmostEqual(self.scheduler.state.virtual_elapsed_time, 2000.0, places=6)

    def test_invalid_speed(self):
        """Non-positive speeds are rejected."""
        with self.assertRaises(ValidationError):
            self.scheduler.set_speed(0)
        with self.assertRaises(ValidationError):
            self.scheduler.set_speed("fast")

    def test_advance_without_host(self):
        """advance drives playback without a frame host."""
        self.scheduler.start()
        self.scheduler.advance(4000)
        self.assertAlmostEqual(self.scheduler.position.x, 40.0, places=6)


class TestSeek(PlaybackTestCase):
    """Tests for seeking by progress."""

    def test_seek_endpoints(self):
        """Progress 0 and 1 land on the end points."""
        self.assertEqual(self.scheduler.seek(0.0).xy, (0.0, 0.0))
        self.assertEqual(self.scheduler.seek(1.0).xy, (100.0, 0.0))

    def test_seek_middle(self):
        """Progress 0.5 lands in the middle."""
        position = self.scheduler.seek(0.5)
        self.assertAlmostEqual(position.x, 50.0, places=6)
        self.assertAlmostEqual(self.scheduler.state.progress, 0.5)

    def test_seek_clamps(self):
        """Progress outside [0, 1] is clamped."""
        self.scheduler.seek(3.0)
        self.assertEqual(self.scheduler.state.progress, 1.0)
        self.scheduler.seek(-1.0)
        self.assertEqual(self.scheduler.state.progress, 0.0)

    def test_seek_while_stopped_draws_without_scheduling(self):
        """Seeking while stopped draws one frame only."""
        self.scheduler.seek(0.25)
        self.assertEqual(len(self.drawn), 1)
        self.assertEqual(self.host.pending, 0)

    def test_path_edit_keeps_elapsed_in_range(self):
        """Shortening the path keeps elapsed time in range."""
        self.scheduler.seek(1.0)
        self.scheduler.set_path(CurveModel([(0.0, 0.0), (10.0, 0.0)]), [10.0, 10.0])
        self.assertLessEqual(
            self.scheduler.state.virtual_elapsed_time, self.scheduler.state.total_animation_time
        )


if __name__ == "__main__":
    unittest.main()
