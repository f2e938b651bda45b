"""Time-parameterised playback of a path.

The scheduler owns a virtual clock that advances by real elapsed time scaled
by the playback speed.  Virtual time maps to an arc-length distance by walking
the segments with ``segment_length / start_point_velocity`` per segment, and
the distance maps to a curve position through
:meth:`CurveModel.get_position_at_distance`.

The scheduler never sleeps or spawns threads.  A host drives it: either by
calling :meth:`PlaybackScheduler.advance` with frame deltas, or through a
:class:`FrameHost` that invokes :meth:`PlaybackScheduler.tick` once per frame.
"""
from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from .config import ValidationError
from .curve import CurveModel, CurvePosition
from .geometry import DEFAULT_VELOCITY

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]
DrawCallback = Callable[[CurveModel, CurvePosition], None]
ClearCallback = Callable[[], None]

MIN_SPEED = 0.05
MAX_SPEED = 2.0


# ---------------------------------------------------------------------------
# Host abstractions
# ---------------------------------------------------------------------------


class Clock(Protocol):
    def now_ms(self) -> float: ...


class MonotonicClock:
    def now_ms(self) -> float:
        return time.monotonic() * 1000.0


class ManualClock:
    """Clock advanced explicitly; used to feed synthetic deltas."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.value = float(start_ms)

    def now_ms(self) -> float:
        return self.value

    def advance(self, delta_ms: float) -> None:
        self.value += delta_ms


class FrameHost(Protocol):
    def request_frame(self, callback: FrameCallback) -> int: ...

    def cancel_frame(self, handle: int) -> None: ...


class ManualFrameHost:
    """Collects frame requests and runs them when the host decides to."""

    def __init__(self) -> None:
        self._pending: Dict[int, FrameCallback] = {}
        self._ids = itertools.count(1)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def run_pending(self) -> int:
        """Run the callbacks queued so far; new requests wait for the next call."""

        queued = list(self._pending.items())
        self._pending.clear()
        for _, callback in queued:
            callback()
        return len(queued)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


@dataclass
class PlaybackState:
    is_animating: bool = False
    is_paused: bool = False
    virtual_elapsed_time: float = 0.0  # ms
    total_animation_time: float = 0.0  # ms
    playback_speed: float = 1.0

    @property
    def progress(self) -> float:
        if self.total_animation_time <= 0:
            return 0.0
        return min(1.0, self.virtual_elapsed_time / self.total_animation_time)

    def to_dict(self) -> Dict[str, float]:
        return {
            "is_animating": self.is_animating,
            "is_paused": self.is_paused,
            "virtual_elapsed_time": self.virtual_elapsed_time,
            "total_animation_time": self.total_animation_time,
            "playback_speed": self.playback_speed,
            "progress": self.progress,
        }


def segment_times_ms(curve: CurveModel, velocities: Sequence[float]) -> List[float]:
    """Traversal time of each segment at its start point's velocity."""

    times = []
    for i, length in enumerate(curve.segment_lengths()):
        velocity = velocities[i] if i < len(velocities) else DEFAULT_VELOCITY
        if velocity <= 0:
            velocity = DEFAULT_VELOCITY
        times.append(length / velocity * 1000.0)
    return times


def total_time_ms(curve: CurveModel, velocities: Sequence[float]) -> float:
    total = 0.0
    for seg_time in segment_times_ms(curve, velocities):
        total += seg_time
    return total


def distance_at_time(curve: CurveModel, velocities: Sequence[float], elapsed_ms: float) -> float:
    lengths = curve.segment_lengths()
    accumulated_time = 0.0
    accumulated_length = 0.0
    for length, seg_time in zip(lengths, segment_times_ms(curve, velocities)):
        if elapsed_ms < accumulated_time + seg_time:
            fraction = (elapsed_ms - accumulated_time) / seg_time if seg_time > 0 else 0.0
            return accumulated_length + max(0.0, fraction) * length
        accumulated_time += seg_time
        accumulated_length += length
    return accumulated_length


class PlaybackScheduler:
    """Stopped -> Playing <-> Paused -> Stopped, with seek at any time."""

    def __init__(
        self,
        *,
        clock: Optional[Clock] = None,
        host: Optional[FrameHost] = None,
        draw_cb: Optional[DrawCallback] = None,
        clear_cb: Optional[ClearCallback] = None,
    ) -> None:
        self.clock = clock or MonotonicClock()
        self.host = host or ManualFrameHost()
        self.draw_cb = draw_cb or (lambda curve, position: None)
        self.clear_cb = clear_cb or (lambda: None)
        self.state = PlaybackState()
        self.curve = CurveModel(())
        self.velocities: List[float] = []
        self.position: Optional[CurvePosition] = None
        self._frame_handle: Optional[int] = None
        self._last_tick_ms: Optional[float] = None

    # ------------------------------------------------------------------
    @property
    def status(self) -> str:
        if self.state.is_paused:
            return "paused"
        if self.state.is_animating:
            return "playing"
        return "stopped"

    def set_path(self, curve: CurveModel, velocities: Sequence[float]) -> None:
        self.curve = curve
        self.velocities = list(velocities)
        self.invalidate()

    def invalidate(self) -> None:
        """Recompute timing after a path edit, keeping elapsed time in range."""

        self.state.total_animation_time = total_time_ms(self.curve, self.velocities)
        if self.state.virtual_elapsed_time > self.state.total_animation_time:
            self.state.virtual_elapsed_time = self.state.total_animation_time
        if self.curve.segment_count == 0 and self.state.is_animating:
            self.stop()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def start(self) -> bool:
        if self.curve.segment_count == 0:
            logger.info("Playback needs at least two points")
            return False
        if self.state.is_animating and not self.state.is_paused:
            return True
        if not self.state.is_paused:
            self.state.virtual_elapsed_time = 0.0
            self.state.total_animation_time = total_time_ms(self.curve, self.velocities)
        self.state.is_animating = True
        self.state.is_paused = False
        self._last_tick_ms = self.clock.now_ms()
        self._render()
        self._schedule()
        logger.debug(
            "Playback started at %.1f / %.1f ms", self.state.virtual_elapsed_time, self.state.total_animation_time
        )
        return True

    resume = start

    def pause(self) -> None:
        if not self.state.is_animating or self.state.is_paused:
            return
        self.state.is_paused = True
        self._cancel()

    def stop(self) -> None:
        self._cancel()
        self.state.is_animating = False
        self.state.is_paused = False
        self.state.virtual_elapsed_time = 0.0
        self.position = None
        self._last_tick_ms = None
        self.clear_cb()

    def seek(self, progress: float) -> Optional[CurvePosition]:
        try:
            fraction = float(progress)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"progress must be a number, got {progress!r}") from exc
        fraction = min(1.0, max(0.0, fraction))
        self.state.total_animation_time = total_time_ms(self.curve, self.velocities)
        self.state.virtual_elapsed_time = fraction * self.state.total_animation_time
        return self._render()

    def set_speed(self, speed: float) -> float:
        try:
            value = float(speed)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"speed must be a number, got {speed!r}") from exc
        if not value > 0:
            raise ValidationError("speed must be positive")
        self.state.playback_speed = value
        return value

    # ------------------------------------------------------------------
    # Frame handling
    # ------------------------------------------------------------------
    def tick(self) -> Optional[CurvePosition]:
        """Frame callback: advance by the wall-clock time since the last tick."""

        self._frame_handle = None
        if not self.state.is_animating or self.state.is_paused:
            return self.position
        now = self.clock.now_ms()
        delta = 0.0 if self._last_tick_ms is None else now - self._last_tick_ms
        self._last_tick_ms = now
        return self.advance(delta)

    def advance(self, real_delta_ms: float) -> Optional[CurvePosition]:
        if not self.state.is_animating or self.state.is_paused:
            return self.position
        state = self.state
        state.virtual_elapsed_time += max(0.0, real_delta_ms) * state.playback_speed
        if state.virtual_elapsed_time >= state.total_animation_time:
            state.virtual_elapsed_time = state.total_animation_time
            position = self._render()
            state.is_animating = False
            self._cancel()
            logger.debug("Playback finished after %.1f ms", state.total_animation_time)
            return position
        position = self._render()
        self._schedule()
        return position

    def _render(self) -> Optional[CurvePosition]:
        distance = distance_at_time(self.curve, self.velocities, self.state.virtual_elapsed_time)
        self.position = self.curve.get_position_at_distance(distance)
        if self.position is not None:
            self.draw_cb(self.curve, self.position)
        return self.position

    def _schedule(self) -> None:
        if self._frame_handle is None:
            self._frame_handle = self.host.request_frame(self.tick)

    def _cancel(self) -> None:
        if self._frame_handle is not None:
            self.host.cancel_frame(self._frame_handle)
            self._frame_handle = None


__all__ = [
    "Clock",
    "MonotonicClock",
    "ManualClock",
    "FrameHost",
    "ManualFrameHost",
    "PlaybackState",
    "PlaybackScheduler",
    "distance_at_time",
    "segment_times_ms",
    "total_time_ms",
    "MIN_SPEED",
    "MAX_SPEED",
]
