"""
Time Utilities
Provides duration formatting, fixed-cadence pacing and FPS measurement
"""
import time
from typing import Optional
from collections import deque


def format_duration(seconds: float, precision: int = 2) -> str:
    """
    Format duration in human-readable format

    Args:
        seconds: Duration in seconds
        precision: Decimal precision for seconds

    Returns:
        Formatted string (e.g., "1h 23m 45.67s")
    """
    if seconds < 0:
        return "0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs:.{precision}f}s")

    return " ".join(parts)


class Timer:
    """
    Times a code block (as a context manager) or an open-ended span
    between start() and stop()
    """

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self) -> "Timer":
        self.start_time = time.monotonic()
        self.end_time = None
        return self

    def stop(self) -> float:
        """
        Stop timing

        Returns:
            Elapsed time in seconds
        """
        if self.start_time is not None and self.end_time is None:
            self.end_time = time.monotonic()
        return self.elapsed()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    def elapsed(self) -> float:
        """
        Get elapsed time

        Returns:
            Elapsed time in seconds
        """
        if self.start_time is None:
            return 0.0

        end = self.end_time if self.end_time else time.monotonic()
        return end - self.start_time


class CadenceTimer:
    """
    Paces a loop to a fixed interval.
    Deadlines are kept on a fixed grid so slow iterations don't accumulate drift.
    """

    def __init__(self, interval: float):
        """
        Args:
            interval: Target time between ticks (seconds)
        """
        self.interval = interval
        self.next_tick: Optional[float] = None

    def time_until_next(self) -> float:
        """Seconds until the next tick is due (0 if overdue or never ticked)"""
        if self.next_tick is None:
            return 0.0
        return max(0.0, self.next_tick - time.monotonic())

    def tick(self) -> float:
        """
        Mark a tick and schedule the next one

        Returns:
            Deadline of the following tick (monotonic clock)
        """
        now = time.monotonic()
        if self.next_tick is None or now - self.next_tick > self.interval:
            # First tick or fell more than one interval behind: resync
            self.next_tick = now + self.interval
        else:
            self.next_tick += self.interval
        return self.next_tick

    def reset(self):
        """Forget the schedule"""
        self.next_tick = None


class FPSCounter:
    """
    Calculate FPS from frame timestamps
    """

    def __init__(self, window_size: int = 60):
        """
        Args:
            window_size: Number of frames to average over
        """
        self.window_size = window_size
        self.frame_times = deque(maxlen=window_size)

    def tick(self) -> Optional[float]:
        """
        Record a frame and return current FPS

        Returns:
            Current FPS, or None if not enough frames
        """
        self.frame_times.append(time.monotonic())
        return self.get_fps()

    def get_fps(self) -> Optional[float]:
        """
        Get current FPS without recording a frame

        Returns:
            Current FPS, or None if not enough frames
        """
        if len(self.frame_times) < 2:
            return None

        time_span = self.frame_times[-1] - self.frame_times[0]
        if time_span > 0:
            return (len(self.frame_times) - 1) / time_span

        return None

    def reset(self):
        """Reset FPS counter"""
        self.frame_times.clear()
