"""
Error Handler: per-session error tracking
Decides which failures end a session and surfaces capture stalls as status
"""
import logging
import time
import traceback
from typing import Dict, Optional
from collections import deque

from aim_trainer_ai.core.exceptions import (
    CaptureTimeout,
    FrameDecodeError,
    InvalidInputError,
    ResourceAcquisitionError,
)

logger = logging.getLogger(__name__)

FATAL_ERRORS = (ResourceAcquisitionError, FrameDecodeError, InvalidInputError)


class ErrorHandler:
    """
    Records errors raised inside a session.
    Capture timeouts are transient: they only build up a streak that is reported
    once it reaches timeout_warn_streak. Acquisition/decode failures end the session,
    as does an error rate of max_errors within error_window seconds.
    """

    def __init__(self, max_errors: int = 10, error_window: float = 60.0,
                 timeout_warn_streak: int = 30):
        """
        Args:
            max_errors: Non-transient errors tolerated inside error_window
            error_window: Time window in seconds to count errors
            timeout_warn_streak: Consecutive capture timeouts before a stall is reported
        """
        self.max_errors = max_errors
        self.error_window = error_window
        self.timeout_warn_streak = timeout_warn_streak

        # Error tracking
        self.errors = deque(maxlen=1000)
        self.error_count = 0
        self.last_error_time = 0.0

        # Capture stall tracking
        self.capture_timeouts = 0
        self.timeout_streak = 0
        self.stall_reported = False

    def record_error(self, error: Exception, context: str = "unknown") -> bool:
        """
        Record an error and decide if the session should stop

        Args:
            error: The exception that occurred
            context: Where it happened (e.g. "capture", "analysis")

        Returns:
            True if the session should be stopped, False otherwise
        """
        if isinstance(error, CaptureTimeout):
            self._record_timeout()
            return False

        current_time = time.time()
        fatal = isinstance(error, FATAL_ERRORS)
        self.errors.append({
            'timestamp': current_time,
            'error_type': type(error).__name__,
            'error_message': str(error),
            'context': context,
            'traceback': traceback.format_exc(),
            'fatal': fatal,
        })
        self.error_count += 1
        self.last_error_time = current_time

        if fatal:
            logger.error(f"Session error in {context}: {error}")
            return True

        if self._should_stop_due_to_error_rate():
            logger.error(f"Too many errors ({self.max_errors} in {self.error_window}s) - stopping session")
            return True

        logger.warning(f"Recoverable error in {context}: {error}")
        return False

    def _record_timeout(self):
        self.capture_timeouts += 1
        self.timeout_streak += 1
        if self.timeout_streak >= self.timeout_warn_streak and not self.stall_reported:
            self.stall_reported = True
            logger.warning(f"Live capture stalled: {self.timeout_streak} consecutive timeouts")

    def record_success(self):
        """A frame arrived: any capture stall is over"""
        if self.stall_reported:
            logger.info(f"Live capture recovered after {self.timeout_streak} timeouts")
        self.timeout_streak = 0
        self.stall_reported = False

    @property
    def capture_stalled(self) -> bool:
        return self.timeout_streak >= self.timeout_warn_streak

    def stall_message(self) -> Optional[str]:
        if not self.capture_stalled:
            return None
        return f"Capture stalled ({self.timeout_streak} consecutive timeouts)"

    def _should_stop_due_to_error_rate(self) -> bool:
        """Check if error rate is too high"""
        if self.error_count < self.max_errors:
            return False

        current_time = time.time()
        recent_errors = [
            e for e in self.errors
            if current_time - e['timestamp'] <= self.error_window
        ]
        return len(recent_errors) >= self.max_errors

    def get_error_stats(self) -> Dict:
        """Get error statistics"""
        current_time = time.time()
        recent_errors = [
            e for e in self.errors
            if current_time - e['timestamp'] <= self.error_window
        ]

        return {
            'total_errors': len(self.errors),
            'recent_errors': len(recent_errors),
            'fatal_errors': len([e for e in recent_errors if e['fatal']]),
            'capture_timeouts': self.capture_timeouts,
            'timeout_streak': self.timeout_streak,
            'last_error_time': self.last_error_time,
        }
