"""
Session context: everything one monitoring/analysis run owns
Created on entry to Scanning/Analyzing, dropped on return to Idle
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from aim_trainer_ai.analysis import FrameAnalyzer, HitCorrelator, PositionHistory
from aim_trainer_ai.config import Config
from aim_trainer_ai.core.error_handler import ErrorHandler
from aim_trainer_ai.learning.training_sink import Trainer, TrainingSampleSink
from aim_trainer_ai.perception.template_matcher import TemplateMatcher
from aim_trainer_ai.utils.time_utils import Timer

logger = logging.getLogger(__name__)


class SessionMode(Enum):
    FILE = "file"
    LIVE = "live"


@dataclass(frozen=True)
class SessionSummary:
    mode: SessionMode
    game: str
    target: str
    frames_analyzed: int
    samples: int
    hits: int
    capture_timeouts: int
    duration: float
    outcome: str


class Session:
    """
    Owns the cancellation event, the sample sink, the error handler and,
    while analyzing, the position history and frame analyzer.
    """

    def __init__(self, mode: SessionMode, game: str, target: str,
                 trainer: Trainer, cfg: Config):
        self.mode = mode
        self.game = game
        self.target = target
        self.trainer = trainer
        self.config = cfg

        self.cancel_event = threading.Event()
        self.sink = TrainingSampleSink()
        self.error_handler = ErrorHandler(timeout_warn_streak=cfg.CAPTURE_TIMEOUT_WARN_STREAK)
        self.timer = Timer().start()
        self.thread: Optional[threading.Thread] = None
        self.owner: Optional[threading.Thread] = None

        self.history: Optional[PositionHistory] = None
        self.analyzer: Optional[FrameAnalyzer] = None
        self.frames_analyzed = 0
        self.handoff_failures = 0
        self.outcome = "running"

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self):
        self.cancel_event.set()

    def begin_analysis(self, matcher: TemplateMatcher) -> FrameAnalyzer:
        """
        Fresh history and analyzer for one pass over a frame source.
        Frame indices restart with every source, so history does not carry over.
        """
        self.end_analysis()
        self.history = PositionHistory()
        correlator = HitCorrelator(
            self.history,
            time_window=self.config.TIME_WINDOW,
            distance_threshold=self.config.DISTANCE_THRESHOLD,
            require_enemy_outline=self.config.REQUIRE_ENEMY_OUTLINE,
        )
        self.analyzer = FrameAnalyzer(matcher, self.history, correlator)
        return self.analyzer

    def end_analysis(self):
        if self.analyzer is not None:
            self.frames_analyzed += self.analyzer.frames_analyzed
        self.analyzer = None
        self.history = None

    def hand_off(self) -> int:
        """
        Pass samples not yet handed off to the trainer

        Returns:
            Number of samples handed off
        """
        batch = self.sink.drain()
        if not batch:
            return 0
        try:
            self.trainer(batch)
        except Exception as e:
            # a failing trainer does not end the session
            self.handoff_failures += 1
            logger.error(f"Trainer rejected {len(batch)} samples: {e}", exc_info=True)
            return 0
        logger.debug(f"Handed {len(batch)} samples to trainer")
        return len(batch)

    def finish(self, outcome: str):
        self.end_analysis()
        self.outcome = outcome
        self.timer.stop()

    def summary(self) -> SessionSummary:
        # may be called from another thread while a pass ends
        analyzer = self.analyzer
        frames = self.frames_analyzed
        if analyzer is not None:
            frames += analyzer.frames_analyzed
        return SessionSummary(
            mode=self.mode,
            game=self.game,
            target=self.target,
            frames_analyzed=frames,
            samples=self.sink.total,
            hits=self.sink.hits,
            capture_timeouts=self.error_handler.capture_timeouts,
            duration=self.timer.elapsed(),
            outcome=self.outcome,
        )
