"""
Frame Analyzer: the per-frame pipeline shared by file and live sessions
match templates -> update history -> correlate -> TrainingSample
"""
import logging

from aim_trainer_ai.analysis.hit_correlator import HitCorrelator
from aim_trainer_ai.analysis.position_history import PositionHistory
from aim_trainer_ai.learning.training_sink import TrainingSample
from aim_trainer_ai.perception.frame_source import Frame
from aim_trainer_ai.perception.template_matcher import (
    CROSSHAIRS,
    ENEMY_OUTLINE_CATEGORIES,
    HIT_MARKERS,
    TemplateMatcher,
    to_grayscale,
)

logger = logging.getLogger(__name__)


class FrameAnalyzer:
    """Labels frames one at a time. Sole writer of the session's PositionHistory."""

    def __init__(
        self,
        matcher: TemplateMatcher,
        history: PositionHistory,
        correlator: HitCorrelator
    ):
        self.matcher = matcher
        self.history = history
        self.correlator = correlator
        self.frames_analyzed = 0

    def analyze(self, frame: Frame) -> TrainingSample:
        gray = to_grayscale(frame.image)

        crosshair = self.matcher.match(gray, CROSSHAIRS)
        hit_marker = self.matcher.match(gray, HIT_MARKERS)

        if crosshair.found:
            self.history.record(frame.index, crosshair.position)
        self.history.prune(frame.index, self.correlator.time_window)

        # Outlines only matter when a hit marker is up
        enemy_detected = False
        if hit_marker.found:
            enemy_detected = self.matcher.match_any(gray, ENEMY_OUTLINE_CATEGORIES).found

        hit = self.correlator.correlate(frame.index, crosshair, hit_marker, enemy_detected)
        if hit:
            logger.debug(f"Hit on frame {frame.index} at {hit_marker.position}")

        self.frames_analyzed += 1
        return TrainingSample(
            frame_index=frame.index,
            timestamp=frame.timestamp,
            crosshair_x=crosshair.position[0] if crosshair.found else None,
            crosshair_y=crosshair.position[1] if crosshair.found else None,
            hit=hit,
            enemy_detected=enemy_detected,
        )
