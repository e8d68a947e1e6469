"""
Hit Correlator: decides whether a hit marker belongs to the player's aim
"""
import math
from typing import Optional

from aim_trainer_ai.analysis.position_history import Position, PositionHistory
from aim_trainer_ai.perception.template_matcher import DetectionResult


TIME_WINDOW = 10  # frames
DISTANCE_THRESHOLD = 50  # pixels


def distance(a: Position, b: Position) -> float:
    """Euclidean distance between two pixel positions"""
    return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2)


class HitCorrelator:
    """
    A frame is labelled as a hit when a hit marker is visible, an enemy outline
    is visible (unless require_enemy_outline is off) and the crosshair was within
    distance_threshold pixels of the marker during the last time_window frames.
    Reads the history, never writes it.
    """

    def __init__(
        self,
        history: PositionHistory,
        time_window: int = TIME_WINDOW,
        distance_threshold: float = DISTANCE_THRESHOLD,
        require_enemy_outline: bool = True
    ):
        if time_window < 0:
            raise ValueError(f"time_window must be >= 0, got {time_window}")
        if distance_threshold < 0:
            raise ValueError(f"distance_threshold must be >= 0, got {distance_threshold}")
        self.history = history
        self.time_window = time_window
        self.distance_threshold = distance_threshold
        self.require_enemy_outline = require_enemy_outline

    def correlate(
        self,
        frame_index: int,
        crosshair_detection: Optional[DetectionResult],
        hit_detection: DetectionResult,
        enemy_detected: bool
    ) -> bool:
        """
        Hit label for one frame

        Args:
            frame_index: Index of the frame being labelled
            crosshair_detection: This frame's crosshair match (may already be in history)
            hit_detection: This frame's hit-marker match
            enemy_detected: Whether any enemy outline variant matched this frame

        Returns:
            True if the hit is attributed to the player's aim
        """
        if not hit_detection.found:
            return False
        if self.require_enemy_outline and not enemy_detected:
            return False

        hit_position = hit_detection.position
        candidates = self.history.query(frame_index, self.time_window)
        if crosshair_detection is not None and crosshair_detection.found:
            candidates.append(crosshair_detection.position)

        for position in candidates:
            if distance(position, hit_position) <= self.distance_threshold:
                return True
        return False
