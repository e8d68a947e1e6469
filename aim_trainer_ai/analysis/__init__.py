"""
Analysis components: crosshair position history, hit correlation and the per-frame pipeline
"""
from aim_trainer_ai.analysis.position_history import PositionHistory, PositionSample
from aim_trainer_ai.analysis.hit_correlator import (
    HitCorrelator, distance, TIME_WINDOW, DISTANCE_THRESHOLD
)
from aim_trainer_ai.analysis.frame_analyzer import FrameAnalyzer

__all__ = [
    'PositionHistory',
    'PositionSample',
    'HitCorrelator',
    'distance',
    'TIME_WINDOW',
    'DISTANCE_THRESHOLD',
    'FrameAnalyzer',
]
