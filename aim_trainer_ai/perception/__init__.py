"""
Perception components: frame acquisition (video files, live screen capture) and template matching
"""
from aim_trainer_ai.perception.frame_source import (
    Frame, FrameSource, VideoFileSource, ScreenCaptureSource, CaptureTarget, create_source
)
from aim_trainer_ai.perception.template_matcher import (
    TemplateMatcher, Found, NotFound, DetectionResult, to_grayscale,
    CATEGORIES, ENEMY_OUTLINE_CATEGORIES, CROSSHAIRS, HIT_MARKERS,
)

__all__ = [
    'Frame',
    'FrameSource',
    'VideoFileSource',
    'ScreenCaptureSource',
    'CaptureTarget',
    'create_source',
    'TemplateMatcher',
    'Found',
    'NotFound',
    'DetectionResult',
    'to_grayscale',
    'CATEGORIES',
    'ENEMY_OUTLINE_CATEGORIES',
    'CROSSHAIRS',
    'HIT_MARKERS',
]
