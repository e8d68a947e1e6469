"""
Aim Trainer AI - training data from gameplay footage
Labels recorded or live FPS gameplay frame by frame for an aim-training model

Frames come from a recorded video or from live screen capture while the game
process runs. Each frame is template-matched for the crosshair, hit markers and
enemy outlines; a hit marker close to where the crosshair was during the last
few frames is labelled as a hit. Labelled samples are handed to a trainer.

Main Components:
    - Core: Monitoring controller (Idle / Scanning / Analyzing), sessions, errors
    - Perception: Video/screen frame sources, template matching
    - Analysis: Crosshair position history, hit correlation, per-frame pipeline
    - Learning: Training samples and their hand-off to the trainer
    - Utils: Shared utilities for logging, file I/O, timing and processes

Quick Start:
    >>> from aim_trainer_ai import MonitoringController
    >>> controller = MonitoringController()
    >>> controller.process("recordings/valorant_round1.mp4")
"""

__version__ = "1.0.0"

# core first: config.games and perception import the error taxonomy from it
from aim_trainer_ai.core import (
    MonitoringController, ControllerState, ControlResult, AimTrainerError
)
from aim_trainer_ai.config import config, Config

from aim_trainer_ai.perception import TemplateMatcher, VideoFileSource, ScreenCaptureSource
from aim_trainer_ai.analysis import FrameAnalyzer, HitCorrelator, PositionHistory
from aim_trainer_ai.learning import TrainingSample, JsonSampleExporter

__all__ = [
    # Core components
    'MonitoringController',
    'ControllerState',
    'ControlResult',
    'AimTrainerError',
    # Configuration
    'config',
    'Config',
    # Perception
    'TemplateMatcher',
    'VideoFileSource',
    'ScreenCaptureSource',
    # Analysis
    'FrameAnalyzer',
    'HitCorrelator',
    'PositionHistory',
    # Learning
    'TrainingSample',
    'JsonSampleExporter',
]
