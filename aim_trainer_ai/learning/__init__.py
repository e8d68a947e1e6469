"""
Learning components: training samples and their hand-off to the trainer
"""
from aim_trainer_ai.learning.training_sink import (
    TrainingSample, TrainingSampleSink, JsonSampleExporter, Trainer, load_samples
)

__all__ = ['TrainingSample', 'TrainingSampleSink', 'JsonSampleExporter', 'Trainer', 'load_samples']
