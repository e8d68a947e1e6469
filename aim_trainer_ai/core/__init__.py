"""
Core components: error taxonomy, session context and the monitoring controller
"""
from aim_trainer_ai.core.exceptions import (
    AimTrainerError, InvalidInputError, CaptureTimeout, ResourceAcquisitionError, FrameDecodeError
)
from aim_trainer_ai.core.error_handler import ErrorHandler
from aim_trainer_ai.core.session import Session, SessionMode, SessionSummary
from aim_trainer_ai.core.controller import (
    MonitoringController, ControllerState, ControlResult, ProcessProbe, SourceFactory
)

__all__ = [
    'AimTrainerError',
    'InvalidInputError',
    'CaptureTimeout',
    'ResourceAcquisitionError',
    'FrameDecodeError',
    'ErrorHandler',
    'Session',
    'SessionMode',
    'SessionSummary',
    'MonitoringController',
    'ControllerState',
    'ControlResult',
    'ProcessProbe',
    'SourceFactory',
]
