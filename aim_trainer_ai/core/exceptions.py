"""
Error taxonomy for the frame pipeline and monitoring sessions
"""


class AimTrainerError(Exception):
    """Base class for all pipeline errors"""


class InvalidInputError(AimTrainerError):
    """Nonexistent file, unsupported game or bad target. Raised before any resource is acquired."""


class CaptureTimeout(AimTrainerError):
    """Live capture produced no frame within one capture interval. Transient."""


class ResourceAcquisitionError(AimTrainerError):
    """Decoder or capture handle could not be obtained. Fatal for the session."""


class FrameDecodeError(AimTrainerError):
    """Container or capture backend failed mid-stream. Fatal for the session."""
