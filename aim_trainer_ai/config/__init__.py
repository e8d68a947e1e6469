"""
Configuration module for Aim Trainer AI
Centralized configuration for the frame pipeline and monitoring controller
"""
import os
from dataclasses import dataclass, fields

ENV_PREFIX = "AIM_TRAINER_"


@dataclass
class Config:
    # Assets - one folder per game, one sub-folder per template category
    ASSETS_PATH: str = "assets"

    # Template Matching Configuration
    TEMPLATE_MATCH_THRESHOLD: float = 0.8  # Scores at or below this are "not found"

    # Hit Correlation Configuration
    TIME_WINDOW: int = 10  # frames of crosshair history considered relevant to a hit
    DISTANCE_THRESHOLD: float = 50.0  # pixels between crosshair and hit marker
    REQUIRE_ENEMY_OUTLINE: bool = True  # Hit label also requires an enemy outline on the frame

    # Monitoring Configuration
    SCAN_INTERVAL: float = 1.0  # seconds between process checks while scanning
    STOP_JOIN_TIMEOUT: float = 5.0  # seconds stop() waits for the worker to release resources

    # Screen Capture Configuration
    CAPTURE_INTERVAL: float = 0.03  # ~30 ms live capture cadence
    CAPTURE_MONITOR: int = 1  # mss monitor index (1 = primary) / dxcam output index + 1
    CAPTURE_BACKEND: str = "auto"  # "auto", "dxcam" or "mss"
    CAPTURE_TIMEOUT_WARN_STREAK: int = 30  # consecutive timeouts before status reports a stall

    # Training Sample Hand-off
    LIVE_HANDOFF_BATCH_SIZE: int = 300  # samples per incremental hand-off in live mode
    PROGRESS_LOG_PERCENT: int = 1  # log file progress every N percent

    # Paths
    DATA_SAVE_PATH: str = "data"
    LOG_PATH: str = "logs"
    DETAILED_LOGGING: bool = False

    def __post_init__(self):
        """Validate ranges of derived settings"""
        if not 0.0 < self.TEMPLATE_MATCH_THRESHOLD <= 1.0:
            raise ValueError(f"TEMPLATE_MATCH_THRESHOLD must be in (0, 1], got {self.TEMPLATE_MATCH_THRESHOLD}")
        if self.TIME_WINDOW < 0:
            raise ValueError(f"TIME_WINDOW must be >= 0, got {self.TIME_WINDOW}")
        if self.DISTANCE_THRESHOLD < 0:
            raise ValueError(f"DISTANCE_THRESHOLD must be >= 0, got {self.DISTANCE_THRESHOLD}")
        if self.SCAN_INTERVAL <= 0 or self.CAPTURE_INTERVAL <= 0:
            raise ValueError("SCAN_INTERVAL and CAPTURE_INTERVAL must be positive")
        if self.CAPTURE_BACKEND not in ("auto", "dxcam", "mss"):
            raise ValueError(f"Unknown CAPTURE_BACKEND: {self.CAPTURE_BACKEND}")
        if self.LIVE_HANDOFF_BATCH_SIZE < 1:
            raise ValueError("LIVE_HANDOFF_BATCH_SIZE must be >= 1")

    @classmethod
    def from_env(cls, environ=None) -> "Config":
        """
        Build a config, overriding defaults with AIM_TRAINER_<FIELD> variables

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Config instance
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name}")
            if raw is None:
                continue
            if f.type in (bool, "bool"):
                overrides[f.name] = raw.strip().lower() in ("1", "true", "yes", "on")
            elif f.type in (int, "int"):
                overrides[f.name] = int(raw)
            elif f.type in (float, "float"):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw
        return cls(**overrides)


# Global configuration instance
config = Config.from_env()

__all__ = ['Config', 'config']
