"""
Logging setup for the monitoring tools
One console handler plus a per-run log file under the configured LOG_PATH
"""
import logging
import os
import sys
from typing import Optional

from aim_trainer_ai.config import Config, config
from aim_trainer_ai.utils.file_utils import ensure_dir, get_timestamped_filename

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
SHORT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _configure(handler: logging.Handler, level: int, log_format: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(log_format))
    return handler


def session_log_file(name: str, cfg: Config = config) -> str:
    """
    Timestamped log file path for one run

    Args:
        name: Logger name; its last dotted part labels the file
        cfg: Configuration providing LOG_PATH

    Returns:
        Path under LOG_PATH (the directory is created)
    """
    label = name.split(".")[-1] if name else "aim_trainer_ai"
    return get_timestamped_filename(label, "log", cfg.LOG_PATH)


def setup_logger(
    name: str,
    cfg: Optional[Config] = None,
    log_level: Optional[int] = None,
    log_file: Optional[str] = None,
    detailed: Optional[bool] = None,
    to_file: bool = True
) -> logging.Logger:
    """
    Attach console and file handlers to a logger, once

    Args:
        name: Logger name (the package name configures every module logger)
        cfg: Configuration for LOG_PATH and DETAILED_LOGGING (defaults to the global config)
        log_level: Logging level (defaults to DEBUG when detailed, INFO otherwise)
        log_file: Explicit log file path (defaults to a timestamped file in LOG_PATH)
        detailed: Whether to include function and line (defaults to cfg.DETAILED_LOGGING)
        to_file: Whether to attach a file handler at all

    Returns:
        Configured logger instance
    """
    cfg = cfg or config
    logger = logging.getLogger(name)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    if detailed is None:
        detailed = cfg.DETAILED_LOGGING
    if log_level is None:
        log_level = logging.DEBUG if detailed else logging.INFO
    log_format = DETAILED_FORMAT if detailed else SHORT_FORMAT

    logger.setLevel(log_level)
    logger.addHandler(_configure(logging.StreamHandler(sys.stdout), log_level, log_format))

    if not to_file:
        return logger

    try:
        if log_file:
            ensure_dir(os.path.dirname(log_file) or ".")
        else:
            log_file = session_log_file(name, cfg)
        logger.addHandler(_configure(logging.FileHandler(log_file), log_level, log_format))
    except OSError as e:
        logger.warning(f"Failed to create file handler: {e}")
    else:
        logger.debug(f"Logging to {log_file}")

    return logger
