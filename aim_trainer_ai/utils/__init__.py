"""
Utilities module for Aim Trainer AI
Centralized utility functions used across the codebase
"""
from aim_trainer_ai.utils.logger import setup_logger
from aim_trainer_ai.utils.file_utils import (
    ensure_dir, list_files, save_json, load_json, get_timestamped_filename
)
from aim_trainer_ai.utils.time_utils import (
    format_duration, Timer, CadenceTimer, FPSCounter
)
from aim_trainer_ai.utils.process_utils import (
    is_process_running, find_process_by_name, running_process_names
)

__all__ = [
    # Logger
    'setup_logger',
    # File utils
    'ensure_dir', 'list_files', 'save_json', 'load_json', 'get_timestamped_filename',
    # Time utils
    'format_duration', 'Timer', 'CadenceTimer', 'FPSCounter',
    # Process utils
    'is_process_running', 'find_process_by_name', 'running_process_names',
]
