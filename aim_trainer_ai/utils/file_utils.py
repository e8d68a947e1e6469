"""
File Utilities
Handles path management and JSON serialization of training samples
"""
import os
import json
import time
from pathlib import Path
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


def ensure_dir(path: str) -> None:
    """
    Ensure directory exists, create if it doesn't

    Args:
        path: Directory path to ensure exists
    """
    Path(path).mkdir(parents=True, exist_ok=True)


def list_files(directory: str) -> list:
    """
    List regular files in a directory in sorted (load) order

    Args:
        directory: Directory to list

    Returns:
        Sorted list of file paths, empty if the directory doesn't exist
    """
    if not os.path.isdir(directory):
        return []
    return sorted(
        os.path.join(directory, name)
        for name in os.listdir(directory)
        if os.path.isfile(os.path.join(directory, name))
    )


def get_timestamped_filename(prefix: str, extension: str = "", directory: str = "") -> str:
    """
    Generate timestamped filename

    Args:
        prefix: Filename prefix
        extension: File extension (with or without dot)
        directory: Optional directory path

    Returns:
        Full path to timestamped file
    """
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    millis = int((time.time() % 1) * 1000)
    if extension and not extension.startswith('.'):
        extension = f'.{extension}'

    filename = f"{prefix}_{timestamp}_{millis:03d}{extension}"

    if directory:
        ensure_dir(directory)
        return os.path.join(directory, filename)

    return filename


def save_json(
    data: Any,
    filepath: str,
    indent: int = 2,
    ensure_directory: bool = True
) -> bool:
    """
    Save data to JSON file

    Args:
        data: Data to serialize (must be JSON serializable)
        filepath: Path to save file
        indent: JSON indentation (0 for compact)
        ensure_directory: Whether to create parent directory if needed

    Returns:
        True if successful, False otherwise
    """
    try:
        if ensure_directory:
            directory = os.path.dirname(filepath)
            if directory:
                ensure_dir(directory)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent or None, default=str)

        logger.debug(f"Saved JSON to {filepath}")
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to save JSON to {filepath}: {e}")
        return False


def load_json(filepath: str, default: Optional[Any] = None) -> Any:
    """
    Load data from JSON file

    Args:
        filepath: Path to JSON file
        default: Value returned if the file is missing or unreadable

    Returns:
        Loaded data or default
    """
    if not os.path.exists(filepath):
        return default

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to load JSON from {filepath}: {e}")
        return default
