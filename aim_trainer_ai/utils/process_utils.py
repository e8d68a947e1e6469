"""
Process Discovery Utilities
Answers "is the game running" for the monitoring controller
"""
import psutil
import logging
from typing import Optional, List

logger = logging.getLogger(__name__)


def _matches(candidate: Optional[str], process_name: str) -> bool:
    return bool(candidate) and candidate.lower() == process_name.lower()


def is_process_running(process_name: str) -> bool:
    """
    Check if a process is running by name

    Args:
        process_name: Executable name (e.g., "VALORANT.exe"), case-insensitive

    Returns:
        True if process is running, False otherwise
    """
    return find_process_by_name(process_name) is not None


def find_process_by_name(process_name: str) -> Optional[psutil.Process]:
    """
    Find process by name and return Process object

    Args:
        process_name: Executable name, case-insensitive

    Returns:
        Process object if found, None otherwise
    """
    try:
        for proc in psutil.process_iter(['pid', 'name']):
            try:
                if _matches(proc.info['name'], process_name):
                    return proc
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return None
    except psutil.Error as e:
        logger.warning(f"Error finding process {process_name}: {e}")
        return None


def running_process_names() -> List[str]:
    """
    Names of all running processes (for the "which game is up" status line)

    Returns:
        Sorted, de-duplicated list of process names
    """
    names = set()
    try:
        for proc in psutil.process_iter(['name']):
            try:
                if proc.info['name']:
                    names.add(proc.info['name'])
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
    except psutil.Error as e:
        logger.warning(f"Error listing processes: {e}")
    return sorted(names)
