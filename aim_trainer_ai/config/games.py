"""
Game registry: supported games, their process names and asset folders
"""
import os
from typing import Dict, Optional

from aim_trainer_ai.config import config
from aim_trainer_ai.core.exceptions import InvalidInputError


# game key -> executable name reported by process discovery
SUPPORTED_GAMES: Dict[str, str] = {
    "valorant": "VALORANT.exe",
    "fortnite": "fortnite.exe",
    "cs2": "cs2.exe",
}


def resolve_game(name: str) -> str:
    """
    Normalize a game key or executable name to a game key

    Args:
        name: "valorant", "VALORANT.exe", "CS2", ...

    Returns:
        Game key from SUPPORTED_GAMES

    Raises:
        InvalidInputError: if the game is not supported
    """
    if not name or not name.strip():
        raise InvalidInputError("No game name given")

    lowered = name.strip().lower()
    if lowered in SUPPORTED_GAMES:
        return lowered

    for game, process_name in SUPPORTED_GAMES.items():
        if lowered == process_name.lower() or lowered == os.path.splitext(process_name)[0].lower():
            return game

    supported = ", ".join(sorted(SUPPORTED_GAMES))
    raise InvalidInputError(f"Unsupported game '{name}' (supported: {supported})")


def process_name_for(game: str) -> str:
    """Executable name to watch for while scanning"""
    return SUPPORTED_GAMES[resolve_game(game)]


def detect_game_from_path(video_path: str) -> str:
    """
    Detect the game a recording belongs to from its file name

    Raises:
        InvalidInputError: if no supported game name appears in the path
    """
    lowered = os.path.basename(video_path).lower()
    for game in SUPPORTED_GAMES:
        if game in lowered:
            return game

    # Fall back to directory names (recordings/valorant/clip_01.mp4)
    lowered = video_path.lower()
    for game in SUPPORTED_GAMES:
        if game in lowered:
            return game

    raise InvalidInputError(f"Unsupported game detected from video path: {video_path}")


def asset_folder(game: str, assets_root: Optional[str] = None) -> str:
    """Path of the template folder for a game (assets/<game>)"""
    root = assets_root if assets_root is not None else config.ASSETS_PATH
    return os.path.join(root, resolve_game(game))
