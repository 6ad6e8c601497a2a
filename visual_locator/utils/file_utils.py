"""File utility functions for the visual locator."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Optional

from ..core.logger import log


def ensure_directory(directory_path: str) -> str:
    """Ensure a directory exists, creating it if necessary.

    Args:
        directory_path: Path to the directory.

    Returns:
        Absolute path to the directory.
    """
    path = Path(directory_path).resolve()
    path.mkdir(parents=True, exist_ok=True)
    return str(path)


def get_timestamp() -> str:
    """Get current timestamp as a string in format YYYY-MM-DD_HH-MM-SS."""
    return time.strftime("%Y-%m-%d_%H-%M-%S")


def get_timestamp_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


def save_json(data: Any, filepath: str, indent: int = 2) -> bool:
    """Save data to a JSON file.

    Args:
        data: Data to save.
        filepath: Path to the JSON file.
        indent: JSON indentation level.

    Returns:
        True if save successful, False otherwise.
    """
    try:
        directory = os.path.dirname(filepath)
        if directory:
            ensure_directory(directory)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False, default=str)

        log.debug(f"Data saved to {filepath}")
        return True

    except (OSError, TypeError, ValueError) as e:
        log.error(f"Failed to save JSON to {filepath}: {e}")
        return False


def load_json(filepath: str) -> Optional[Any]:
    """Load data from a JSON file.

    Args:
        filepath: Path to the JSON file.

    Returns:
        Loaded data or None if failed.
    """
    try:
        if not os.path.exists(filepath):
            log.warning(f"JSON file not found: {filepath}")
            return None

        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)

        log.debug(f"Data loaded from {filepath}")
        return data

    except (OSError, json.JSONDecodeError) as e:
        log.error(f"Failed to load JSON from {filepath}: {e}")
        return None
