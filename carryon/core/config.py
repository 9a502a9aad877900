"""
Configuration utilities for CarryOn.

Provides centralized access to configuration from environment variables.
The rules engine itself reads no configuration.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_HISTORY_LIMIT = 50


def get_data_folder() -> Path:
    """
    Get the data folder path from environment or default.

    Returns:
        Path object pointing to the data folder
    """
    data_folder = os.getenv("CARRYON_DATA_FOLDER", "data")
    path = Path(data_folder).expanduser()

    # Create folder if it doesn't exist
    path.mkdir(parents=True, exist_ok=True)

    return path


def get_history_db_path() -> Path:
    """
    Get the scan history database path.

    Returns:
        Path object pointing to history.db
    """
    return get_data_folder() / "history.db"


def get_history_limit() -> int:
    """
    Get the maximum number of history records to keep.

    Returns:
        A positive limit; invalid values fall back to the default
    """
    raw = os.getenv("CARRYON_HISTORY_LIMIT", "")
    try:
        limit = int(raw)
    except ValueError:
        return DEFAULT_HISTORY_LIMIT
    return limit if limit > 0 else DEFAULT_HISTORY_LIMIT
