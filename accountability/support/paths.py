"""
Path helpers for the data directory.

Resolves where JSONL tables live and bootstraps the directory on first use.
"""

import os
from pathlib import Path
from typing import Optional

from accountability.constants import ENV_DATA_DIR


def get_data_root(data_dir: Optional[str] = None) -> Path:
    """Get the absolute path to the data directory.

    Resolution order: explicit argument, ACCOUNTQ_DATA_DIR, <repo-root>/data.

    Args:
        data_dir: Optional explicit directory.

    Returns:
        Absolute Path to the data directory.
    """
    if data_dir:
        return Path(data_dir).expanduser().resolve()
    env_dir = os.environ.get(ENV_DATA_DIR, "").strip()
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    repo_root = Path(__file__).resolve().parent.parent.parent
    return repo_root / "data"


def ensure_data_dir(data_dir: Optional[str] = None) -> Path:
    """Ensure the data directory exists and return it."""
    root = get_data_root(data_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root
