from __future__ import annotations

import os
from pathlib import Path
import sys


def get_base_dir() -> Path:
    """Return project root or PyInstaller's temporary directory."""
    return Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent.parent))


def get_data_dir() -> Path:
    """Return the data directory, honouring ``SB_DATA_DIR`` when set."""

    override = os.getenv("SB_DATA_DIR")
    if override:
        path = Path(override)
        if not path.is_absolute():
            path = get_base_dir() / path
        return path
    return get_base_dir() / "data"
