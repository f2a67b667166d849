from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "sage_launcher"


def get_app_state_dir() -> Path:
    """Directory for launcher state (rotating logs).

    ``SAGE_LAUNCHER_HOME`` wins; otherwise the per-user data directory of the
    platform (``%APPDATA%``, ``~/Library/Application Support`` or XDG).
    """
    override = os.environ.get("SAGE_LAUNCHER_HOME")
    if override:
        return Path(override).expanduser().resolve()
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")
    return (base / APP_DIR_NAME).resolve()
