"""Launcher version string for ``--version`` and log headers."""

from __future__ import annotations

import os
from importlib import metadata

DIST_NAME = "sage-launcher"


def get_version_string() -> str:
    """``v<version> (<sha>)``.

    Release builds inject ``SAGE_LAUNCHER_VERSION``/``SAGE_LAUNCHER_GIT_SHA``;
    an installed distribution supplies the version otherwise.
    """
    version = os.getenv("SAGE_LAUNCHER_VERSION", "").strip()
    if not version:
        try:
            version = metadata.version(DIST_NAME)
        except metadata.PackageNotFoundError:
            version = "0.0.0-dev"
    sha = os.getenv("SAGE_LAUNCHER_GIT_SHA", "").strip() or "dev"
    return f"v{version} ({sha})"
