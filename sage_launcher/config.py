"""Application configuration and constants.

Paths, poll cadences and the commands used to launch the search engine.
Most values can be overridden through environment variables so the launcher
can be pointed at a different Sage build without code changes.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import psutil

# Status poller cadence (ms)
POLL_INTERVAL_ACTIVE_MS = 100
POLL_INTERVAL_IDLE_MS = 500

# Serialized job spec for the out-of-process backend
SPEC_FILE_NAME = "sage_config.json"
# Engine input written next to the spec before Sage is invoked
ENGINE_INPUT_SUFFIX = ".sage.json"

# Cancellation of a child process: SIGTERM, then SIGKILL after this many seconds
DEFAULT_CANCEL_GRACE_SEC = 3.0
# Bounded join of detached in-process workers on shutdown
WORKER_JOIN_TIMEOUT_SEC = 5.0

DEFAULT_SAGE_EXECUTABLE = "sage"

SUCCESS_MESSAGE = "Analysis completed successfully"


def sage_executable() -> str:
    """Sage binary used by the engine entry point (env ``SAGE_EXECUTABLE``)."""
    return os.getenv("SAGE_EXECUTABLE", "").strip() or DEFAULT_SAGE_EXECUTABLE


def spec_file_path() -> Path:
    """Deterministic, process-global location of the serialized job spec."""
    override = os.getenv("SAGE_SPEC_PATH", "").strip()
    if override:
        return Path(override)
    return Path(tempfile.gettempdir()) / SPEC_FILE_NAME


def cancel_grace_sec() -> float:
    raw = os.getenv("SAGE_CANCEL_GRACE_SEC", "")
    try:
        value = float(raw) if raw else DEFAULT_CANCEL_GRACE_SEC
    except ValueError:
        return DEFAULT_CANCEL_GRACE_SEC
    return value if value >= 0 else DEFAULT_CANCEL_GRACE_SEC


def worker_command() -> list[str]:
    """Default out-of-process command; the spec path is appended as the only argument."""
    return [sys.executable, "-m", "sage_launcher.worker"]


def default_parallelism() -> int:
    """Number of files Sage searches in parallel: half the logical CPUs, at least 1."""
    cpus = psutil.cpu_count(logical=True) or 1
    return max(1, cpus // 2)
