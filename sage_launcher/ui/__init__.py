"""UI-side collaborators of the supervisor.

Keep this package import lightweight: ``cadence`` has no Qt dependency; the
Qt poller is imported lazily so headless tools can use the rest.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["StatusPoller", "poll_interval_ms"]


def __getattr__(name: str) -> Any:
    if name == "StatusPoller":
        return import_module("sage_launcher.ui.poller").StatusPoller
    if name == "poll_interval_ms":
        return import_module("sage_launcher.ui.cadence").poll_interval_ms
    raise AttributeError(name)
