from __future__ import annotations

from sage_launcher.config import POLL_INTERVAL_ACTIVE_MS, POLL_INTERVAL_IDLE_MS
from sage_launcher.core.jobs.types import JobState


def poll_interval_ms(state: JobState) -> int:
    """Redraw continuously while a job is active, relax otherwise."""
    return POLL_INTERVAL_ACTIVE_MS if state.is_active else POLL_INTERVAL_IDLE_MS
