"""Lightweight in-process event bus.

The supervisor publishes job lifecycle events; status views and the launcher
subscribe without holding any job resources.
"""

from .event_bus import EventBus, Subscription
from .job_events import JobCancelled, JobEvent, JobFailed, JobFinished, JobProgress, JobStarted

__all__ = [
    "EventBus",
    "Subscription",
    "JobEvent",
    "JobStarted",
    "JobProgress",
    "JobFinished",
    "JobFailed",
    "JobCancelled",
]
