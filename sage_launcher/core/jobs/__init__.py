"""Job execution supervisor.

Runs one Sage search at a time, either on a worker thread or in a child
process, and exposes a non-blocking ``poll`` for the UI redraw loop.
"""

from .backends import Backend, InProcessBackend, OutOfProcessBackend
from .channel import ProgressChannel
from .supervisor import JobSupervisor
from .types import (
    Completed,
    JobHandle,
    JobState,
    JobStatus,
    Progress,
    ProgressMessage,
)

__all__ = [
    "Backend",
    "InProcessBackend",
    "OutOfProcessBackend",
    "JobSupervisor",
    "JobHandle",
    "JobState",
    "JobStatus",
    "Progress",
    "Completed",
    "ProgressMessage",
    "ProgressChannel",
]
