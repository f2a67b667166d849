from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class JobStatus(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_active(self) -> bool:
        return self in (JobStatus.STARTING, JobStatus.RUNNING)


_TERMINAL = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})


@dataclass(frozen=True, slots=True)
class JobState:
    """Caller-visible snapshot of the supervised job.

    ``message`` is the last status text while running, the summary once
    completed and the reason once failed.
    """

    status: JobStatus = JobStatus.IDLE
    job_id: str | None = None
    since: datetime | None = None
    message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_active(self) -> bool:
        return self.status.is_active


IDLE = JobState()


@dataclass(frozen=True, slots=True)
class JobHandle:
    job_id: str
    backend: str


@dataclass(frozen=True, slots=True)
class Progress:
    """Informational, non-terminal backend message."""

    text: str


@dataclass(frozen=True, slots=True)
class Completed:
    """Terminal backend message. ``ok`` selects summary vs. failure reason."""

    ok: bool
    text: str


ProgressMessage = Union[Progress, Completed]

DISCONNECTED = "disconnected"
