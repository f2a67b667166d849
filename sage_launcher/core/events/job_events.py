from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class JobEvent:
    """Base of all job lifecycle events; subscribe to it to see every one."""

    job_id: str


@dataclass(frozen=True, slots=True)
class JobStarted(JobEvent):
    backend: str


@dataclass(frozen=True, slots=True)
class JobProgress(JobEvent):
    """Non-terminal status text relayed from the backend."""

    message: str


@dataclass(frozen=True, slots=True)
class JobFinished(JobEvent):
    summary: str
    elapsed_sec: float


@dataclass(frozen=True, slots=True)
class JobFailed(JobEvent):
    reason: str
    elapsed_sec: float


@dataclass(frozen=True, slots=True)
class JobCancelled(JobEvent):
    elapsed_sec: float
