"""Job supervisor: one active job, polled from the UI loop.

``submit``/``poll``/``cancel`` are meant for a single caller (the redraw loop).
``poll`` never blocks; state only changes when the caller asks for it.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from sage_launcher.core.errors import AlreadyRunningError, LaunchError, NotRunningError
from sage_launcher.core.events import (
    EventBus,
    JobCancelled,
    JobFailed,
    JobFinished,
    JobProgress,
    JobStarted,
)
from sage_launcher.models import JobSpec

from .backends.base import Backend
from .types import IDLE, Completed, JobHandle, JobState, JobStatus, Progress, ProgressMessage

logger = logging.getLogger(__name__)


class JobSupervisor:
    """Owns the lifecycle of at most one job on one backend.

    ``IDLE -> STARTING -> RUNNING -> {COMPLETED | FAILED | CANCELLED} -> IDLE``.
    A backend that cannot launch goes ``STARTING -> FAILED`` directly. Terminal
    states stay until ``reset()`` or the next ``submit()``; the first terminal
    outcome observed for a job is never overwritten.
    """

    def __init__(
        self,
        backend: Backend,
        *,
        event_bus: EventBus | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self._bus = event_bus
        self._clock = clock
        self._state: JobState = IDLE
        self._handle: JobHandle | None = None
        self._started_at: float | None = None
        self._finished_at: float | None = None

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def state(self) -> JobState:
        """Last computed state, without polling the backend."""
        return self._state

    @property
    def handle(self) -> JobHandle | None:
        """Handle of the active job, None when idle or terminal."""
        return self._handle

    def submit(self, spec: JobSpec) -> JobHandle:
        if self._state.is_active:
            raise AlreadyRunningError(f"job {self._state.job_id} is already running")
        spec.validate()

        self._clear()
        handle = JobHandle(job_id=uuid.uuid4().hex, backend=self._backend.name)
        self._handle = handle
        self._started_at = self._clock()
        self._state = JobState(
            status=JobStatus.STARTING, job_id=handle.job_id, since=datetime.now()
        )
        logger.info(
            "Starting job %s on %s backend",
            handle.job_id,
            handle.backend,
            extra={"job_id": handle.job_id, "backend": handle.backend},
        )
        try:
            live = self._backend.start(spec)
        except LaunchError as e:
            logger.error("Job %s failed to launch: %s", handle.job_id, e)
            self._finish(JobStatus.FAILED, f"spawn error: {e}")
            return handle
        except Exception as e:  # noqa: BLE001
            logger.exception("Backend %s crashed while starting", self._backend.name)
            self._finish(JobStatus.FAILED, f"spawn error: {e}")
            return handle

        # Only a launched job announces itself; a launch failure emits JobFailed alone.
        self._publish(JobStarted(job_id=handle.job_id, backend=handle.backend))
        if live:
            self._state = replace(self._state, status=JobStatus.RUNNING)
        return handle

    def poll(self) -> JobState:
        if not self._state.is_active:
            return self._state
        try:
            messages = self._backend.poll_liveness()
        except Exception as e:  # noqa: BLE001
            logger.exception("Backend %s failed while polling", self._backend.name)
            messages = [Completed(ok=False, text=str(e) or type(e).__name__)]
        self._apply(messages)
        return self._state

    def cancel(self) -> JobState:
        """Best-effort cancel of the active job.

        A job that already reached its own outcome keeps it. The in-process
        backend cannot stop its worker; the job is reported cancelled and the
        worker finishes unobserved in the background.
        """
        if not self._state.is_active:
            raise NotRunningError("no job is running")
        self.poll()
        if not self._state.is_active:
            return self._state

        job_id = self._state.job_id
        logger.info("Cancelling job %s", job_id, extra={"job_id": job_id})
        try:
            outcome = self._backend.request_cancel()
        except Exception:  # noqa: BLE001
            logger.exception("Backend %s failed while cancelling", self._backend.name)
            outcome = None
        if outcome is not None:
            self._apply([outcome])
        else:
            self._finish(JobStatus.CANCELLED, None)
        return self._state

    def elapsed(self) -> float:
        """Seconds since start; frozen once terminal, 0.0 when idle."""
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else self._clock()
        return max(0.0, end - self._started_at)

    def reset(self) -> JobState:
        """Acknowledge a terminal state and return to ``IDLE``."""
        if self._state.is_active:
            raise AlreadyRunningError(f"job {self._state.job_id} is still running")
        self._clear()
        return self._state

    def close(self) -> None:
        """Cancel anything still running and release the backend."""
        if self._state.is_active:
            self.cancel()
        self._backend.close()

    def _apply(self, messages: list[ProgressMessage]) -> None:
        for msg in messages:
            if not self._state.is_active:
                logger.debug("Ignoring %r after terminal state", msg)
                continue
            if isinstance(msg, Progress):
                self._state = replace(self._state, status=JobStatus.RUNNING, message=msg.text)
                self._publish(JobProgress(job_id=self._state.job_id or "", message=msg.text))
            elif isinstance(msg, Completed):
                if msg.ok:
                    self._finish(JobStatus.COMPLETED, msg.text)
                else:
                    self._finish(JobStatus.FAILED, msg.text)

    def _finish(self, status: JobStatus, message: str | None) -> None:
        self._finished_at = self._clock()
        self._state = replace(self._state, status=status, message=message)
        self._handle = None
        try:
            self._backend.release()
        except Exception:  # noqa: BLE001
            logger.exception("Backend %s failed to release resources", self._backend.name)

        job_id = self._state.job_id or ""
        elapsed = self.elapsed()
        logger.info(
            "Job %s %s after %.1fs%s",
            job_id,
            status.value,
            elapsed,
            f": {message}" if message else "",
            extra={"job_id": job_id, "status": status.value},
        )
        if status is JobStatus.COMPLETED:
            self._publish(JobFinished(job_id=job_id, summary=message or "", elapsed_sec=elapsed))
        elif status is JobStatus.FAILED:
            self._publish(JobFailed(job_id=job_id, reason=message or "", elapsed_sec=elapsed))
        else:
            self._publish(JobCancelled(job_id=job_id, elapsed_sec=elapsed))

    def _clear(self) -> None:
        self._state = IDLE
        self._handle = None
        self._started_at = None
        self._finished_at = None

    def _publish(self, event: object) -> None:
        if self._bus is not None:
            self._bus.publish(event)
