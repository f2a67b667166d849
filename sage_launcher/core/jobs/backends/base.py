"""Backend protocol: start one job, report on it without blocking, cancel it."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sage_launcher.models import JobSpec

from ..types import Completed, ProgressMessage


@runtime_checkable
class Backend(Protocol):
    """Execution strategy owned by ``JobSupervisor``.

    A backend runs at most one job at a time. All methods are called from the
    supervisor's thread.
    """

    name: str

    def start(self, spec: JobSpec) -> bool:
        """Start the job.

        Returns True when the job is confirmed live on return (process spawned),
        False when confirmation arrives later as a ``Progress`` message.
        Raises ``LaunchError`` if the job could not be started at all.
        """
        ...

    def poll_liveness(self) -> list[ProgressMessage]:
        """Non-blocking: messages available since the last call, in order."""
        ...

    def request_cancel(self) -> Completed | None:
        """Best-effort stop.

        Returns the job's own terminal message when it finished before the
        request took effect, otherwise None (the job counts as cancelled).
        """
        ...

    def release(self) -> None:
        """Drop per-job resources after the terminal state was recorded."""
        ...

    def close(self) -> None:
        """Release everything; the backend is not used afterwards."""
        ...
