"""
Qt status poller: drives ``JobSupervisor.poll`` from the event loop.
Signals are emitted on the thread that owns the poller (the GUI thread), so
views can connect to them directly. The poller holds no job resources.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal

from sage_launcher.core.jobs import JobState, JobSupervisor
from sage_launcher.core.observability.timing import format_duration

from .cadence import poll_interval_ms


class StatusPoller(QObject):
    """Poll at 100 ms while a job is active and 500 ms while idle."""

    state_changed = Signal(object)  # JobState, only when it differs from the last one
    elapsed_changed = Signal(str)  # "2m 3s", only while a job is active
    job_ended = Signal(object)  # terminal JobState, once per job

    def __init__(
        self,
        supervisor: JobSupervisor,
        *,
        stop_when_terminal: bool = False,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._supervisor = supervisor
        self._stop_when_terminal = stop_when_terminal
        self._last: JobState | None = None
        self._last_elapsed = ""
        self._timer = QTimer(self)
        self._timer.timeout.connect(self.tick)

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        self._timer.start(poll_interval_ms(self._supervisor.state))

    def stop(self) -> None:
        self._timer.stop()

    def tick(self) -> JobState:
        state = self._supervisor.poll()
        if state != self._last:
            previous = self._last
            self._last = state
            self.state_changed.emit(state)
            if state.is_terminal and (
                previous is None or not previous.is_terminal or previous.job_id != state.job_id
            ):
                self.job_ended.emit(state)
        if state.is_active:
            elapsed = format_duration(self._supervisor.elapsed())
            if elapsed != self._last_elapsed:
                self._last_elapsed = elapsed
                self.elapsed_changed.emit(elapsed)
        else:
            self._last_elapsed = ""

        if state.is_terminal and self._stop_when_terminal:
            self._timer.stop()
        else:
            interval = poll_interval_ms(state)
            if self._timer.isActive() and self._timer.interval() != interval:
                self._timer.setInterval(interval)
        return state
