"""
Headless Sage launcher: submit a job spec and follow it until it ends.

Run: python main.py spec.json [--out-of-process]
Ctrl+C cancels the running search.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication

from sage_launcher.core.errors import AppError
from sage_launcher.core.events import EventBus, JobProgress
from sage_launcher.core.jobs import (
    InProcessBackend,
    JobState,
    JobStatus,
    JobSupervisor,
    OutOfProcessBackend,
)
from sage_launcher.core.observability.logging_config import setup_logging
from sage_launcher.core.observability.timing import format_duration
from sage_launcher.core.version import get_version_string
from sage_launcher.models import JobSpec
from sage_launcher.ui.poller import StatusPoller

logger = logging.getLogger("sage_launcher")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Launch a Sage search from a job spec.")
    p.add_argument("spec", type=str, help="Job spec file (JSON or YAML).")
    p.add_argument(
        "--out-of-process",
        action="store_true",
        help="Run the search in a child process instead of a worker thread.",
    )
    p.add_argument("--version", action="version", version=get_version_string())
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging()

    try:
        spec = JobSpec.load(args.spec)
    except AppError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("Sage Launcher")

    bus = EventBus()
    bus.subscribe(JobProgress, lambda e: print(e.message))
    backend = OutOfProcessBackend() if args.out_of_process else InProcessBackend()
    supervisor = JobSupervisor(backend, event_bus=bus)

    try:
        supervisor.submit(spec)
    except AppError as e:
        supervisor.close()
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print("Analysis started")

    poller = StatusPoller(supervisor, stop_when_terminal=True)
    poller.elapsed_changed.connect(lambda text: print(f"Processing ({text})", end="\r"))

    def _on_end(state: JobState) -> None:
        elapsed = format_duration(supervisor.elapsed())
        if state.status is JobStatus.COMPLETED:
            print(f"\n{state.message} ({elapsed})")
            app.exit(0)
        elif state.status is JobStatus.CANCELLED:
            print(f"\nCancelled ({elapsed})")
            app.exit(130)
        else:
            print(f"\nError: {state.message} ({elapsed})", file=sys.stderr)
            app.exit(1)

    poller.job_ended.connect(_on_end)

    def _on_sigint(_signum: int, _frame: object) -> None:
        if supervisor.state.is_active:
            supervisor.cancel()

    signal.signal(signal.SIGINT, _on_sigint)
    poller.start()
    # A launch failure is already terminal; let the first tick report it.
    code = app.exec()
    supervisor.close()
    return int(code)


if __name__ == "__main__":
    sys.exit(main())
