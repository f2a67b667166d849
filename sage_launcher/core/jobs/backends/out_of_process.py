"""Out-of-process backend: spawns an executable with the serialized spec path.

The child reports only through its exit status, so this backend knows two
things: still alive, or exited with a code. It never invents progress text.
"""

from __future__ import annotations

import contextlib
import logging
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import psutil

from sage_launcher import config
from sage_launcher.core.errors import LaunchError
from sage_launcher.models import JobSpec

from ..types import Completed, ProgressMessage

logger = logging.getLogger(__name__)

PopenFactory = Callable[..., Any]


def exit_message(returncode: int) -> Completed:
    if returncode == 0:
        return Completed(ok=True, text=config.SUCCESS_MESSAGE)
    if returncode < 0:
        return Completed(ok=False, text=f"terminated by signal {-returncode}")
    return Completed(ok=False, text=f"exit code {returncode}")


def _signal_children(proc: Any, *, kill: bool) -> None:
    """Forward the stop request to grandchildren (the worker runs Sage as a child)."""
    pid = getattr(proc, "pid", None)
    if pid is None:
        return
    try:
        children = psutil.Process(pid).children(recursive=True)
    except psutil.Error:
        return
    for child in children:
        with contextlib.suppress(psutil.Error):
            if kill:
                child.kill()
            else:
                child.terminate()


class OutOfProcessBackend:
    name = "out-of-process"

    def __init__(
        self,
        command: Sequence[str] | None = None,
        *,
        spec_path: str | Path | None = None,
        cancel_grace_sec: float | None = None,
        popen: PopenFactory = subprocess.Popen,
    ) -> None:
        self._command = list(command) if command is not None else config.worker_command()
        self._spec_path = Path(spec_path) if spec_path is not None else config.spec_file_path()
        self._grace = config.cancel_grace_sec() if cancel_grace_sec is None else cancel_grace_sec
        self._popen = popen
        self._proc: Any = None
        self._reported = False

    @property
    def spec_path(self) -> Path:
        return self._spec_path

    @property
    def pid(self) -> int | None:
        return None if self._proc is None else getattr(self._proc, "pid", None)

    def start(self, spec: JobSpec) -> bool:
        try:
            path = spec.write(self._spec_path)
        except OSError as e:
            raise LaunchError(f"cannot write job spec to {self._spec_path}", cause=e) from e
        logger.debug("Wrote job spec to %s", path)

        argv = [*self._command, str(path)]
        try:
            self._proc = self._popen(argv, stdin=subprocess.DEVNULL)
        except OSError as e:
            self._remove_spec_file()
            raise LaunchError(str(e), cause=e) from e
        self._reported = False
        logger.info("Spawned %s (pid %s)", argv[0], self.pid, extra={"backend": self.name})
        return True

    def poll_liveness(self) -> list[ProgressMessage]:
        proc = self._proc
        if proc is None or self._reported:
            return []
        rc = proc.poll()
        if rc is None:
            return []
        self._reported = True
        return [exit_message(rc)]

    def request_cancel(self) -> Completed | None:
        proc = self._proc
        if proc is None or self._reported:
            return None
        rc = proc.poll()
        if rc is not None:
            self._reported = True
            return exit_message(rc)

        # Alive at the check above, so the job ends CANCELLED whatever code the
        # child exits with once signalled.
        _signal_children(proc, kill=False)
        proc.terminate()
        try:
            rc = proc.wait(timeout=self._grace)
        except subprocess.TimeoutExpired:
            logger.warning("pid %s ignored SIGTERM for %.1fs; killing", self.pid, self._grace)
            _signal_children(proc, kill=True)
            proc.kill()
            rc = proc.wait()
        self._reported = True
        logger.info("pid %s stopped by cancel (code %s)", self.pid, rc)
        return None

    def release(self) -> None:
        proc = self._proc
        self._proc = None
        if proc is not None and proc.poll() is None:
            proc.kill()
            proc.wait()
        self._remove_spec_file()

    def close(self) -> None:
        if self._proc is not None and not self._reported:
            self.request_cancel()
        self.release()

    def _remove_spec_file(self) -> None:
        try:
            self._spec_path.unlink(missing_ok=True)
        except OSError:
            logger.debug("Could not remove %s", self._spec_path, exc_info=True)
