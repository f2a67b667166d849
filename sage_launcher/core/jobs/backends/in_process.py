"""In-process backend: runs the engine entry point on a worker thread.

Threads cannot be force-killed safely, so cancellation only detaches from the
worker. The detached future is kept and joined later; its output is ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional

from sage_launcher.config import SUCCESS_MESSAGE, WORKER_JOIN_TIMEOUT_SEC
from sage_launcher.core.errors import LaunchError
from sage_launcher.engine import run_search
from sage_launcher.models import JobSpec

from ..channel import ProgressChannel
from ..types import Completed, Progress, ProgressMessage

logger = logging.getLogger(__name__)

EntryPoint = Callable[[JobSpec], Optional[str]]

STARTING_TEXT = "starting"


def _run_worker(entry_point: EntryPoint, spec: JobSpec, channel: ProgressChannel) -> None:
    try:
        channel.send(Progress(STARTING_TEXT))
        try:
            summary = entry_point(spec)
        except Exception as e:  # noqa: BLE001
            logger.warning("Search failed in worker thread: %s", e, exc_info=True)
            channel.send(Completed(ok=False, text=str(e) or type(e).__name__))
        else:
            channel.send(Completed(ok=True, text=summary or SUCCESS_MESSAGE))
    finally:
        channel.close()


class InProcessBackend:
    """Single-worker thread backend.

    The pool has one worker, so a job submitted while a detached one is still
    running waits behind it and stays ``STARTING`` until the worker picks it up.
    """

    name = "in-process"

    def __init__(
        self,
        entry_point: EntryPoint | None = None,
        *,
        join_timeout_sec: float = WORKER_JOIN_TIMEOUT_SEC,
    ) -> None:
        self._entry_point: EntryPoint = entry_point or run_search
        self._join_timeout_sec = join_timeout_sec
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sage-job")
        self._channel: ProgressChannel | None = None
        self._future: Future[None] | None = None
        self._detached: list[Future[None]] = []

    @property
    def detached_count(self) -> int:
        self._reap_detached()
        return len(self._detached)

    def start(self, spec: JobSpec) -> bool:
        self._reap_detached()
        channel = ProgressChannel()
        try:
            fut = self._pool.submit(_run_worker, self._entry_point, spec, channel)
        except RuntimeError as e:
            raise LaunchError("cannot start worker thread", cause=e) from e
        self._channel = channel
        self._future = fut
        return False

    def poll_liveness(self) -> list[ProgressMessage]:
        self._reap_detached()
        channel, fut = self._channel, self._future
        if channel is None or fut is None:
            return []
        if fut.done() and not channel.closed:
            # Cancelled before it ever ran; the worker never closed the channel.
            channel.close()
        return channel.drain()

    def request_cancel(self) -> Completed | None:
        channel = self._channel
        if channel is None:
            return None
        for msg in channel.drain():
            if isinstance(msg, Completed):
                return msg
        logger.info("In-process search cannot be interrupted; detaching from worker")
        return None

    def release(self) -> None:
        fut = self._future
        self._future = None
        self._channel = None
        if fut is None or fut.done():
            return
        # Still queued: make sure it never starts. Running: keep it for a later join.
        if not fut.cancel():
            self._detached.append(fut)

    def close(self) -> None:
        self.release()
        pending = [f for f in self._detached if not f.done()]
        if pending:
            _, not_done = wait(pending, timeout=self._join_timeout_sec)
            if not_done:
                logger.warning(
                    "%d detached search worker(s) still running after %.1fs",
                    len(not_done),
                    self._join_timeout_sec,
                )
        self._detached.clear()
        self._pool.shutdown(wait=False, cancel_futures=True)

    def _reap_detached(self) -> None:
        if not self._detached:
            return
        alive = [f for f in self._detached if not f.done()]
        reaped = len(self._detached) - len(alive)
        if reaped:
            logger.debug("Joined %d detached search worker(s)", reaped)
        self._detached = alive
