"""One-directional progress channel from a worker thread to the supervisor."""

from __future__ import annotations

import queue
from threading import Lock

from .types import DISCONNECTED, Completed, ProgressMessage


class ProgressChannel:
    """Ordered, unbounded queue with an explicit sender-side close.

    The worker sends zero or more ``Progress`` messages and one ``Completed``,
    then closes. A close without a terminal message reads as a disconnect.
    """

    def __init__(self) -> None:
        self._q: queue.SimpleQueue[ProgressMessage] = queue.SimpleQueue()
        self._lock = Lock()
        self._closed = False
        self._terminal_sent = False
        self._terminal_seen = False

    def send(self, msg: ProgressMessage) -> bool:
        """Returns False if the channel is already closed or completed."""
        with self._lock:
            if self._closed or self._terminal_sent:
                return False
            if isinstance(msg, Completed):
                self._terminal_sent = True
            self._q.put(msg)
        return True

    def close(self) -> None:
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def drain(self) -> list[ProgressMessage]:
        """Everything available right now, in send order. Never blocks.

        Once the sender closed without a terminal message, a synthetic
        ``Completed(ok=False, "disconnected")`` is appended exactly once.
        """
        # Read the close flag before draining: anything sent before close is
        # already in the queue by then.
        closed = self.closed
        out: list[ProgressMessage] = []
        while True:
            try:
                msg = self._q.get_nowait()
            except queue.Empty:
                break
            out.append(msg)
            if isinstance(msg, Completed):
                self._terminal_seen = True
        if closed and not self._terminal_seen:
            self._terminal_seen = True
            out.append(Completed(ok=False, text=DISCONNECTED))
        return out
