from __future__ import annotations

import threading

from sage_launcher.core.jobs import Completed, Progress, ProgressChannel
from sage_launcher.core.jobs.types import DISCONNECTED


def test_drain_returns_messages_in_send_order() -> None:
    ch = ProgressChannel()
    ch.send(Progress("a"))
    ch.send(Progress("b"))

    assert ch.drain() == [Progress("a"), Progress("b")]
    assert ch.drain() == []


def test_nothing_is_accepted_after_completed() -> None:
    ch = ProgressChannel()
    assert ch.send(Completed(ok=True, text="done"))

    assert ch.send(Progress("late")) is False
    assert ch.send(Completed(ok=False, text="again")) is False
    assert ch.drain() == [Completed(ok=True, text="done")]


def test_close_without_terminal_reads_as_disconnect_once() -> None:
    ch = ProgressChannel()
    ch.send(Progress("starting"))
    ch.close()

    assert ch.drain() == [Progress("starting"), Completed(ok=False, text=DISCONNECTED)]
    assert ch.drain() == []


def test_close_after_terminal_is_not_a_disconnect() -> None:
    ch = ProgressChannel()
    ch.send(Completed(ok=True, text="done"))
    ch.close()

    assert ch.drain() == [Completed(ok=True, text="done")]
    assert ch.drain() == []


def test_concurrent_sender_messages_are_neither_lost_nor_duplicated() -> None:
    ch = ProgressChannel()
    n = 500

    def _sender() -> None:
        for i in range(n):
            ch.send(Progress(str(i)))
        ch.send(Completed(ok=True, text="done"))
        ch.close()

    t = threading.Thread(target=_sender)
    t.start()
    received: list = []
    while not received or not isinstance(received[-1], Completed):
        received.extend(ch.drain())
    t.join(timeout=5.0)

    assert [m.text for m in received[:-1]] == [str(i) for i in range(n)]
    assert received[-1] == Completed(ok=True, text="done")
