from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")


@dataclass(frozen=True, eq=False)
class Subscription:
    """Token returned by ``subscribe``; compared by identity."""

    event_type: type
    handler: Callable[[Any], None] = field(repr=False)


class EventBus:
    """Synchronous, in-process event bus.

    Handlers run in the publisher's thread. For job events that is the thread
    calling ``JobSupervisor.poll``/``submit``/``cancel``, never a worker thread.
    An event reaches subscribers of its own type and of every base class, so
    subscribing to ``JobEvent`` sees the whole lifecycle.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._subs: dict[type, list[Subscription]] = {}

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Subscription:
        sub = Subscription(event_type, handler)
        with self._lock:
            self._subs.setdefault(event_type, []).append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subs.get(subscription.event_type, [])
            self._subs[subscription.event_type] = [s for s in subs if s is not subscription]

    def publish(self, event: object) -> None:
        with self._lock:
            targets = [s for t in type(event).__mro__ for s in self._subs.get(t, ())]
        for sub in targets:
            try:
                sub.handler(event)
            except Exception:
                logger.exception(
                    "Event handler failed", extra={"event": type(event).__name__}
                )
