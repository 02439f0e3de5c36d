from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Optional, Protocol

from ..core.enums import ChangeEventType
from .model import ChangeEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


class EventBus(Protocol):
    def publish(self, event: ChangeEvent) -> None:
        raise NotImplementedError

    def subscribe(self, handler: EventHandler, *, user_id: Optional[str] = None) -> Unsubscribe:
        raise NotImplementedError


class InMemoryEventBus(EventBus):
    """Process-local fan-out bus.

    Delivery is fire-and-forget: a failing handler is logged and the
    remaining handlers still run. Nothing is queued or retried.
    """

    def __init__(self, *, source: Optional[str] = None):
        self.source = source or uuid.uuid4().hex
        self._lock = threading.Lock()
        self._handlers: dict[int, tuple[EventHandler, Optional[str]]] = {}
        self._next_token = 0

    def subscribe(self, handler: EventHandler, *, user_id: Optional[str] = None) -> Unsubscribe:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._handlers[token] = (handler, user_id)

        def unsubscribe() -> None:
            with self._lock:
                self._handlers.pop(token, None)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = list(self._handlers.values())

        for handler, user_filter in targets:
            if user_filter is not None and user_filter != event.user_id:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("Change event handler failed for %s on %s", event.type.value, event.record_id)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)


class RecordingEventBus(InMemoryEventBus):
    """Bus that also keeps every published event; handy for audits and tests."""

    def __init__(self, *, source: Optional[str] = None):
        super().__init__(source=source)
        self.events: list[ChangeEvent] = []

    def publish(self, event: ChangeEvent) -> None:
        self.events.append(event)
        super().publish(event)

    def of_type(self, event_type: ChangeEventType) -> list[ChangeEvent]:
        return [e for e in self.events if e.type == event_type]
