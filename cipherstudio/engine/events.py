"""In-process state-change event bus.

The controller and orchestrator publish ``StateEvent`` objects here; the
presentation layer (SSE endpoint, tests, the Studio wiring) subscribes.
Handlers run synchronously on the publishing call, in subscription order.
A handler that raises is logged and skipped -- it never breaks the publisher
or the remaining subscribers.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from cipherstudio.engine.models.enums import EventType
from cipherstudio.engine.models.events import StateEvent

EventHandler = Callable[[StateEvent], None]


class EventBus:
    """Publish / subscribe keyed by ``EventType``.

    Subscribing with ``event_type=None`` receives every event.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}

    def subscribe(self, event_type: EventType | None, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler``.  Returns a callable that unsubscribes it."""
        self._handlers.setdefault(event_type, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event_type: EventType, **payload: Any) -> StateEvent:
        event = StateEvent(event_type=event_type, payload=payload)
        handlers = [*self._handlers.get(event_type, []), *self._handlers.get(None, [])]
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler {!r} failed for {}", handler, event_type)
        return event

    @property
    def subscriber_count(self) -> int:
        return sum(len(handlers) for handlers in self._handlers.values())
