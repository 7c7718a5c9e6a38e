"""Scoped listener subscriptions for view-level events.

Global listeners (escape key while the drill-down is open, pointer tracking
during a column drag) are attached through ``ListenerRegistry.attach`` which
returns a ``Subscription``. Releasing is idempotent, and the subscription is a
context manager so that every exit path releases it.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

from .config import MIN_COLUMN_WIDTH
from .models import Column

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Subscription:
    def __init__(self, registry: ListenerRegistry, event: str, handler: Handler):
        self._registry = registry
        self.event = event
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def release(self) -> None:
        if not self._active:
            return
        self._active = False
        self._registry._detach(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class ListenerRegistry:
    def __init__(self):
        self._handlers: dict[str, list[Subscription]] = defaultdict(list)

    def attach(self, event: str, handler: Handler) -> Subscription:
        sub = Subscription(self, event, handler)
        self._handlers[event].append(sub)
        return sub

    def _detach(self, sub: Subscription) -> None:
        subs = self._handlers.get(sub.event, [])
        if sub in subs:
            subs.remove(sub)
        if not subs:
            self._handlers.pop(sub.event, None)

    def count(self, event: str | None = None) -> int:
        if event is None:
            return sum(len(v) for v in self._handlers.values())
        return len(self._handlers.get(event, []))

    def emit(self, event: str, payload: Any = None) -> None:
        for sub in list(self._handlers.get(event, [])):
            if sub.active:
                sub.handler(payload)


class ColumnResizeGesture:
    """One drag-to-resize gesture on a column header.

    ``pointermove`` payloads carry the pointer x coordinate; ``pointerup``
    ends the gesture. Both listeners are released on pointer-up, on
    ``cancel()`` and when the ``with`` block exits, including on errors.
    """

    def __init__(self, registry: ListenerRegistry, column: Column, start_x: float):
        self.registry = registry
        self.column = column
        self.start_x = float(start_x)
        self.start_width = int(column.width or MIN_COLUMN_WIDTH)
        self._subs: list[Subscription] = [
            registry.attach("pointermove", self._on_move),
            registry.attach("pointerup", self._on_up),
        ]

    @property
    def active(self) -> bool:
        return any(s.active for s in self._subs)

    def _on_move(self, x: Any) -> None:
        delta = float(x) - self.start_x
        self.column.width = max(MIN_COLUMN_WIDTH, int(round(self.start_width + delta)))

    def _on_up(self, _payload: Any = None) -> None:
        logger.debug("Resized column %s to %spx", self.column.field_name, self.column.width)
        self.cancel()

    def cancel(self) -> None:
        for sub in self._subs:
            sub.release()

    def __enter__(self) -> ColumnResizeGesture:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()
