from __future__ import annotations

import collections
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from lexdocs.core.events.models import BaseEvent


class EventBusConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    keep_recent: int = Field(default=200, ge=10, le=10_000)


@dataclass
class _Sub:
    event_type: str
    handler: Callable[[BaseEvent], None]
    priority: int


@dataclass
class EventBusStats:
    published_total: int = 0
    delivered_total: int = 0
    handler_errors_total: int = 0
    per_type_published: Dict[str, int] = field(default_factory=dict)


class EventBus:
    """
    In-process event bus for a single-threaded, event-driven host.

    - publish delivers inline, in subscriber priority order
    - handler failures are isolated (caught, counted, logged)
    - a handler may publish; nested events are queued and drained in order
    """

    def __init__(self, *, cfg: EventBusConfig | None = None, logger=None):
        self.cfg = cfg or EventBusConfig()
        self.logger = logger
        self._subs: List[_Sub] = []
        self._stats = EventBusStats()
        self._recent: Deque[Dict[str, Any]] = collections.deque(maxlen=int(self.cfg.keep_recent))
        self._pending: Deque[BaseEvent] = collections.deque()
        self._dispatching = False

    def enabled(self) -> bool:
        return bool(self.cfg.enabled)

    def subscribe(self, event_type: str, handler: Callable[[BaseEvent], None], priority: int = 50) -> None:
        """
        event_type supports:
        - exact match ("session.logged_in")
        - prefix match ("session.*")
        - wildcard all ("*")
        """
        if not callable(handler):
            raise ValueError("handler must be callable")
        self._subs.append(_Sub(event_type=str(event_type), handler=handler, priority=int(priority)))
        self._subs.sort(key=lambda s: s.priority)

    def unsubscribe(self, handler: Callable[[BaseEvent], None]) -> int:
        before = len(self._subs)
        self._subs = [s for s in self._subs if s.handler is not handler]
        return before - len(self._subs)

    def publish(self, ev: BaseEvent) -> bool:
        if not self.cfg.enabled:
            return False
        self._stats.published_total += 1
        self._stats.per_type_published[ev.event_type] = self._stats.per_type_published.get(ev.event_type, 0) + 1
        self._recent.appendleft(ev.model_dump())
        self._pending.append(ev)
        if self._dispatching:
            return True
        self._dispatching = True
        try:
            while self._pending:
                self._deliver(self._pending.popleft())
        finally:
            self._dispatching = False
        return True

    def get_stats(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled(),
            "published_total": self._stats.published_total,
            "delivered_total": self._stats.delivered_total,
            "handler_errors_total": self._stats.handler_errors_total,
            "subscribers": len(self._subs),
            "per_type_published": dict(self._stats.per_type_published),
        }

    def dump_recent(self, n: int = 50) -> List[Dict[str, Any]]:
        return list(self._recent)[: max(1, int(n))]

    # ---- internals ----
    def _deliver(self, ev: BaseEvent) -> None:
        for s in list(self._subs):
            if not _match(s.event_type, ev.event_type):
                continue
            try:
                s.handler(ev)
                self._stats.delivered_total += 1
            except Exception as e:  # noqa: BLE001
                self._stats.handler_errors_total += 1
                if self.logger is not None:
                    self.logger.warning(f"Event handler {getattr(s.handler, '__name__', 'handler')} failed on {ev.event_type}: {e}")


def _match(subscribed: str, event_type: str) -> bool:
    if subscribed == "*":
        return True
    if subscribed.endswith(".*"):
        return str(event_type).startswith(subscribed[:-1])
    return subscribed == event_type
