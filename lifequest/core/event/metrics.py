"""
EventBus metrics: a mutable recorder and an immutable snapshot.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EventMetrics:
    """Point-in-time view of EventBus counters."""

    events_published: dict[str, int] = field(default_factory=dict)
    listener_errors: dict[str, int] = field(default_factory=dict)
    total_listeners: int = 0

    def get_summary(self) -> dict[str, Any]:
        total_events = sum(self.events_published.values())
        total_errors = sum(self.listener_errors.values())
        error_rate = (total_errors / max(1, total_events)) * 100.0

        return {
            "total_events_published": total_events,
            "events_by_type": dict(self.events_published),
            "total_errors": total_errors,
            "errors_by_event": dict(self.listener_errors),
            "total_listeners": self.total_listeners,
            "error_rate": round(error_rate, 2),
        }


class EventMetricsRecorder:
    """Counters updated by the bus; single event loop only."""

    def __init__(self) -> None:
        self._events_published: defaultdict[str, int] = defaultdict(int)
        self._listener_errors: defaultdict[str, int] = defaultdict(int)
        self._total_listeners: int = 0

    def record_publish(self, event_name: str) -> None:
        self._events_published[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self._listener_errors[event_name] += 1

    @property
    def total_listeners(self) -> int:
        return self._total_listeners

    def increment_listener_count(self) -> None:
        self._total_listeners += 1

    def decrement_listener_count(self) -> None:
        self._total_listeners = max(0, self._total_listeners - 1)

    def reset_listener_count(self) -> None:
        self._total_listeners = 0

    def snapshot(self) -> EventMetrics:
        return EventMetrics(
            events_published=dict(self._events_published),
            listener_errors=dict(self._listener_errors),
            total_listeners=self._total_listeners,
        )
