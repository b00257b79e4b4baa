"""
Core event types for the LifeQuest EventBus.

Priority Levels
---------------
- CRITICAL (0): sequential, awaited, timeout-protected.
- HIGH (10): sequential, awaited, timeout-protected. Use for reward
  bookkeeping that other listeners depend on.
- NORMAL (50): concurrent, awaited. Use for notifications and UI refresh.
- LOW (100): fire-and-forget. Use for logging and analytics.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

# Payloads should stay JSON-serializable so they can be logged verbatim.
EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    """Listener tiers; lower values run earlier."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    A registered listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        Tier deciding execution order and concurrency.
    identifier:
        Unique id used for deduplication and unsubscription.
    once:
        Remove the listener before its first execution.
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str],
        once: bool,
    ) -> EventListener:
        """
        Build a listener, deriving `module.qualname@event` when no identifier
        is supplied.

        Examples
        --------
        >>> listener = EventListener.from_callback(
        ...     event_name="xp.awarded",
        ...     callback=on_xp,
        ...     priority=ListenerPriority.NORMAL,
        ...     identifier=None,
        ...     once=False,
        ... )
        >>> listener.identifier
        'listeners.on_xp@xp.awarded'
        """
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(
                callback, "__qualname__", getattr(callback, "__name__", "callback")
            )
            identifier = f"{module}.{qualname}@{event_name}"

        return cls(
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )
