"""
Event system for LifeQuest.

The bus is constructed by the application context and injected into
services; there is no module-level singleton.
"""

from .bus import EventBus
from .context import apply_event_log_context
from .types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
    "apply_event_log_context",
]
