"""
EventBus for LifeQuest.

Purpose
-------
Carry domain events (`xp.awarded`, `main_quest.completed`, ...) from the
tracker service to any number of listeners without the core ever calling
presentation code.

Design Notes
------------
- Tiered concurrency model (see `EventScheduler`).
- Listener timeouts come from `ConfigManager` keys
  `core.event.listener_timeout.{critical,high}_seconds` with a 5s default.
- Listener errors are isolated; `publish()` never raises because of a
  listener.
"""

from __future__ import annotations

import inspect
from typing import Any, Optional

from lifequest.core.config.manager import ConfigManager
from lifequest.core.event.context import apply_event_log_context
from lifequest.core.event.metrics import EventMetrics, EventMetricsRecorder
from lifequest.core.event.registry import ListenerRegistry
from lifequest.core.event.scheduler import EventScheduler
from lifequest.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)


class EventBus:
    """
    Publish/subscribe hub with tiered listener execution.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("main_quest.completed", on_quest_done, priority=ListenerPriority.HIGH)
    >>> await bus.publish("main_quest.completed", {"quest_id": "career-1"})
    """

    def __init__(
        self,
        registry: Optional[ListenerRegistry] = None,
        scheduler: Optional[EventScheduler] = None,
        metrics: Optional[EventMetricsRecorder] = None,
        config_manager: Optional[ConfigManager] = None,
        *,
        enable_metrics: bool = True,
        critical_timeout_seconds: Optional[float] = None,
        high_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._config_manager = config_manager
        self._registry = registry or ListenerRegistry()
        self._scheduler = scheduler or EventScheduler()
        self._metrics = metrics or EventMetricsRecorder()
        self._metrics_enabled = enable_metrics

        self._critical_timeout = self._load_timeout(
            key="core.event.listener_timeout.critical_seconds",
            override=critical_timeout_seconds,
            default=5.0,
        )
        self._high_timeout = self._load_timeout(
            key="core.event.listener_timeout.high_seconds",
            override=high_timeout_seconds,
            default=5.0,
        )

        logger.debug(
            "EventBus initialized",
            extra={
                "metrics_enabled": self._metrics_enabled,
                "critical_timeout_seconds": self._critical_timeout,
                "high_timeout_seconds": self._high_timeout,
            },
        )

    def _load_timeout(self, key: str, override: Optional[float], default: float) -> float:
        """Resolve a timeout: explicit override, then config, then default."""
        if override is not None:
            return float(override)
        if self._config_manager is None:
            return float(default)

        value = self._config_manager.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Invalid listener timeout in config, using default",
                extra={"config_key": key, "value": value, "default_value": default},
            )
            return float(default)

    @staticmethod
    def _validate_callback_signature(callback: CallbackType) -> None:
        """Reject callbacks that cannot take exactly one payload argument."""
        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            # C-level callables may not expose a signature.
            return

        params = list(sig.parameters.values())
        if len(params) != 1:
            callback_name = getattr(callback, "__qualname__", None) or getattr(
                callback, "__name__", repr(callback)
            )
            raise ValueError(
                f"Event listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} parameters for '{callback_name}'"
            )

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
        allow_duplicates: bool = False,
    ) -> str:
        """
        Subscribe `callback` to an event name or wildcard pattern.

        Returns the listener identifier for `unsubscribe()`.
        """
        self._validate_callback_signature(callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )
        added = self._registry.add_listener(
            event_name=event_name,
            listener=listener,
            allow_duplicates=allow_duplicates,
        )

        if added:
            if self._metrics_enabled:
                self._metrics.increment_listener_count()
            logger.debug(
                "EventBus: subscribed listener",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "once": listener.once,
                },
            )
        else:
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )

        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        removed = self._registry.remove_listener(
            event_name=event_name, identifier=identifier
        )
        if removed:
            if self._metrics_enabled:
                self._metrics.decrement_listener_count()
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )
        return removed

    def clear(self) -> None:
        """Remove all listeners. Intended for tests and shutdown."""
        total = self._registry.clear_all()
        if self._metrics_enabled:
            self._metrics.reset_listener_count()
        logger.info(
            "EventBus: cleared all listeners",
            extra={"previous_listener_count": total},
        )

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Publish an event and return the results of the awaited tiers.

        Examples
        --------
        >>> await bus.publish("xp.awarded", {
        ...     "amount": 30,
        ...     "source": "quest_step",
        ...     "total_xp": 530,
        ... })
        """
        if self._metrics_enabled:
            self._metrics.record_publish(event_name)

        apply_event_log_context(event_name, data)

        listeners = self._registry.extract_listeners_for_event(event_name=event_name)
        if not listeners:
            logger.debug(
                "EventBus: no listeners for event",
                extra={"event_name": event_name},
            )
            return []

        logger.debug(
            "EventBus: executing listeners",
            extra={"event_name": event_name, "listener_count": len(listeners)},
        )

        return await self._scheduler.execute(
            event_name=event_name,
            payload=data,
            listeners=listeners,
            metrics=self._metrics if self._metrics_enabled else None,
            logger=logger,
            critical_timeout=self._critical_timeout,
            high_timeout=self._high_timeout,
        )

    async def drain(self) -> None:
        """Wait for fire-and-forget listeners still running."""
        await self._scheduler.drain()

    # ------------------------------------------------------------------ #
    # Metrics & Introspection
    # ------------------------------------------------------------------ #

    def get_metrics(self) -> Optional[EventMetrics]:
        if not self._metrics_enabled:
            return None
        return self._metrics.snapshot()

    def get_metrics_summary(self) -> dict[str, Any]:
        metrics = self.get_metrics()
        if metrics is None:
            return {}
        return metrics.get_summary()

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name is None:
            return self._registry.get_total_listener_count()
        return self._registry.get_listener_count_for_event(event_name)

    def get_all_events(self) -> list[str]:
        return self._registry.get_all_event_keys()
