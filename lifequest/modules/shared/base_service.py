"""
Base Service Foundation

Purpose
-------
Provides the foundational class for LifeQuest services. Services implement
the tracker's rules, drain domain events from the aggregate and publish
them, and log every operation with structured context.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Event emission helpers

What this class does NOT do:
- Hold user state (that lives in the `ProgressState` aggregate)
- Talk to storage media directly (that's the DurableStore's job)

Usage
-----
    class ProgressTrackerService(BaseService):
        def __init__(self, state, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)
            self.state = state
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

if TYPE_CHECKING:
    from logging import Logger

    from lifequest.core.config.manager import ConfigManager
    from lifequest.core.event.bus import EventBus
    from lifequest.domain.models.base import DomainEvent


class BaseService:
    """
    Base class for all LifeQuest services.

    Args:
        config_manager: YAML configuration manager
        event_bus: Event bus for change notification
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Publish an event on the injected bus.

        Args:
            event_type: Type/name of the event
            data: Event payload data
            context: Optional additional context merged into the payload
        """
        await self._events.publish(event_type, {**data, **(context or {})})

    async def publish_domain_events(self, events: Iterable[DomainEvent]) -> int:
        """Publish drained aggregate events in the order they were recorded."""
        published = 0
        for event in events:
            await self.emit_event(
                event.event_name,
                event.payload,
                {"occurred_at": event.occurred_at.isoformat()},
            )
            published += 1
        return published

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

