"""
Listener error handling for the EventBus.

A failing listener never breaks the publisher: the error is logged with its
listener id and counted, and dispatch continues with the next listener.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

from lifequest.core.event.metrics import EventMetricsRecorder
from lifequest.core.event.types import EventListener


def handle_listener_error(
    *,
    logger: Logger,
    event_name: str,
    listener: EventListener,
    exc: BaseException,
    metrics: Optional[EventMetricsRecorder],
) -> None:
    """Log a listener failure and update metrics. Never raises."""
    if metrics is not None:
        metrics.record_error(event_name)

    logger.error(
        "EventBus listener error",
        extra={
            "event_name": event_name,
            "listener_id": listener.identifier,
            "priority": listener.priority.name,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=(type(exc), exc, exc.__traceback__),
    )
