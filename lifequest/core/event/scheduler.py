"""
EventScheduler: tiered execution of listeners.

- CRITICAL and HIGH run one at a time, in order, each under a timeout.
- NORMAL run concurrently and are awaited together.
- LOW are spawned as background tasks and not awaited.

Every listener is isolated: an exception is logged via
`handle_listener_error` and the listener's result becomes None.
"""

from __future__ import annotations

import asyncio
import inspect
from logging import Logger
from typing import Any, Optional

from lifequest.core.event.errors import handle_listener_error
from lifequest.core.event.metrics import EventMetricsRecorder
from lifequest.core.event.types import EventListener, EventPayload, ListenerPriority


class EventScheduler:
    def __init__(self) -> None:
        # Strong references so LOW-tier tasks are not garbage collected early.
        self._background_tasks: set[asyncio.Task[Any]] = set()

    async def execute(
        self,
        *,
        event_name: str,
        payload: EventPayload,
        listeners: list[EventListener],
        metrics: Optional[EventMetricsRecorder],
        logger: Logger,
        critical_timeout: Optional[float],
        high_timeout: Optional[float],
    ) -> list[Any]:
        """
        Run `listeners` (already sorted) and return the results of every
        awaited tier. LOW-tier results are not collected.
        """
        by_tier: dict[ListenerPriority, list[EventListener]] = {
            priority: [] for priority in ListenerPriority
        }
        for listener in listeners:
            by_tier[listener.priority].append(listener)

        results: list[Any] = []

        sequential = (
            (ListenerPriority.CRITICAL, critical_timeout),
            (ListenerPriority.HIGH, high_timeout),
        )
        for priority, timeout in sequential:
            for listener in by_tier[priority]:
                results.append(
                    await self._run_with_timeout(
                        listener=listener,
                        event_name=event_name,
                        payload=payload,
                        metrics=metrics,
                        logger=logger,
                        timeout=timeout,
                    )
                )

        normal = by_tier[ListenerPriority.NORMAL]
        if normal:
            results.extend(
                await asyncio.gather(
                    *[
                        self._run_listener(
                            listener=listener,
                            event_name=event_name,
                            payload=payload,
                            metrics=metrics,
                            logger=logger,
                        )
                        for listener in normal
                    ]
                )
            )

        low = by_tier[ListenerPriority.LOW]
        if low:
            loop = asyncio.get_running_loop()
            for listener in low:
                task = loop.create_task(
                    self._run_listener(
                        listener=listener,
                        event_name=event_name,
                        payload=payload,
                        metrics=metrics,
                        logger=logger,
                    ),
                    name=f"eventbus-low-{event_name}-{listener.identifier}",
                )
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)

        return results

    async def _run_with_timeout(
        self,
        *,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        metrics: Optional[EventMetricsRecorder],
        logger: Logger,
        timeout: Optional[float],
    ) -> Any:
        call = self._run_listener(
            listener=listener,
            event_name=event_name,
            payload=payload,
            metrics=metrics,
            logger=logger,
        )
        if timeout is None or timeout <= 0:
            return await call

        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "EventBus listener timeout",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "timeout_seconds": timeout,
                },
            )
            handle_listener_error(
                logger=logger,
                event_name=event_name,
                listener=listener,
                exc=exc,
                metrics=metrics,
            )
            return None

    async def _run_listener(
        self,
        *,
        listener: EventListener,
        event_name: str,
        payload: EventPayload,
        metrics: Optional[EventMetricsRecorder],
        logger: Logger,
    ) -> Any:
        logger.debug(
            "EventBus: executing listener",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "priority": listener.priority.name,
            },
        )
        try:
            if inspect.iscoroutinefunction(listener.callback):
                return await listener.callback(payload)

            # Sync callbacks run in the default executor to keep the loop free.
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, listener.callback, payload)
        except Exception as exc:
            handle_listener_error(
                logger=logger,
                event_name=event_name,
                listener=listener,
                exc=exc,
                metrics=metrics,
            )
            return None

    async def drain(self) -> None:
        """Wait for outstanding LOW-tier tasks (used on shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
