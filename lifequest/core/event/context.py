"""
Log context enrichment for event dispatch.
"""

from __future__ import annotations

from typing import Any

from lifequest.core.logging.logger import set_log_context


def apply_event_log_context(event_name: str, payload: dict[str, Any]) -> None:
    """
    Tag subsequent log records in the current task with the event name and
    the payload keys. Values are not logged.

    Examples
    --------
    >>> apply_event_log_context("xp.awarded", {"amount": 30, "source": "quest_step"})
    """
    set_log_context(
        event_name=event_name,
        event_keys=sorted(payload.keys()),
    )
