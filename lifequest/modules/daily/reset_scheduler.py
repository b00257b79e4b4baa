"""
Daily reset scheduler: re-arms daily quests once per day at a fixed local
hour in a fixed timezone.

Rules
-----
- The date key is `YYYY-MM-DD` in `Config.RESET_TIMEZONE`.
- A reset is due iff the stored key differs from today's AND the local hour
  is at or past `Config.RESET_CUTOVER_HOUR`.
- After any number of missed days exactly one reset happens; the stored key
  then equals today's, so later checks the same day do nothing.
- An empty stored key (first launch) is set to today without resetting.

The periodic loop runs every `Config.RESET_CHECK_INTERVAL_SECONDS` and takes
the tracker's mutation lock for each check.
"""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional

import pytz

from lifequest.core.config.config import Config
from lifequest.core.logging.logger import LogContext, get_logger
from lifequest.domain.models.progress_state import ProgressState
from lifequest.modules.quests.state_machine import QuestStateMachine

logger = get_logger(__name__)

DATE_KEY_FORMAT = "%Y-%m-%d"


class ResetOutcome(str, Enum):
    NOT_DUE = "not_due"
    INITIALISED = "initialised"
    RESET = "reset"


class DailyResetScheduler:
    """
    Cutover detection and periodic checking for one `ProgressState`.

    Args:
        state: Aggregate whose daily quests are re-armed
        state_machine: Performs the actual reset
        lock: Mutation lock shared with the tracker service
        on_change: Awaited after a check changed the state (publish + save)
        timezone_name, cutover_hour, interval_seconds: Override `Config`
        clock: Returns the current aware datetime

    Examples
    --------
    >>> scheduler = DailyResetScheduler(state, machine, lock=tracker.lock)
    >>> scheduler.is_reset_due("2026-10-16", kyiv.localize(datetime(2026, 10, 17, 4, 0)))
    True
    """

    def __init__(
        self,
        state: ProgressState,
        state_machine: QuestStateMachine,
        *,
        lock: Optional[asyncio.Lock] = None,
        on_change: Optional[Callable[[ResetOutcome], Awaitable[None]]] = None,
        timezone_name: Optional[str] = None,
        cutover_hour: Optional[int] = None,
        interval_seconds: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.state = state
        self.state_machine = state_machine
        self.lock = lock or asyncio.Lock()
        self._on_change = on_change

        self.timezone = pytz.timezone(timezone_name or Config.RESET_TIMEZONE)
        self.cutover_hour = Config.RESET_CUTOVER_HOUR if cutover_hour is None else cutover_hour
        if not 0 <= self.cutover_hour <= 23:
            raise ValueError(f"cutover_hour must be between 0 and 23, got {self.cutover_hour}")
        self.interval_seconds = float(
            interval_seconds if interval_seconds is not None else Config.RESET_CHECK_INTERVAL_SECONDS
        )
        self._clock = clock or (lambda: datetime.now(pytz.utc))
        self._task: Optional[asyncio.Task[None]] = None

    # ------------------------------------------------------------------ #
    # Time helpers
    # ------------------------------------------------------------------ #

    def local_time(self, now: Optional[datetime] = None) -> datetime:
        """`now` converted to the reset timezone; naive datetimes are taken as UTC."""
        now = now or self._clock()
        if now.tzinfo is None:
            now = pytz.utc.localize(now)
        return now.astimezone(self.timezone)

    def current_date_key(self, now: Optional[datetime] = None) -> str:
        return self.local_time(now).strftime(DATE_KEY_FORMAT)

    def is_reset_due(self, last_reset_date: str, now: Optional[datetime] = None) -> bool:
        local = self.local_time(now)
        return (
            last_reset_date != local.strftime(DATE_KEY_FORMAT)
            and local.hour >= self.cutover_hour
        )

    # ------------------------------------------------------------------ #
    # Checks
    # ------------------------------------------------------------------ #

    def check(self, now: Optional[datetime] = None) -> ResetOutcome:
        """
        Reset daily quests if the cutover has passed. Caller holds the lock.
        """
        today = self.current_date_key(now)

        if not self.state.last_reset_date:
            self.state.set_last_reset_date(today)
            logger.info("Daily reset date initialised", extra={"date_key": today})
            return ResetOutcome.INITIALISED

        if not self.is_reset_due(self.state.last_reset_date, now):
            return ResetOutcome.NOT_DUE

        previous = self.state.last_reset_date
        reset_count = self.state_machine.reset_daily_quests()
        self.state.set_last_reset_date(today)
        logger.info(
            "Daily quests reset",
            extra={
                "previous_date_key": previous,
                "date_key": today,
                "reset_count": reset_count,
            },
        )
        return ResetOutcome.RESET

    async def run_check(self, now: Optional[datetime] = None) -> ResetOutcome:
        """
        `check` under the mutation lock. The change callback runs after the
        lock is released so it may take the lock itself.
        """
        async with LogContext(action="daily_reset_check", component="daily"):
            async with self.lock:
                outcome = self.check(now)
            if outcome is not ResetOutcome.NOT_DUE and self._on_change is not None:
                await self._on_change(outcome)
        return outcome

    # ------------------------------------------------------------------ #
    # Periodic loop
    # ------------------------------------------------------------------ #

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop(), name="lifequest-daily-reset")
        logger.info(
            "Daily reset scheduler started",
            extra={
                "timezone": self.timezone.zone,
                "cutover_hour": self.cutover_hour,
                "interval_seconds": self.interval_seconds,
            },
        )

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_check()
            except Exception as exc:
                logger.error(
                    "Daily reset check failed",
                    extra={"error_type": type(exc).__name__, "error": str(exc)},
                    exc_info=True,
                )
            await asyncio.sleep(self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Daily reset scheduler stopped")
