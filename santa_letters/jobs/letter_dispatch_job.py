"""
Letter dispatch scheduler.

Periodically flushes the LettersService through the email transport. Fires
follow the cron expression `0 */N * * * *`: second 0 of every minute whose
minute-of-hour is a multiple of N, in server local time like cron. The
timer is a single asyncio task that is cancelled on stop; a check already in
progress is shielded and runs to completion. shutdown() also waits for it.
"""

import asyncio
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime, timedelta

from pydantic import ValidationError

from santa_letters.infrastructure.observability.logging import get_logger
from santa_letters.models.domain.scheduler_domain import (
    EmailCheckResult,
    SchedulerConfig,
    SchedulerRuntimeState,
    SchedulerStatus,
)
from santa_letters.services.letters_service import LettersService

logger = get_logger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def next_fire_time(after: datetime, interval_minutes: int) -> datetime:
    """First minute boundary strictly after `after` whose minute is a multiple of the interval."""
    candidate = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
    # minute % N only hits 0 on minute 0 once N >= 60, so this loops at most an hour
    while candidate.minute % interval_minutes != 0:
        candidate += timedelta(minutes=1)
    return candidate


class LetterDispatchJobError(Exception):
    """Custom exception for letter dispatch scheduler operations."""

    def __init__(self, message: str, operation: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class LetterDispatchJob:
    """
    Scheduled dispatch of pending letters.

    Owns its runtime state (running flag, last check, processed counter); the
    queue is injected. start() must be called from inside a running event loop.
    """

    def __init__(
        self,
        letters_service: LettersService,
        config: dict | None = None,
        clock: Callable[[], datetime] = _local_now,
    ):
        self.letters_service = letters_service
        self._config = self._build_config({}, config or {})
        self.state = SchedulerRuntimeState()
        self._timer_task: asyncio.Task | None = None
        self._active_check: asyncio.Task | None = None
        self._clock = clock

    @staticmethod
    def _build_config(base: dict, changes: dict) -> SchedulerConfig:
        try:
            return SchedulerConfig(**{**base, **changes})
        except ValidationError as e:
            raise LetterDispatchJobError(
                f"Invalid scheduler configuration: {e}", operation="config", recoverable=False
            ) from e

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    def start(self) -> None:
        if self.state.is_running:
            logger.info("Letter dispatch scheduler is already running")
            return

        if not self._config.enabled:
            logger.info("Letter dispatch scheduler is disabled")
            return

        self._timer_task = asyncio.get_running_loop().create_task(
            self._run_timer(self._config.interval_minutes),
            name="letter-dispatch-timer",
        )
        self.state.is_running = True

        logger.info(
            "Letter dispatch scheduler started",
            interval_minutes=self._config.interval_minutes,
        )

    def stop(self) -> None:
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        self.state.is_running = False
        logger.info("Letter dispatch scheduler stopped")

    async def shutdown(self) -> None:
        """Stop the timer and wait until it, and any check it started, has finished."""
        timer = self._timer_task
        self.stop()

        if timer is not None:
            with suppress(asyncio.CancelledError):
                await timer

        if self._active_check is not None and not self._active_check.done():
            await self._active_check

    def update_config(self, **changes) -> SchedulerConfig:
        """
        Merge changes into the config, restarting the timer if it was running.

        Raises:
            LetterDispatchJobError: If the merged config is invalid; nothing changes
        """
        new_config = self._build_config(self._config.model_dump(), changes)
        was_running = self.state.is_running

        if was_running:
            self.stop()

        self._config = new_config

        if was_running and self._config.enabled:
            self.start()

        logger.info("Letter dispatch scheduler config updated", **self._config.model_dump())
        return self._config

    async def run_manual_check(self) -> EmailCheckResult:
        logger.info("Running manual letter dispatch check")
        return await self._check_and_process()

    async def _run_timer(self, interval_minutes: int) -> None:
        last_fire: datetime | None = None
        while True:
            now = self._clock()
            fire_at = next_fire_time(max(now, last_fire) if last_fire else now, interval_minutes)
            await asyncio.sleep(max((fire_at - now).total_seconds(), 0))
            last_fire = fire_at

            logger.info("Checking for pending letters", scheduled_for=fire_at.isoformat())
            self._active_check = asyncio.get_running_loop().create_task(self._check_and_process())
            await asyncio.shield(self._active_check)

    async def _check_and_process(self) -> EmailCheckResult:
        try:
            self.state.last_check = self._clock()

            pending_count = len(self.letters_service.pending_letters)
            if pending_count == 0:
                logger.info("No pending letters found")
                return EmailCheckResult(success=True, new_letters_count=0)

            logger.info("Found pending letters to send", count=pending_count)

            flushed = await self.letters_service.flush_pending()
            self.state.total_letters_processed += len(flushed)

            logger.info(
                "Letters sent",
                count=len(flushed),
                total_processed=self.state.total_letters_processed,
            )
            return EmailCheckResult(success=True, new_letters_count=len(flushed))

        except Exception as e:
            logger.error("Error processing letters", error=str(e), error_type=type(e).__name__)
            return EmailCheckResult(success=False, new_letters_count=0, error=str(e))

    def get_status(self) -> SchedulerStatus:
        # next_run is an estimate; the real fire lands on the next aligned boundary
        next_run = None
        if self.state.is_running:
            next_run = self._clock() + timedelta(minutes=self._config.interval_minutes)

        return SchedulerStatus(
            is_running=self.state.is_running,
            next_run=next_run,
            last_check=self.state.last_check,
            total_emails_processed=self.state.total_letters_processed,
        )

    def get_statistics(self) -> dict:
        return {
            "total_emails_processed": self.state.total_letters_processed,
            "is_running": self.state.is_running,
            "last_check": self.state.last_check,
            "pending_letters": len(self.letters_service.pending_letters),
            "sent_letters": len(self.letters_service.sent_letters),
            "config": self._config.model_dump(),
        }

    def health_check(self) -> dict:
        """
        Health check for the dispatch scheduler.

        Unhealthy when enabled but not running, or when no check has happened
        for more than two intervals.
        """
        now = self._clock()
        overdue_threshold = timedelta(minutes=self._config.interval_minutes * 2)
        is_overdue = (
            self.state.is_running
            and self.state.last_check is not None
            and (now - self.state.last_check) > overdue_threshold
        )
        stalled = self._config.enabled and not self.state.is_running

        health = {
            "healthy": not (is_overdue or stalled),
            "service": "letter_dispatch_scheduler",
            "is_running": self.state.is_running,
            "last_check": self.state.last_check.isoformat() if self.state.last_check else None,
            "is_overdue": is_overdue,
            "configuration": self._config.model_dump(),
        }

        if stalled:
            health["warning"] = "Scheduler enabled but not running"
        elif is_overdue:
            health["warning"] = (
                f"Check overdue by {(now - self.state.last_check).total_seconds() / 60:.1f} minutes"
            )

        return health
