"""
Background scheduler for promotion maintenance.

One ``PromotionScheduler`` per process, created in the application lifespan.
It runs a maintenance cycle as soon as it starts and then once per interval.
Each cycle retries transient store failures with exponential backoff and
never lets an exception escape into the event loop.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from cleanbook.core.clock import utc_now
from cleanbook.core.config import Settings
from cleanbook.services.promotion_maintenance import MaintenanceResult, run_promotion_maintenance
from cleanbook.services.promotion_store import (
    StoreError,
    StoreErrorKind,
    TRANSIENT_DB_ERRORS,
    is_transient_error,
)

logger = logging.getLogger(__name__)


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class CycleStatus(str, enum.Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class CycleReport:
    """Outcome of one maintenance cycle."""
    status: CycleStatus
    attempts: int = 0
    result: Optional[MaintenanceResult] = None
    error: Optional[str] = None


def classify_error(error: BaseException) -> StoreErrorKind:
    """
    Decide whether a failed maintenance attempt is worth retrying.

    Structured signals win (StoreError.kind, SQLAlchemy connection errors,
    builtin timeout/connection errors); anything else falls back to
    ``is_transient_error``.
    """
    if isinstance(error, StoreError):
        return error.kind
    if isinstance(error, TRANSIENT_DB_ERRORS + (TimeoutError, ConnectionError)):
        return StoreErrorKind.TRANSIENT
    if is_transient_error(error):
        return StoreErrorKind.TRANSIENT
    return StoreErrorKind.PERMANENT


class PromotionScheduler:
    """
    Periodic driver for promotion maintenance.

    States: IDLE (never started) -> RUNNING -> STOPPED. ``start`` and ``stop``
    return immediately; cycles run on a background asyncio task, with the
    blocking database work pushed to a worker thread. ``stop`` only prevents
    future cycles, so a cycle already in flight finishes, retries included.
    """

    def __init__(
        self,
        maintenance: Callable[[], MaintenanceResult],
        interval_seconds: float = 60 * 60,
        max_attempts: int = 3,
        retry_base_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.maintenance = maintenance
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

        self.state = SchedulerState.IDLE
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[MaintenanceResult] = None
        self.last_report: Optional[CycleReport] = None

        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._cycle_in_progress = False

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_in_progress

    def start(self) -> None:
        """Arm the periodic timer and kick off the first cycle. Must be called inside a running event loop."""
        if self.is_running:
            logger.info("Promotion scheduler already running")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Promotion scheduler needs a running event loop, not started")
            return

        logger.info(
            f"Starting promotion maintenance scheduler (runs every {self.interval_seconds:g}s)"
        )
        self._stop_event = asyncio.Event()
        self._task = loop.create_task(self._run_periodically(self._stop_event))
        self.state = SchedulerState.RUNNING

    def stop(self) -> None:
        """Disarm the timer. No-op unless running."""
        if not self.is_running:
            return

        self._stop_event.set()
        self.state = SchedulerState.STOPPED
        logger.info("Promotion scheduler stopped")

    async def shutdown(self) -> None:
        """Stop and wait for any in-flight cycle to finish."""
        self.stop()
        task, self._task = self._task, None
        if task is not None:
            await task

    async def run_cycle(self) -> CycleReport:
        """
        Run one maintenance cycle with retry.

        Cycles never overlap: if one is already running this returns a
        SKIPPED report without touching the store.
        """
        if self._cycle_in_progress:
            logger.warning("Promotion maintenance cycle already in progress, skipping")
            return CycleReport(status=CycleStatus.SKIPPED)

        self._cycle_in_progress = True
        try:
            report = await self._run_with_retry()
        finally:
            self._cycle_in_progress = False

        self.last_report = report
        return report

    async def _run_periodically(self, stop_event: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()

        while not stop_event.is_set():
            next_run = loop.time() + self.interval_seconds
            await self.run_cycle()

            remaining = max(0.0, next_run - loop.time())
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

    async def _run_with_retry(self) -> CycleReport:
        logger.info("Running scheduled promotion maintenance")

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await asyncio.to_thread(self.maintenance)
            except Exception as e:
                kind = classify_error(e)

                if kind is StoreErrorKind.PERMANENT:
                    logger.error(f"Promotion maintenance failed with non-retryable error: {e}")
                    return CycleReport(status=CycleStatus.FAILED, attempts=attempt, error=str(e))

                if attempt >= self.max_attempts:
                    logger.error(
                        f"Promotion maintenance failed after {attempt} attempts, "
                        f"waiting for next scheduled run: {e}"
                    )
                    return CycleReport(status=CycleStatus.FAILED, attempts=attempt, error=str(e))

                delay = self.retry_base_delay * 2 ** (attempt - 1)
                logger.warning(
                    f"Transient error during promotion maintenance "
                    f"(attempt {attempt}/{self.max_attempts}), retrying in {delay:g}s: {e}"
                )
                await self._sleep(delay)
                continue

            self.last_result = result
            self.last_run_at = utc_now()
            logger.info(
                f"Promotion maintenance completed: {result.expired_promotions} expired promotions, "
                f"{result.cleaned_bookings} cleaned bookings"
            )
            return CycleReport(status=CycleStatus.COMPLETED, attempts=attempt, result=result)

        # max_attempts < 1 never enters the loop
        return CycleReport(status=CycleStatus.FAILED, error="no attempts configured")


def build_promotion_scheduler(
    settings: Settings,
    session_factory: Callable[[], Session],
) -> PromotionScheduler:
    """Scheduler wired to the database through ``session_factory``."""
    return PromotionScheduler(
        maintenance=partial(run_promotion_maintenance, session_factory),
        interval_seconds=settings.PROMOTION_MAINTENANCE_INTERVAL_SECONDS,
        max_attempts=settings.PROMOTION_MAINTENANCE_MAX_ATTEMPTS,
        retry_base_delay=settings.PROMOTION_MAINTENANCE_RETRY_BASE_DELAY,
    )
