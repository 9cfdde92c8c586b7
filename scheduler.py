"""
scheduler.py

Responsibility: Owns the update service state machine. It sequences repeated
update attempts through DelayedTask on an APScheduler AsyncIOScheduler,
applies the retry policy, handles manual sync/async updates and exposes
the status snapshot and the stop hook.
Does NOT: resolve IPs, call Cloudflare, or send alerts directly; those are
delegated to UpdateExecutor and to the registered stop hook.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from functools import partial
from typing import Any

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cloudflare.cloudflare_client import CloudflareClient
from config import Settings
from models import ServiceState, ServiceStatus, UpdateError, UpdateResult, UpdateStatus
from services.delayed_task import DelayedTask, TaskStatus
from services.ip_service import IpService
from services.log_service import LogService
from services.retry_policy import DEFAULT_RETRY_POLICY, RetryPolicy, next_delay
from services.update_executor import UpdateExecutor

logger = logging.getLogger(__name__)

# Called with True when the service stopped itself after repeated API errors,
# False for an explicit stop(). May return an awaitable.
StopHook = Callable[[bool], Awaitable[None] | None]


def _minutes(seconds: float) -> str:
    return f"{seconds / 60:g}"


class UpdateScheduler:
    """
    Self-healing scheduler for the managed A-record.

    Exactly one DelayedTask occupies the active slot at a time. Every task is
    tagged with the generation current when it was scheduled; a completion
    whose generation no longer matches (because the task was replaced or the
    service stopped while its API call was in flight) is discarded instead of
    being committed.

    Collaborators:
        - UpdateExecutor: performs a single update attempt
        - LogService: activity history shown by service_data()
        - AsyncIOScheduler: timer backend for DelayedTask; started lazily
    """

    def __init__(
        self,
        executor: UpdateExecutor,
        log_service: LogService,
        job_scheduler: AsyncIOScheduler | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        """
        Args:
            executor: Performs one lookup-compare-update attempt.
            log_service: Activity log ring buffer.
            job_scheduler: Shared AsyncIOScheduler; a private one is created
                           (and shut down by close()) when omitted.
            retry_policy: Timings and thresholds for the retry table.
        """
        self._executor = executor
        self._log = log_service
        self._owns_jobs = job_scheduler is None
        self._jobs = job_scheduler if job_scheduler is not None else AsyncIOScheduler()
        self._policy = retry_policy
        self._state = ServiceState()
        self._on_stop: StopHook | None = None
        self._background: set[asyncio.Task[Any]] = set()

    # ---------------------------------------------------------------------------
    # Read-only accessors
    # ---------------------------------------------------------------------------

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def status(self) -> ServiceStatus:
        return self._state.status

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    def on_stop(self, callback: StopHook | None) -> None:
        """
        Registers the single stop hook, replacing any previous one.
        """
        self._on_stop = callback

    def start(self) -> None:
        """
        Starts the update loop with an immediate, non-forced attempt.

        Does nothing if the service is already running. A restart after a stop
        begins with fresh error counters.
        """
        if self._state.status is ServiceStatus.RUNNING:
            self._log.log("Service already running.")
            return

        if not self._jobs.running:
            self._jobs.start()

        self._state.api_error_count = 0
        self._state.network_error_count = 0
        self._state.status = ServiceStatus.RUNNING
        self._log.log("Service started.")
        self._schedule(0)

    def stop(self) -> None:
        """
        Cancels the pending attempt and stops the loop.

        Does nothing unless running. Invokes the stop hook with False.
        """
        if self._state.status is not ServiceStatus.RUNNING:
            return

        self._release_active_task()
        self._state.status = ServiceStatus.STOPPED
        self._log.log("Service stopped.")
        self._notify_stop(unexpected_stop=False)

    def close(self) -> None:
        """
        Releases the timer backend. Called from the app lifespan on shutdown.
        """
        self._release_active_task()
        if self._owns_jobs and self._jobs.running:
            self._jobs.shutdown(wait=False)

    # ---------------------------------------------------------------------------
    # Manual updates
    # ---------------------------------------------------------------------------

    async def update_sync(self, force_update: bool = False) -> UpdateResult | None:
        """
        Replaces the pending attempt with an immediate one and waits for it.

        The scheduling loop continues from the new attempt's result.

        Args:
            force_update: Call the API even if the IP has not changed.

        Returns:
            The committed UpdateResult, or None when the service is not
            running or the new attempt was itself superseded before committing.
        """
        if self._state.status is not ServiceStatus.RUNNING:
            logger.debug("update_sync ignored, service is %s.", self._state.status.value)
            return None

        self._log.log("Manual update (sync).")
        self._release_active_task()
        watcher = self._schedule(0, force_update)
        # A cancelled caller must not cancel the watcher.
        return await asyncio.shield(watcher)

    async def update_async(self, force_update: bool = True) -> UpdateResult:
        """
        Runs one attempt outside the schedule.

        Updates the last-result bookkeeping only; the pending task, the error
        counters and the retry timing are left untouched.

        Args:
            force_update: Call the API even if the IP has not changed.

        Returns:
            The attempt's UpdateResult. An unexpected failure is returned as
            a lookup error, the same way the scheduled loop commits it.
        """
        self._log.log("Manual update (async).")
        try:
            result = await self._executor.execute(force_update, self._state.last_result)
        except Exception as exc:
            result = self._unexpected_failure(exc)
        self._record_result(result)
        return result

    # ---------------------------------------------------------------------------
    # Status snapshot
    # ---------------------------------------------------------------------------

    def service_data(self) -> dict[str, Any]:
        """
        Returns a JSON-ready snapshot of the service for GET /status.
        """
        state = self._state
        task = state.active_task
        if task is not None and task.get_status() is TaskStatus.PENDING:
            # Halves round up.
            next_update_in = f"{math.floor(task.get_time_left() / 60 + 0.5)} min"
        else:
            next_update_in = "-"

        return {
            "status": state.status.value,
            "last_result": state.last_result.to_dict() if state.last_result else None,
            "last_update_skipped": state.last_update_skipped,
            "last_successful_update_date": (
                state.last_successful_update_date.isoformat()
                if state.last_successful_update_date
                else None
            ),
            "log_history": [entry.to_dict() for entry in self._log.get_recent()],
            "next_update_in": next_update_in,
        }

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    def _schedule(self, delay: float, force_update: bool = False) -> asyncio.Task[UpdateResult | None]:
        """
        Puts a new DelayedTask in the active slot and starts watching it.

        Returns:
            The watcher task, resolving to the committed result or None.
        """
        self._state.generation += 1
        generation = self._state.generation

        self._log.log(f"Next record update in {_minutes(delay)} min")
        task: DelayedTask[UpdateResult] = DelayedTask(
            delay,
            partial(self._attempt, force_update),
            self._jobs,
            raise_on_error=False,
        )
        self._state.active_task = task
        return self._spawn(self._watch(task, generation))

    async def _attempt(self, force_update: bool) -> UpdateResult:
        # last_result is read at fire time, not at scheduling time.
        return await self._executor.execute(force_update, self._state.last_result)

    async def _watch(self, task: DelayedTask[UpdateResult], generation: int) -> UpdateResult | None:
        outcome = await task.get_result()
        if outcome.status is TaskStatus.CANCELED:
            return None

        if generation != self._state.generation or self._state.status is not ServiceStatus.RUNNING:
            logger.debug("Discarding result of superseded update task (generation %d).", generation)
            return None

        if outcome.status is TaskStatus.ERROR:
            result = self._unexpected_failure(outcome.error)
        else:
            result = outcome.result

        self._state.active_task = None
        self._commit(result)
        return result

    def _commit(self, result: UpdateResult) -> None:
        """
        Stores result, applies the retry policy and schedules the next attempt
        or stops the service.
        """
        state = self._state
        self._record_result(result)

        decision = next_delay(result, state.api_error_count, state.network_error_count, self._policy)
        state.api_error_count = decision.api_error_count
        state.network_error_count = decision.network_error_count

        if decision.stop:
            self._log.log("Repeated API errors.", level="ERROR")
            state.generation += 1
            state.status = ServiceStatus.STOPPED
            self._log.log("Service stopped.")
            self._notify_stop(unexpected_stop=True)
            return

        if result.is_error:
            if result.error is not UpdateError.API and decision.delay > 0:
                self._log.log("Possible network problem.", level="WARNING")
            if decision.delay == 0:
                self._log.log("Retry")
            else:
                self._log.log(f"Retry in {_minutes(decision.delay)} min")

        self._schedule(decision.delay)

    def _record_result(self, result: UpdateResult) -> None:
        self._state.last_result = result
        self._state.last_update_skipped = result.status is UpdateStatus.SKIPPED
        if result.status is UpdateStatus.SUCCESS:
            self._state.last_successful_update_date = datetime.now(timezone.utc)

    def _release_active_task(self) -> None:
        """Empties the active slot so no outstanding task can commit."""
        task = self._state.active_task
        self._state.active_task = None
        self._state.generation += 1
        if task is not None:
            task.cancel()

    def _unexpected_failure(self, exc: BaseException | None) -> UpdateResult:
        """Logs an unclassified attempt failure and maps it to a lookup error."""
        logger.error("Update attempt raised unexpectedly.", exc_info=exc)
        self._log.log(f"Unexpected update failure: {exc}", level="ERROR")
        return UpdateResult.failed(UpdateError.LOOKUP)

    def _notify_stop(self, unexpected_stop: bool) -> None:
        if self._on_stop is None:
            return
        try:
            outcome = self._on_stop(unexpected_stop)
        except Exception:
            logger.exception("Stop hook failed.")
            return
        if inspect.isawaitable(outcome):
            self._spawn(outcome)

    def _spawn(self, awaitable: Awaitable[Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(awaitable)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed.", exc_info=exc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def create_scheduler(
    settings: Settings,
    http_client: httpx.AsyncClient,
    log_service: LogService,
) -> UpdateScheduler:
    """
    Wires the production collaborators into an UpdateScheduler.

    Args:
        settings: Record coordinates, API token, IP provider and retry timings.
        http_client: The shared httpx.AsyncClient from app.state.
        log_service: The activity log ring buffer from app.state.

    Returns:
        A configured but not yet started UpdateScheduler.
    """
    cloudflare_client = CloudflareClient(http_client)
    cloudflare_client.configure(settings.api_token)

    executor = UpdateExecutor(
        IpService(http_client, provider_url=settings.ip_provider_url),
        cloudflare_client,
        log_service,
        zone_id=settings.zone_id,
        record_id=settings.record_id,
        record_name=settings.record_name,
    )
    policy = RetryPolicy(
        update_interval=settings.update_interval,
        api_retry_delay=settings.api_retry_delay,
        network_retry_delay=settings.network_retry_delay,
    )
    logger.info(
        "Update scheduler created for %s, interval: %gs.",
        settings.record_name,
        settings.update_interval,
    )
    return UpdateScheduler(executor, log_service, retry_policy=policy)
