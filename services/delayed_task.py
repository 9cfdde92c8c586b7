"""
services/delayed_task.py

Responsibility: Provides DelayedTask, a cancellable single-shot unit of
deferred async work backed by a one-off APScheduler "date" job, with an
observable status and a result that resolves exactly once.
Does NOT: decide what to run, chain tasks together, or retry failures.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Generic, TypeVar
from uuid import uuid4

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskStatus(str, Enum):
    PENDING = "pending"
    EXECUTED = "executed"
    CANCELED = "canceled"
    ERROR = "error"


@dataclass(frozen=True)
class TaskOutcome(Generic[T]):
    """
    Terminal result of a DelayedTask.

    result is only set for EXECUTED, error only for ERROR.
    """

    status: TaskStatus
    result: T | None = None
    error: BaseException | None = None


class DelayedTask(Generic[T]):
    """
    Runs work once after delay seconds unless cancelled first.

    The timer is a one-shot APScheduler job on the shared AsyncIOScheduler, so
    firing and cancel() both run on the event loop thread and whichever runs
    first wins; the other is a no-op. Firing moves the status to EXECUTED
    straight away, so a task still running its work can no longer be
    cancelled; get_result() resolves once the work finishes.

    Collaborators:
        - AsyncIOScheduler: must be running on the current event loop
    """

    def __init__(
        self,
        delay: float,
        work: Callable[[], Awaitable[T] | T],
        scheduler: AsyncIOScheduler,
        *,
        raise_on_error: bool = True,
    ) -> None:
        """
        Schedules work and returns immediately.

        Args:
            delay: Seconds to wait before running work; negatives mean "now".
            work: Coroutine function or plain callable producing the result.
            scheduler: The running AsyncIOScheduler that owns the timer.
            raise_on_error: When True a failure in work is re-raised from
                            get_result(); when False it resolves as an
                            ERROR outcome instead.
        """
        self._delay = max(0.0, float(delay))
        self._work = work
        self._raise_on_error = raise_on_error
        self._created_at = time.monotonic()
        self._status = TaskStatus.PENDING
        self._result: asyncio.Future[TaskOutcome[T]] = asyncio.get_running_loop().create_future()

        run_date = datetime.now(timezone.utc) + timedelta(seconds=self._delay)
        # misfire_grace_time=None: the job runs however late the scheduler
        # gets to it.
        self._job = scheduler.add_job(
            self._fire,
            trigger="date",
            run_date=run_date,
            id=f"delayed-task-{uuid4().hex}",
            misfire_grace_time=None,
        )
        logger.debug("Delayed task %s scheduled in %.3fs.", self._job.id, self._delay)

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    @property
    def delay(self) -> float:
        return self._delay

    def cancel(self) -> None:
        """
        Cancels the task if it is still PENDING.

        Resolves the result with a CANCELED outcome. Calling it again, or after
        the task has fired, does nothing.
        """
        if self._status is not TaskStatus.PENDING:
            return

        self._status = TaskStatus.CANCELED
        try:
            self._job.remove()
        except JobLookupError:
            # Job already handed to the executor; _fire will see CANCELED.
            logger.debug("Delayed task %s already dispatched at cancel time.", self._job.id)
        self._result.set_result(TaskOutcome(status=TaskStatus.CANCELED))
        logger.debug("Delayed task %s canceled.", self._job.id)

    async def get_result(self) -> TaskOutcome[T]:
        """
        Waits for the task's single terminal resolution.

        Returns:
            An EXECUTED, CANCELED or (with raise_on_error=False) ERROR outcome.

        Raises:
            Exception: Whatever work raised, when raise_on_error is True.
        """
        # Shield so a caller giving up on the wait cannot cancel the shared future.
        return await asyncio.shield(self._result)

    def get_status(self) -> TaskStatus:
        """
        Returns EXECUTED from the moment the task fires, even while its work
        is still running. Use get_result() to wait for completion.
        """
        return self._status

    def get_time_left(self) -> float:
        """
        Returns the seconds until the task fires; 0 once it is no longer PENDING.
        """
        if self._status is not TaskStatus.PENDING:
            return 0.0
        elapsed = time.monotonic() - self._created_at
        return max(0.0, self._delay - elapsed)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _fire(self) -> None:
        """APScheduler job body: runs work and resolves the result once."""
        if self._status is not TaskStatus.PENDING:
            return
        self._status = TaskStatus.EXECUTED

        try:
            value = self._work()
            if inspect.isawaitable(value):
                value = await value
        except asyncio.CancelledError:
            # Event loop or scheduler shutting down mid-flight.
            self._status = TaskStatus.CANCELED
            self._result.set_result(TaskOutcome(status=TaskStatus.CANCELED))
            raise
        except Exception as exc:
            self._status = TaskStatus.ERROR
            if self._raise_on_error:
                self._result.set_exception(exc)
            else:
                self._result.set_result(TaskOutcome(status=TaskStatus.ERROR, error=exc))
            return

        self._result.set_result(TaskOutcome(status=TaskStatus.EXECUTED, result=value))


def plan_task(
    run_date: datetime,
    work: Callable[[], Awaitable[T] | T],
    scheduler: AsyncIOScheduler,
    *,
    raise_on_error: bool = True,
) -> DelayedTask[T]:
    """
    Creates a DelayedTask that fires at an absolute point in time.

    Args:
        run_date: When to run; naive datetimes are compared against local time.
        work: Coroutine function or plain callable producing the result.
        scheduler: The running AsyncIOScheduler that owns the timer.
        raise_on_error: See DelayedTask.

    Returns:
        The scheduled DelayedTask. A run_date in the past fires immediately.
    """
    delay = (run_date - datetime.now(run_date.tzinfo)).total_seconds()
    return DelayedTask(delay, work, scheduler, raise_on_error=raise_on_error)
