"""
services/retry_policy.py

Responsibility: Maps the outcome of one update attempt plus the rolling error
counters to the delay before the next attempt, or to STOP.
Does NOT: hold state, schedule tasks, or log.
"""

from __future__ import annotations

from dataclasses import dataclass

from models import UpdateError, UpdateResult


@dataclass(frozen=True)
class RetryPolicy:
    """
    Timings and thresholds for the retry table. Delays are in seconds.
    """

    # Regular re-check period after a success or a skip
    update_interval: float = 10 * 60

    # Wait after Cloudflare rejected an update
    api_retry_delay: float = 2 * 60

    # Wait once connectivity errors persist past the immediate retries
    network_retry_delay: float = 30 * 60

    # STOP once more than this many consecutive API errors occurred
    max_api_errors: int = 2

    # Consecutive network/lookup errors retried with no delay
    immediate_network_retries: int = 1


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass(frozen=True)
class RetryDecision:
    """
    Next step for the scheduler plus the counters to store.

    delay is None when the service must stop.
    """

    delay: float | None
    api_error_count: int
    network_error_count: int

    @property
    def stop(self) -> bool:
        return self.delay is None


def next_delay(
    result: UpdateResult,
    api_error_count: int,
    network_error_count: int,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> RetryDecision:
    """
    Applies the retry table to one attempt's outcome.

    Success or skip resets both counters and waits update_interval. An API
    error bumps the API counter and either waits api_retry_delay or stops.
    Network and lookup errors share one counter: the first retries at once,
    later ones wait network_retry_delay.

    Args:
        result: Outcome of the attempt just finished.
        api_error_count: Consecutive API errors before this attempt.
        network_error_count: Consecutive network/lookup errors before this attempt.
        policy: Timings and thresholds to apply.

    Returns:
        The RetryDecision holding the delay (or STOP) and updated counters.
    """
    if not result.is_error:
        return RetryDecision(delay=policy.update_interval, api_error_count=0, network_error_count=0)

    if result.error is UpdateError.API:
        api_error_count += 1
        if api_error_count > policy.max_api_errors:
            return RetryDecision(
                delay=None,
                api_error_count=api_error_count,
                network_error_count=network_error_count,
            )
        return RetryDecision(
            delay=policy.api_retry_delay,
            api_error_count=api_error_count,
            network_error_count=network_error_count,
        )

    network_error_count += 1
    delay = (
        policy.network_retry_delay
        if network_error_count > policy.immediate_network_retries
        else 0.0
    )
    return RetryDecision(
        delay=delay,
        api_error_count=api_error_count,
        network_error_count=network_error_count,
    )
