"""
tests/unit/test_retry_policy.py

Unit tests for services/retry_policy.py.
"""

from __future__ import annotations

import pytest

from cloudflare.dns_provider import UpdateRecordResponse
from models import UpdateError, UpdateResult
from services.retry_policy import DEFAULT_RETRY_POLICY, RetryPolicy, next_delay

_API = UpdateResult.failed(UpdateError.API, ip="1.2.3.4")
_NETWORK = UpdateResult.failed(UpdateError.NETWORK)
_LOOKUP = UpdateResult.failed(UpdateError.LOOKUP)


@pytest.mark.parametrize(
    "result",
    [UpdateResult.success("1.2.3.4", UpdateRecordResponse(success=True)), UpdateResult.skipped("1.2.3.4")],
)
def test_success_and_skip_reset_counters_and_wait_ten_minutes(result):
    decision = next_delay(result, api_error_count=2, network_error_count=5)
    assert decision.delay == 600
    assert decision.api_error_count == 0
    assert decision.network_error_count == 0
    assert decision.stop is False


def test_first_and_second_api_errors_wait_two_minutes():
    first = next_delay(_API, 0, 0)
    second = next_delay(_API, first.api_error_count, first.network_error_count)
    assert (first.delay, first.api_error_count) == (120, 1)
    assert (second.delay, second.api_error_count) == (120, 2)


def test_third_consecutive_api_error_stops():
    decision = next_delay(_API, api_error_count=2, network_error_count=0)
    assert decision.stop is True
    assert decision.delay is None
    assert decision.api_error_count == 3


def test_first_network_error_retries_immediately():
    decision = next_delay(_NETWORK, 0, 0)
    assert decision.delay == 0
    assert decision.network_error_count == 1


def test_second_network_error_waits_thirty_minutes():
    decision = next_delay(_NETWORK, 0, 1)
    assert decision.delay == 30 * 60
    assert decision.network_error_count == 2


def test_lookup_errors_share_network_track():
    first = next_delay(_LOOKUP, 0, 0)
    second = next_delay(_NETWORK, first.api_error_count, first.network_error_count)
    assert first.delay == 0
    assert second.delay == 1800
    assert second.network_error_count == 2


def test_error_increments_only_its_own_counter():
    api = next_delay(_API, 1, 1)
    network = next_delay(_NETWORK, 1, 1)
    assert (api.api_error_count, api.network_error_count) == (2, 1)
    assert (network.api_error_count, network.network_error_count) == (1, 2)


def test_custom_policy_timings():
    policy = RetryPolicy(update_interval=1, api_retry_delay=0.5, network_retry_delay=3)
    assert next_delay(UpdateResult.skipped("1.2.3.4"), 0, 0, policy).delay == 1
    assert next_delay(_API, 0, 0, policy).delay == 0.5
    assert next_delay(_NETWORK, 0, 1, policy).delay == 3


def test_default_policy_matches_table():
    assert DEFAULT_RETRY_POLICY.update_interval == 600
    assert DEFAULT_RETRY_POLICY.api_retry_delay == 120
    assert DEFAULT_RETRY_POLICY.network_retry_delay == 1800
    assert DEFAULT_RETRY_POLICY.max_api_errors == 2
