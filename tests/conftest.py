"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All HTTP fixtures use respx.mock; no real network calls are made in any test.
Timer-based tests share a per-test AsyncIOScheduler.
"""

from __future__ import annotations

import httpx
import pytest
import respx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import Settings
from services.log_service import LogService

# ---------------------------------------------------------------------------
# Settings fixture: complete configuration, loop not auto-started
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> Settings:
    """Returns Settings for a test record with autostart disabled."""
    return Settings(
        api_token="test-token",
        zone_id="zone123",
        record_id="rec1",
        record_name="home.example.com",
        autostart=False,
    )


# ---------------------------------------------------------------------------
# HTTP mock fixture: intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests. Use this fixture
    wherever a service or client would normally make an outbound request.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ---------------------------------------------------------------------------
# Shared httpx.AsyncClient fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    The client is closed after each test.
    """
    async with httpx.AsyncClient() as client:
        yield client


# ---------------------------------------------------------------------------
# Timer backend fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
async def job_scheduler():
    """
    Yields a running AsyncIOScheduler bound to the test's event loop.

    Shut down after the test so no job outlives it.
    """
    scheduler = AsyncIOScheduler()
    scheduler.start()
    yield scheduler
    scheduler.shutdown(wait=False)


@pytest.fixture()
def log_service() -> LogService:
    return LogService()
