"""
routes/api_routes.py

Responsibility: Read-only JSON endpoints: the service status snapshot and a
liveness probe.
Does NOT: mutate state or trigger updates.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from dependencies import get_scheduler
from scheduler import UpdateScheduler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status")
async def get_status(scheduler: UpdateScheduler = Depends(get_scheduler)) -> dict[str, Any]:
    """
    Returns the live service snapshot.

    Args:
        scheduler: The process-wide UpdateScheduler.

    Returns:
        status, last_result, last_update_skipped, last_successful_update_date,
        log_history and next_update_in.
    """
    return scheduler.service_data()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe used by container health checks."""
    return {"status": "ok"}
