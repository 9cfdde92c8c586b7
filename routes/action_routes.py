"""
routes/action_routes.py

Responsibility: POST handlers that control the update service: start, stop,
and manual updates.
Does NOT: contain scheduling logic or call Cloudflare directly; everything is
delegated to UpdateScheduler.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from dependencies import get_scheduler
from models import ServiceStatus
from scheduler import UpdateScheduler

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Service lifecycle
# ---------------------------------------------------------------------------


@router.post("/start-service", response_class=PlainTextResponse)
async def start_service(scheduler: UpdateScheduler = Depends(get_scheduler)) -> str:
    """
    Starts the update loop. Idempotent.

    Args:
        scheduler: The process-wide UpdateScheduler.

    Returns:
        A short plain-text confirmation.
    """
    if scheduler.status is ServiceStatus.RUNNING:
        return "Service already running."
    scheduler.start()
    return "Service started."


@router.post("/stop-service", response_class=PlainTextResponse)
async def stop_service(scheduler: UpdateScheduler = Depends(get_scheduler)) -> str:
    """
    Stops the update loop. Idempotent.

    Args:
        scheduler: The process-wide UpdateScheduler.

    Returns:
        A short plain-text confirmation.
    """
    if scheduler.status is not ServiceStatus.RUNNING:
        return "Service already stopped."
    scheduler.stop()
    return "Service stopped."


# ---------------------------------------------------------------------------
# Manual updates
# ---------------------------------------------------------------------------


@router.post("/update")
async def update(
    force: bool = Query(False),
    scheduler: UpdateScheduler = Depends(get_scheduler),
) -> JSONResponse:
    """
    Runs an immediate update in place of the pending scheduled one.

    Args:
        force: Call Cloudflare even if the IP has not changed.
        scheduler: The process-wide UpdateScheduler.

    Returns:
        {"message", "result"}; HTTP 409 when the service is not running.
    """
    if scheduler.status is not ServiceStatus.RUNNING:
        return JSONResponse(
            status_code=409,
            content={"message": "Service not running.", "result": None},
        )

    result = await scheduler.update_sync(force)
    return JSONResponse(
        content={
            "message": "Update requested.",
            "result": result.to_dict() if result else None,
        }
    )


@router.post("/update-async")
async def update_async(
    force: bool = Query(True),
    scheduler: UpdateScheduler = Depends(get_scheduler),
) -> JSONResponse:
    """
    Runs one update outside the schedule without touching the pending task.

    Args:
        force: Call Cloudflare even if the IP has not changed.
        scheduler: The process-wide UpdateScheduler.

    Returns:
        {"message", "result"}.
    """
    result = await scheduler.update_async(force)
    return JSONResponse(content={"message": "Update performed.", "result": result.to_dict()})
