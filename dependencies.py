"""
dependencies.py

Responsibility: Declares the FastAPI Depends() provider functions for the
app-level objects used by the route handlers.
Does NOT: contain business logic, HTTP handlers, or object construction.
"""

from __future__ import annotations

from fastapi import Request

from scheduler import UpdateScheduler


def get_scheduler(request: Request) -> UpdateScheduler:
    """
    Returns the process-wide UpdateScheduler stored on app.state.

    The scheduler is created once during the FastAPI lifespan and owns the
    service state, the activity log and the update loop.

    Args:
        request: The current FastAPI Request (injected automatically).

    Returns:
        The UpdateScheduler created during the lifespan.
    """
    return request.app.state.scheduler
