"""
app.py

Responsibility: Builds the FastAPI application. The lifespan creates the
shared httpx client, the activity log, the update scheduler and the alert
hook, and optionally starts the update loop.
Does NOT: contain update or retry logic.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from config import Settings, load_settings
from routes.action_routes import router as action_router
from routes.api_routes import router as api_router
from scheduler import StopHook, UpdateScheduler, create_scheduler
from services.alert_service import AlertService
from services.log_service import LogService

logger = logging.getLogger(__name__)

ALERT_SUBJECT = "DynamicDNS update error"


def build_stop_alert(scheduler: UpdateScheduler, alert_service: AlertService) -> StopHook:
    """
    Returns a stop hook that e-mails the last result on an unexpected stop.

    Args:
        scheduler: Source of the last result included in the alert.
        alert_service: Delivers the e-mail.

    Returns:
        A coroutine function suitable for UpdateScheduler.on_stop().
    """

    async def _on_stop(unexpected_stop: bool) -> None:
        if not unexpected_stop:
            return
        last = scheduler.state.last_result
        last_ip = last.ip if last and last.ip else "-"
        last_response = (
            json.dumps(last.api_response.to_dict(), indent=2)
            if last and last.api_response
            else "-"
        )
        await alert_service.send_alert(
            ALERT_SUBJECT,
            f"The script has been interrupted.\nLast ip = {last_ip}\nLast response:\n{last_response}",
        )

    return _on_stop


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Creates the FastAPI app.

    Args:
        settings: Runtime settings; loaded from the environment when omitted,
                  which fails fast if required variables are missing.

    Returns:
        The configured FastAPI application.

    Raises:
        ConfigLoadError: If settings is None and the environment is incomplete.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        async with httpx.AsyncClient(timeout=10.0) as http_client:
            log_service = LogService()
            scheduler = create_scheduler(settings, http_client, log_service)
            scheduler.on_stop(build_stop_alert(scheduler, AlertService(settings)))

            app.state.settings = settings
            app.state.http_client = http_client
            app.state.log_service = log_service
            app.state.scheduler = scheduler

            if settings.autostart:
                scheduler.start()
            logger.info("DDNS updater ready for %s.", settings.record_name)
            try:
                yield
            finally:
                scheduler.close()
                logger.info("DDNS updater shut down.")

    app = FastAPI(title="Cloudflare DDNS updater", lifespan=lifespan)
    app.include_router(api_router)
    app.include_router(action_router)
    return app


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
