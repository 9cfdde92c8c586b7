"""
services/update_executor.py

Responsibility: Performs one update attempt (IP lookup, comparison against
the last known IP, conditional Cloudflare call) and classifies the outcome.
Does NOT: retry, wait, or keep state between attempts.
"""

from __future__ import annotations

import logging

from cloudflare.dns_provider import RecordApiClient, UpdateRecordBody
from exceptions import IpLookupError, NetworkError
from models import UpdateError, UpdateResult
from services.ip_service import IpService
from services.log_service import LogService

logger = logging.getLogger(__name__)


class UpdateExecutor:
    """
    Runs a single lookup-compare-update cycle for the managed A-record.

    Collaborators:
        - IpService: provides the current public IP
        - RecordApiClient: applies the update (CloudflareClient in production)
        - LogService: records UI-visible activity entries
    """

    def __init__(
        self,
        ip_service: IpService,
        api_client: RecordApiClient,
        log_service: LogService,
        *,
        zone_id: str,
        record_id: str,
        record_name: str,
    ) -> None:
        """
        Args:
            ip_service: Resolves the host's public IPv4 address.
            api_client: Any RecordApiClient implementation.
            log_service: Writes activity log entries.
            zone_id: Cloudflare zone holding the record.
            record_id: Cloudflare identifier of the record.
            record_name: Fully-qualified record name sent with every update.
        """
        self._ip_service = ip_service
        self._api = api_client
        self._log = log_service
        self._zone_id = zone_id
        self._record_id = record_id
        self._record_name = record_name

    async def execute(
        self,
        force_update: bool = False,
        last_result: UpdateResult | None = None,
    ) -> UpdateResult:
        """
        Performs one update attempt.

        The API call is skipped when force_update is False and last_result is
        a non-error result carrying the same IP as the one just resolved.

        Args:
            force_update: Call the API even if the IP has not changed.
            last_result: Outcome of the previous committed attempt, if any.

        Returns:
            The classified UpdateResult. Never raises for lookup, network or
            API failures.
        """
        self._log.log("Updating record...")

        try:
            new_ip = await self._ip_service.lookup()
        except NetworkError as exc:
            logger.warning("IP lookup failed: %s", exc)
            self._log.log("Connection error", level="ERROR")
            return UpdateResult.failed(UpdateError.NETWORK)
        except IpLookupError as exc:
            logger.warning("IP lookup failed: %s", exc)
            self._log.log("Lookup error", level="ERROR")
            return UpdateResult.failed(UpdateError.LOOKUP)

        self._log.log(f"New IP: {new_ip}.")

        unchanged = last_result is not None and last_result.ip == new_ip
        if unchanged:
            self._log.log("The IP is not changed from the last update.")

        if not force_update and unchanged and not last_result.is_error:
            self._log.log("Update skipped.")
            return UpdateResult.skipped(new_ip)

        body = UpdateRecordBody(content=new_ip, name=self._record_name, type="A")
        try:
            response = await self._api.update_record(self._zone_id, self._record_id, body)
        except NetworkError as exc:
            logger.warning("Cloudflare update failed: %s", exc)
            self._log.log("Connection error", level="ERROR")
            return UpdateResult.failed(UpdateError.NETWORK)

        if response.success:
            self._log.log("Record updated successfully.")
            return UpdateResult.success(new_ip, response)

        logger.error("Cloudflare rejected the update: %s", response.errors)
        self._log.log(
            "Record update failed. Check the last response for more details about the error.",
            level="ERROR",
        )
        return UpdateResult.failed(UpdateError.API, ip=new_ip, api_response=response)
