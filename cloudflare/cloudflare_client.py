"""
cloudflare/cloudflare_client.py

Responsibility: Implements the RecordApiClient protocol using the Cloudflare
REST API. All Cloudflare HTTP calls are concentrated here; no other file may
call the Cloudflare API directly.
Does NOT: read configuration, decide whether an update is needed, or retry.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cloudflare.dns_provider import UpdateRecordBody, UpdateRecordResponse
from exceptions import ClientNotConfiguredError, NetworkError

logger = logging.getLogger(__name__)

_CLOUDFLARE_BASE = "https://api.cloudflare.com/client/v4"


class CloudflareClient:
    """
    Implements RecordApiClient for the Cloudflare DNS REST API (v4).

    All outbound Cloudflare requests go through the injected httpx.AsyncClient,
    making this class fully testable without real network calls (use respx.mock).

    Collaborators:
        - httpx.AsyncClient: injected HTTP client; must be kept alive externally
        - RecordApiClient: this class satisfies the protocol contract
    """

    def __init__(self, http_client: httpx.AsyncClient, api_token: str | None = None) -> None:
        """
        Initialises the client. The token may be supplied later via configure().

        Args:
            http_client: A long-lived httpx.AsyncClient instance.
            api_token: Optional Cloudflare API token with DNS edit permissions.
        """
        self._client = http_client
        self._headers: dict[str, str] | None = None
        if api_token:
            self.configure(api_token)

    def configure(self, api_token: str) -> None:
        """
        Sets the API token used for every subsequent request.

        Args:
            api_token: A Cloudflare API token with DNS edit permissions.
        """
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    @property
    def configured(self) -> bool:
        return self._headers is not None

    # ---------------------------------------------------------------------------
    # RecordApiClient implementation
    # ---------------------------------------------------------------------------

    async def update_record(
        self, zone_id: str, record_id: str, body: UpdateRecordBody
    ) -> UpdateRecordResponse:
        """
        Patches an existing DNS record with new content.

        Cloudflare answers rejected updates (bad token, invalid content, ...)
        with a 4xx status and a JSON envelope carrying success=false; those
        are returned as responses, not raised.

        Args:
            zone_id: The Cloudflare zone ID.
            record_id: The Cloudflare record ID.
            body: The new record content, name and type.

        Returns:
            The parsed UpdateRecordResponse.

        Raises:
            ClientNotConfiguredError: If configure() was never called.
            NetworkError: If Cloudflare could not be reached.
        """
        if self._headers is None:
            raise ClientNotConfiguredError("Cloudflare client not configured.")

        url = f"{_CLOUDFLARE_BASE}/zones/{zone_id}/dns_records/{record_id}"
        payload = body.to_payload()

        logger.debug("PATCH %s payload=%s", url, payload)
        try:
            response = await self._client.request(
                "PATCH", url, headers=self._headers, json=payload
            )
        except httpx.RequestError as exc:
            raise NetworkError(
                f"Network error calling Cloudflare API (PATCH {url}): {exc}"
            ) from exc

        return self._parse_response(response)

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    @staticmethod
    def _parse_response(response: httpx.Response) -> UpdateRecordResponse:
        """
        Converts an HTTP response into an UpdateRecordResponse.

        Args:
            response: The raw httpx response from Cloudflare.

        Returns:
            The decoded envelope, or a synthetic success=false response when
            the body is not a JSON object.
        """
        try:
            body: Any = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            logger.warning(
                "Cloudflare returned a non-JSON body (status %d).", response.status_code
            )
            return UpdateRecordResponse(
                success=False,
                errors=[{
                    "code": response.status_code,
                    "message": f"Unexpected response from Cloudflare (HTTP {response.status_code}).",
                }],
            )

        parsed = UpdateRecordResponse.from_json(body)
        if not parsed.success:
            logger.debug("Cloudflare rejected update (%d): %s", response.status_code, parsed.errors)
        return parsed
