"""
services/ip_service.py

Responsibility: Fetches the current public IPv4 address of the host machine.
Does NOT: compare against previous results, interact with Cloudflare, or read
configuration.
"""

from __future__ import annotations

import logging
import re

import httpx

from config import DEFAULT_IP_PROVIDER_URL
from exceptions import IpLookupError, NetworkError

logger = logging.getLogger(__name__)

_IPV4_RE = re.compile(r"^(?:\d{1,3}\.){3}\d{1,3}$")


def is_valid_ipv4(ip: str) -> bool:
    """
    Returns True when ip is a dotted-quad IPv4 address with octets 0-255.
    """
    if not _IPV4_RE.match(ip):
        return False
    return all(0 <= int(octet) <= 255 for octet in ip.split("."))


class IpService:
    """
    Fetches the host machine's current public IPv4 address.

    Uses an injected httpx.AsyncClient so the service is fully testable
    without real network calls (use respx.mock in tests).

    Collaborators:
        - httpx.AsyncClient: injected; must be kept alive externally
    """

    def __init__(self, http_client: httpx.AsyncClient, provider_url: str = DEFAULT_IP_PROVIDER_URL) -> None:
        """
        Initialises the service with a shared HTTP client.

        Args:
            http_client: A long-lived httpx.AsyncClient instance created
                         during application startup.
            provider_url: Endpoint returning the caller's IPv4 as plain text.
        """
        self._client = http_client
        self._provider_url = provider_url

    async def lookup(self) -> str:
        """
        Returns the current public IPv4 address of the host machine.

        Returns:
            The public IP address as a plain string, e.g. "1.2.3.4".

        Raises:
            NetworkError: If the provider cannot be reached.
            IpLookupError: If the provider returns a non-2xx status or a body
                           that is not a valid IPv4 address.
        """
        try:
            response = await self._client.get(self._provider_url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise IpLookupError(
                f"IP provider returned status {exc.response.status_code}."
            ) from exc
        except httpx.RequestError as exc:
            raise NetworkError(
                f"Could not reach IP provider ({self._provider_url}): {exc}"
            ) from exc

        ip = response.text.strip()
        if not is_valid_ipv4(ip):
            raise IpLookupError(f"IP provider returned an invalid IPv4 address: {ip!r}")

        logger.debug("Current public IP: %s", ip)
        return ip
