"""
exceptions.py

Responsibility: Defines all custom exception classes used across the application.
Does NOT: contain business logic, logging, or HTTP handling.
"""

from __future__ import annotations


class IpLookupError(Exception):
    """
    Raised by IpService when the public IP provider answered but did not
    produce a usable IPv4 address (non-2xx status, empty or malformed body).

    UpdateExecutor classifies this as a "lookup" error.
    """


class NetworkError(Exception):
    """
    Raised when a transport-level failure prevents reaching an upstream
    service (the public IP provider or the Cloudflare API).

    UpdateExecutor classifies this as a "network" error. Lookup and network
    errors share the same retry track.
    """


class DnsProviderError(Exception):
    """
    Base class for failures raised by the DNS record client itself, as
    opposed to API-level rejections which are returned as responses.
    """


class ClientNotConfiguredError(DnsProviderError):
    """
    Raised by CloudflareClient when update_record is called before an API
    token has been supplied via configure().
    """


class ConfigLoadError(Exception):
    """
    Raised by load_settings when required environment variables are missing
    or an optional one cannot be parsed. The process must not start.
    """
