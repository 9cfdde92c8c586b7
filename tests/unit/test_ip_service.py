"""
tests/unit/test_ip_service.py

Unit tests for services/ip_service.py.
Verifies happy-path IP lookup and the split between network and lookup errors.
"""

from __future__ import annotations

import pytest
import httpx

from exceptions import IpLookupError, NetworkError
from services.ip_service import IpService, is_valid_ipv4

_PROVIDER = "https://api.ipify.org"


@pytest.mark.asyncio
async def test_lookup_returns_ip(mock_http):
    """IpService must return the plain-text IP from the upstream provider."""
    mock_http.get(_PROVIDER).mock(return_value=httpx.Response(200, text="1.2.3.4"))
    async with httpx.AsyncClient() as client:
        service = IpService(http_client=client)
        ip = await service.lookup()
    assert ip == "1.2.3.4"


@pytest.mark.asyncio
async def test_lookup_strips_whitespace(mock_http):
    """IpService must strip leading/trailing whitespace from the response."""
    mock_http.get(_PROVIDER).mock(return_value=httpx.Response(200, text="  1.2.3.4\n"))
    async with httpx.AsyncClient() as client:
        service = IpService(http_client=client)
        ip = await service.lookup()
    assert ip == "1.2.3.4"


@pytest.mark.asyncio
async def test_lookup_uses_configured_provider(mock_http):
    """A custom provider URL must be queried instead of the default."""
    route = mock_http.get("https://ip.example.net/").mock(
        return_value=httpx.Response(200, text="5.6.7.8")
    )
    async with httpx.AsyncClient() as client:
        service = IpService(http_client=client, provider_url="https://ip.example.net/")
        ip = await service.lookup()
    assert ip == "5.6.7.8"
    assert route.called


@pytest.mark.asyncio
async def test_lookup_raises_network_error_when_unreachable(mock_http):
    """A transport failure must surface as NetworkError."""
    mock_http.get(_PROVIDER).mock(side_effect=httpx.ConnectError("timeout"))
    async with httpx.AsyncClient() as client:
        service = IpService(http_client=client)
        with pytest.raises(NetworkError):
            await service.lookup()


@pytest.mark.asyncio
async def test_lookup_raises_lookup_error_on_http_error(mock_http):
    """A non-200 status from the provider must surface as IpLookupError."""
    mock_http.get(_PROVIDER).mock(return_value=httpx.Response(503))
    async with httpx.AsyncClient() as client:
        service = IpService(http_client=client)
        with pytest.raises(IpLookupError):
            await service.lookup()


@pytest.mark.asyncio
async def test_lookup_raises_lookup_error_on_invalid_body(mock_http):
    """A body that is not an IPv4 address must surface as IpLookupError."""
    mock_http.get(_PROVIDER).mock(return_value=httpx.Response(200, text="<html>oops</html>"))
    async with httpx.AsyncClient() as client:
        service = IpService(http_client=client)
        with pytest.raises(IpLookupError):
            await service.lookup()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1.2.3.4", True),
        ("255.255.255.255", True),
        ("256.1.1.1", False),
        ("1.2.3", False),
        ("::1", False),
        ("", False),
    ],
)
def test_is_valid_ipv4(value, expected):
    assert is_valid_ipv4(value) is expected
