"""
cloudflare/dns_provider.py

Responsibility: Defines the RecordApiClient Protocol and the value objects
exchanged with it (DnsRecord, UpdateRecordBody, UpdateRecordResponse).
Does NOT: make HTTP calls, schedule updates, or implement any provider logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Value objects: stable shapes returned by RecordApiClient implementations
# ---------------------------------------------------------------------------


@dataclass
class DnsRecord:
    """
    Represents a single DNS record as echoed back by the provider after an
    update.
    """

    # Provider-assigned unique identifier for the record
    id: str

    # Fully-qualified DNS name, e.g. "home.example.com"
    name: str

    # Current IP address stored in the record
    content: str

    # Record type; this application only manages "A" records
    type: str = "A"

    # TTL in seconds; 1 means "automatic" on Cloudflare
    ttl: int = 1

    # Whether the record is proxied through the provider's CDN
    proxied: bool = False

    zone_id: str = ""
    zone_name: str = ""
    locked: bool = False
    created_on: str = ""
    modified_on: str = ""

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> DnsRecord:
        """
        Converts a raw Cloudflare record object into a typed DnsRecord.

        Args:
            raw: A single record object from a Cloudflare API response.

        Returns:
            A DnsRecord populated from the raw dict.
        """
        return cls(
            id=raw.get("id", ""),
            name=raw.get("name", ""),
            content=raw.get("content", ""),
            type=raw.get("type", "A"),
            ttl=raw.get("ttl", 1),
            proxied=raw.get("proxied", False),
            zone_id=raw.get("zone_id", ""),
            zone_name=raw.get("zone_name", ""),
            locked=raw.get("locked", False),
            created_on=raw.get("created_on", ""),
            modified_on=raw.get("modified_on", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "type": self.type,
            "ttl": self.ttl,
            "proxied": self.proxied,
            "zone_id": self.zone_id,
            "zone_name": self.zone_name,
            "locked": self.locked,
            "created_on": self.created_on,
            "modified_on": self.modified_on,
        }


@dataclass
class UpdateRecordBody:
    """
    Request body for a partial record update (PATCH).

    Only content, name and type are always sent; the optional fields are
    omitted from the payload when left as None so the provider keeps the
    record's current values.
    """

    content: str
    name: str
    type: str = "A"
    ttl: int | None = None
    proxied: bool | None = None
    comment: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "content": self.content,
            "name": self.name,
            "type": self.type,
        }
        for key in ("ttl", "proxied", "comment"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


@dataclass
class UpdateRecordResponse:
    """
    Structured Cloudflare API envelope for a record update.

    success=False means the provider was reached but rejected the update;
    errors carries the provider's {code, message} objects.
    """

    success: bool
    result: DnsRecord | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)
    messages: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_json(cls, body: dict[str, Any]) -> UpdateRecordResponse:
        """
        Builds a response from a parsed Cloudflare JSON envelope.

        Args:
            body: The decoded JSON body, {"success", "result", "errors", "messages"}.

        Returns:
            An UpdateRecordResponse; result is None when the envelope has none.
        """
        raw_result = body.get("result")
        return cls(
            success=bool(body.get("success", False)),
            result=DnsRecord.from_json(raw_result) if isinstance(raw_result, dict) else None,
            errors=list(body.get("errors") or []),
            messages=list(body.get("messages") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "result": self.result.to_dict() if self.result else None,
            "errors": self.errors,
            "messages": self.messages,
        }


# ---------------------------------------------------------------------------
# Abstract interface: the update executor depends on this contract only
# ---------------------------------------------------------------------------


@runtime_checkable
class RecordApiClient(Protocol):
    """
    Abstract protocol for applying a content update to one DNS record.

    UpdateExecutor depends on this abstraction, never on CloudflareClient
    directly, so tests can substitute an AsyncMock.
    """

    async def update_record(
        self, zone_id: str, record_id: str, body: UpdateRecordBody
    ) -> UpdateRecordResponse:
        """
        Applies body to the record identified by zone_id / record_id.

        Args:
            zone_id: The provider-assigned zone identifier.
            record_id: The provider-assigned record identifier.
            body: The new record content.

        Returns:
            The provider's response; success=False for API-level rejections.

        Raises:
            NetworkError: If the provider could not be reached.
        """
        ...
