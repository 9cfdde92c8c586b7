"""
models.py

Responsibility: Defines the in-memory domain types shared by the update
executor, the retry policy and the scheduler: UpdateResult and ServiceState.
Does NOT: contain business logic, timers, or HTTP handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from cloudflare.dns_provider import UpdateRecordResponse

if TYPE_CHECKING:
    from services.delayed_task import DelayedTask


class UpdateStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


class UpdateError(str, Enum):
    # Transport failure reaching the IP provider or Cloudflare
    NETWORK = "network"
    # Cloudflare answered but rejected the update
    API = "api"
    # The IP provider did not produce a valid address
    LOOKUP = "lookup"


class ServiceStatus(str, Enum):
    READY = "ready"
    RUNNING = "running"
    STOPPED = "stopped"


# ---------------------------------------------------------------------------
# UpdateResult: outcome of one update attempt
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UpdateResult:
    """
    Outcome of a single update attempt.

    error is set if and only if status is ERROR; construction enforces this.
    """

    status: UpdateStatus
    error: UpdateError | None = None
    ip: str | None = None
    api_response: UpdateRecordResponse | None = None

    def __post_init__(self) -> None:
        if (self.status is UpdateStatus.ERROR) != (self.error is not None):
            raise ValueError(
                f"UpdateResult error must be set exactly when status is error "
                f"(status={self.status.value}, error={self.error})."
            )

    @classmethod
    def success(cls, ip: str, api_response: UpdateRecordResponse) -> UpdateResult:
        return cls(status=UpdateStatus.SUCCESS, ip=ip, api_response=api_response)

    @classmethod
    def skipped(cls, ip: str) -> UpdateResult:
        return cls(status=UpdateStatus.SKIPPED, ip=ip)

    @classmethod
    def failed(
        cls,
        error: UpdateError,
        ip: str | None = None,
        api_response: UpdateRecordResponse | None = None,
    ) -> UpdateResult:
        return cls(status=UpdateStatus.ERROR, error=error, ip=ip, api_response=api_response)

    @property
    def is_error(self) -> bool:
        return self.status is UpdateStatus.ERROR

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value}
        if self.error is not None:
            data["error"] = self.error.value
        if self.ip is not None:
            data["ip"] = self.ip
        if self.api_response is not None:
            data["api_response"] = self.api_response.to_dict()
        return data


# ---------------------------------------------------------------------------
# ServiceState: mutable state owned by exactly one UpdateScheduler
# ---------------------------------------------------------------------------


@dataclass
class ServiceState:
    """
    Process-lifetime state of the update service.

    Mutated only by UpdateScheduler. active_task is the single slot for the
    scheduled DelayedTask; generation identifies which task owns that slot so
    a stale completion can be recognised and dropped.
    """

    status: ServiceStatus = ServiceStatus.READY
    last_result: UpdateResult | None = None
    last_update_skipped: bool = False
    last_successful_update_date: datetime | None = None
    api_error_count: int = 0
    network_error_count: int = 0
    active_task: DelayedTask[UpdateResult] | None = None
    generation: int = 0
