from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from app.resilience.errors import ErrorCategory


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DegradationLevel(str, Enum):
    NONE = "none"
    PARTIAL = "partial"
    SEVERE = "severe"


class ResultSource(str, Enum):
    LIVE = "live"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class OperationRequest:
    """One unit of AI-backed work, owned by the calling feature."""

    operation_name: str
    prompt: str
    system_prompt: Optional[str] = None
    timeout_ms: Optional[int] = None
    max_retries: Optional[int] = None
    use_cache: bool = False
    max_output_tokens: Optional[int] = None


@dataclass(frozen=True)
class OutcomeRecord:
    success: bool
    latency_ms: int
    error_category: Optional[ErrorCategory] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class LastError:
    message: str
    category: ErrorCategory
    timestamp: datetime


@dataclass(frozen=True)
class HealthSnapshot:
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    consecutive_failures: int = 0
    average_response_time_ms: float = 0.0
    last_error: Optional[LastError] = None
    degradation_level: DegradationLevel = DegradationLevel.NONE
    last_probe_at: Optional[datetime] = None

    @property
    def is_healthy(self) -> bool:
        return self.degradation_level != DegradationLevel.SEVERE

    @property
    def success_rate(self) -> float:
        if self.total_requests == 0:
            return 100.0
        return self.successful_requests / self.total_requests * 100

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["degradation_level"] = self.degradation_level.value
        data["is_healthy"] = self.is_healthy
        data["success_rate"] = round(self.success_rate, 2)
        if self.last_error is not None:
            data["last_error"] = {
                "message": self.last_error.message,
                "category": self.last_error.category.value,
                "timestamp": self.last_error.timestamp.isoformat(),
            }
        if self.last_probe_at is not None:
            data["last_probe_at"] = self.last_probe_at.isoformat()
        return data
