from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

ResultSourceName = Literal["live", "fallback", "none"]


class OperationError(BaseModel):
    category: str
    message: str
    action: str = "retry"
    retry_after_ms: int | None = None
    fallback_available: bool = False


class OperationResult(BaseModel):
    success: bool
    data: Any | None = None
    source: ResultSourceName
    operation: str
    error: OperationError | None = None
    message: str | None = None
    response_time_ms: int | None = Field(default=None, ge=0)


class LastErrorView(BaseModel):
    message: str
    category: str
    timestamp: str


class AIServiceHealth(BaseModel):
    is_healthy: bool
    degradation_level: Literal["none", "partial", "severe"]
    total_requests: int
    successful_requests: int
    failed_requests: int
    consecutive_failures: int
    average_response_time_ms: float
    success_rate: float
    last_error: LastErrorView | None = None
    last_probe_at: str | None = None


class FallbackServiceHealth(BaseModel):
    available: bool
    version: int | None = None
    operations: list[str] = Field(default_factory=list)
    times_used: int = 0
    last_used_at: str | None = None


class SystemHealthResponse(BaseModel):
    overall: Literal["healthy", "degraded"]
    ai_service: AIServiceHealth
    fallback_service: FallbackServiceHealth
    monitoring: bool
    cache_entries: int
    rate_limit_usage: dict[str, int] = Field(default_factory=dict)
