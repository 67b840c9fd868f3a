from __future__ import annotations

import json
import logging
import threading
import time
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from app.resilience.cache import ResponseCache
from app.resilience.errors import ClassifiedError, ErrorCategory, user_message_for
from app.resilience.executor import RequestExecutor
from app.resilience.fallbacks import FallbackProvider, FallbackUnavailableError
from app.resilience.health import HealthMonitor
from app.resilience.models import OperationRequest, ResultSource, utc_now
from app.resilience.rate_limiter import SlidingWindowRateLimiter
from app.schemas.resilience import OperationError, OperationResult

logger = logging.getLogger(__name__)

FALLBACK_CATEGORIES = frozenset(
    {
        ErrorCategory.TIMEOUT,
        ErrorCategory.NETWORK,
        ErrorCategory.RATE_LIMITED,
        ErrorCategory.QUOTA_EXCEEDED,
        ErrorCategory.SERVER_ERROR,
    }
)

FALLBACK_MESSAGE = "AI service temporarily unavailable. Using backup system."
NO_BACKUP_MESSAGE = "Both AI service and backup system are unavailable. Please try again later."

Parser = Callable[[str], Any]


class OperationOrchestrator:
    """Decides whether an operation runs live, falls back, or fails.

    Order of checks: health gate, rate limiter admission, executor. Transient
    failures become fallbacks; permanent ones become a typed error. ``run``
    never raises for backend or parsing problems.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        monitor: HealthMonitor,
        rate_limiter: SlidingWindowRateLimiter,
        fallbacks: FallbackProvider,
    ):
        self._executor = executor
        self._monitor = monitor
        self._rate_limiter = rate_limiter
        self._fallbacks = fallbacks
        self._fallback_lock = threading.Lock()
        self._fallback_count = 0
        self._last_fallback_at: Optional[datetime] = None

    @property
    def monitor(self) -> HealthMonitor:
        return self._monitor

    @property
    def fallbacks(self) -> FallbackProvider:
        return self._fallbacks

    async def run(
        self,
        request: OperationRequest,
        fallback_params: Optional[Mapping[str, Any]] = None,
        *,
        parser: Optional[Parser] = None,
    ) -> OperationResult:
        operation = request.operation_name
        started = time.perf_counter()

        if not self._monitor.is_healthy_enough():
            logger.warning(
                json.dumps(
                    {
                        "event": "ai_operation_skipped",
                        "operation": operation,
                        "reason": "degraded",
                        "degradation_level": self._monitor.degradation_level().value,
                    }
                )
            )
            return self._use_fallback(operation, fallback_params, ErrorCategory.SERVER_ERROR, started)

        if not self._rate_limiter.is_allowed(operation):
            logger.warning(
                json.dumps(
                    {
                        "event": "ai_operation_skipped",
                        "operation": operation,
                        "reason": "rate_limited",
                        "budget": self._rate_limiter.budget,
                        "window_s": self._rate_limiter.window_seconds,
                    }
                )
            )
            retry_after_ms = int(self._rate_limiter.retry_after_seconds(operation) * 1000)
            return self._use_fallback(
                operation,
                fallback_params,
                ErrorCategory.RATE_LIMITED,
                started,
                retry_after_ms=retry_after_ms,
            )

        try:
            text = await self._executor.execute(request)
        except ClassifiedError as exc:
            return self._handle_failure(operation, exc, fallback_params, started)

        try:
            data = parser(text) if parser is not None else text
        except Exception as exc:  # noqa: BLE001 - malformed live output is a backend failure
            self._invalidate_cached(request)
            logger.warning(
                json.dumps(
                    {
                        "event": "ai_response_unparsable",
                        "operation": operation,
                        "response_len": len(text),
                        "error": str(exc)[:200],
                    }
                )
            )
            error = ClassifiedError("AI service returned invalid data", ErrorCategory.SERVER_ERROR)
            return self._handle_failure(operation, error, fallback_params, started)

        return OperationResult(
            success=True,
            data=data,
            source=ResultSource.LIVE.value,
            operation=operation,
            response_time_ms=self._elapsed_ms(started),
        )

    def _handle_failure(
        self,
        operation: str,
        error: ClassifiedError,
        fallback_params: Optional[Mapping[str, Any]],
        started: float,
    ) -> OperationResult:
        logger.error(
            json.dumps(
                {
                    "event": "ai_operation_failed",
                    "operation": operation,
                    "category": error.category.value,
                    "attempts": error.attempts,
                    "error": str(error)[:200],
                }
            )
        )
        if error.category in FALLBACK_CATEGORIES:
            return self._use_fallback(operation, fallback_params, error.category, started)
        return self._error_result(operation, error.category, started)

    def _use_fallback(
        self,
        operation: str,
        params: Optional[Mapping[str, Any]],
        category: ErrorCategory,
        started: float,
        *,
        retry_after_ms: Optional[int] = None,
    ) -> OperationResult:
        try:
            data = self._fallbacks.get_fallback(operation, params)
        except FallbackUnavailableError as exc:
            logger.error(
                json.dumps({"event": "ai_fallback_unavailable", "operation": operation, "error": str(exc)})
            )
            return self._error_result(
                operation,
                category,
                started,
                message=NO_BACKUP_MESSAGE,
                retry_after_ms=retry_after_ms,
            )

        with self._fallback_lock:
            self._fallback_count += 1
            self._last_fallback_at = utc_now()
        logger.info(
            json.dumps({"event": "ai_fallback_used", "operation": operation, "category": category.value})
        )
        return OperationResult(
            success=True,
            data=data,
            source=ResultSource.FALLBACK.value,
            operation=operation,
            message=FALLBACK_MESSAGE,
            response_time_ms=self._elapsed_ms(started),
        )

    def _error_result(
        self,
        operation: str,
        category: ErrorCategory,
        started: float,
        *,
        message: Optional[str] = None,
        retry_after_ms: Optional[int] = None,
    ) -> OperationResult:
        hint = user_message_for(category)
        if retry_after_ms is None:
            retry_after_ms = hint.retry_after_ms
        return OperationResult(
            success=False,
            data=None,
            source=ResultSource.NONE.value,
            operation=operation,
            error=OperationError(
                category=category.value,
                message=message or hint.message,
                action=hint.action,
                retry_after_ms=retry_after_ms,
                fallback_available=(
                    category in FALLBACK_CATEGORIES and self._fallbacks.has_fallback(operation)
                ),
            ),
            response_time_ms=self._elapsed_ms(started),
        )

    def _invalidate_cached(self, request: OperationRequest) -> None:
        cache = self._executor.cache
        if request.use_cache and cache is not None:
            cache.invalidate(ResponseCache.make_key(request.prompt, request.operation_name))

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return max(0, int((time.perf_counter() - started) * 1000))

    # Administrative surface

    def get_health_snapshot(self) -> dict[str, Any]:
        snapshot = self._monitor.snapshot()
        with self._fallback_lock:
            times_used = self._fallback_count
            last_used = self._last_fallback_at
        cache = self._executor.cache
        return {
            "overall": "healthy" if snapshot.is_healthy else "degraded",
            "ai_service": snapshot.as_dict(),
            "fallback_service": {
                "available": bool(self._fallbacks.supported_operations()),
                "version": self._fallbacks.version,
                "operations": self._fallbacks.supported_operations(),
                "times_used": times_used,
                "last_used_at": last_used.isoformat() if last_used else None,
            },
            "monitoring": self._monitor.monitoring,
            "cache_entries": len(cache) if cache is not None else 0,
            "rate_limit_usage": self._rate_limiter.usage(),
        }

    def reset_health_monitor(self) -> None:
        self._monitor.reset()
        self._rate_limiter.reset()
        with self._fallback_lock:
            self._fallback_count = 0
            self._last_fallback_at = None

    def start_monitoring(self) -> None:
        self._monitor.start()

    async def stop_monitoring(self) -> None:
        await self._monitor.stop()

    async def check_health(self) -> bool:
        return await self._monitor.run_probe()
