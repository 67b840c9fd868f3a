from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from dataclasses import replace
from typing import Awaitable, Callable, Optional

from app.resilience.errors import ClassifiedError, ErrorCategory
from app.resilience.models import (
    DegradationLevel,
    HealthSnapshot,
    LastError,
    OutcomeRecord,
    utc_now,
)

logger = logging.getLogger(__name__)

PROBE_EXPECTED_TEXT = "connection successful"
PARTIAL_FAILURE_THRESHOLD = 2

ProbeCall = Callable[[], Awaitable[str]]


def degradation_for(consecutive_failures: int, max_consecutive_failures: int) -> DegradationLevel:
    if consecutive_failures >= max_consecutive_failures:
        return DegradationLevel.SEVERE
    if consecutive_failures >= PARTIAL_FAILURE_THRESHOLD:
        return DegradationLevel.PARTIAL
    return DegradationLevel.NONE


class HealthMonitor:
    """Process-wide view of backend health.

    Passive: every executor outcome is recorded here. Active: when started, a
    background task probes the backend every ``probe_interval_s`` seconds and
    feeds the result through the same recording path. Recording never raises.
    """

    def __init__(
        self,
        *,
        max_consecutive_failures: int = 5,
        probe_interval_s: float = 60.0,
        probe: Optional[ProbeCall] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        if max_consecutive_failures < 1:
            raise ValueError("max_consecutive_failures must be at least 1")
        self._max_consecutive_failures = max_consecutive_failures
        self._probe_interval_s = probe_interval_s
        self._probe = probe
        self._clock = clock
        self._state = HealthSnapshot()
        self._lock = threading.Lock()
        self._probe_task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def max_consecutive_failures(self) -> int:
        return self._max_consecutive_failures

    def bind_probe(self, probe: ProbeCall) -> None:
        self._probe = probe

    def record(self, outcome: OutcomeRecord) -> None:
        if outcome.success:
            self.record_success(outcome.latency_ms)
        else:
            self.record_failure(
                outcome.error_category or ErrorCategory.UNKNOWN,
                outcome.error_message,
            )

    def record_success(self, latency_ms: float = 0) -> None:
        with self._lock:
            state = self._state
            successful = state.successful_requests + 1
            if successful == 1:
                average = float(latency_ms)
            else:
                average = state.average_response_time_ms + (latency_ms - state.average_response_time_ms) / successful
            self._state = replace(
                state,
                total_requests=state.total_requests + 1,
                successful_requests=successful,
                consecutive_failures=0,
                average_response_time_ms=average,
                degradation_level=DegradationLevel.NONE,
            )

    def record_failure(self, category: ErrorCategory, message: Optional[str] = None) -> None:
        with self._lock:
            state = self._state
            consecutive = state.consecutive_failures + 1
            level = degradation_for(consecutive, self._max_consecutive_failures)
            self._state = replace(
                state,
                total_requests=state.total_requests + 1,
                failed_requests=state.failed_requests + 1,
                consecutive_failures=consecutive,
                last_error=LastError(
                    message=message or category.value,
                    category=category,
                    timestamp=utc_now(),
                ),
                degradation_level=level,
            )
        if level != state.degradation_level:
            logger.warning(
                "ai_degradation_changed from=%s to=%s consecutive_failures=%s",
                state.degradation_level.value,
                level.value,
                consecutive,
            )

    def is_healthy_enough(self) -> bool:
        with self._lock:
            return self._state.degradation_level != DegradationLevel.SEVERE

    def degradation_level(self) -> DegradationLevel:
        with self._lock:
            return self._state.degradation_level

    def snapshot(self) -> HealthSnapshot:
        with self._lock:
            return self._state

    def reset(self) -> None:
        with self._lock:
            self._state = HealthSnapshot()
        logger.info("ai_health_monitor_reset")

    async def run_probe(self) -> bool:
        """Issue one active probe and record its outcome. Never raises."""
        if self._probe is None:
            logger.debug("ai_health_probe_skipped reason=no_probe")
            return False

        started = self._clock()
        healthy = False
        try:
            text = await self._probe()
            latency_ms = int((self._clock() - started) * 1000)
            if PROBE_EXPECTED_TEXT in (text or "").lower():
                self.record_success(latency_ms)
                healthy = True
            else:
                self.record_failure(
                    ErrorCategory.SERVER_ERROR,
                    "AI service responding but with unexpected content",
                )
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - probe failures are health data
            error = ClassifiedError.from_exception(exc)
            self.record_failure(error.category, str(error))
        with self._lock:
            self._state = replace(self._state, last_probe_at=utc_now())
            consecutive = self._state.consecutive_failures
        logger.info(
            "ai_health_probe_completed healthy=%s consecutive_failures=%s",
            healthy,
            consecutive,
        )
        return healthy

    @property
    def monitoring(self) -> bool:
        return self._probe_task is not None and not self._probe_task.done()

    def start(self) -> None:
        """Start the periodic probe. Must be called from a running event loop."""
        if self.monitoring:
            self._cancel_probe_task()

        stop_event = asyncio.Event()

        async def periodic_probe() -> None:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self._probe_interval_s)
                except asyncio.TimeoutError:
                    await self.run_probe()

        self._stop_event = stop_event
        self._probe_task = asyncio.create_task(periodic_probe())
        logger.info("ai_health_monitoring_started interval_s=%s", self._probe_interval_s)

    def _cancel_probe_task(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._probe_task is not None and not self._probe_task.done():
            self._probe_task.cancel()

    async def stop(self) -> None:
        task = self._probe_task
        self._cancel_probe_task()
        self._probe_task = None
        self._stop_event = None
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("ai_health_monitoring_stopped")
