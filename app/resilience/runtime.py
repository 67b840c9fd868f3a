from __future__ import annotations

from typing import Optional

from app.ai.types import AIClient
from app.resilience.cache import ResponseCache
from app.resilience.config import ResilienceConfig, load_resilience_config
from app.resilience.executor import RequestExecutor
from app.resilience.fallbacks import FallbackProvider
from app.resilience.health import HealthMonitor
from app.resilience.orchestrator import OperationOrchestrator
from app.resilience.rate_limiter import SlidingWindowRateLimiter


def build_orchestrator(
    client: AIClient,
    config: Optional[ResilienceConfig] = None,
    *,
    fallbacks: Optional[FallbackProvider] = None,
    **executor_overrides,
) -> OperationOrchestrator:
    """Wire one independent resilience layer around ``client``."""
    cfg = config or load_resilience_config()

    monitor = HealthMonitor(
        max_consecutive_failures=cfg.max_consecutive_failures,
        probe_interval_s=cfg.health_probe_interval_s,
    )
    cache = ResponseCache(cfg.cache_ttl_s, cfg.cache_max_entries) if cfg.cache_enabled else None
    executor = RequestExecutor(
        client,
        monitor=monitor,
        cache=cache,
        timeout_ms=cfg.request_timeout_ms,
        max_retries=cfg.max_retries,
        base_delay_ms=cfg.retry_base_delay_ms,
        max_delay_ms=cfg.retry_max_delay_ms,
        max_jitter_ms=cfg.retry_max_jitter_ms,
        **executor_overrides,
    )
    monitor.bind_probe(executor.probe)

    return OperationOrchestrator(
        executor=executor,
        monitor=monitor,
        rate_limiter=SlidingWindowRateLimiter(cfg.rate_limit_budget, cfg.rate_limit_window_s),
        fallbacks=fallbacks or FallbackProvider(),
    )
