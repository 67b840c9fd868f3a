from __future__ import annotations

from dataclasses import dataclass

from app.core.config import Settings, settings


@dataclass(frozen=True)
class ResilienceConfig:
    request_timeout_ms: int = 30000
    max_retries: int = 3
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 10000
    retry_max_jitter_ms: int = 250
    rate_limit_budget: int = 100
    rate_limit_window_s: int = 60
    cache_enabled: bool = True
    cache_ttl_s: int = 3600
    cache_max_entries: int = 1000
    max_consecutive_failures: int = 5
    health_probe_enabled: bool = True
    health_probe_interval_s: int = 60


def load_resilience_config(source: Settings = settings) -> ResilienceConfig:
    return ResilienceConfig(
        request_timeout_ms=source.ai_request_timeout_ms,
        max_retries=source.ai_max_retries,
        retry_base_delay_ms=source.ai_retry_base_delay_ms,
        retry_max_delay_ms=source.ai_retry_max_delay_ms,
        retry_max_jitter_ms=source.ai_retry_max_jitter_ms,
        rate_limit_budget=source.ai_rate_limit_budget,
        rate_limit_window_s=source.ai_rate_limit_window_s,
        cache_enabled=source.ai_cache_enabled,
        cache_ttl_s=source.ai_cache_ttl_s,
        cache_max_entries=source.ai_cache_max_entries,
        max_consecutive_failures=source.ai_max_consecutive_failures,
        health_probe_enabled=source.ai_health_probe_enabled,
        health_probe_interval_s=source.ai_health_probe_interval_s,
    )
