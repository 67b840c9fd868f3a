from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    trust_x_forwarded_for: bool
    ai_provider: str
    ai_model: str
    ai_temperature: float
    ai_max_output_tokens: int
    ai_request_timeout_ms: int
    ai_max_retries: int
    ai_retry_base_delay_ms: int
    ai_retry_max_delay_ms: int
    ai_retry_max_jitter_ms: int
    ai_rate_limit_budget: int
    ai_rate_limit_window_s: int
    ai_cache_enabled: bool
    ai_cache_ttl_s: int
    ai_cache_max_entries: int
    ai_max_consecutive_failures: int
    ai_health_probe_enabled: bool
    ai_health_probe_interval_s: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    ai_provider=(_get_env("AI_PROVIDER", "openai") or "openai").strip().lower(),
    ai_model=(_get_env("AI_MODEL", "gpt-4o-mini") or "gpt-4o-mini").strip(),
    ai_temperature=_get_env_float("AI_TEMPERATURE", 0.7),
    ai_max_output_tokens=_get_env_int("AI_MAX_OUTPUT_TOKENS", 2048),
    ai_request_timeout_ms=_get_env_int("AI_REQUEST_TIMEOUT_MS", 30000),
    ai_max_retries=_get_env_int("AI_MAX_RETRIES", 3),
    ai_retry_base_delay_ms=_get_env_int("AI_RETRY_BASE_DELAY_MS", 1000),
    ai_retry_max_delay_ms=_get_env_int("AI_RETRY_MAX_DELAY_MS", 10000),
    ai_retry_max_jitter_ms=_get_env_int("AI_RETRY_MAX_JITTER_MS", 250),
    ai_rate_limit_budget=_get_env_int("AI_RATE_LIMIT_BUDGET", 100),
    ai_rate_limit_window_s=_get_env_int("AI_RATE_LIMIT_WINDOW_S", 60),
    ai_cache_enabled=_get_env_bool("AI_CACHE_ENABLED", True),
    ai_cache_ttl_s=_get_env_int("AI_CACHE_TTL_S", 3600),
    ai_cache_max_entries=_get_env_int("AI_CACHE_MAX_ENTRIES", 1000),
    ai_max_consecutive_failures=_get_env_int("AI_MAX_CONSECUTIVE_FAILURES", 5),
    ai_health_probe_enabled=_get_env_bool("AI_HEALTH_PROBE_ENABLED", True),
    ai_health_probe_interval_s=_get_env_int("AI_HEALTH_PROBE_INTERVAL_S", 60),
)

if settings.ai_max_consecutive_failures < 1:
    raise RuntimeError("AI_MAX_CONSECUTIVE_FAILURES must be at least 1.")

if settings.ai_rate_limit_budget < 1 or settings.ai_rate_limit_window_s < 1:
    raise RuntimeError("AI_RATE_LIMIT_BUDGET and AI_RATE_LIMIT_WINDOW_S must be positive.")

__all__ = ["Settings", "settings"]
