from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.core.config import settings


def client_key(request: Request) -> str:
    if settings.trust_x_forwarded_for:
        forwarded_for = request.headers.get("x-forwarded-for", "").strip()
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
    return get_remote_address(request)


# Per-client HTTP throttling. Backend pressure is handled separately by the
# per-operation limiter in app.resilience, which degrades to fallbacks.
limiter = Limiter(key_func=client_key, enabled=settings.rate_limit_enabled)


def rate_limit():
    return limiter.limit(settings.rate_limit)
