import logging
from contextlib import asynccontextmanager

from app.ai.factory import get_ai_client
from app.resilience.config import load_resilience_config
from app.resilience.runtime import build_orchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    config = load_resilience_config()
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = build_orchestrator(get_ai_client(), config)
        app.state.orchestrator = orchestrator

    if config.health_probe_enabled:
        orchestrator.start_monitoring()
    logger.info(
        "ai_resilience_ready timeout_ms=%s max_retries=%s rate_limit=%s/%ss cache=%s",
        config.request_timeout_ms,
        config.max_retries,
        config.rate_limit_budget,
        config.rate_limit_window_s,
        config.cache_enabled,
    )
    try:
        yield
    finally:
        await orchestrator.stop_monitoring()
