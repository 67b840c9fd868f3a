from .cache import ResponseCache
from .config import ResilienceConfig, load_resilience_config
from .errors import Classification, ClassifiedError, ErrorCategory, classify
from .executor import RequestExecutor
from .fallbacks import FallbackProvider, FallbackUnavailableError
from .health import HealthMonitor
from .models import DegradationLevel, HealthSnapshot, OperationRequest, OutcomeRecord
from .orchestrator import OperationOrchestrator
from .rate_limiter import SlidingWindowRateLimiter
from .runtime import build_orchestrator

__all__ = [
    "Classification",
    "ClassifiedError",
    "ErrorCategory",
    "classify",
    "ResponseCache",
    "SlidingWindowRateLimiter",
    "RequestExecutor",
    "HealthMonitor",
    "DegradationLevel",
    "HealthSnapshot",
    "OperationRequest",
    "OutcomeRecord",
    "FallbackProvider",
    "FallbackUnavailableError",
    "OperationOrchestrator",
    "ResilienceConfig",
    "load_resilience_config",
    "build_orchestrator",
]
