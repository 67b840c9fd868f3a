from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from app.ai.types import AIClient, ChatMessage, Completion
from app.resilience.cache import ResponseCache
from app.resilience.errors import ClassifiedError, ErrorCategory
from app.resilience.models import OperationRequest, OutcomeRecord

if TYPE_CHECKING:
    from app.resilience.health import HealthMonitor

logger = logging.getLogger(__name__)

PROBE_OPERATION = "health_probe"
PROBE_PROMPT = 'Respond with exactly "Connection successful" if you can read this message.'


class RequestExecutor:
    """Runs one operation against the backend with timeout, retries and backoff.

    ``execute`` returns the response text or raises ``ClassifiedError``. Each
    call that reaches the backend reports exactly one ``OutcomeRecord`` to the
    health monitor; cache hits do not touch the backend and report nothing.
    Cancellation of the caller propagates immediately: no further attempts are
    made and nothing is recorded.
    """

    def __init__(
        self,
        client: AIClient,
        *,
        monitor: Optional["HealthMonitor"] = None,
        cache: Optional[ResponseCache] = None,
        timeout_ms: int = 30000,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 10000,
        max_jitter_ms: int = 250,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._client = client
        self._monitor = monitor
        self._cache = cache
        self._timeout_ms = timeout_ms
        self._max_retries = max(0, max_retries)
        self._base_delay_ms = base_delay_ms
        self._max_delay_ms = max_delay_ms
        self._max_jitter_ms = max_jitter_ms
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._clock = clock

    @property
    def cache(self) -> Optional[ResponseCache]:
        return self._cache

    def backoff_delay_ms(self, attempt: int) -> float:
        jitter = self._rng.uniform(0, self._max_jitter_ms) if self._max_jitter_ms > 0 else 0.0
        return min(self._base_delay_ms * (2 ** attempt) + jitter, self._max_delay_ms)

    def _messages(self, request: OperationRequest) -> list[ChatMessage]:
        messages = []
        if request.system_prompt:
            messages.append(ChatMessage(role="system", content=request.system_prompt))
        messages.append(ChatMessage(role="user", content=request.prompt))
        return messages

    async def _attempt(self, request: OperationRequest, timeout_s: float) -> Completion:
        try:
            return await asyncio.wait_for(
                self._client.complete(
                    self._messages(request),
                    max_output_tokens=request.max_output_tokens,
                ),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise ClassifiedError(
                f"Request timeout after {int(timeout_s * 1000)}ms", ErrorCategory.TIMEOUT
            ) from exc

    def _record(self, outcome: OutcomeRecord) -> None:
        if self._monitor is not None:
            self._monitor.record(outcome)

    async def execute(self, request: OperationRequest, *, record_outcome: bool = True) -> str:
        if not request.prompt or not request.prompt.strip():
            error = ClassifiedError("Invalid prompt provided", ErrorCategory.INVALID_INPUT, attempts=0)
            if record_outcome:
                self._record(
                    OutcomeRecord(
                        success=False,
                        latency_ms=0,
                        error_category=error.category,
                        error_message=str(error),
                    )
                )
            raise error

        cache_key = None
        if request.use_cache and self._cache is not None:
            cache_key = ResponseCache.make_key(request.prompt, request.operation_name)
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.info("ai_cache_hit operation=%s key=%s", request.operation_name, cache_key[:12])
                return cached

        max_retries = self._max_retries if request.max_retries is None else max(0, request.max_retries)
        timeout_s = (request.timeout_ms or self._timeout_ms) / 1000
        started = self._clock()
        soft_retry_used = False
        last_error: ClassifiedError | None = None
        text: str | None = None

        for attempt in range(max_retries + 1):
            try:
                completion = await self._attempt(request, timeout_s)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001 - classified and re-raised below
                last_error = ClassifiedError.from_exception(exc)
                last_error.attempts = attempt + 1
                logger.warning(
                    "ai_attempt_failed operation=%s attempt=%s/%s category=%s: %s",
                    request.operation_name,
                    attempt + 1,
                    max_retries + 1,
                    last_error.category.value,
                    last_error,
                )
                if not last_error.retryable or attempt == max_retries:
                    break
                await self._backoff(request, attempt)
                continue

            if completion.blocked:
                last_error = ClassifiedError(
                    "Content blocked due to safety filters",
                    ErrorCategory.SAFETY_BLOCKED,
                    attempts=attempt + 1,
                )
                logger.warning(
                    "ai_response_blocked operation=%s finish_reason=%s",
                    request.operation_name,
                    completion.finish_reason,
                )
                break

            candidate = (completion.text or "").strip()
            if not candidate or completion.truncated:
                # Empty or length-truncated output earns one extra attempt.
                if not soft_retry_used and attempt < max_retries:
                    soft_retry_used = True
                    logger.warning(
                        "ai_soft_failure operation=%s attempt=%s empty=%s truncated=%s",
                        request.operation_name,
                        attempt + 1,
                        not candidate,
                        completion.truncated,
                    )
                    last_error = ClassifiedError(
                        "Empty or truncated response from AI model",
                        ErrorCategory.SERVER_ERROR,
                        attempts=attempt + 1,
                    )
                    await self._backoff(request, attempt)
                    continue
                if not candidate:
                    last_error = ClassifiedError(
                        "Empty response text from AI model",
                        ErrorCategory.SERVER_ERROR,
                        attempts=attempt + 1,
                    )
                    break
                logger.warning(
                    "ai_response_truncated operation=%s response_len=%s",
                    request.operation_name,
                    len(candidate),
                )

            text = candidate
            logger.info(
                "ai_generation_succeeded operation=%s attempt=%s prompt_len=%s response_len=%s",
                request.operation_name,
                attempt + 1,
                len(request.prompt),
                len(candidate),
            )
            break

        latency_ms = int((self._clock() - started) * 1000)

        if text is not None:
            if record_outcome:
                self._record(OutcomeRecord(success=True, latency_ms=latency_ms))
            if cache_key is not None and self._cache is not None:
                self._cache.put(cache_key, text)
            return text

        if last_error is None:
            last_error = ClassifiedError("AI request failed", ErrorCategory.UNKNOWN)
        if record_outcome:
            self._record(
                OutcomeRecord(
                    success=False,
                    latency_ms=latency_ms,
                    error_category=last_error.category,
                    error_message=str(last_error),
                )
            )
        logger.error(
            "ai_generation_failed operation=%s attempts=%s category=%s: %s",
            request.operation_name,
            last_error.attempts,
            last_error.category.value,
            last_error,
        )
        raise last_error

    async def _backoff(self, request: OperationRequest, attempt: int) -> None:
        delay_ms = self.backoff_delay_ms(attempt)
        logger.info(
            "ai_retry_scheduled operation=%s attempt=%s delay_ms=%s",
            request.operation_name,
            attempt + 1,
            int(delay_ms),
        )
        await self._sleep(delay_ms / 1000)

    async def probe(self) -> str:
        """Minimal synthetic call used by the active health check."""
        return await self.execute(
            OperationRequest(
                operation_name=PROBE_OPERATION,
                prompt=PROBE_PROMPT,
                max_retries=0,
                use_cache=False,
                max_output_tokens=16,
            ),
            record_outcome=False,
        )
