from __future__ import annotations

import os
from typing import Optional, Sequence

from openai import AsyncOpenAI

from app.ai.types import ChatMessage, Completion
from app.resilience.errors import ClassifiedError, ErrorCategory


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_output_tokens: int = 2048,
    ):
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._api_key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        self._base_url = base_url or os.getenv("OPENAI_BASE_URL") or None
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is not None:
            return self._client
        if not self._api_key:
            raise ClassifiedError("OPENAI_API_KEY is missing", ErrorCategory.AUTH_FAILED)
        # Retries and timeouts are owned by the request executor.
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            max_retries=0,
        )
        return self._client

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_output_tokens: Optional[int] = None,
    ) -> Completion:
        payload = [{"role": m.role, "content": m.content} for m in messages]

        response = await self._get_client().chat.completions.create(
            model=self._model,
            messages=payload,
            temperature=self._temperature,
            max_tokens=max_output_tokens or self._max_output_tokens,
        )
        if not response.choices:
            return Completion(text="", finish_reason=None)

        choice = response.choices[0]
        text = choice.message.content if choice.message else ""
        return Completion(text=text or "", finish_reason=choice.finish_reason)
