from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Sequence


Role = Literal["system", "user", "assistant"]

BLOCKED_FINISH_REASONS = frozenset({"content_filter", "safety"})


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class Completion:
    text: str
    finish_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.finish_reason == "length"

    @property
    def blocked(self) -> bool:
        return (self.finish_reason or "").lower() in BLOCKED_FINISH_REASONS


class AIClient(Protocol):
    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_output_tokens: Optional[int] = None,
    ) -> Completion: ...
