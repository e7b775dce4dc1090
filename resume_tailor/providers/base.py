"""Provider protocol definition."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from .types import GenerationConfig, LLMResponse, Message


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol for provider implementations."""

    async def generate(
        self,
        messages: List[Message],
        config: GenerationConfig,
    ) -> LLMResponse: ...

    async def close(self) -> None: ...
