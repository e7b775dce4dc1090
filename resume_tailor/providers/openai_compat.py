"""OpenAI-compatible provider implementation (OpenAI, Groq, DeepSeek, Kimi, GLM...)."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from .types import GenerationConfig, LLMResponse, Message


class OpenAICompatibleProvider:
    """Provider for OpenAI-compatible chat APIs."""

    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str = "",
        timeout: float = 60.0,
    ) -> None:
        self.model = model
        self.api_base = api_base or ""
        # Retries are owned by the caller's backoff policy, not the SDK.
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=api_base or None,
            timeout=timeout,
            max_retries=0,
        )
        self._forced_temperature: Optional[float] = None

    async def generate(
        self,
        messages: List[Message],
        config: GenerationConfig,
    ) -> LLMResponse:
        kwargs = self._build_chat_kwargs(
            messages=self._to_openai_messages(messages, config.system_prompt),
            config=config,
        )
        completion = await self._create_with_temperature_retry(kwargs)
        return self._from_openai_completion(completion)

    async def close(self) -> None:
        await self.client.close()

    def _build_chat_kwargs(
        self,
        messages: List[Dict[str, Any]],
        config: GenerationConfig,
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": config.model or self.model,
            "messages": messages,
        }
        if config.max_tokens and config.max_tokens > 0:
            kwargs["max_tokens"] = config.max_tokens
        normalized_temperature = self._normalize_temperature(config.temperature)
        if normalized_temperature is not None:
            kwargs["temperature"] = normalized_temperature
        if config.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        extra_body = self._build_extra_body(kwargs["model"])
        if extra_body:
            kwargs["extra_body"] = extra_body
        return kwargs

    def _normalize_temperature(self, temperature: Optional[float]) -> Optional[float]:
        if self._forced_temperature is not None:
            return self._forced_temperature
        return temperature

    def _build_extra_body(self, model: str) -> Optional[Dict[str, Any]]:
        api_base_lower = self.api_base.lower()
        model_lower = (model or "").lower()

        # Moonshot Kimi K2: thinking mode wraps the answer in reasoning text.
        if "moonshot.cn" in api_base_lower and model_lower.startswith("kimi-k2"):
            return {"thinking": {"type": "disabled"}}

        return None

    async def _create_with_temperature_retry(self, kwargs: Dict[str, Any]):
        try:
            return await self.client.chat.completions.create(**kwargs)
        except Exception as error:
            allowed = self._extract_allowed_temperature(error)
            current = kwargs.get("temperature")
            if allowed is None or current == allowed:
                raise

            retry_kwargs = dict(kwargs)
            retry_kwargs["temperature"] = allowed
            self._forced_temperature = allowed
            return await self.client.chat.completions.create(**retry_kwargs)

    def _extract_allowed_temperature(self, error: Exception) -> Optional[float]:
        message = str(error).lower()
        if "invalid temperature" not in message:
            return None

        # Example: "invalid temperature: only 0.6 is allowed for this model"
        match = re.search(r"only\s+([0-9]+(?:\.[0-9]+)?)\s+is allowed", message)
        if not match:
            return None
        return float(match.group(1))

    def _to_openai_messages(self, messages: List[Message], system_prompt: str) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        if system_prompt:
            result.append({"role": "system", "content": system_prompt})
        for msg in messages:
            role = "assistant" if msg.role == "assistant" else "user"
            result.append({"role": role, "content": msg.text})
        return result

    def _from_openai_completion(self, completion) -> LLMResponse:
        if not completion.choices:
            raise RuntimeError("Empty LLM response: no choices")

        choice = completion.choices[0]
        text = self._normalize_message_content(getattr(choice.message, "content", ""))

        usage_data = getattr(completion, "usage", None)
        usage = None
        if usage_data:
            usage = {
                "prompt_tokens": int(getattr(usage_data, "prompt_tokens", 0) or 0),
                "completion_tokens": int(getattr(usage_data, "completion_tokens", 0) or 0),
                "total_tokens": int(getattr(usage_data, "total_tokens", 0) or 0),
            }

        finish_reason = getattr(choice, "finish_reason", None)
        return LLMResponse(
            text=text,
            usage=usage,
            model=getattr(completion, "model", "") or "",
            raw=completion,
            finish_reasons=[finish_reason] if finish_reason else [],
        )

    def _normalize_message_content(self, content: Any) -> str:
        if content is None:
            return ""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(self._extract_text_from_content_item(item) for item in content)
        return str(content)

    def _extract_text_from_content_item(self, item: Any) -> str:
        if item is None:
            return ""
        if isinstance(item, str):
            return item
        if isinstance(item, dict):
            return str(item.get("text", "")) if "text" in item else ""
        return str(getattr(item, "text", "") or "")
