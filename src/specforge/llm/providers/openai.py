"""OpenAI LLM provider."""

import logging
import os
from typing import Any

from specforge.llm.providers.base import Completion, LLMProvider

logger = logging.getLogger(__name__)


def _extract_usage_tokens(usage: Any) -> tuple[int | None, int | None]:
    """Extract prompt/completion tokens from usage payloads."""
    if usage is None:
        return None, None
    tokens_in = getattr(usage, "prompt_tokens", None)
    tokens_out = getattr(usage, "completion_tokens", None)
    if tokens_in is None:
        tokens_in = getattr(usage, "input_tokens", None)
    if tokens_out is None:
        tokens_out = getattr(usage, "output_tokens", None)
    if tokens_in is None and isinstance(usage, dict):
        tokens_in = usage.get("prompt_tokens")
        tokens_out = usage.get("completion_tokens")

    return (
        int(tokens_in) if tokens_in is not None else None,
        int(tokens_out) if tokens_out is not None else None,
    )


class OpenAIProvider(LLMProvider):
    """OpenAI provider using the chat completions API."""

    provider_name = "openai"

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
    ) -> None:
        super().__init__(model=model, api_key=api_key)
        logger.info("OpenAIProvider initialized (model=%s)", model)

    def _get_async_client(self) -> Any:
        """Get an async OpenAI client instance."""
        from openai import AsyncOpenAI

        api_key = self.api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "OpenAI API key required. Set OPENAI_API_KEY env var or configure "
                "in settings."
            )
        return AsyncOpenAI(api_key=api_key)

    async def _complete_once(
        self,
        prompt: str,
        system: str,
        json_mode: bool,
        temperature: float | None,
    ) -> Completion:
        client = self._get_async_client()

        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {"model": self.model, "messages": messages}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if temperature is not None:
            kwargs["temperature"] = temperature

        response = await client.chat.completions.create(**kwargs)
        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        tokens_in, tokens_out = _extract_usage_tokens(
            getattr(response, "usage", None)
        )
        return Completion(
            text=text,
            cost_usd=None,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
        )
