"""Anthropic LLM provider using Claude Agent SDK."""

import logging
import os

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    query,
)

from specforge.llm.providers.base import Completion, LLMProvider

logger = logging.getLogger(__name__)

JSON_ONLY_INSTRUCTION = (
    "Respond with a single JSON object only. Do not wrap it in Markdown "
    "code fences and do not add any text before or after it."
)


def _extract_token_usage(message: ResultMessage) -> tuple[int | None, int | None]:
    """Best-effort extraction of token usage from SDK result messages."""
    tokens_in = getattr(message, "total_input_tokens", None)
    tokens_out = getattr(message, "total_output_tokens", None)

    usage = getattr(message, "usage", None)
    if isinstance(usage, dict):
        tokens_in = tokens_in or usage.get("input_tokens")
        tokens_out = tokens_out or usage.get("output_tokens")
    elif usage is not None:
        tokens_in = tokens_in or getattr(usage, "input_tokens", None)
        tokens_out = tokens_out or getattr(usage, "output_tokens", None)

    return (
        int(tokens_in) if tokens_in is not None else None,
        int(tokens_out) if tokens_out is not None else None,
    )


class AnthropicProvider(LLMProvider):
    """Anthropic provider using Claude Agent SDK.

    Supports both web auth (default) and API key authentication. The SDK has
    no JSON response mode, so JSON requests carry an explicit instruction in
    the system prompt instead.
    """

    provider_name = "anthropic"

    def __init__(
        self,
        model: str = "claude-sonnet-4-5-20250929",
        api_key: str | None = None,
        use_web_auth: bool = True,
    ) -> None:
        """Initialize Anthropic provider.

        Args:
            model: Model identifier (for metrics tracking).
            api_key: Optional API key. If None and use_web_auth=True, uses web auth.
            use_web_auth: Whether to use web auth (default True).
        """
        super().__init__(model=model, api_key=api_key)
        self.use_web_auth = use_web_auth
        logger.info(
            "AnthropicProvider initialized (model=%s, web_auth=%s)",
            model,
            use_web_auth,
        )

    def _build_env(self) -> dict[str, str]:
        """Environment overrides for the SDK subprocess."""
        if self.use_web_auth:
            # Blank key forces web auth
            return {"ANTHROPIC_API_KEY": ""}
        api_key = self.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if api_key:
            return {"ANTHROPIC_API_KEY": api_key}
        return {}

    async def _complete_once(
        self,
        prompt: str,
        system: str,
        json_mode: bool,
        temperature: float | None,
    ) -> Completion:
        # temperature is not exposed by the agent SDK
        system_prompt = system
        if json_mode:
            system_prompt = (
                f"{system}\n\n{JSON_ONLY_INSTRUCTION}" if system
                else JSON_ONLY_INSTRUCTION
            )
        options = ClaudeAgentOptions(
            allowed_tools=[],
            system_prompt=system_prompt or None,
            model=self.model,
            env=self._build_env(),
        )

        chunks: list[str] = []
        cost: float | None = None
        tokens_in: int | None = None
        tokens_out: int | None = None
        async for message in query(prompt=prompt, options=options):
            if isinstance(message, AssistantMessage):
                for block in message.content:
                    if isinstance(block, TextBlock):
                        chunks.append(block.text)
            elif isinstance(message, ResultMessage):
                cost = message.total_cost_usd
                tokens_in, tokens_out = _extract_token_usage(message)
                if message.is_error:
                    raise RuntimeError(
                        f"Claude query failed: {message.result or message.subtype}"
                    )
                logger.info("Query complete, cost: $%.4f", cost or 0)

        return Completion(
            text="".join(chunks),
            cost_usd=cost,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
        )
