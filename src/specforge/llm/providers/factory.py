"""Build the configured LLM provider."""

import logging

from specforge.config.settings import Settings
from specforge.llm.providers.base import LLMProvider

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic")


def create_provider(config: Settings) -> LLMProvider:
    """Create a provider from the llm section of the settings.

    Raises:
        ValueError: If the configured provider is unknown.
    """
    name = config.llm_provider
    if name == "openai":
        from specforge.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(model=config.llm_model, api_key=config.openai_api_key)
    if name == "anthropic":
        from specforge.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(
            model=config.llm_model,
            api_key=config.anthropic_api_key,
            use_web_auth=config.use_web_auth,
        )
    raise ValueError(
        f"Unknown LLM provider '{name}'. Choose one of: "
        + ", ".join(SUPPORTED_PROVIDERS)
    )
