"""LLM provider implementations."""
from __future__ import annotations

from specforge.llm.providers.base import Completion, LLMProvider
from specforge.llm.providers.factory import SUPPORTED_PROVIDERS, create_provider

__all__ = [
    "Completion",
    "LLMProvider",
    "SUPPORTED_PROVIDERS",
    "create_provider",
]
