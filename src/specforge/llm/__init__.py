"""LLM access for SpecForge."""
from __future__ import annotations

from .json_output import MalformedOutputError, extract_json_object
from .metrics import (
    Budget,
    BudgetExceededError,
    LLMCall,
    MetricsCollector,
)
from .providers import Completion, LLMProvider, create_provider

__all__ = [
    "Budget",
    "BudgetExceededError",
    "Completion",
    "LLMCall",
    "LLMProvider",
    "MalformedOutputError",
    "MetricsCollector",
    "create_provider",
    "extract_json_object",
]
