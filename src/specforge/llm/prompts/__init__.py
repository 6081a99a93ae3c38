"""Prompt templates for each generation stage."""
from __future__ import annotations

from specforge.llm.prompts.analysis import (
    ANALYSIS_TEMPERATURE,
    IDEA_GENERATION_PROMPT,
    IDEA_SYSTEM_PROMPT,
    TECH_STACK_PROMPT,
    TECH_STACK_SYSTEM_PROMPT,
    format_preferences,
)
from specforge.llm.prompts.finalize import (
    GETTING_STARTED_PROMPT,
    GETTING_STARTED_SYSTEM_PROMPT,
)
from specforge.llm.prompts.prd import (
    JSON_RESPONSE_RULES,
    PRD_SYSTEM_PROMPT,
    PRD_TEMPERATURE,
    SECTION_PROMPTS,
    build_section_prompt,
)

__all__ = [
    "ANALYSIS_TEMPERATURE",
    "GETTING_STARTED_PROMPT",
    "GETTING_STARTED_SYSTEM_PROMPT",
    "IDEA_GENERATION_PROMPT",
    "IDEA_SYSTEM_PROMPT",
    "JSON_RESPONSE_RULES",
    "PRD_SYSTEM_PROMPT",
    "PRD_TEMPERATURE",
    "SECTION_PROMPTS",
    "TECH_STACK_PROMPT",
    "TECH_STACK_SYSTEM_PROMPT",
    "build_section_prompt",
    "format_preferences",
]
