"""Tests for prompt templates."""
from __future__ import annotations

import pytest

from specforge.llm.prompts import (
    GETTING_STARTED_PROMPT,
    IDEA_GENERATION_PROMPT,
    TECH_STACK_PROMPT,
    build_section_prompt,
    format_preferences,
)
from specforge.llm.prompts.prd import JSON_RESPONSE_RULES, SECTION_PROMPTS
from specforge.prd.normalizer import SECTION_KEYS


def test_every_section_has_a_prompt() -> None:
    assert set(SECTION_PROMPTS) == set(SECTION_KEYS)


@pytest.mark.parametrize("key", SECTION_KEYS)
def test_section_prompt_fills_placeholders(key: str) -> None:
    prompt = build_section_prompt(key, "A todo app", "Build a todo app", "React")

    assert "A todo app" in prompt
    assert "{" + "refined_idea" + "}" not in prompt
    assert prompt.endswith(JSON_RESPONSE_RULES)


def test_section_prompt_defaults_tech_stack() -> None:
    prompt = build_section_prompt("implementation", "idea", "context")

    assert "TECH STACK: Not specified" in prompt


def test_unknown_section_prompt() -> None:
    with pytest.raises(KeyError):
        build_section_prompt("fileStructure", "idea", "context")


def test_analysis_prompts_format() -> None:
    ideas = IDEA_GENERATION_PROMPT.format(context="Build a todo app")
    stack = TECH_STACK_PROMPT.format(
        context="ctx", ideas='["A"]', preferences=format_preferences({})
    )

    assert "CONTEXT: Build a todo app" in ideas
    assert '"ideas": [' in ideas
    assert 'IDEAS: ["A"]' in stack
    assert "USER PREFERENCES" not in stack


def test_format_preferences_lists_only_set_fields() -> None:
    block = format_preferences({"frontend": "Vue", "backend": " ", "hosting": "Fly"})

    assert "- frontend: Vue" in block
    assert "- hosting: Fly" in block
    assert "backend" not in block


def test_getting_started_prompt_format() -> None:
    prompt = GETTING_STARTED_PROMPT.format(prd_context="Project Summary:\nA todo app")

    assert "Project Summary:\nA todo app" in prompt
