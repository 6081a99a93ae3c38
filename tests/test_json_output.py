"""Tests for JSON extraction from model responses."""
from __future__ import annotations

import pytest

from specforge.llm.json_output import MalformedOutputError, extract_json_object


def test_plain_object() -> None:
    assert extract_json_object('{"ideas": ["A"]}') == {"ideas": ["A"]}


def test_fenced_object_with_prose() -> None:
    text = 'Here you go:\n```json\n{"a": 1, "b": {"c": [1, 2]}}\n```\nThanks!'

    assert extract_json_object(text) == {"a": 1, "b": {"c": [1, 2]}}


def test_skips_unparseable_braces() -> None:
    text = 'Use {curly} braces like {"ok": true}'

    assert extract_json_object(text) == {"ok": True}


def test_top_level_array_is_rejected() -> None:
    with pytest.raises(MalformedOutputError):
        extract_json_object('["A", "B"]')


def test_no_json_raises_with_preview() -> None:
    with pytest.raises(MalformedOutputError) as exc_info:
        extract_json_object("I cannot help with that.")

    assert exc_info.value.text == "I cannot help with that."
    assert "I cannot help" in str(exc_info.value)
    assert isinstance(exc_info.value, ValueError)
