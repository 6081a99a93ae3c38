"""Tests for Anthropic provider behavior."""

import asyncio
from typing import Any

import pytest

from specforge.llm.providers.anthropic import JSON_ONLY_INSTRUCTION, AnthropicProvider


class FakeTextBlock:
    def __init__(self, text: str) -> None:
        self.text = text


class FakeAssistantMessage:
    def __init__(self, content: list[Any]) -> None:
        self.content = content


class FakeResultMessage:
    def __init__(self, is_error: bool = False) -> None:
        self.total_cost_usd = 0.02
        self.usage = {"input_tokens": 5, "output_tokens": 3}
        self.total_input_tokens = None
        self.total_output_tokens = None
        self.is_error = is_error
        self.result = "overloaded" if is_error else None
        self.subtype = "error" if is_error else "success"


def _patch_sdk(
    monkeypatch: pytest.MonkeyPatch, captured: dict[str, Any], is_error: bool = False
) -> None:
    async def fake_query(*, prompt: str, options: Any) -> Any:
        captured["prompt"] = prompt
        captured["options"] = options
        yield FakeAssistantMessage([FakeTextBlock('{"ideas": '), FakeTextBlock("[]}")])
        yield FakeResultMessage(is_error=is_error)

    module = "specforge.llm.providers.anthropic"
    monkeypatch.setattr(f"{module}.AssistantMessage", FakeAssistantMessage)
    monkeypatch.setattr(f"{module}.ResultMessage", FakeResultMessage)
    monkeypatch.setattr(f"{module}.TextBlock", FakeTextBlock)
    monkeypatch.setattr(f"{module}.query", fake_query)


def test_complete_joins_text_and_reports_cost(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}
    _patch_sdk(monkeypatch, captured)
    provider = AnthropicProvider(use_web_auth=True)

    completion = asyncio.run(provider.complete("prompt", "system", json_mode=True))

    assert completion.text == '{"ideas": []}'
    assert completion.cost_usd == 0.02
    assert (completion.tokens_in, completion.tokens_out) == (5, 3)
    options = captured["options"]
    assert options.allowed_tools == []
    assert options.system_prompt == f"system\n\n{JSON_ONLY_INSTRUCTION}"
    assert options.env == {"ANTHROPIC_API_KEY": ""}


def test_plain_text_request_keeps_system_prompt(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: dict[str, Any] = {}
    _patch_sdk(monkeypatch, captured)
    provider = AnthropicProvider(api_key="sk-ant-test", use_web_auth=False)

    asyncio.run(provider.complete("prompt", "system", json_mode=False))

    options = captured["options"]
    assert options.system_prompt == "system"
    assert options.env == {"ANTHROPIC_API_KEY": "sk-ant-test"}


def test_error_result_raises_after_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}
    _patch_sdk(monkeypatch, captured, is_error=True)
    provider = AnthropicProvider()
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    monkeypatch.setattr(provider, "_sleep", fake_sleep)

    with pytest.raises(RuntimeError, match="overloaded"):
        asyncio.run(provider.complete("prompt"))

    assert sleeps == [5, 15, 45]


def test_build_env_without_any_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    assert AnthropicProvider(use_web_auth=False)._build_env() == {}
