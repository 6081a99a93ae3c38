"""Tests for OpenAI provider behavior."""

import asyncio
from types import SimpleNamespace

import pytest

from specforge.llm.providers.openai import OpenAIProvider, _extract_usage_tokens


class FakeCompletions:
    def __init__(self, content: str | None = '{"ok": true}') -> None:
        self.content = content
        self.calls: list[dict[str, object]] = []

    async def create(self, **kwargs: object) -> SimpleNamespace:
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=30),
        )


def _provider_with(completions: FakeCompletions) -> OpenAIProvider:
    fake_client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    provider = OpenAIProvider(api_key="test-key")
    provider._get_async_client = lambda: fake_client  # type: ignore[method-assign]
    return provider


def test_complete_requests_json_object_with_system_prompt() -> None:
    completions = FakeCompletions()
    provider = _provider_with(completions)

    completion = asyncio.run(
        provider.complete("prompt", "system", json_mode=True, temperature=0.0)
    )

    assert completion.text == '{"ok": true}'
    assert completion.tokens_in == 120
    assert completion.tokens_out == 30
    assert completion.cost_usd is None
    call = completions.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["response_format"] == {"type": "json_object"}
    assert call["temperature"] == 0.0
    assert call["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "prompt"},
    ]


def test_complete_plain_text_without_system_or_temperature() -> None:
    completions = FakeCompletions(content=None)
    provider = _provider_with(completions)

    completion = asyncio.run(provider.complete("prompt", json_mode=False))

    assert completion.text == ""
    call = completions.calls[0]
    assert "response_format" not in call
    assert "temperature" not in call
    assert call["messages"] == [{"role": "user", "content": "prompt"}]


def test_missing_api_key_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    provider = OpenAIProvider(api_key=None)

    with pytest.raises(ValueError, match="OpenAI API key required"):
        provider._get_async_client()


def test_extract_usage_tokens_shapes() -> None:
    assert _extract_usage_tokens(None) == (None, None)
    assert _extract_usage_tokens(
        SimpleNamespace(input_tokens=3, output_tokens=4)
    ) == (3, 4)
    assert _extract_usage_tokens({"prompt_tokens": 1, "completion_tokens": 2}) == (
        1,
        2,
    )
