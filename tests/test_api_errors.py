"""Tests for API error classification and the shared retry loop."""
from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from specforge.llm.metrics import MetricsCollector
from specforge.llm.providers.base import (
    MAX_RETRIES,
    APIErrorType,
    classify_api_error,
    is_retryable_error,
)


class TestClassifyApiError:
    """Tests for classify_api_error."""

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Error 429: Too Many Requests", APIErrorType.RATE_LIMITED),
            ("rate_limit_error", APIErrorType.RATE_LIMITED),
            ("Service overloaded", APIErrorType.API_UNAVAILABLE),
            ("502 Bad Gateway", APIErrorType.API_UNAVAILABLE),
            ("Request timed out", APIErrorType.API_UNAVAILABLE),
            ("insufficient_quota", APIErrorType.BUDGET_EXCEEDED),
            ("Your credit balance is too low", APIErrorType.BUDGET_EXCEEDED),
            ("invalid json", APIErrorType.UNKNOWN),
        ],
    )
    def test_classification(self, message: str, expected: APIErrorType) -> None:
        assert classify_api_error(Exception(message)) is expected

    def test_only_transient_errors_are_retryable(self) -> None:
        assert is_retryable_error(APIErrorType.RATE_LIMITED)
        assert is_retryable_error(APIErrorType.API_UNAVAILABLE)
        assert not is_retryable_error(APIErrorType.BUDGET_EXCEEDED)
        assert not is_retryable_error(APIErrorType.UNKNOWN)


class TestRetryLoop:
    """Tests for LLMProvider.complete retries and metrics."""

    def test_transient_error_is_retried(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([RuntimeError("503 unavailable"), '{"a": 1}'])

        completion = asyncio.run(provider.complete("prompt"))

        assert completion.text == '{"a": 1}'
        assert provider.sleeps == [5]
        assert len(provider.prompts) == 2

    def test_gives_up_after_max_retries(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls(
            [RuntimeError("rate limit")] * (MAX_RETRIES + 1)
        )

        with pytest.raises(RuntimeError, match="rate limit"):
            asyncio.run(provider.complete("prompt"))

        assert len(provider.prompts) == MAX_RETRIES + 1
        assert provider.sleeps == [5, 15, 45]

    def test_permanent_error_is_not_retried(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([ValueError("bad request"), "unused"])

        with pytest.raises(ValueError):
            asyncio.run(provider.complete("prompt"))

        assert provider.sleeps == []
        assert len(provider.prompts) == 1

    def test_success_and_failure_are_recorded(
        self, fake_provider_cls: type, tmp_path: Path
    ) -> None:
        collector = MetricsCollector(tmp_path / "metrics.jsonl")
        provider = fake_provider_cls(["{}", ValueError("boom")])

        asyncio.run(provider.complete("p", metrics_collector=collector, phase="a"))
        with pytest.raises(ValueError):
            asyncio.run(provider.complete("p", metrics_collector=collector, phase="b"))

        calls = collector.calls
        assert [c.phase for c in calls] == ["a", "b"]
        assert calls[0].success is True
        assert calls[0].cost_usd == 0.01
        assert calls[0].model == "fake-model"
        assert calls[1].success is False
        assert calls[1].error == "boom"
