"""Base class for LLM providers."""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from specforge.llm.metrics import MetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class Completion:
    """A finished single-shot completion with metadata."""

    text: str
    cost_usd: float | None = None
    tokens_in: int | None = None
    tokens_out: int | None = None


class APIErrorType(Enum):
    """Types of API errors for classification."""

    RATE_LIMITED = "rate_limited"
    API_UNAVAILABLE = "api_unavailable"
    BUDGET_EXCEEDED = "budget_exceeded"
    UNKNOWN = "unknown"


# Patterns to match in error messages (case-insensitive)
RATE_LIMIT_PATTERNS = [
    "rate limit",
    "rate_limit",
    "ratelimit",
    "429",
    "too many requests",
    "throttl",
]

UNAVAILABLE_PATTERNS = [
    "overloaded",
    "503",
    "502",
    "504",
    "unavailable",
    "service error",
    "temporarily",
    "try again later",
    "capacity",
    "timed out",
    "connection error",
]

BUDGET_PATTERNS = [
    "budget",
    "spending limit",
    "billing",
    "credit",
    "quota exceeded",
    "insufficient_quota",
    "usage limit",
    "limit reached",
]


def classify_api_error(error: Exception) -> APIErrorType:
    """Classify an API error by parsing the error message."""
    error_str = str(error).lower()

    for pattern in BUDGET_PATTERNS:
        if pattern in error_str:
            return APIErrorType.BUDGET_EXCEEDED

    for pattern in RATE_LIMIT_PATTERNS:
        if pattern in error_str:
            return APIErrorType.RATE_LIMITED

    for pattern in UNAVAILABLE_PATTERNS:
        if pattern in error_str:
            return APIErrorType.API_UNAVAILABLE

    return APIErrorType.UNKNOWN


def is_retryable_error(error_type: APIErrorType) -> bool:
    """Check if an error type is retryable."""
    return error_type in (APIErrorType.RATE_LIMITED, APIErrorType.API_UNAVAILABLE)


# Retry configuration
MAX_RETRIES = 3
RETRY_DELAYS = [5, 15, 45]  # Exponential backoff


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Subclasses implement a single request in ``_complete_once``; retries
    of transient failures and metrics recording live here.
    """

    provider_name: str  # "openai" or "anthropic"

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
    ) -> None:
        """Initialize provider.

        Args:
            model: Model identifier string.
            api_key: Optional API key (uses env var or web auth if None).
        """
        self.model = model
        self.api_key = api_key

    @abstractmethod
    async def _complete_once(
        self,
        prompt: str,
        system: str,
        json_mode: bool,
        temperature: float | None,
    ) -> Completion:
        """Send one request and return the full response."""

    async def _sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def complete(
        self,
        prompt: str,
        system: str = "",
        *,
        json_mode: bool = True,
        temperature: float | None = None,
        metrics_collector: "MetricsCollector | None" = None,
        phase: str = "unknown",
    ) -> Completion:
        """Run a single-shot completion.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.
            json_mode: Ask the provider for a JSON object response.
            temperature: Sampling temperature, where the provider supports it.
            metrics_collector: Optional metrics collector.
            phase: Phase name for metrics.

        Returns:
            The completion.

        Raises:
            Exception: The provider's error once retries are exhausted, or
                immediately for errors that are not transient.
        """
        start_time = time.perf_counter()
        last_error: Exception | None = None
        result: Completion | None = None

        for attempt in range(MAX_RETRIES + 1):
            if attempt > 0:
                delay = RETRY_DELAYS[min(attempt - 1, len(RETRY_DELAYS) - 1)]
                logger.warning(
                    "Retrying %s completion after %ds (attempt %d/%d): %s",
                    self.provider_name,
                    delay,
                    attempt + 1,
                    MAX_RETRIES + 1,
                    last_error,
                )
                await self._sleep(delay)
            try:
                result = await self._complete_once(
                    prompt, system, json_mode, temperature
                )
                break
            except Exception as e:
                last_error = e
                error_type = classify_api_error(e)
                if not is_retryable_error(error_type) or attempt == MAX_RETRIES:
                    logger.error(
                        "%s completion failed (%s): %s",
                        self.provider_name,
                        error_type.value,
                        e,
                    )
                    break

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        if metrics_collector is not None:
            from specforge.llm.metrics import LLMCall

            metrics_collector.record(
                LLMCall.create(
                    phase=phase,
                    cost_usd=result.cost_usd if result else None,
                    latency_ms=elapsed_ms,
                    model=self.model,
                    success=result is not None,
                    error=None if result else str(last_error),
                    tokens_in=result.tokens_in if result else None,
                    tokens_out=result.tokens_out if result else None,
                )
            )

        if result is None:
            assert last_error is not None
            raise last_error
        logger.info(
            "%s completion for %s: %d chars in %dms",
            self.provider_name,
            phase,
            len(result.text),
            elapsed_ms,
        )
        return result
