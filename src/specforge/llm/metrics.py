"""Per-project record of model calls and what they cost.

Every provider call made on a project's behalf is appended to that
project's ``metrics.jsonl``, tagged with the stage phase that made it
(``analysis-ideas``, ``prd-features``, ``getting-started`` and so on).
The running total feeds the optional spending cap.
"""

import json
import logging
import uuid
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from pathlib import Path
from statistics import mean
from typing import Any

from specforge.models.schema import (
    SchemaError,
    migrate_if_needed,
    schema_header_line,
)

logger = logging.getLogger(__name__)

METRICS_SCHEMA = "metrics"


@dataclass
class LLMCall:
    """One model call. Tokens and cost are None when the provider omits them."""

    call_id: str
    phase: str
    cost_usd: float | None
    tokens_in: int | None
    tokens_out: int | None
    latency_ms: int
    model: str
    timestamp: datetime
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        for key in ("tokens_in", "tokens_out"):
            if data[key] is None:
                del data[key]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LLMCall":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values.setdefault("tokens_in", None)
        values.setdefault("tokens_out", None)
        values["timestamp"] = datetime.fromisoformat(data["timestamp"])
        return cls(**values)

    @classmethod
    def create(
        cls,
        phase: str,
        cost_usd: float | None,
        latency_ms: int,
        model: str,
        success: bool = True,
        error: str | None = None,
        tokens_in: int | None = None,
        tokens_out: int | None = None,
    ) -> "LLMCall":
        """Stamp a new call with a short random id and the current time."""
        return cls(
            call_id=uuid.uuid4().hex[:8],
            phase=phase,
            cost_usd=cost_usd,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            latency_ms=latency_ms,
            model=model,
            timestamp=datetime.now(UTC),
            success=success,
            error=error,
        )


def read_calls(path: Path) -> list[LLMCall]:
    """Read every call from a metrics file, upgrading a headerless one first.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If a line is not a valid call record.
        SchemaError: If the header is corrupt or cannot be migrated.
    """
    migrate_if_needed(path, METRICS_SCHEMA)
    calls: list[LLMCall] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            data = json.loads(line)
            if "_schema" in data:
                continue
            try:
                calls.append(LLMCall.from_dict(data))
            except (KeyError, TypeError) as e:
                raise ValueError(f"Bad metrics record in {path}: {e}") from e
    return calls


class MetricsCollector:
    """Loads a project's call history and appends new calls to it.

    Aggregates (total cost, cost per phase, token totals) cover both the
    loaded history and calls recorded through this instance.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._calls: list[LLMCall] = []
        if path.exists():
            try:
                self._calls = read_calls(path)
            except (OSError, ValueError, SchemaError) as e:
                logger.warning("Ignoring unreadable metrics %s: %s", path, e)
            else:
                logger.debug("Loaded %d calls from %s", len(self._calls), path)

    def record(self, call: LLMCall) -> None:
        """Keep the call and append it to the file.

        A failed write is logged; the call still counts toward totals.
        """
        self._calls.append(call)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            is_new = not self.path.exists()
            with open(self.path, "a", encoding="utf-8") as f:
                if is_new:
                    f.write(schema_header_line(METRICS_SCHEMA))
                f.write(json.dumps(call.to_dict()) + "\n")
        except OSError as e:
            logger.warning("Failed to write metrics to %s: %s", self.path, e)
        logger.debug(
            "Recorded %s call %s ($%.4f)", call.phase, call.call_id, call.cost_usd or 0
        )

    @property
    def calls(self) -> list[LLMCall]:
        return list(self._calls)

    @property
    def total_cost(self) -> float:
        return sum(c.cost_usd or 0.0 for c in self._calls)

    @property
    def total_tokens_in(self) -> int:
        return sum(c.tokens_in or 0 for c in self._calls)

    @property
    def total_tokens_out(self) -> int:
        return sum(c.tokens_out or 0 for c in self._calls)

    def cost_by_phase(self) -> dict[str, float]:
        costs: dict[str, float] = {}
        for call in self._calls:
            costs[call.phase] = costs.get(call.phase, 0.0) + (call.cost_usd or 0.0)
        return costs

    def summary(self) -> dict[str, Any]:
        """Totals for display: calls, cost, tokens, latency and success rate."""
        calls = self._calls
        return {
            "total_calls": len(calls),
            "total_cost_usd": self.total_cost,
            "cost_by_phase": self.cost_by_phase(),
            "total_tokens_in": self.total_tokens_in,
            "total_tokens_out": self.total_tokens_out,
            "avg_latency_ms": mean(c.latency_ms for c in calls) if calls else 0,
            "success_rate": (
                sum(c.success for c in calls) / len(calls) if calls else 1.0
            ),
        }


class BudgetExceededError(Exception):
    """Raised when a budget limit is exceeded."""

    def __init__(
        self, limit_type: str, current_value: float, limit_value: float
    ) -> None:
        self.limit_type = limit_type
        self.current_value = current_value
        self.limit_value = limit_value
        super().__init__(
            f"Budget exceeded: {limit_type} is {current_value:.2f}, "
            f"limit is {limit_value:.2f}"
        )


@dataclass
class Budget:
    """Optional spending cap for a project's LLM usage."""

    max_usd: float | None = None

    def check(self, collector: MetricsCollector) -> None:
        """Check if the budget has been exceeded.

        Raises:
            BudgetExceededError: If the limit is exceeded.
        """
        if self.max_usd is not None and collector.total_cost > self.max_usd:
            raise BudgetExceededError("cost", collector.total_cost, self.max_usd)

    def remaining(self, collector: MetricsCollector) -> float | None:
        """Get remaining budget, or None if no budget set."""
        if self.max_usd is None:
            return None
        return max(0.0, self.max_usd - collector.total_cost)
