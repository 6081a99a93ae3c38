"""Pipeline steps: the five fixed stages of every project."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, IntEnum
from typing import Any


class StepStatus(Enum):
    """Status of a single pipeline step."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str) -> "StepStatus":
        """Parse a stored status, accepting the underscore spelling."""
        return cls(value.replace("_", "-"))


class StepKind(IntEnum):
    """Pipeline position of a step. The value is the step's order."""

    INPUT_ANALYSIS = 1
    IDEA_GENERATION = 2
    IDEA_REFINEMENT = 3
    PRD_GENERATION = 4
    PROJECT_FINALIZATION = 5

    @property
    def title(self) -> str:
        return STEP_TITLES[self]


STEP_TITLES: dict[StepKind, str] = {
    StepKind.INPUT_ANALYSIS: "Input Analysis",
    StepKind.IDEA_GENERATION: "Idea Generation",
    StepKind.IDEA_REFINEMENT: "Idea Refinement",
    StepKind.PRD_GENERATION: "PRD Generation",
    StepKind.PROJECT_FINALIZATION: "Project Finalization",
}

STEP_COUNT = len(StepKind)


def step_id(project_id: str, order: int) -> str:
    """Build the deterministic id of a project's step."""
    return f"{project_id}_step_{order}"


@dataclass
class Step:
    """One stage of a project's pipeline with its accumulated content."""

    id: str
    project_id: str
    kind: StepKind
    title: str
    status: StepStatus
    created_at: datetime
    updated_at: datetime
    content: dict[str, Any] = field(default_factory=dict)

    @property
    def order(self) -> int:
        return int(self.kind)

    @classmethod
    def create(cls, project_id: str, kind: StepKind) -> "Step":
        """Create a fresh pending step for the given position."""
        now = datetime.now(UTC)
        return cls(
            id=step_id(project_id, kind),
            project_id=project_id,
            kind=kind,
            title=kind.title,
            status=StepStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "order": self.order,
            "title": self.title,
            "status": self.status.value,
            "content": copy.deepcopy(self.content),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        """Create from dictionary."""
        kind = StepKind(int(data["order"]))
        content = data.get("content") or {}
        if isinstance(content, str):
            # Older stores kept content as an embedded JSON string
            try:
                content = json.loads(content)
            except json.JSONDecodeError:
                content = {}
        return cls(
            id=data["id"],
            project_id=data["project_id"],
            kind=kind,
            title=data.get("title") or kind.title,
            status=StepStatus.parse(data.get("status", "pending")),
            content=content if isinstance(content, dict) else {},
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
