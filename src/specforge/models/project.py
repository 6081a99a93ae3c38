"""Project model: a named PRD effort owning exactly five steps."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from specforge.models.step import STEP_COUNT, Step, StepKind, StepStatus


class ProjectStatus(Enum):
    """Derived project status."""

    DRAFT = "draft"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str) -> "ProjectStatus":
        return cls(value.replace("_", "-"))


def new_project_id() -> str:
    """Generate an opaque, time-prefixed project id."""
    return f"project_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def derive_status(steps: list[Step]) -> ProjectStatus:
    """Derive a project's status from its steps.

    Completed iff every step is completed; draft iff no step has left
    pending; in-progress otherwise.
    """
    if steps and all(s.status is StepStatus.COMPLETED for s in steps):
        return ProjectStatus.COMPLETED
    if all(s.status is StepStatus.PENDING for s in steps):
        return ProjectStatus.DRAFT
    return ProjectStatus.IN_PROGRESS


@dataclass
class Project:
    """A PRD project and its ordered pipeline steps."""

    id: str
    name: str
    status: ProjectStatus
    created_at: datetime
    updated_at: datetime
    steps: list[Step] = field(default_factory=list, repr=False)

    @classmethod
    def new(cls, name: str) -> "Project":
        """Build a new project with all five steps pending (not persisted)."""
        project_id = new_project_id()
        now = datetime.now(UTC)
        return cls(
            id=project_id,
            name=name,
            status=ProjectStatus.DRAFT,
            created_at=now,
            updated_at=now,
            steps=[Step.create(project_id, kind) for kind in StepKind],
        )

    def step(self, kind: StepKind | int) -> Step:
        """Get the step at the given order."""
        order = int(kind)
        for s in self.steps:
            if s.order == order:
                return s
        raise KeyError(f"Project {self.id} has no step {order}")

    def find_step(self, step_id: str) -> Step | None:
        """Get a step by id, or None if it does not belong to this project."""
        return next((s for s in self.steps if s.id == step_id), None)

    @property
    def active_step(self) -> Step:
        """First pending or in-progress step, else the last step."""
        for s in self.steps:
            if s.status is not StepStatus.COMPLETED:
                return s
        return self.steps[-1]

    def refresh_status(self) -> ProjectStatus:
        """Recompute the derived status and store it on the project."""
        self.status = derive_status(self.steps)
        return self.status

    def missing_kinds(self) -> list[StepKind]:
        """Step positions absent from this project (legacy records)."""
        present = {s.order for s in self.steps}
        return [kind for kind in StepKind if int(kind) not in present]

    def repair_steps(self) -> bool:
        """Append any missing steps as pending. Returns True if repaired."""
        if len(self.steps) >= STEP_COUNT and not self.missing_kinds():
            return False
        for kind in self.missing_kinds():
            self.steps.append(Step.create(self.id, kind))
        self.steps.sort(key=lambda s: s.order)
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (steps excluded)."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], steps: list[Step]) -> "Project":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            status=ProjectStatus.parse(data.get("status", "draft")),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            steps=sorted(steps, key=lambda s: s.order),
        )
