"""Type definitions for the orchestration layer.

Errors and small result types shared by the stage functions, the
PipelineCoordinator and the UI layers that call it.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from specforge.models.step import Step


# --- Errors ---


class StageInputError(ValueError):
    """Raised when a stage is started without the input it needs.

    Always raised before any provider call is made.
    """


class ProjectNotFoundError(StageInputError):
    """Raised when a stage is run against an unknown project id."""

    def __init__(self, project_id: str) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class StageError(Exception):
    """Raised when a stage fails at its external boundary.

    Provider failures and unparseable model output end up here, with the
    original exception chained as ``__cause__``. Persisted content is never
    touched when this is raised.
    """

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"{stage} failed: {message}")


class RewindDeclined(Exception):
    """Raised when editing a finished step was not confirmed."""

    def __init__(self, step: "Step") -> None:
        self.step = step
        super().__init__(
            f'Editing "{step.title}" would reset the project to step '
            f"{step.order}; the change was cancelled"
        )


# --- Callback Types ---


ConfirmRewind = Callable[["Step"], bool]
"""Asked before a completed step is reopened. Return True to proceed."""


# --- Result Types ---


@dataclass
class FinalizationResult:
    """Outputs of the finalization stage."""

    markdown: str
    getting_started_prompt: str
