"""Step pipeline state machine.

Each step moves pending -> in-progress -> completed (a step may also be
completed straight from pending). A step can only be completed once every
earlier step is completed. The single exception is ``rewind``, an explicit,
user-confirmed reset that reopens one completed step and marks all later
steps pending again.

The ``apply_*`` functions mutate an in-memory Project; ``StepPipeline``
wraps them with loading and saving through a ProjectStore.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from specforge.models.project import Project
from specforge.models.step import Step, StepKind, StepStatus
from specforge.models.store import ProjectStore

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Base exception for illegal pipeline operations."""


class InvalidTransitionError(PipelineError):
    """Raised when a step status change is not allowed."""

    def __init__(self, step: Step, target: StepStatus) -> None:
        self.step = step
        self.current = step.status
        self.target = target
        super().__init__(
            f"Invalid transition for step {step.order} ({step.title}) "
            f"from {step.status.value} to {target.value}"
        )


class OutOfOrderError(PipelineError):
    """Raised when a step is worked on before an earlier step is completed."""

    def __init__(self, step: Step, blocking: Step) -> None:
        self.step = step
        self.blocking = blocking
        super().__init__(
            f"Step {step.order} ({step.title}) cannot proceed: "
            f"step {blocking.order} ({blocking.title}) is {blocking.status.value}"
        )


# Forward transitions only; going back is rewind's job
VALID_TRANSITIONS: dict[StepStatus, set[StepStatus]] = {
    StepStatus.PENDING: {StepStatus.IN_PROGRESS, StepStatus.COMPLETED},
    StepStatus.IN_PROGRESS: {StepStatus.COMPLETED},
    # Re-completing is allowed so a stage can be retried after it finished
    StepStatus.COMPLETED: {StepStatus.COMPLETED},
}


def can_transition(step: Step, target: StepStatus) -> bool:
    """Check whether the step may move to the target status."""
    return target in VALID_TRANSITIONS[step.status]


def needs_rewind(project: Project, kind: StepKind | int) -> bool:
    """True when editing this step would reopen finished work.

    That is the case for a completed step that is not the active one.
    """
    step = project.step(kind)
    return step.status is StepStatus.COMPLETED and step.id != project.active_step.id


def _check_order(project: Project, step: Step) -> None:
    for earlier in project.steps:
        if earlier.order >= step.order:
            break
        if earlier.status is not StepStatus.COMPLETED:
            raise OutOfOrderError(step, earlier)


def _set_status(step: Step, target: StepStatus) -> None:
    if not can_transition(step, target):
        raise InvalidTransitionError(step, target)
    step.status = target
    step.updated_at = datetime.now(UTC)


def _merge(step: Step, patch: dict[str, Any] | None) -> None:
    if patch:
        step.content = {**step.content, **patch}
        step.updated_at = datetime.now(UTC)


def apply_advance(
    project: Project, step_id: str, patch: dict[str, Any] | None = None
) -> Step | None:
    """Complete a step, merging the patch into its content.

    Returns:
        The completed step, or None if the step is not part of the project.

    Raises:
        OutOfOrderError: If an earlier step is not completed.
    """
    step = project.find_step(step_id)
    if step is None:
        return None
    _check_order(project, step)
    _merge(step, patch)
    _set_status(step, StepStatus.COMPLETED)
    # The next step is pending unless it is already further along; both are
    # left as they are, so the next step becomes the active one.
    project.refresh_status()
    return step


def apply_update_content(
    project: Project, step_id: str, patch: dict[str, Any]
) -> Step | None:
    """Merge the patch into a step's content without touching its status."""
    step = project.find_step(step_id)
    if step is None:
        return None
    _merge(step, patch)
    return step


def apply_begin(project: Project, step_id: str) -> Step | None:
    """Mark a pending step in-progress when work on it starts.

    Steps that are already in-progress or completed are left unchanged.

    Raises:
        OutOfOrderError: If an earlier step is not completed.
    """
    step = project.find_step(step_id)
    if step is None:
        return None
    if step.status is not StepStatus.PENDING:
        return step
    _check_order(project, step)
    _set_status(step, StepStatus.IN_PROGRESS)
    project.refresh_status()
    return step


def apply_rewind(project: Project, to_order: StepKind | int) -> Step:
    """Reopen a step: earlier steps completed, target in-progress, later pending.

    Raises:
        ValueError: If the order is outside 1..5.
    """
    try:
        target_kind = StepKind(int(to_order))
    except ValueError as e:
        raise ValueError(f"No step with order {to_order}") from e

    now = datetime.now(UTC)
    for step in project.steps:
        if step.order < target_kind:
            step.status = StepStatus.COMPLETED
        elif step.order == target_kind:
            step.status = StepStatus.IN_PROGRESS
        else:
            step.status = StepStatus.PENDING
        step.updated_at = now
    project.refresh_status()
    return project.step(target_kind)


class StepPipeline:
    """Store-backed pipeline operations for one project at a time."""

    def __init__(self, store: ProjectStore) -> None:
        self.store = store

    def _load(self, project_id: str) -> Project | None:
        project = self.store.get_project(project_id)
        if project is None:
            logger.warning("Pipeline operation on unknown project %s", project_id)
        return project

    def advance(
        self, project_id: str, step_id: str, patch: dict[str, Any] | None = None
    ) -> Project | None:
        """Complete a step and persist. No-op (None) for foreign step ids."""
        project = self._load(project_id)
        if project is None:
            return None
        step = apply_advance(project, step_id, patch)
        if step is None:
            logger.warning("Step %s is not part of project %s", step_id, project_id)
            return None
        self.store.save_project(project)
        logger.info(
            "Completed step %d (%s) of %s; project is %s",
            step.order,
            step.title,
            project_id,
            project.status.value,
        )
        return project

    def update_content(
        self, project_id: str, step_id: str, patch: dict[str, Any]
    ) -> Project | None:
        """Merge into a step's content and persist, leaving statuses alone."""
        project = self._load(project_id)
        if project is None:
            return None
        if apply_update_content(project, step_id, patch) is None:
            logger.warning("Step %s is not part of project %s", step_id, project_id)
            return None
        self.store.save_project(project)
        return project

    def begin(self, project_id: str, step_id: str) -> Project | None:
        """Mark a step in-progress (if pending) and persist."""
        project = self._load(project_id)
        if project is None:
            return None
        before = project.find_step(step_id)
        previous = before.status if before is not None else None
        step = apply_begin(project, step_id)
        if step is None:
            return None
        if step.status is not previous:
            self.store.save_project(project)
        return project

    def rewind(self, project_id: str, to_order: StepKind | int) -> Project | None:
        """Reopen the step at to_order and persist."""
        project = self._load(project_id)
        if project is None:
            return None
        step = apply_rewind(project, to_order)
        self.store.save_project(project)
        logger.info(
            "Rewound project %s to step %d (%s)", project_id, step.order, step.title
        )
        return project
