"""Tests for the step pipeline state machine."""
from __future__ import annotations

import pytest

from specforge.models.pipeline import (
    InvalidTransitionError,
    OutOfOrderError,
    StepPipeline,
    _set_status,
    apply_advance,
    apply_begin,
    apply_rewind,
    can_transition,
    needs_rewind,
)
from specforge.models.project import Project, ProjectStatus
from specforge.models.step import StepKind, StepStatus
from specforge.models.store import ProjectStore


def _completed_through(order: int) -> Project:
    project = Project.new("Acme")
    for step in project.steps[:order]:
        apply_advance(project, step.id)
    return project


class TestTransitions:
    """Forward-only status transitions."""

    def test_valid_transitions(self) -> None:
        step = Project.new("Acme").steps[0]

        assert can_transition(step, StepStatus.IN_PROGRESS)
        assert can_transition(step, StepStatus.COMPLETED)
        step.status = StepStatus.COMPLETED
        assert can_transition(step, StepStatus.COMPLETED)
        assert not can_transition(step, StepStatus.PENDING)
        assert not can_transition(step, StepStatus.IN_PROGRESS)

    def test_in_progress_cannot_go_back_to_pending(self) -> None:
        step = Project.new("Acme").steps[0]
        step.status = StepStatus.IN_PROGRESS

        assert not can_transition(step, StepStatus.PENDING)


class TestAdvance:
    """Completing steps in order."""

    def test_advance_completes_and_merges_patch(self) -> None:
        project = Project.new("Acme")
        step = project.steps[0]
        step.content = {"textInput": "keep"}

        apply_advance(project, step.id, {"analysis": {"ideas": []}})

        assert step.status is StepStatus.COMPLETED
        assert step.content == {"textInput": "keep", "analysis": {"ideas": []}}
        assert project.status is ProjectStatus.IN_PROGRESS
        assert project.active_step.kind is StepKind.IDEA_GENERATION

    def test_advance_out_of_order_raises(self) -> None:
        project = Project.new("Acme")

        with pytest.raises(OutOfOrderError) as exc_info:
            apply_advance(project, project.steps[2].id)

        assert exc_info.value.blocking.order == 1
        assert project.steps[2].status is StepStatus.PENDING

    def test_advance_all_steps_completes_project(self) -> None:
        project = _completed_through(5)

        assert project.status is ProjectStatus.COMPLETED

    def test_advance_foreign_step_is_noop(self) -> None:
        project = Project.new("Acme")

        assert apply_advance(project, "elsewhere_step_1") is None
        assert project.status is ProjectStatus.DRAFT

    def test_begin_marks_pending_in_progress_only(self) -> None:
        project = _completed_through(1)
        second = project.steps[1]

        apply_begin(project, second.id)
        assert second.status is StepStatus.IN_PROGRESS

        apply_advance(project, second.id)
        apply_begin(project, second.id)
        assert second.status is StepStatus.COMPLETED

    def test_begin_out_of_order_raises(self) -> None:
        project = Project.new("Acme")

        with pytest.raises(OutOfOrderError):
            apply_begin(project, project.steps[3].id)

    def test_set_status_rejects_backwards_move(self) -> None:
        step = Project.new("Acme").steps[0]
        step.status = StepStatus.COMPLETED

        with pytest.raises(InvalidTransitionError):
            _set_status(step, StepStatus.PENDING)


class TestRewind:
    """Reopening a completed step."""

    def test_rewind_resets_later_steps(self) -> None:
        project = _completed_through(3)
        apply_begin(project, project.steps[3].id)

        apply_rewind(project, 2)

        statuses = [s.status for s in project.steps]
        assert statuses == [
            StepStatus.COMPLETED,
            StepStatus.IN_PROGRESS,
            StepStatus.PENDING,
            StepStatus.PENDING,
            StepStatus.PENDING,
        ]
        assert project.status is ProjectStatus.IN_PROGRESS

    def test_rewind_keeps_content(self) -> None:
        project = _completed_through(3)
        project.steps[2].content = {"refinedIdea": "A"}

        apply_rewind(project, 1)

        assert project.steps[2].content == {"refinedIdea": "A"}

    def test_rewind_rejects_unknown_order(self) -> None:
        with pytest.raises(ValueError):
            apply_rewind(Project.new("Acme"), 9)

    def test_needs_rewind_only_for_completed_non_active(self) -> None:
        project = _completed_through(3)

        assert needs_rewind(project, StepKind.IDEA_GENERATION)
        assert not needs_rewind(project, StepKind.PRD_GENERATION)
        assert not needs_rewind(project, StepKind.PROJECT_FINALIZATION)

    def test_needs_rewind_false_for_last_step_of_finished_project(self) -> None:
        project = _completed_through(5)

        assert not needs_rewind(project, StepKind.PROJECT_FINALIZATION)
        assert needs_rewind(project, StepKind.PRD_GENERATION)


class TestStepPipeline:
    """Store-backed pipeline operations."""

    def test_advance_persists(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")
        pipeline = StepPipeline(store)

        pipeline.advance(project.id, project.steps[0].id, {"textInput": "x"})

        loaded = store.get_project(project.id)
        assert loaded is not None
        assert loaded.steps[0].status is StepStatus.COMPLETED
        assert loaded.steps[0].content == {"textInput": "x"}
        assert loaded.status is ProjectStatus.IN_PROGRESS

    def test_update_content_leaves_status(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")
        pipeline = StepPipeline(store)

        result = pipeline.update_content(project.id, project.steps[0].id, {"a": 1})

        assert result is not None
        assert result.steps[0].status is StepStatus.PENDING
        assert result.steps[0].content == {"a": 1}

    def test_operations_on_unknown_project_return_none(
        self, store: ProjectStore
    ) -> None:
        pipeline = StepPipeline(store)

        assert pipeline.advance("project_missing", "x_step_1") is None
        assert pipeline.update_content("project_missing", "x_step_1", {}) is None
        assert pipeline.rewind("project_missing", 1) is None

    def test_advance_with_foreign_step_returns_none(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")
        other = store.create_project("Other")

        assert StepPipeline(store).advance(project.id, other.steps[0].id) is None

    def test_rewind_persists(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")
        pipeline = StepPipeline(store)
        for step in project.steps[:4]:
            pipeline.advance(project.id, step.id)

        pipeline.rewind(project.id, 2)

        loaded = store.get_project(project.id)
        assert loaded is not None
        assert [s.status for s in loaded.steps][:3] == [
            StepStatus.COMPLETED,
            StepStatus.IN_PROGRESS,
            StepStatus.PENDING,
        ]
