"""Tests for the file-backed project store."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from specforge.models.project import ProjectStatus
from specforge.models.step import StepStatus
from specforge.models.store import ProjectStore, StoreError


class TestCreateAndRead:
    """Creating and loading projects."""

    def test_create_persists_project_and_steps(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")

        loaded = store.get_project(project.id)

        assert loaded is not None
        assert loaded.name == "Acme"
        assert loaded.status is ProjectStatus.DRAFT
        assert [s.order for s in loaded.steps] == [1, 2, 3, 4, 5]
        project_dir = store.project_dir(project.id)
        assert (project_dir / "project.json").exists()
        assert (project_dir / "steps.jsonl").exists()

    def test_steps_file_starts_with_schema_header(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")

        lines = (store.project_dir(project.id) / "steps.jsonl").read_text().splitlines()

        assert "_schema" in json.loads(lines[0])
        assert len(lines) == 6

    def test_create_rejects_blank_name(self, store: ProjectStore) -> None:
        with pytest.raises(ValueError):
            store.create_project("   ")

    def test_get_unknown_project_returns_none(self, store: ProjectStore) -> None:
        assert store.get_project("project_missing") is None
        assert store.get_project("../escape") is None

    def test_list_projects_newest_first(self, store: ProjectStore) -> None:
        first = store.create_project("First")
        second = store.create_project("Second")
        store.update_project(first.id, name="First renamed")

        projects = store.list_projects()

        assert [p.id for p in projects] == [first.id, second.id]

    def test_list_projects_on_missing_root_is_empty(self, tmp_path: Path) -> None:
        assert ProjectStore(tmp_path / "nothing").list_projects() == []

    def test_list_skips_unreadable_project(self, store: ProjectStore) -> None:
        good = store.create_project("Good")
        bad = store.create_project("Bad")
        (store.project_dir(bad.id) / "project.json").write_text("{broken")

        assert [p.id for p in store.list_projects()] == [good.id]
        with pytest.raises(StoreError):
            store.get_project(bad.id)

    def test_legacy_project_is_repaired_on_load(self, store: ProjectStore) -> None:
        project = store.create_project("Legacy")
        steps_file = store.project_dir(project.id) / "steps.jsonl"
        lines = steps_file.read_text().splitlines()
        # Keep the header and the first two steps only
        steps_file.write_text("\n".join(lines[:3]) + "\n")

        loaded = store.get_project(project.id)

        assert loaded is not None
        assert [s.order for s in loaded.steps] == [1, 2, 3, 4, 5]
        reread = steps_file.read_text().splitlines()
        assert len(reread) == 6


class TestUpdate:
    """Updating projects and steps."""

    def test_update_step_replaces_content(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")
        step = project.steps[0]

        assert store.update_step(
            project.id, step.id, status=StepStatus.IN_PROGRESS, content={"a": 1}
        )

        loaded = store.get_project(project.id)
        assert loaded is not None
        assert loaded.steps[0].status is StepStatus.IN_PROGRESS
        assert loaded.steps[0].content == {"a": 1}

    def test_update_step_of_unknown_project(self, store: ProjectStore) -> None:
        assert store.update_step("project_missing", "x_step_1", content={}) is False

    def test_update_step_with_foreign_id(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")
        other = store.create_project("Other")

        assert store.update_step(project.id, other.steps[0].id, content={}) is False

    def test_rename(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")

        assert store.update_project(project.id, name="Acme 2") is True

        loaded = store.get_project(project.id)
        assert loaded is not None
        assert loaded.name == "Acme 2"
        assert loaded.updated_at >= project.updated_at

    def test_rename_unknown_project(self, store: ProjectStore) -> None:
        assert store.update_project("project_missing", name="x") is False


class TestDelete:
    """Deleting projects removes their steps."""

    def test_delete_removes_project_and_steps(self, store: ProjectStore) -> None:
        project = store.create_project("Acme")

        assert store.delete_project(project.id) is True

        assert store.get_project(project.id) is None
        assert not store.project_dir(project.id).exists()
        assert store.list_projects() == []

    def test_delete_unknown_project_returns_false(self, store: ProjectStore) -> None:
        assert store.delete_project("project_missing") is False
        assert store.delete_project("..") is False
