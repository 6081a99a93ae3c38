"""File-backed persistence for projects and their steps.

Layout under the store root::

    <project_id>/project.json    project metadata
    <project_id>/steps.jsonl     schema header + one step per line
    <project_id>/metrics.jsonl   LLM call metrics (written by llm.metrics)

Deleting a project removes its directory, and with it every step.
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from specforge.models.project import Project, ProjectStatus
from specforge.models.schema import (
    SchemaError,
    atomic_write_text,
    migrate_if_needed,
    schema_header_line,
)
from specforge.models.step import Step, StepStatus

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class StoreError(Exception):
    """Raised when the store cannot read or write project data."""


class ProjectStore:
    """CRUD over projects and steps rooted at a directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"ProjectStore(root={self.root!r})"

    # ─── Paths ───────────────────────────────────────────────────────────

    def project_dir(self, project_id: str) -> Path:
        """Directory holding a project's files."""
        return self.root / project_id

    def _project_file(self, project_id: str) -> Path:
        return self.project_dir(project_id) / "project.json"

    def _steps_file(self, project_id: str) -> Path:
        return self.project_dir(project_id) / "steps.jsonl"

    def _is_valid_id(self, project_id: str) -> bool:
        if project_id in ("", ".", ".."):
            return False
        return Path(project_id).name == project_id

    # ─── Create ──────────────────────────────────────────────────────────

    def create_project(self, name: str) -> Project:
        """Create a project together with its five pending steps.

        Raises:
            ValueError: If the name is blank.
            StoreError: If the project could not be written.
        """
        if not name.strip():
            raise ValueError("Project name must not be empty")
        project = Project.new(name.strip())
        self.save_project(project, touch=False)
        logger.info("Created project %s (%s)", project.id, project.name)
        return project

    # ─── Read ────────────────────────────────────────────────────────────

    def get_project(self, project_id: str) -> Project | None:
        """Load a project with its steps, or None if it does not exist.

        Raises:
            StoreError: If the project exists but cannot be read.
        """
        if not self._is_valid_id(project_id):
            return None
        if not self._project_file(project_id).exists():
            return None
        project = self._load(project_id)
        if project.repair_steps():
            logger.info("Repaired legacy project %s: added missing steps", project_id)
            project.refresh_status()
            self.save_project(project, touch=False)
        return project

    def list_projects(self) -> list[Project]:
        """List all projects, most recently updated first."""
        if not self.root.exists():
            return []
        projects: list[Project] = []
        for project_dir in self.root.iterdir():
            if not project_dir.is_dir():
                continue
            try:
                project = self.get_project(project_dir.name)
            except StoreError as e:
                logger.warning("Skipping unreadable project %s: %s", project_dir, e)
                continue
            if project is not None:
                projects.append(project)
        return sorted(projects, key=lambda p: p.updated_at, reverse=True)

    def _load(self, project_id: str) -> Project:
        steps_path = self._steps_file(project_id)
        try:
            data = json.loads(self._project_file(project_id).read_text("utf-8"))
            steps: list[Step] = []
            if steps_path.exists():
                migrate_if_needed(steps_path, "steps")
                with open(steps_path, encoding="utf-8") as f:
                    for line_num, line in enumerate(f):
                        line = line.strip()
                        if not line:
                            continue
                        record = json.loads(line)
                        if line_num == 0 and "_schema" in record:
                            continue
                        steps.append(Step.from_dict(record))
            return Project.from_dict(data, steps)
        except (OSError, json.JSONDecodeError, KeyError, ValueError, SchemaError) as e:
            raise StoreError(f"Could not load project {project_id}: {e}") from e

    # ─── Update ──────────────────────────────────────────────────────────

    def update_project(
        self,
        project_id: str,
        *,
        name: str | None = None,
        status: ProjectStatus | None = None,
    ) -> bool:
        """Update project fields. Returns False if the project does not exist."""
        project = self.get_project(project_id)
        if project is None:
            return False
        if name is not None:
            if not name.strip():
                raise ValueError("Project name must not be empty")
            project.name = name.strip()
        if status is not None:
            project.status = status
        self._write_project(project, touch=True)
        return True

    def update_step(
        self,
        project_id: str,
        step_id: str,
        *,
        status: StepStatus | None = None,
        content: dict[str, Any] | None = _UNSET,
        title: str | None = None,
    ) -> bool:
        """Update step fields; content is replaced wholesale.

        Returns:
            False if the project or step does not exist.
        """
        project = self.get_project(project_id)
        if project is None:
            return False
        step = project.find_step(step_id)
        if step is None:
            return False
        if status is not None:
            step.status = status
        if content is not _UNSET:
            step.content = dict(content or {})
        if title is not None:
            step.title = title
        step.updated_at = datetime.now(UTC)
        self.save_project(project)
        return True

    def save_project(self, project: Project, touch: bool = True) -> None:
        """Write a project and all of its steps.

        Raises:
            StoreError: If any file could not be written.
        """
        self._write_steps(project)
        self._write_project(project, touch=touch)

    def _write_project(self, project: Project, touch: bool) -> None:
        if touch:
            project.updated_at = datetime.now(UTC)
        path = self._project_file(project.id)
        try:
            atomic_write_text(path, json.dumps(project.to_dict(), indent=2))
        except OSError as e:
            raise StoreError(f"Could not write {path}: {e}") from e
        logger.debug("Saved project %s", project.id)

    def _write_steps(self, project: Project) -> None:
        path = self._steps_file(project.id)
        lines = [schema_header_line("steps")]
        lines.extend(json.dumps(s.to_dict()) + "\n" for s in project.steps)
        try:
            atomic_write_text(path, "".join(lines))
        except OSError as e:
            raise StoreError(f"Could not write {path}: {e}") from e

    # ─── Delete ──────────────────────────────────────────────────────────

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and all its steps.

        Returns:
            True if the project existed and was removed, False otherwise.
        """
        if not self._is_valid_id(project_id):
            return False
        project_path = self.project_dir(project_id)
        if not (project_path / "project.json").exists():
            return False
        try:
            shutil.rmtree(project_path)
        except OSError as e:
            raise StoreError(f"Could not delete project {project_id}: {e}") from e
        logger.info("Deleted project %s", project_id)
        return True
