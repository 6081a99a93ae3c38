"""Shared context helpers for CLI command modules."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from typing import TypeVar

from specforge.config.project_root import get_projects_root
from specforge.llm.metrics import BudgetExceededError
from specforge.models.pipeline import PipelineError
from specforge.models.project import Project
from specforge.models.step import Step
from specforge.models.store import ProjectStore, StoreError
from specforge.orchestration import (
    PipelineCoordinator,
    RewindDeclined,
    StageError,
    StageInputError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DECLINED = 2


def get_store() -> ProjectStore:
    """Project store rooted at the configured projects directory."""
    return ProjectStore(get_projects_root())


def load_project_or_error(store: ProjectStore, project_id: str) -> Project | None:
    """Load project by id or print a user-facing error and return None."""
    try:
        project = store.get_project(project_id)
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    if project is None:
        print(f"Error: Project '{project_id}' not found", file=sys.stderr)
        print(f"  Looked in: {store.root}", file=sys.stderr)
    return project


def confirm_rewind_prompt(step: Step) -> bool:
    """Ask on the terminal before reopening a completed step."""
    print(
        f'You\'re about to modify "{step.title}" which will reset the process '
        "back to this step. Any progress made in subsequent steps may be lost."
    )
    try:
        answer = input("Continue? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def build_coordinator(
    args: argparse.Namespace, store: ProjectStore
) -> PipelineCoordinator:
    """Coordinator whose rewind confirmation follows --yes."""
    if getattr(args, "yes", False):
        return PipelineCoordinator(store, confirm=lambda step: True)
    return PipelineCoordinator(store, confirm=confirm_rewind_prompt)


def run_stage(action: Callable[[], T]) -> T | int:
    """Run a coordinator action, turning its errors into exit codes.

    Returns the action's result, or the exit code to return on failure.
    """
    try:
        return action()
    except RewindDeclined as e:
        print(f"Cancelled: {e}", file=sys.stderr)
        return EXIT_DECLINED
    except (StageInputError, PipelineError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except StageError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("  See .specforge/debug.log for details", file=sys.stderr)
        return EXIT_ERROR
    except BudgetExceededError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except StoreError as e:
        print(f"Error: could not save project: {e}", file=sys.stderr)
        return EXIT_ERROR
