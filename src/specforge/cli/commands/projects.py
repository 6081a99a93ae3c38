"""Project management commands."""

from __future__ import annotations

import argparse
import json
import sys

from specforge.cli.context import get_store, load_project_or_error
from specforge.models.step import StepKind
from specforge.models.store import StoreError
from specforge.prd.normalizer import normalize_prd
from specforge.prd.renderer import render_markdown


def cmd_new(args: argparse.Namespace) -> int:
    """Create a project with five pending steps."""
    store = get_store()
    try:
        project = store.create_project(args.name)
    except (ValueError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(project.id)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List projects, most recently updated first."""
    del args
    projects = get_store().list_projects()
    if not projects:
        print("No projects yet. Create one with: specforge new NAME")
        return 0
    for project in projects:
        active = project.active_step
        print(
            f"{project.id}  {project.status.value:<11}  "
            f"step {active.order}/5  {project.name}"
        )
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Show a project, one step's content, or the PRD Markdown."""
    project = load_project_or_error(get_store(), args.project)
    if project is None:
        return 1

    if args.markdown:
        final = project.step(StepKind.PROJECT_FINALIZATION).content
        prd_data = project.step(StepKind.PRD_GENERATION).content.get("prdData")
        if final.get("markdownContent"):
            print(final["markdownContent"])
        elif prd_data:
            print(render_markdown(normalize_prd(prd_data)))
        else:
            print("Error: No PRD has been generated yet", file=sys.stderr)
            return 1
        return 0

    if args.step is not None:
        step = project.step(args.step)
        print(json.dumps(step.content, indent=2, ensure_ascii=False))
        return 0

    print(f"{project.name} ({project.id})")
    print(f"Status: {project.status.value}")
    active_id = project.active_step.id
    for step in project.steps:
        marker = ">" if step.id == active_id else " "
        print(f" {marker} {step.order}. {step.title:<22} {step.status.value}")
    return 0


def cmd_rename(args: argparse.Namespace) -> int:
    """Rename a project."""
    if not args.name.strip():
        print("Error: Project name must not be empty", file=sys.stderr)
        return 1
    store = get_store()
    try:
        updated = store.update_project(args.project, name=args.name.strip())
    except StoreError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if not updated:
        print(f"Error: Project '{args.project}' not found", file=sys.stderr)
        return 1
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a project and all its steps."""
    if not get_store().delete_project(args.project):
        print(f"Error: Project '{args.project}' not found", file=sys.stderr)
        return 1
    print(f"Deleted {args.project}")
    return 0
