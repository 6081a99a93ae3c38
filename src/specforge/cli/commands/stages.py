"""Pipeline stage commands: analyze, select, refine, generate, finalize, edit."""

from __future__ import annotations

import argparse
import asyncio

from specforge.cli.context import (
    EXIT_OK,
    build_coordinator,
    get_store,
    run_stage,
)
from specforge.config.settings import TECH_STACK_FIELDS
from specforge.models.project import Project
from specforge.models.step import StepKind


def _report(project: Project, kind: StepKind) -> None:
    step = project.step(kind)
    print(f"{step.order}. {step.title}: {step.status.value}")


def cmd_analyze(args: argparse.Namespace) -> int:
    """Run input analysis and print the generated ideas."""
    coordinator = build_coordinator(args, get_store())
    result = run_stage(
        lambda: asyncio.run(coordinator.analyze(args.project, args.text, args.files))
    )
    if isinstance(result, int):
        return result

    analysis = result.step(StepKind.INPUT_ANALYSIS).content.get("analysis", {})
    for number, idea in enumerate(analysis.get("ideas", []), start=1):
        print(f"{number}. {idea}")
    stack = analysis.get("techStack", {})
    print()
    print(f"Best idea: {stack.get('bestIdea', '')}")
    for key in ("frontend", "backend", "database", "hosting"):
        print(f"  {key.capitalize()}: {stack.get(key, '')}")
    return EXIT_OK


def cmd_select(args: argparse.Namespace) -> int:
    """Select one of the generated ideas."""
    coordinator = build_coordinator(args, get_store())
    index = args.index - 1 if args.index is not None else None
    result = run_stage(
        lambda: coordinator.select_idea(
            args.project, index=index, idea=args.idea, allow_custom=args.custom
        )
    )
    if isinstance(result, int):
        return result
    print(result.step(StepKind.IDEA_GENERATION).content["selectedIdea"])
    return EXIT_OK


def cmd_refine(args: argparse.Namespace) -> int:
    """Save refinement edits, optionally completing the step."""
    coordinator = build_coordinator(args, get_store())
    stack = {
        name: value
        for name in TECH_STACK_FIELDS
        if (value := getattr(args, name, None)) is not None
    }

    def refine() -> Project:
        project = coordinator.save_refinement(
            args.project,
            refined_idea=args.idea,
            tech_stack=stack or None,
            use_defaults=args.use_defaults,
        )
        if args.complete:
            project = coordinator.complete_refinement(args.project)
        return project

    result = run_stage(refine)
    if isinstance(result, int):
        return result

    content = result.step(StepKind.IDEA_REFINEMENT).content
    print(f"Idea: {content.get('refinedIdea', '')}")
    for key, value in (content.get("refinedTechStack") or {}).items():
        print(f"  {key.capitalize()}: {value}")
    _report(result, StepKind.IDEA_REFINEMENT)
    return EXIT_OK


def cmd_generate(args: argparse.Namespace) -> int:
    """Generate the full PRD."""
    coordinator = build_coordinator(args, get_store())
    result = run_stage(
        lambda: asyncio.run(
            coordinator.generate_prd(
                args.project, include_implementation=args.with_implementation
            )
        )
    )
    if isinstance(result, int):
        return result
    print(result.step(StepKind.PRD_GENERATION).content.get("prdText", ""))
    return EXIT_OK


def cmd_regenerate(args: argparse.Namespace) -> int:
    """Regenerate a single PRD section."""
    coordinator = build_coordinator(args, get_store())
    result = run_stage(
        lambda: asyncio.run(coordinator.regenerate_section(args.project, args.section))
    )
    if isinstance(result, int):
        return result
    print(f"Regenerated {args.section}")
    _report(result, StepKind.PRD_GENERATION)
    return EXIT_OK


def cmd_finalize(args: argparse.Namespace) -> int:
    """Finalize the project and print the getting-started prompt."""
    coordinator = build_coordinator(args, get_store())
    result = run_stage(lambda: asyncio.run(coordinator.finalize(args.project)))
    if isinstance(result, int):
        return result
    content = result.step(StepKind.PROJECT_FINALIZATION).content
    print(content.get("gettingStartedPrompt", ""))
    return EXIT_OK


def cmd_edit(args: argparse.Namespace) -> int:
    """Merge KEY=VALUE edits into a step's content."""
    coordinator = build_coordinator(args, get_store())
    kind = StepKind(args.step)
    patch = dict(args.assignments)
    result = run_stage(lambda: coordinator.edit_step(args.project, kind, patch))
    if isinstance(result, int):
        return result
    print(f"Updated {', '.join(patch)}")
    _report(result, kind)
    return EXIT_OK
