"""Argument parser construction for SpecForge CLI."""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from pathlib import Path

from specforge.config.settings import TECH_STACK_FIELDS
from specforge.llm.providers.factory import SUPPORTED_PROVIDERS
from specforge.prd.normalizer import SECTION_KEYS


def _add_tech_stack_options(parser: argparse.ArgumentParser) -> None:
    for name in TECH_STACK_FIELDS:
        parser.add_argument(
            f"--{name}",
            metavar="TECH",
            help=f"{name.capitalize()} technology",
        )


def parse_assignment(text: str) -> tuple[str, object]:
    """Parse ``key=value``; the value is read as JSON when it parses as JSON.

    Examples:
        "refinedIdea=Shared lists" -> ("refinedIdea", "Shared lists")
        'ideas=["a", "b"]' -> ("ideas", ["a", "b"])
    """
    key, sep, raw = text.partition("=")
    key = key.strip()
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    try:
        value: object = json.loads(raw)
    except json.JSONDecodeError:
        value = raw
    return key, value


def _add_yes_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Reopen a completed step without asking",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level CLI parser."""
    parser = argparse.ArgumentParser(
        description="SpecForge - turn a project description into a PRD"
    )
    parser.add_argument(
        "--workdir",
        "-w",
        type=Path,
        help="Working directory for project data (default: current directory)",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Project management
    new_parser = subparsers.add_parser("new", help="Create a project")
    new_parser.add_argument("name", help="Project name")

    subparsers.add_parser("list", help="List projects, most recent first")

    show_parser = subparsers.add_parser("show", help="Show a project and its steps")
    show_parser.add_argument("project", help="Project id")
    show_parser.add_argument(
        "--step",
        type=int,
        choices=range(1, 6),
        metavar="N",
        help="Print the content of step N (1-5)",
    )
    show_parser.add_argument(
        "--markdown",
        action="store_true",
        help="Print the PRD as Markdown",
    )

    rename_parser = subparsers.add_parser("rename", help="Rename a project")
    rename_parser.add_argument("project", help="Project id")
    rename_parser.add_argument("name", help="New project name")

    delete_parser = subparsers.add_parser(
        "delete", help="Delete a project and all its steps"
    )
    delete_parser.add_argument("project", help="Project id")

    # Stage 1
    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze the project description (step 1)"
    )
    analyze_parser.add_argument("project", help="Project id")
    analyze_parser.add_argument("--text", "-t", default="", help="Project description")
    analyze_parser.add_argument(
        "--file",
        "-f",
        dest="files",
        type=Path,
        action="append",
        default=[],
        help="Attach a text file to the context (repeatable)",
    )
    _add_yes_option(analyze_parser)

    # Stage 2
    select_parser = subparsers.add_parser("select", help="Select an idea (step 2)")
    select_parser.add_argument("project", help="Project id")
    choice = select_parser.add_mutually_exclusive_group(required=True)
    choice.add_argument("--index", "-i", type=int, help="Idea number (1-based)")
    choice.add_argument("--idea", help="Idea text")
    select_parser.add_argument(
        "--custom",
        action="store_true",
        help="Accept an idea that is not one of the generated ones",
    )
    _add_yes_option(select_parser)

    # Stage 3
    refine_parser = subparsers.add_parser(
        "refine", help="Edit the refined idea and tech stack (step 3)"
    )
    refine_parser.add_argument("project", help="Project id")
    refine_parser.add_argument("--idea", help="Refined idea text")
    _add_tech_stack_options(refine_parser)
    refine_parser.add_argument(
        "--use-defaults",
        action="store_true",
        help="Fill the tech stack from your saved preferences",
    )
    refine_parser.add_argument(
        "--complete",
        action="store_true",
        help="Finish refinement and move on to PRD generation",
    )
    _add_yes_option(refine_parser)

    # Stage 4
    generate_parser = subparsers.add_parser(
        "generate", help="Generate the PRD (step 4)"
    )
    generate_parser.add_argument("project", help="Project id")
    generate_parser.add_argument(
        "--with-implementation",
        action="store_true",
        default=None,
        help="Also draft an implementation plan",
    )
    _add_yes_option(generate_parser)

    regenerate_parser = subparsers.add_parser(
        "regenerate", help="Regenerate one PRD section"
    )
    regenerate_parser.add_argument("project", help="Project id")
    regenerate_parser.add_argument("section", choices=SECTION_KEYS, help="Section")
    _add_yes_option(regenerate_parser)

    # Stage 5
    finalize_parser = subparsers.add_parser(
        "finalize", help="Produce the final document and getting-started prompt"
    )
    finalize_parser.add_argument("project", help="Project id")

    export_parser = subparsers.add_parser("export", help="Export the PRD as Markdown")
    export_parser.add_argument("project", help="Project id")
    export_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output directory (default: working directory)",
    )

    # Any step
    edit_parser = subparsers.add_parser(
        "edit", help="Change fields in a step's stored content"
    )
    edit_parser.add_argument("project", help="Project id")
    edit_parser.add_argument(
        "step", type=int, choices=range(1, 6), metavar="STEP", help="Step (1-5)"
    )
    edit_parser.add_argument(
        "--set",
        dest="assignments",
        type=parse_assignment,
        action="append",
        required=True,
        metavar="KEY=VALUE",
        help="Field to set; VALUE is parsed as JSON when possible (repeatable)",
    )
    _add_yes_option(edit_parser)

    # Settings
    settings_parser = subparsers.add_parser(
        "settings", help="Show or change preferences"
    )
    settings_parser.add_argument(
        "--show", action="store_true", help="Print current settings"
    )
    _add_tech_stack_options(settings_parser)
    settings_parser.add_argument("--provider", choices=SUPPORTED_PROVIDERS)
    settings_parser.add_argument("--model", help="Model name")
    settings_parser.add_argument(
        "--budget", type=float, help="Spending cap per project in USD (0 disables)"
    )
    settings_parser.add_argument(
        "--context-limit", type=int, help="Maximum context characters for analysis"
    )
    settings_parser.add_argument(
        "--include-implementation",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Draft an implementation plan during full PRD generation",
    )

    subparsers.add_parser("tui", help="Launch the terminal UI")

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments from argv (or sys.argv when omitted)."""
    parser = build_parser()
    if argv is None:
        return parser.parse_args()
    return parser.parse_args(list(argv))
