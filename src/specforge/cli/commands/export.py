"""Export command for PRD Markdown."""

from __future__ import annotations

import argparse

from specforge.cli.context import EXIT_OK, build_coordinator, get_store, run_stage
from specforge.prd.exporter import MARKDOWN_CONTENT_TYPE


def cmd_export(args: argparse.Namespace) -> int:
    """Write the PRD Markdown to a directory."""
    coordinator = build_coordinator(args, get_store())
    result = run_stage(lambda: coordinator.export_markdown(args.project, args.output))
    if isinstance(result, int):
        return result
    print(f"Exported {MARKDOWN_CONTENT_TYPE} to {result}")
    return EXIT_OK
