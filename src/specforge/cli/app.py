"""CLI orchestration and command routing."""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path

from specforge.cli.commands import (
    cmd_analyze,
    cmd_delete,
    cmd_edit,
    cmd_export,
    cmd_finalize,
    cmd_generate,
    cmd_list,
    cmd_new,
    cmd_refine,
    cmd_regenerate,
    cmd_rename,
    cmd_select,
    cmd_settings,
    cmd_show,
    cmd_tui,
)
from specforge.cli.parser import parse_args
from specforge.config.paths import reset_paths

logger = logging.getLogger(__name__)


def dispatch(args: argparse.Namespace) -> int:
    """Route parsed args to the correct command handler."""
    command_handlers: dict[str, Callable[[argparse.Namespace], int]] = {
        "new": cmd_new,
        "list": cmd_list,
        "show": cmd_show,
        "rename": cmd_rename,
        "delete": cmd_delete,
        "analyze": cmd_analyze,
        "select": cmd_select,
        "refine": cmd_refine,
        "generate": cmd_generate,
        "regenerate": cmd_regenerate,
        "finalize": cmd_finalize,
        "edit": cmd_edit,
        "export": cmd_export,
        "settings": cmd_settings,
        "tui": cmd_tui,
    }

    if args.command is None:
        return cmd_tui(args)

    handler = command_handlers.get(args.command)
    if handler is None:
        return cmd_tui(args)

    return handler(args)


def run(
    argv: Sequence[str] | None = None,
    *,
    configure_logging: Callable[[], None] | None = None,
) -> int:
    """Parse args, apply shared CLI setup, and execute command."""
    args = parse_args(argv)

    if args.workdir:
        workdir = args.workdir.resolve()
        workdir.mkdir(parents=True, exist_ok=True)
        os.chdir(workdir)
        # Workspace paths were resolved against the previous directory
        reset_paths()

    if configure_logging is not None:
        configure_logging()

    logger.info("Working directory: %s", Path.cwd())
    return dispatch(args)
