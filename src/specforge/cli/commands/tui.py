"""Launch the terminal UI."""

from __future__ import annotations

import argparse

from specforge.cli.context import get_store
from specforge.tui.app import SpecforgeApp


def cmd_tui(args: argparse.Namespace) -> int:
    """Run the TUI against the configured projects root."""
    del args
    SpecforgeApp(store=get_store()).run()
    return 0
