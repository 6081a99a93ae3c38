"""CLI command handlers."""

from .export import cmd_export
from .projects import cmd_delete, cmd_list, cmd_new, cmd_rename, cmd_show
from .settings import cmd_settings
from .stages import (
    cmd_analyze,
    cmd_edit,
    cmd_finalize,
    cmd_generate,
    cmd_refine,
    cmd_regenerate,
    cmd_select,
)
from .tui import cmd_tui

__all__ = [
    "cmd_analyze",
    "cmd_delete",
    "cmd_edit",
    "cmd_export",
    "cmd_finalize",
    "cmd_generate",
    "cmd_list",
    "cmd_new",
    "cmd_refine",
    "cmd_regenerate",
    "cmd_rename",
    "cmd_select",
    "cmd_settings",
    "cmd_show",
    "cmd_tui",
]
