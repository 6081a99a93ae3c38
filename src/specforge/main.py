"""Entry point for the specforge command."""

import logging
import os
import sys

from specforge.cli import run
from specforge.config.paths import get_paths
from specforge.config.project_root import (
    get_projects_root,
    is_projects_root_overridden,
)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# HTTP client chatter that drowns out stage logging at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def setup_logging() -> None:
    """Send all logging to the workspace debug log.

    The level comes from SPECFORGE_LOG_LEVEL (default INFO). Nothing is
    logged to the terminal, which belongs to the CLI output and the TUI.
    """
    paths = get_paths()
    paths.workspace_config.mkdir(parents=True, exist_ok=True)

    level_name = os.environ.get("SPECFORGE_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.FileHandler(paths.debug_log, mode="a", encoding="utf-8")],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.info("SpecForge starting, logging to %s", paths.debug_log)
    source = "settings" if is_projects_root_overridden() else "workspace"
    logging.info("Projects root: %s (from %s)", get_projects_root(), source)


def main() -> None:
    sys.exit(run(configure_logging=setup_logging))


if __name__ == "__main__":
    main()
