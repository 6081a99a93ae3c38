"""Write rendered PRD documents to disk."""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

MARKDOWN_CONTENT_TYPE = "text/markdown"


def markdown_filename(project_name: str) -> str:
    """Derive the export filename for a project.

    Examples:
        "Acme" -> "acme_prd.md"
        "Todo App 2.0" -> "todo_app_2_0_prd.md"
    """
    stem = re.sub(r"[^a-z0-9]", "_", project_name, flags=re.IGNORECASE).lower()
    return f"{stem or 'project'}_prd.md"


def export_markdown(content: str, directory: Path, filename: str) -> Path:
    """Write Markdown content to directory/filename as UTF-8.

    Args:
        content: The rendered document.
        directory: Destination directory; created if missing.
        filename: File name inside the directory.

    Returns:
        The path written.

    Raises:
        OSError: If the file could not be written.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(content, encoding="utf-8")
    logger.info("Exported %s (%s, %d chars)", path, MARKDOWN_CONTENT_TYPE, len(content))
    return path
