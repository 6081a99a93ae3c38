"""PRD normalization, rendering and export."""
from __future__ import annotations

from .exporter import MARKDOWN_CONTENT_TYPE, export_markdown, markdown_filename
from .normalizer import (
    SECTION_KEYS,
    SECTION_RULES,
    apply_section,
    normalize_prd,
    normalize_section,
)
from .renderer import render_markdown, render_prompt_context

__all__ = [
    "MARKDOWN_CONTENT_TYPE",
    "SECTION_KEYS",
    "SECTION_RULES",
    "apply_section",
    "export_markdown",
    "markdown_filename",
    "normalize_prd",
    "normalize_section",
    "render_markdown",
    "render_prompt_context",
]
