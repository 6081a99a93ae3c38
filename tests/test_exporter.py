"""Tests for Markdown export."""
from __future__ import annotations

from pathlib import Path

import pytest

from specforge.prd.exporter import export_markdown, markdown_filename


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Acme", "acme_prd.md"),
        ("Todo App 2.0", "todo_app_2_0_prd.md"),
        ("", "project_prd.md"),
    ],
)
def test_markdown_filename(name: str, expected: str) -> None:
    assert markdown_filename(name) == expected


def test_export_creates_directory_and_file(tmp_path: Path) -> None:
    target = tmp_path / "out" / "nested"

    path = export_markdown("# Title", target, "acme_prd.md")

    assert path == target / "acme_prd.md"
    assert path.read_text(encoding="utf-8") == "# Title"


def test_export_writes_content_unchanged(tmp_path: Path) -> None:
    path = export_markdown("# Título\n", tmp_path, "x_prd.md")

    assert path.read_text(encoding="utf-8") == "# Título\n"
