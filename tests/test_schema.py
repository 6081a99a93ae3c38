"""Tests for JSONL schema headers and migrations."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from specforge.models.schema import (
    InvalidSchemaError,
    migrate_if_needed,
    read_schema_header,
    schema_header_line,
)


def test_header_line_round_trips(tmp_path: Path) -> None:
    path = tmp_path / "steps.jsonl"
    path.write_text(schema_header_line("steps"))

    header = read_schema_header(path, "steps")

    assert header.is_current
    assert not header.is_legacy


def test_file_without_header_is_legacy(tmp_path: Path) -> None:
    path = tmp_path / "metrics.jsonl"
    path.write_text(json.dumps({"call_id": "a"}) + "\n")

    assert read_schema_header(path, "metrics").is_legacy


def test_wrong_schema_type_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "steps.jsonl"
    path.write_text(schema_header_line("metrics"))

    with pytest.raises(InvalidSchemaError):
        read_schema_header(path, "steps")


def test_legacy_file_gets_header_prepended(tmp_path: Path) -> None:
    path = tmp_path / "metrics.jsonl"
    path.write_text(json.dumps({"call_id": "a"}) + "\n" + json.dumps({"call_id": "b"}))

    assert migrate_if_needed(path, "metrics") is True

    lines = path.read_text().splitlines()
    assert json.loads(lines[0])["_schema"] == "metrics"
    assert [json.loads(line)["call_id"] for line in lines[1:]] == ["a", "b"]
    assert migrate_if_needed(path, "metrics") is False


def test_missing_file_needs_no_migration(tmp_path: Path) -> None:
    assert migrate_if_needed(tmp_path / "absent.jsonl", "steps") is False
