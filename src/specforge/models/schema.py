"""Schema versioning for JSONL persistence files.

Provides version headers for JSONL files to enable:
- Format validation on load
- Automatic migration of legacy files

Schema Types:
- steps: Ordered pipeline steps of a project
- metrics: LLM call metrics
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

# Current schema versions
CURRENT_VERSIONS: dict[str, str] = {
    "steps": "1.0",
    "metrics": "1.0",
}


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class MigrationNotFoundError(SchemaError):
    """Raised when no migration path exists."""

    def __init__(self, schema_type: str, from_version: str, to_version: str) -> None:
        self.schema_type = schema_type
        self.from_version = from_version
        self.to_version = to_version
        super().__init__(
            f"No migration for {schema_type} from {from_version} to {to_version}"
        )


class InvalidSchemaError(SchemaError):
    """Raised when schema validation fails."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Invalid schema in {path}: {message}")


@dataclass
class SchemaHeader:
    """Parsed schema header from JSONL file."""

    schema_type: str
    schema_version: str

    @property
    def is_legacy(self) -> bool:
        """Check if this is a legacy file (version 0.0)."""
        return self.schema_version == "0.0"

    @property
    def is_current(self) -> bool:
        """Check if this file is at the current version."""
        return self.schema_version == CURRENT_VERSIONS.get(self.schema_type)


def read_schema_header(path: Path, expected_type: str) -> SchemaHeader:
    """Read and validate schema header from JSONL file.

    Args:
        path: Path to the JSONL file.
        expected_type: The expected schema type (e.g., "steps").

    Returns:
        SchemaHeader with version "0.0" for legacy files without schema fields.

    Raises:
        InvalidSchemaError: If the file is corrupt or has wrong schema type.
    """
    if not path.exists():
        raise InvalidSchemaError(path, "File does not exist")

    try:
        with open(path, encoding="utf-8") as f:
            first_line = f.readline().strip()
            if not first_line:
                return SchemaHeader(schema_type=expected_type, schema_version="0.0")
            data = json.loads(first_line)
    except json.JSONDecodeError as e:
        raise InvalidSchemaError(path, f"Invalid JSON in header: {e}") from e

    if not isinstance(data, dict):
        raise InvalidSchemaError(path, "Header is not a JSON object")

    schema_type = data.get("_schema")
    schema_version = data.get("_version")

    if schema_type is None or schema_version is None:
        logger.debug("Legacy file detected (no schema fields): %s", path)
        return SchemaHeader(schema_type=expected_type, schema_version="0.0")

    if schema_type != expected_type:
        raise InvalidSchemaError(
            path, f"Expected schema '{expected_type}', got '{schema_type}'"
        )

    return SchemaHeader(schema_type=schema_type, schema_version=schema_version)


def write_schema_fields(schema_type: str) -> dict[str, str]:
    """Get schema fields to include in header.

    Raises:
        ValueError: If schema_type is unknown.
    """
    if schema_type not in CURRENT_VERSIONS:
        raise ValueError(f"Unknown schema type: {schema_type}")

    return {
        "_schema": schema_type,
        "_version": CURRENT_VERSIONS[schema_type],
    }


def schema_header_line(schema_type: str) -> str:
    """Build a complete header line (with trailing newline) for a new file."""
    header = {
        **write_schema_fields(schema_type),
        "created_at": datetime.now(UTC).isoformat(),
    }
    return json.dumps(header) + "\n"


# Migration registry
Migrator = Callable[[Path], None]
MIGRATORS: dict[tuple[str, str, str], Migrator] = {}


def register_migrator(
    schema_type: str, from_version: str, to_version: str
) -> Callable[[Migrator], Migrator]:
    """Decorator to register a migration function.

    Example:
        @register_migrator("steps", "1.0", "2.0")
        def migrate_steps_1_to_2(path: Path) -> None:
            ...
    """

    def decorator(fn: Migrator) -> Migrator:
        MIGRATORS[(schema_type, from_version, to_version)] = fn
        logger.debug(
            "Registered migrator: %s %s -> %s", schema_type, from_version, to_version
        )
        return fn

    return decorator


def migrate_if_needed(path: Path, schema_type: str) -> bool:
    """Migrate file to current version if needed.

    Uses atomic write (write to temp file, then rename) to prevent corruption.

    Returns:
        True if migration was performed, False if already current.

    Raises:
        MigrationNotFoundError: If no migration path exists.
        InvalidSchemaError: If the file is corrupt.
    """
    if not path.exists():
        return False

    header = read_schema_header(path, schema_type)
    if header.is_current:
        return False

    current_version = CURRENT_VERSIONS[schema_type]
    migrator = MIGRATORS.get((schema_type, header.schema_version, current_version))
    if migrator is None:
        raise MigrationNotFoundError(
            schema_type, header.schema_version, current_version
        )

    logger.info(
        "Migrating %s from %s to %s: %s",
        schema_type,
        header.schema_version,
        current_version,
        path,
    )
    migrator(path)
    return True


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path via a temp file in the same directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        temp_path.replace(path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise


def _atomic_rewrite(path: Path, transform: Callable[[list[str]], list[str]]) -> None:
    """Atomically rewrite a file by transforming its lines."""
    with open(path, encoding="utf-8") as f:
        lines = f.readlines()
    atomic_write_text(path, "".join(transform(lines)))


# =============================================================================
# Legacy Migrations (0.0 -> 1.0)
# =============================================================================


def _prepend_header(schema_type: str) -> Callable[[list[str]], list[str]]:
    def transform(lines: list[str]) -> list[str]:
        body = [line for line in lines if line.strip()]
        if body and not body[-1].endswith("\n"):
            body[-1] += "\n"
        return [schema_header_line(schema_type)] + body

    return transform


@register_migrator("steps", "0.0", "1.0")
def _migrate_steps_legacy(path: Path) -> None:
    """Add header to a steps file.

    Legacy format has no header and starts directly with step records.
    """
    _atomic_rewrite(path, _prepend_header("steps"))


@register_migrator("metrics", "0.0", "1.0")
def _migrate_metrics_legacy(path: Path) -> None:
    """Add header to metrics file.

    Legacy format has no header, starts directly with LLMCall entries.
    """
    _atomic_rewrite(path, _prepend_header("metrics"))
