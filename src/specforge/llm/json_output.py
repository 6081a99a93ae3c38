"""Pull JSON objects out of model responses."""

from __future__ import annotations

import json
import re
from typing import Any


class MalformedOutputError(ValueError):
    """Raised when a model response contains no JSON object."""

    def __init__(self, text: str) -> None:
        self.text = text
        preview = text.strip().replace("\n", " ")[:80]
        super().__init__(f"No JSON object found in model response: {preview!r}")


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract the first JSON object from text, handling markdown fences.

    Raises:
        MalformedOutputError: If no parseable object is present.
    """
    cleaned = re.sub(r"```json\s*", "", text, flags=re.IGNORECASE)
    cleaned = re.sub(r"```\s*", "", cleaned)
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", cleaned):
        try:
            parsed, _ = decoder.raw_decode(cleaned[match.start() :])
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise MalformedOutputError(text)
