"""Finalization prompt: a getting-started brief for a coding assistant."""
from __future__ import annotations

GETTING_STARTED_SYSTEM_PROMPT = (
    "You are a staff engineer who writes clear kickoff instructions for "
    "AI coding assistants."
)

GETTING_STARTED_PROMPT = """\
Below is a Product Requirements Document, organized into labeled sections.

{prd_context}

Write a single prompt that a developer can paste into an AI coding assistant \
to start building this product. The prompt should:
- State what the product is and who it is for in two or three sentences
- Name the tech stack to use
- List the features to build first, highest priority first
- Describe the first concrete milestone and how to verify it works

Write plain text only. No JSON and no Markdown headings."""
