"""Input analysis prompts: candidate ideas and a recommended tech stack."""
from __future__ import annotations

ANALYSIS_TEMPERATURE = 0.0

IDEA_SYSTEM_PROMPT = "You are an expert product strategist."

IDEA_GENERATION_PROMPT = """\
Based on the project context, generate 5 distinct product ideas.

CONTEXT: {context}

Respond with a JSON object with a key "ideas" (an array of strings). Each idea \
should be 1-2 sentences describing a specific product concept.

Example format:
{{
  "ideas": [
    "Idea 1 description here",
    "Idea 2 description here",
    "Idea 3 description here",
    "Idea 4 description here",
    "Idea 5 description here"
  ]
}}"""

TECH_STACK_SYSTEM_PROMPT = "You are a senior software architect."

TECH_STACK_PROMPT = """\
Propose a tech stack for the best idea from the list.

CONTEXT: {context}
IDEAS: {ideas}
{preferences}
Respond with a JSON object with exactly these keys: "bestIdea", "frontend", \
"backend", "database", "hosting". All values should be strings describing the \
recommended technology.

Example format:
{{
  "bestIdea": "Brief description of the best idea from the list",
  "frontend": "React with TypeScript",
  "backend": "Node.js with Express",
  "database": "PostgreSQL",
  "hosting": "AWS EC2 with CloudFront"
}}"""

PREFERENCES_BLOCK = """\
USER PREFERENCES (use these technologies where given):
{lines}
"""


def format_preferences(defaults: dict[str, str]) -> str:
    """Render non-empty default technologies as a prompt block."""
    lines = [
        f"- {name}: {value}" for name, value in defaults.items() if value.strip()
    ]
    if not lines:
        return ""
    return PREFERENCES_BLOCK.format(lines="\n".join(lines))
