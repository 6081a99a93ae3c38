"""Deterministic rendering of a canonical PRD record.

Both renderers are pure: the same record always produces byte-identical
output. Nothing time- or environment-dependent is embedded.
"""

from __future__ import annotations

from specforge.models.prd import (
    Implementation,
    PRDRecord,
    UIDesign,
)

NOT_GENERATED = "Not generated."
NONE_SPECIFIED = "None specified"


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _joined(items: list[str]) -> str:
    return ", ".join(items) if items else NONE_SPECIFIED


def _overview(record: PRDRecord) -> str:
    return (
        "## 1. Overview\n"
        "\n"
        "### Elevator Pitch\n"
        f"{record.summary.elevator_pitch or NOT_GENERATED}\n"
        "\n"
        "### Project Summary\n"
        f"{record.summary.summary or NOT_GENERATED}"
    )


def _audience(record: PRDRecord) -> str:
    blocks = []
    for index, persona in enumerate(record.personas, start=1):
        name = persona.name or "N/A"
        role = persona.role or "N/A"
        blocks.append(
            f"### Persona {index}: {name} ({role})\n"
            "\n"
            "**Goals:**\n"
            f"{_bullets(persona.goals)}\n"
            "\n"
            "**Frustrations:**\n"
            f"{_bullets(persona.frustrations)}\n"
        )
    return "## 2. Target Audience\n\n" + "\n".join(blocks)


def _features(record: PRDRecord) -> str:
    blocks = [
        f"### {feature.name or 'N/A'} (Priority: {feature.priority or 'N/A'})\n"
        f"{feature.description or 'No description.'}\n"
        for feature in record.features
    ]
    return "## 3. Key Features\n\n" + "\n".join(blocks)


def _architecture(record: PRDRecord) -> str:
    stack = record.tech_stack
    return (
        "## 4. Technical Architecture\n"
        "\n"
        f"- **Frontend:** {stack.frontend or 'N/A'}\n"
        f"- **Backend:** {stack.backend or 'N/A'}\n"
        f"- **Database:** {stack.database or 'N/A'}\n"
        f"- **Hosting:** {stack.hosting or 'N/A'}"
    )


def _design(ui: UIDesign) -> str:
    palette = "\n".join(
        f"- **{name}:** {value}" for name, value in ui.palette.items()
    )
    screens = "".join(
        f"\n**{screen.name}:** {screen.description}" for screen in ui.screens
    )
    return (
        "## 5. UI/UX Design\n"
        "\n"
        "### Core Principles\n"
        f"{_bullets(ui.principles)}\n"
        "\n"
        "### Color Palette\n"
        f"{palette}\n"
        "\n"
        "### Key Screens\n"
        f"{screens}"
    )


def _implementation(plan: Implementation) -> str:
    parts = ["## 6. Implementation Plan\n"]
    if plan.timeline:
        entries = [
            f"\n**{phase.phase}** ({phase.duration})  \n"
            f"{phase.description}  \n"
            f"*Deliverables:* {_joined(phase.deliverables)}\n"
            for phase in plan.timeline
        ]
        parts.append("\n### Timeline\n" + "\n".join(entries))
    if plan.resources:
        entries = [
            f"\n**{resource.role}** - {resource.commitment}  \n"
            f"*Responsibilities:* {_joined(resource.responsibilities)}\n"
            for resource in plan.resources
        ]
        parts.append("\n### Resource Allocation\n" + "\n".join(entries))
    if plan.stakeholders:
        entries = [
            f"\n**{update.stakeholder}** - {update.communication} "
            f"({update.frequency})  \n"
            f"*Updates:* {_joined(update.deliverables)}\n"
            for update in plan.stakeholders
        ]
        parts.append("\n### Stakeholder Communication\n" + "\n".join(entries))
    return "".join(parts)


def render_markdown(record: PRDRecord) -> str:
    """Render the PRD as a Markdown document.

    Sections appear in fixed order: Overview, Target Audience, Key Features,
    Technical Architecture, UI/UX Design, then Implementation Plan when the
    record carries a non-empty plan.
    """
    sections = [
        "# Product Requirements Document",
        _overview(record),
        "---",
        _audience(record),
        "---",
        _features(record),
        "---",
        _architecture(record),
        "---",
        _design(record.ui_design),
    ]
    plan = record.implementation
    if plan is not None and not plan.is_empty:
        sections.extend(["---", _implementation(plan)])
    return "\n\n".join(section.strip("\n") for section in sections).strip()


# ─── Prompt context ──────────────────────────────────────────────────────

PROMPT_SECTION_LABELS = (
    "Project Summary",
    "Target Users",
    "Core Features",
    "Technical Stack",
    "Design Guidelines",
    "Implementation Plan",
)


def _with_detail(head: str, detail: str) -> str:
    return f"{head}: {detail}" if detail else head


def _prompt_overview(record: PRDRecord) -> str:
    lines = []
    if record.summary.elevator_pitch:
        lines.append(f"Elevator pitch: {record.summary.elevator_pitch}")
    if record.summary.summary:
        lines.append(record.summary.summary)
    return "\n".join(lines)


def _prompt_users(record: PRDRecord) -> str:
    return "\n".join(
        _with_detail(f"- {p.name} ({p.role})", "; ".join(p.goals))
        for p in record.personas
    )


def _prompt_features(record: PRDRecord) -> str:
    return "\n".join(
        _with_detail(f"- [{f.priority}] {f.name}", f.description)
        for f in record.features
    )


def _prompt_stack(record: PRDRecord) -> str:
    stack = record.tech_stack
    return (
        f"- Frontend: {stack.frontend}\n"
        f"- Backend: {stack.backend}\n"
        f"- Database: {stack.database}\n"
        f"- Hosting: {stack.hosting}"
    )


def _prompt_design(ui: UIDesign) -> str:
    lines = [f"- Principle: {p}" for p in ui.principles]
    lines += [f"- Color {name}: {value}" for name, value in ui.palette.items()]
    lines += [_with_detail(f"- Screen {s.name}", s.description) for s in ui.screens]
    return "\n".join(lines)


def _phase_detail(duration: str, description: str) -> str:
    if duration and description:
        return f"{description} ({duration})"
    return description or duration


def _prompt_plan(plan: Implementation) -> str:
    lines = [
        _with_detail(f"- Phase {p.phase}", _phase_detail(p.duration, p.description))
        for p in plan.timeline
    ]
    lines += [_with_detail(f"- Role {r.role}", r.commitment) for r in plan.resources]
    lines += [
        _with_detail(f"- Update {s.stakeholder}", s.frequency)
        for s in plan.stakeholders
    ]
    return "\n".join(lines)


def render_prompt_context(record: PRDRecord) -> str:
    """Serialize the record into labeled plain-text sections.

    This is the body handed to the model that writes the getting-started
    prompt. Labels always appear in PROMPT_SECTION_LABELS order; the
    implementation section is included only when the record has a plan.
    """
    bodies = [
        _prompt_overview(record),
        _prompt_users(record),
        _prompt_features(record),
        _prompt_stack(record),
        _prompt_design(record.ui_design),
    ]
    plan = record.implementation
    if plan is not None and not plan.is_empty:
        bodies.append(_prompt_plan(plan))

    sections = [
        f"{label}:\n{body or NONE_SPECIFIED}"
        for label, body in zip(PROMPT_SECTION_LABELS, bodies)
    ]
    return "\n\n".join(sections)
