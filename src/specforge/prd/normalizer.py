"""Reshape loosely-structured model JSON into a canonical PRD record.

Every function here is total: whatever shape arrives (wrong types, extra
nesting, singular vs plural keys, None), the result is a fully-populated
value with documented defaults. Nothing in this module raises on bad
input; uninterpretable data degrades to the field's default.

Sections are described by ``SECTION_RULES``, a table keyed by section
name that lists the alias keys each section may arrive under and the
coercion that produces its canonical value.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from specforge.models.prd import (
    DEFAULT_PRIORITY,
    NOT_SPECIFIED,
    PRIORITIES,
    Feature,
    Implementation,
    Persona,
    PRDRecord,
    PRDSummary,
    ResourceAllocation,
    Screen,
    StakeholderUpdate,
    TechStack,
    TimelinePhase,
    UIDesign,
)

logger = logging.getLogger(__name__)

_SCREEN_SPLIT = re.compile(r"\n|,|;")
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


# ─── Scalar coercions ────────────────────────────────────────────────────


def as_text(value: Any, default: str = "") -> str:
    """Coerce any value to a single string.

    Objects become ``key: value`` lines (list values joined with ", "),
    lists become newline-joined lines.
    """
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip()
    elif isinstance(value, bool | int | float):
        text = str(value)
    elif isinstance(value, dict):
        text = "\n".join(_pairs(value))
    elif isinstance(value, list | tuple):
        text = "\n".join(t for t in (as_text(i) for i in value) if t)
    else:
        text = str(value).strip()
    return text or default


def _inline(value: Any) -> str:
    """Render a value on one line, for use inside ``key: value`` pairs."""
    if isinstance(value, list | tuple):
        return ", ".join(t for t in (_inline(i) for i in value) if t)
    if isinstance(value, dict):
        return "; ".join(_pairs(value))
    return as_text(value)


def _pairs(value: dict[str, Any]) -> list[str]:
    pairs = []
    for key, item in value.items():
        text = _inline(item)
        if text:
            pairs.append(f"{key}: {text}")
    return pairs


def as_text_list(value: Any) -> list[str]:
    """Coerce any value to a list of non-empty strings.

    A lone string becomes a one-element list.
    """
    if value is None:
        return []
    if isinstance(value, list | tuple):
        items = [as_text(_inline(i) if isinstance(i, dict) else i) for i in value]
        return [i for i in items if i]
    if isinstance(value, dict):
        return _pairs(value)
    text = as_text(value)
    return [text] if text else []


def coerce_priority(value: Any) -> str:
    """Map free-form priority text onto High, Medium or Low."""
    text = as_text(value).lower()
    for priority in PRIORITIES:
        if text == priority.lower():
            return priority
    if any(word in text for word in ("high", "critical", "must", "p0", "p1")):
        return "High"
    if any(word in text for word in ("low", "nice", "could", "p3")):
        return "Low"
    return DEFAULT_PRIORITY


def _pick(data: dict[str, Any], *keys: str) -> Any:
    """First non-None value among the keys."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


# ─── Structural helpers ──────────────────────────────────────────────────


def _find(raw: dict[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def unwrap_list(
    value: Any, aliases: tuple[str, ...], item_keys: tuple[str, ...] = ()
) -> list[Any]:
    """Find the list a section's items live in.

    Handles ``[...]``, ``{alias: [...]}`` and ``{alias: {alias: [...]}}``,
    a single item object, and a ``{name: details}`` mapping. A wrapper whose
    alias holds None, a number or a bool carries no items.
    """
    for _ in range(3):
        if not isinstance(value, dict) or any(key in value for key in item_keys):
            break
        inner = _find(value, aliases)
        if inner is None:
            if any(key in value for key in aliases):
                return []
            break
        if not isinstance(inner, list | tuple | dict | str):
            return []
        value = inner

    if value is None:
        return []
    if isinstance(value, list | tuple):
        return list(value)
    if isinstance(value, dict):
        if not value:
            return []
        if any(key in value for key in item_keys):
            return [value]
        # {"Login": "Users sign in", ...}
        items: list[Any] = []
        for key, item in value.items():
            if isinstance(item, dict):
                items.append({"name": key, **item})
            else:
                items.append({"name": key, "description": as_text(item)})
        return items
    return [value]


# ─── Section coercions ───────────────────────────────────────────────────


SUMMARY_ALIASES = ("summary", "projectSummary", "project_summary", "overview")
PITCH_ALIASES = ("elevatorPitch", "elevator_pitch", "pitch", "tagline")


def coerce_summary(value: Any) -> PRDSummary:
    """Build the overview section from a string or an object."""
    if isinstance(value, dict):
        pitch = as_text(_find(value, PITCH_ALIASES))
        body = _find(value, SUMMARY_ALIASES)
        if body is None:
            rest = {k: v for k, v in value.items() if k not in PITCH_ALIASES}
            body = rest
        return PRDSummary(elevator_pitch=pitch, summary=as_text(body))
    return PRDSummary(summary=as_text(value))


PERSONA_ALIASES = ("personas", "user_personas", "userPersonas", "items", "users")


def coerce_personas(value: Any) -> list[Persona]:
    """Build the target-audience section."""
    items = unwrap_list(value, PERSONA_ALIASES, ("name", "role", "goals"))
    personas: list[Persona] = []
    for index, item in enumerate(items):
        if isinstance(item, dict):
            personas.append(
                Persona(
                    name=as_text(_pick(item, "name", "persona", "title"))
                    or f"Persona {index + 1}",
                    role=as_text(_pick(item, "role", "occupation", "description"))
                    or "N/A",
                    goals=as_text_list(_pick(item, "goals", "goal", "needs")),
                    frustrations=as_text_list(
                        _pick(item, "frustrations", "frustration", "painPoints")
                    ),
                )
            )
        else:
            name = as_text(item)
            if name:
                personas.append(Persona(name=name))
    return personas


FEATURE_ALIASES = ("features", "KeyFeatures", "keyFeatures", "key_features", "items")


def coerce_features(value: Any) -> list[Feature]:
    """Build the key-features section."""
    items = unwrap_list(value, FEATURE_ALIASES, ("name", "description", "priority"))
    features: list[Feature] = []
    for item in items:
        if isinstance(item, dict):
            features.append(
                Feature(
                    name=as_text(_pick(item, "name", "feature", "title"), "N/A"),
                    description=as_text(_pick(item, "description", "details")),
                    priority=coerce_priority(item.get("priority")),
                )
            )
            continue
        text = as_text(item)
        if not text:
            continue
        name, _, description = text.partition(":")
        features.append(
            Feature(name=name.strip() or "N/A", description=description.strip())
        )
    return features


TECH_STACK_WRAPPERS = ("tech_stack", "techStack", "technicalStack", "technology")
TECH_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "frontend": ("frontend", "front_end", "frontEnd", "client"),
    "backend": ("backend", "back_end", "backEnd", "server"),
    "database": ("database", "db", "data_store", "storage"),
    "hosting": ("hosting", "deployment", "infrastructure", "hosting_platform"),
}


def coerce_tech_stack(value: Any) -> TechStack:
    """Build the technical-architecture section."""
    if isinstance(value, dict):
        wrapped = _find(value, TECH_STACK_WRAPPERS)
        if isinstance(wrapped, dict):
            value = wrapped
    if not isinstance(value, dict):
        return TechStack()
    fields = {
        name: _inline(_find(value, aliases)) or NOT_SPECIFIED
        for name, aliases in TECH_FIELD_ALIASES.items()
    }
    return TechStack(**fields)


UI_WRAPPERS = ("UI_UX_Design", "uiDesign", "ui_design", "uiUxDesign", "design")
PRINCIPLE_ALIASES = ("principles", "Core_Design_Principles", "designPrinciples")
PALETTE_ALIASES = ("palette", "Color_Palette_Suggestions", "colorPalette", "colors")
SCREEN_ALIASES = ("screens", "Key_Screens", "keyScreens", "key_screens")


def coerce_palette(value: Any) -> dict[str, str]:
    """Build a name -> color mapping."""
    if value is None:
        return {}
    if isinstance(value, dict):
        palette = {}
        for key, color in value.items():
            text = _inline(color)
            if text:
                palette[str(key)] = text
        return palette
    if isinstance(value, list | tuple):
        palette = {}
        for index, item in enumerate(value):
            if isinstance(item, dict):
                name = as_text(_pick(item, "name", "role", "label"))
                color = _inline(_pick(item, "value", "hex", "color"))
                if name and color:
                    palette[name] = color
                    continue
                text = _inline(item)
            else:
                text = as_text(item)
            if text:
                palette[f"color{index + 1}"] = text
        return palette
    text = as_text(value)
    return {"colors": text} if text else {}


def _screen_from_text(text: str) -> Screen | None:
    text = _BULLET.sub("", text).strip()
    if not text:
        return None
    name, sep, description = text.partition(":")
    if sep and name.strip():
        return Screen(name=name.strip(), description=description.strip())
    return Screen(name=text)


def coerce_screens(value: Any) -> list[Screen]:
    """Build the key-screens list from strings, objects or delimited text."""
    if isinstance(value, str):
        parts: list[Any] = _SCREEN_SPLIT.split(value)
    else:
        parts = unwrap_list(value, SCREEN_ALIASES, ("name", "description"))
    screens: list[Screen] = []
    for part in parts:
        if isinstance(part, dict):
            name = as_text(_pick(part, "name", "screen", "title"))
            description = as_text(_pick(part, "description", "purpose", "details"))
            if name or description:
                screens.append(Screen(name=name or "Screen", description=description))
            continue
        screen = _screen_from_text(as_text(part))
        if screen is not None:
            screens.append(screen)
    return screens


def coerce_ui_design(value: Any) -> UIDesign:
    """Build the UI/UX section."""
    if isinstance(value, dict):
        wrapped = _find(value, UI_WRAPPERS)
        if isinstance(wrapped, dict):
            value = wrapped
    if not isinstance(value, dict):
        return UIDesign()
    return UIDesign(
        principles=as_text_list(_find(value, PRINCIPLE_ALIASES)),
        palette=coerce_palette(_find(value, PALETTE_ALIASES)),
        screens=coerce_screens(_find(value, SCREEN_ALIASES)),
    )


TIMELINE_ALIASES = ("timeline", "Timeline", "phases", "milestones")
RESOURCE_ALIASES = ("resources", "resourceAllocation", "resource_allocation", "team")
STAKEHOLDER_ALIASES = (
    "stakeholders",
    "stakeholderCommunication",
    "stakeholder_communication",
)


def coerce_timeline(value: Any) -> list[TimelinePhase]:
    items = unwrap_list(value, TIMELINE_ALIASES, ("phase", "duration"))
    phases: list[TimelinePhase] = []
    for index, item in enumerate(items):
        if isinstance(item, dict):
            phases.append(
                TimelinePhase(
                    phase=as_text(_pick(item, "phase", "name", "title"))
                    or f"Phase {index + 1}",
                    duration=as_text(item.get("duration")),
                    description=as_text(item.get("description")),
                    deliverables=as_text_list(item.get("deliverables")),
                )
            )
        elif as_text(item):
            phases.append(TimelinePhase(phase=as_text(item)))
    return phases


def coerce_resources(value: Any) -> list[ResourceAllocation]:
    items = unwrap_list(value, RESOURCE_ALIASES, ("role", "commitment"))
    resources: list[ResourceAllocation] = []
    for item in items:
        if isinstance(item, dict):
            resources.append(
                ResourceAllocation(
                    role=as_text(_pick(item, "role", "name", "title"), "N/A"),
                    commitment=as_text(_pick(item, "commitment", "allocation")),
                    responsibilities=as_text_list(
                        _pick(item, "responsibilities", "responsibility", "tasks")
                    ),
                )
            )
        elif as_text(item):
            resources.append(ResourceAllocation(role=as_text(item)))
    return resources


def coerce_stakeholders(value: Any) -> list[StakeholderUpdate]:
    items = unwrap_list(value, STAKEHOLDER_ALIASES, ("stakeholder", "frequency"))
    updates: list[StakeholderUpdate] = []
    for item in items:
        if isinstance(item, dict):
            updates.append(
                StakeholderUpdate(
                    stakeholder=as_text(_pick(item, "stakeholder", "name"), "N/A"),
                    communication=as_text(_pick(item, "communication", "method")),
                    frequency=as_text(item.get("frequency")),
                    deliverables=as_text_list(
                        _pick(item, "deliverables", "updates", "topics")
                    ),
                )
            )
        elif as_text(item):
            updates.append(StakeholderUpdate(stakeholder=as_text(item)))
    return updates


IMPLEMENTATION_ALIASES = ("implementation", "implementationPlan", "implementation_plan")


def coerce_implementation(value: Any) -> Implementation:
    """Build the implementation plan (possibly empty)."""
    if isinstance(value, dict):
        wrapped = _find(value, IMPLEMENTATION_ALIASES)
        if isinstance(wrapped, dict):
            value = wrapped
    if not isinstance(value, dict):
        return Implementation()
    return Implementation(
        timeline=coerce_timeline(_find(value, TIMELINE_ALIASES)),
        resources=coerce_resources(_find(value, RESOURCE_ALIASES)),
        stakeholders=coerce_stakeholders(_find(value, STAKEHOLDER_ALIASES)),
    )


# ─── Section table ───────────────────────────────────────────────────────


def _assign_implementation_part(attr: str) -> Callable[[PRDRecord, Any], None]:
    def assign(record: PRDRecord, value: Any) -> None:
        if record.implementation is None:
            record.implementation = Implementation()
        setattr(record.implementation, attr, value)

    return assign


def _set(attr: str) -> Callable[[PRDRecord, Any], None]:
    def assign(record: PRDRecord, value: Any) -> None:
        setattr(record, attr, value)

    return assign


@dataclass(frozen=True)
class SectionRule:
    """How one PRD section is found in model output and made canonical."""

    aliases: tuple[str, ...]
    coerce: Callable[[Any], Any]
    assign: Callable[[PRDRecord, Any], None]


SECTION_RULES: dict[str, SectionRule] = {
    "summary": SectionRule(SUMMARY_ALIASES, coerce_summary, _set("summary")),
    "personas": SectionRule(
        ("personas", "user_personas", "userPersonas", "targetAudience"),
        coerce_personas,
        _set("personas"),
    ),
    "features": SectionRule(FEATURE_ALIASES, coerce_features, _set("features")),
    "techStack": SectionRule(
        TECH_STACK_WRAPPERS, coerce_tech_stack, _set("tech_stack")
    ),
    "uiDesign": SectionRule(UI_WRAPPERS, coerce_ui_design, _set("ui_design")),
    "implementation": SectionRule(
        IMPLEMENTATION_ALIASES, coerce_implementation, _set("implementation")
    ),
    "implementationTimeline": SectionRule(
        TIMELINE_ALIASES, coerce_timeline, _assign_implementation_part("timeline")
    ),
    "implementationResources": SectionRule(
        RESOURCE_ALIASES, coerce_resources, _assign_implementation_part("resources")
    ),
    "implementationStakeholders": SectionRule(
        STAKEHOLDER_ALIASES,
        coerce_stakeholders,
        _assign_implementation_part("stakeholders"),
    ),
}

SECTION_KEYS = tuple(SECTION_RULES)


def normalize_section(key: str, raw: Any) -> Any:
    """Normalize one section of model output.

    ``raw`` may be the whole model response (``{"personas": [...]}``) or the
    section value itself. The summary section is special: its own field is
    also called ``summary``, so a response carrying an elevator pitch is
    taken as the section itself.

    Raises:
        KeyError: If key is not a known section name.
    """
    rule = SECTION_RULES[key]
    value = raw
    if isinstance(raw, dict):
        if key == "summary":
            inner = raw.get("summary")
            if isinstance(inner, dict) and _find(raw, PITCH_ALIASES) is None:
                value = inner
        else:
            found = _find(raw, rule.aliases)
            if found is not None:
                value = found
    return rule.coerce(value)


def apply_section(record: PRDRecord, key: str, value: Any) -> PRDRecord:
    """Store a normalized section value on the record, leaving others intact."""
    SECTION_RULES[key].assign(record, value)
    return record


def normalize_prd(raw: Any) -> PRDRecord:
    """Normalize a whole PRD object into a canonical record.

    Accepts anything; non-objects yield an all-defaults record.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.debug("Normalizing non-object PRD of type %s", type(raw).__name__)
        raw = {}

    summary_value = _find(raw, SUMMARY_ALIASES)
    if not isinstance(summary_value, dict):
        pitch = _find(raw, PITCH_ALIASES)
        if pitch is not None:
            summary_value = {"elevatorPitch": pitch, "summary": summary_value}

    record = PRDRecord(
        summary=coerce_summary(summary_value),
        personas=coerce_personas(_find(raw, SECTION_RULES["personas"].aliases)),
        features=coerce_features(_find(raw, SECTION_RULES["features"].aliases)),
        tech_stack=coerce_tech_stack(_find(raw, TECH_STACK_WRAPPERS)),
        ui_design=coerce_ui_design(_find(raw, UI_WRAPPERS)),
    )
    implementation = _find(raw, IMPLEMENTATION_ALIASES)
    if implementation is not None:
        record.implementation = coerce_implementation(implementation)
    return record
