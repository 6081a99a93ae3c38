"""Canonical PRD record and the analysis results that feed it.

Serialized forms use the camelCase keys stored in step content, so a
record written by one version can be read back and rendered by another.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

NOT_SPECIFIED = "Not specified"
NO_IDEA_SELECTED = "No idea selected"
PRIORITIES = ("High", "Medium", "Low")
DEFAULT_PRIORITY = "Medium"

TECH_STACK_KEYS = ("frontend", "backend", "database", "hosting")


# ─── PRD sections ────────────────────────────────────────────────────────


@dataclass
class PRDSummary:
    elevator_pitch: str = ""
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"elevatorPitch": self.elevator_pitch, "summary": self.summary}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PRDSummary":
        return cls(
            elevator_pitch=data.get("elevatorPitch", ""),
            summary=data.get("summary", ""),
        )


@dataclass
class Persona:
    name: str
    role: str = "N/A"
    goals: list[str] = field(default_factory=list)
    frustrations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "goals": list(self.goals),
            "frustrations": list(self.frustrations),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Persona":
        return cls(
            name=data["name"],
            role=data.get("role", "N/A"),
            goals=list(data.get("goals", [])),
            frustrations=list(data.get("frustrations", [])),
        )


@dataclass
class Feature:
    name: str
    description: str = ""
    priority: str = DEFAULT_PRIORITY

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Feature":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            priority=data.get("priority", DEFAULT_PRIORITY),
        )


@dataclass
class TechStack:
    frontend: str = NOT_SPECIFIED
    backend: str = NOT_SPECIFIED
    database: str = NOT_SPECIFIED
    hosting: str = NOT_SPECIFIED

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in TECH_STACK_KEYS}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TechStack":
        return cls(**{key: data.get(key, NOT_SPECIFIED) for key in TECH_STACK_KEYS})

    @property
    def is_specified(self) -> bool:
        """True when at least one field carries a real choice."""
        return any(
            getattr(self, key).strip() not in ("", NOT_SPECIFIED)
            for key in TECH_STACK_KEYS
        )


@dataclass
class Screen:
    name: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


@dataclass
class UIDesign:
    principles: list[str] = field(default_factory=list)
    palette: dict[str, str] = field(default_factory=dict)
    screens: list[Screen] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "principles": list(self.principles),
            "palette": dict(self.palette),
            "screens": [s.to_dict() for s in self.screens],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UIDesign":
        return cls(
            principles=list(data.get("principles", [])),
            palette=dict(data.get("palette", {})),
            screens=[
                Screen(name=s["name"], description=s.get("description", ""))
                for s in data.get("screens", [])
            ],
        )


@dataclass
class TimelinePhase:
    phase: str
    duration: str = ""
    description: str = ""
    deliverables: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "duration": self.duration,
            "description": self.description,
            "deliverables": list(self.deliverables),
        }


@dataclass
class ResourceAllocation:
    role: str
    commitment: str = ""
    responsibilities: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "commitment": self.commitment,
            "responsibilities": list(self.responsibilities),
        }


@dataclass
class StakeholderUpdate:
    stakeholder: str
    communication: str = ""
    frequency: str = ""
    deliverables: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stakeholder": self.stakeholder,
            "communication": self.communication,
            "frequency": self.frequency,
            "deliverables": list(self.deliverables),
        }


@dataclass
class Implementation:
    timeline: list[TimelinePhase] = field(default_factory=list)
    resources: list[ResourceAllocation] = field(default_factory=list)
    stakeholders: list[StakeholderUpdate] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.timeline or self.resources or self.stakeholders)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeline": [t.to_dict() for t in self.timeline],
            "resources": [r.to_dict() for r in self.resources],
            "stakeholders": [s.to_dict() for s in self.stakeholders],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Implementation":
        return cls(
            timeline=[TimelinePhase(**t) for t in data.get("timeline", [])],
            resources=[ResourceAllocation(**r) for r in data.get("resources", [])],
            stakeholders=[
                StakeholderUpdate(**s) for s in data.get("stakeholders", [])
            ],
        )


@dataclass
class PRDRecord:
    """The fully-defaulted PRD consumed by rendering."""

    summary: PRDSummary = field(default_factory=PRDSummary)
    personas: list[Persona] = field(default_factory=list)
    features: list[Feature] = field(default_factory=list)
    tech_stack: TechStack = field(default_factory=TechStack)
    ui_design: UIDesign = field(default_factory=UIDesign)
    implementation: Implementation | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase dictionary stored in step content."""
        data: dict[str, Any] = {
            "summary": self.summary.to_dict(),
            "personas": [p.to_dict() for p in self.personas],
            "features": [f.to_dict() for f in self.features],
            "techStack": self.tech_stack.to_dict(),
            "uiDesign": self.ui_design.to_dict(),
        }
        if self.implementation is not None:
            data["implementation"] = self.implementation.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PRDRecord":
        """Create from an already-canonical dictionary.

        Untrusted input should go through the normalizer instead.
        """
        implementation = data.get("implementation")
        return cls(
            summary=PRDSummary.from_dict(data.get("summary", {})),
            personas=[Persona.from_dict(p) for p in data.get("personas", [])],
            features=[Feature.from_dict(f) for f in data.get("features", [])],
            tech_stack=TechStack.from_dict(data.get("techStack", {})),
            ui_design=UIDesign.from_dict(data.get("uiDesign", {})),
            implementation=(
                Implementation.from_dict(implementation)
                if implementation is not None
                else None
            ),
        )


# ─── Analysis (stage 1) ──────────────────────────────────────────────────


@dataclass
class TechStackRecommendation:
    """Tech stack suggested during input analysis."""

    best_idea: str = NO_IDEA_SELECTED
    frontend: str = NOT_SPECIFIED
    backend: str = NOT_SPECIFIED
    database: str = NOT_SPECIFIED
    hosting: str = NOT_SPECIFIED

    def to_dict(self) -> dict[str, Any]:
        return {
            "bestIdea": self.best_idea,
            "frontend": self.frontend,
            "backend": self.backend,
            "database": self.database,
            "hosting": self.hosting,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TechStackRecommendation":
        return cls(
            best_idea=str(data.get("bestIdea") or NO_IDEA_SELECTED),
            **{key: str(data.get(key) or NOT_SPECIFIED) for key in TECH_STACK_KEYS},
        )

    def as_tech_stack(self) -> TechStack:
        return TechStack(
            frontend=self.frontend,
            backend=self.backend,
            database=self.database,
            hosting=self.hosting,
        )


@dataclass
class AnalysisResult:
    """Output of input analysis: candidate ideas plus a tech stack."""

    ideas: list[str] = field(default_factory=list)
    tech_stack: TechStackRecommendation = field(
        default_factory=TechStackRecommendation
    )

    def to_dict(self) -> dict[str, Any]:
        return {"ideas": list(self.ideas), "techStack": self.tech_stack.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        ideas = data.get("ideas") or []
        tech = data.get("techStack") or {}
        return cls(
            ideas=[str(i) for i in ideas if isinstance(i, str) and i.strip()],
            tech_stack=TechStackRecommendation.from_dict(
                tech if isinstance(tech, dict) else {}
            ),
        )


@dataclass
class DefaultTechStack:
    """User-preferred technologies that seed analysis and refinement."""

    frontend: str = ""
    backend: str = ""
    database: str = ""
    hosting: str = ""
    additional: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "frontend": self.frontend,
            "backend": self.backend,
            "database": self.database,
            "hosting": self.hosting,
            "additional": self.additional,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefaultTechStack":
        return cls(
            **{
                key: str(data.get(key) or "").strip()
                for key in ("frontend", "backend", "database", "hosting", "additional")
            }
        )

    @property
    def is_empty(self) -> bool:
        return not any(self.to_dict().values())

    def overrides(self) -> dict[str, str]:
        """Non-empty core fields, which take priority over model output."""
        return {
            key: getattr(self, key) for key in TECH_STACK_KEYS if getattr(self, key)
        }
