"""Data models for SpecForge."""

from .pipeline import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    OutOfOrderError,
    PipelineError,
    StepPipeline,
    needs_rewind,
)
from .prd import (
    AnalysisResult,
    DefaultTechStack,
    Feature,
    Implementation,
    Persona,
    PRDRecord,
    PRDSummary,
    TechStack,
    TechStackRecommendation,
    UIDesign,
)
from .project import Project, ProjectStatus, derive_status
from .step import STEP_TITLES, Step, StepKind, StepStatus, step_id
from .store import ProjectStore, StoreError

__all__ = [
    "AnalysisResult",
    "DefaultTechStack",
    "Feature",
    "Implementation",
    "InvalidTransitionError",
    "OutOfOrderError",
    "PRDRecord",
    "PRDSummary",
    "Persona",
    "PipelineError",
    "Project",
    "ProjectStatus",
    "ProjectStore",
    "STEP_TITLES",
    "Step",
    "StepKind",
    "StepPipeline",
    "StepStatus",
    "StoreError",
    "TechStack",
    "TechStackRecommendation",
    "UIDesign",
    "VALID_TRANSITIONS",
    "derive_status",
    "needs_rewind",
    "step_id",
]
