"""Orchestration layer for SpecForge.

Stage functions live in ``stages``; the PipelineCoordinator runs them
against persisted projects.

Usage:
    from specforge.orchestration import PipelineCoordinator

    coordinator = PipelineCoordinator(store)
    project = asyncio.run(coordinator.analyze(project_id, "Build a todo app"))
    project = coordinator.select_idea(project_id, index=0)
"""

from specforge.orchestration.coordinator import PipelineCoordinator
from specforge.orchestration.types import (
    ConfirmRewind,
    FinalizationResult,
    ProjectNotFoundError,
    RewindDeclined,
    StageError,
    StageInputError,
)

__all__ = [
    "ConfirmRewind",
    "FinalizationResult",
    "PipelineCoordinator",
    "ProjectNotFoundError",
    "RewindDeclined",
    "StageError",
    "StageInputError",
]
