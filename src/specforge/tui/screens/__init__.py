"""TUI screens for SpecForge."""
from __future__ import annotations

from .modals import ConfirmDeleteProjectModal, ConfirmRewindModal, NewProjectModal
from .project_selection import ProjectSelectionScreen
from .settings import SettingsModal
from .workspace import ProjectWorkspaceScreen

__all__ = [
    "ConfirmDeleteProjectModal",
    "ConfirmRewindModal",
    "NewProjectModal",
    "ProjectSelectionScreen",
    "ProjectWorkspaceScreen",
    "SettingsModal",
]
