"""TUI utility functions for SpecForge."""

from datetime import UTC, datetime

from rich.text import Text

from specforge.models.project import ProjectStatus
from specforge.models.step import Step, StepStatus

# =============================================================================
# Time Formatting Utilities
# =============================================================================


def format_relative_time(dt: datetime) -> str:
    """Format datetime as relative time string.

    Args:
        dt: The datetime to format (naive datetimes are assumed to be UTC)

    Returns:
        Relative time string like "5m ago", "2h ago", "3d ago"
    """
    now = datetime.now(UTC)
    if dt.tzinfo is None:
        now = now.replace(tzinfo=None)
    total_seconds = (now - dt).total_seconds()

    thresholds = [
        (365 * 24 * 3600, "y ago"),
        (30 * 24 * 3600, "mo ago"),
        (24 * 3600, "d ago"),
        (3600, "h ago"),
        (60, "m ago"),
    ]

    for seconds, suffix in thresholds:
        if total_seconds >= seconds:
            return f"{int(total_seconds // seconds)}{suffix}"
    return "just now"


# =============================================================================
# Step Status Display
# =============================================================================

# Centralized status display configuration: (icon, color, label)
STEP_STATUS_DISPLAY: dict[StepStatus, tuple[str, str, str]] = {
    StepStatus.COMPLETED: ("✓", "green", "Completed"),
    StepStatus.IN_PROGRESS: ("●", "yellow", "In progress"),
    StepStatus.PENDING: ("○", "dim", "Pending"),
}

PROJECT_STATUS_LABELS: dict[ProjectStatus, str] = {
    ProjectStatus.DRAFT: "Draft",
    ProjectStatus.IN_PROGRESS: "In progress",
    ProjectStatus.COMPLETED: "Completed",
}


def get_status_label(status: StepStatus) -> str:
    """Get the human-readable label for a step status."""
    _, _, label = STEP_STATUS_DISPLAY[status]
    return label


def step_label(step: Step, active: bool = False) -> Text:
    """Rich label for a step in the step list: icon, order and title."""
    icon, color, _ = STEP_STATUS_DISPLAY[step.status]
    label = Text()
    label.append(f"{icon} ", style=color)
    label.append(f"{step.order}. {step.title}", style="bold" if active else "")
    return label
