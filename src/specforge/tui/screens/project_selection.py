"""Project selection screen for browsing and opening projects."""

import logging
from typing import TYPE_CHECKING, Any, cast

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, OptionList, Static
from textual.widgets.option_list import Option

from specforge.models.project import Project
from specforge.models.store import StoreError
from specforge.tui.screens.modals import ConfirmDeleteProjectModal, NewProjectModal
from specforge.tui.utils import (
    PROJECT_STATUS_LABELS,
    format_relative_time,
    get_status_label,
)

if TYPE_CHECKING:
    from specforge.tui.app import SpecforgeApp

logger = logging.getLogger(__name__)


class ProjectListPanel(Vertical):
    """Left panel showing list of projects."""

    DEFAULT_CSS = """
    ProjectListPanel {
        width: 1fr;
        height: 100%;
        border-right: solid $surface-lighten-1;
    }

    ProjectListPanel .panel-title {
        text-style: bold;
        color: $text;
        padding: 1 1 0 1;
        border-bottom: solid $surface-lighten-1;
    }

    ProjectListPanel OptionList {
        height: 1fr;
        background: $surface;
        border: none;
        padding: 0;
    }

    ProjectListPanel OptionList:focus > .option-list--option-highlighted {
        background: $accent 30%;
        text-style: none;
    }
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._projects: list[Project] = []

    def compose(self) -> ComposeResult:
        yield Static("PROJECTS", classes="panel-title")
        yield OptionList(id="project-list")

    def update_projects(self, projects: list[Project]) -> None:
        """Update the project list."""
        self._projects = projects
        option_list = self.query_one("#project-list", OptionList)
        option_list.clear_options()

        if not projects:
            option_list.add_option(
                Option("No projects yet. Press 'n' to create one.", disabled=True)
            )
            return

        for project in projects:
            status = PROJECT_STATUS_LABELS[project.status]
            updated = format_relative_time(project.updated_at)
            label = f"{project.name} ({status}) - {updated}"
            option_list.add_option(Option(label, id=project.id))

        option_list.highlighted = 0

    @property
    def selected_project(self) -> Project | None:
        """Get the currently highlighted project."""
        option_list = self.query_one("#project-list", OptionList)
        if option_list.highlighted is None or not self._projects:
            return None
        if option_list.highlighted >= len(self._projects):
            return None
        return self._projects[option_list.highlighted]


class ProjectPreviewPanel(VerticalScroll):
    """Right panel showing details of the highlighted project."""

    DEFAULT_CSS = """
    ProjectPreviewPanel {
        width: 2fr;
        height: 100%;
        padding: 1 2;
    }

    ProjectPreviewPanel .placeholder {
        color: $text-muted;
        text-style: italic;
    }

    ProjectPreviewPanel .preview-name {
        text-style: bold;
        margin-bottom: 1;
    }

    ProjectPreviewPanel .preview-row {
        color: $text-muted;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static(
            "Select a project to see its details", classes="placeholder", id="hint"
        )
        yield Vertical(id="preview-content")

    def show_project(self, project: Project | None, cost: float = 0.0) -> None:
        """Display the given project's details."""
        content = self.query_one("#preview-content", Vertical)
        content.remove_children()
        self.query_one("#hint", Static).display = project is None
        if project is None:
            return

        active = project.active_step
        rows = [
            f"Status: {PROJECT_STATUS_LABELS[project.status]}",
            f"Current step: {active.order}. {active.title} "
            f"({get_status_label(active.status)})",
            f"Created: {project.created_at:%Y-%m-%d %H:%M}",
            f"Updated: {format_relative_time(project.updated_at)}",
        ]
        if cost:
            rows.append(f"Model cost: ${cost:.4f}")

        content.mount(Static(project.name, classes="preview-name"))
        for row in rows:
            content.mount(Static(row, classes="preview-row"))


class ProjectSelectionScreen(Screen[None]):
    """Browse projects, create new ones and open a project's workspace."""

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("n", "new_project", "New", show=True),
        Binding("d", "delete_project", "Delete", show=True),
        Binding("s", "app.settings", "Settings", show=True),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
    ]

    DEFAULT_CSS = """
    ProjectSelectionScreen {
        background: $surface;
    }

    ProjectSelectionScreen .main-container {
        height: 1fr;
    }
    """

    @property
    def specforge_app(self) -> "SpecforgeApp":
        """Get the app as SpecforgeApp for type checking."""
        return cast("SpecforgeApp", self.app)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(classes="main-container"):
            yield ProjectListPanel(id="project-list-panel")
            yield ProjectPreviewPanel(id="project-preview")
        yield Footer()

    def on_mount(self) -> None:
        self.app.sub_title = "Projects"
        self._refresh_projects()

    def on_screen_resume(self) -> None:
        """Reload when coming back from a project's workspace."""
        self._refresh_projects()

    def _refresh_projects(self) -> None:
        try:
            projects = self.specforge_app.store.list_projects()
        except StoreError as e:
            logger.exception("Failed to list projects")
            self.notify(f"Could not load projects: {e}", severity="error")
            projects = []
        self.query_one(ProjectListPanel).update_projects(projects)
        self._update_preview()

    def _update_preview(self) -> None:
        project = self.query_one(ProjectListPanel).selected_project
        cost = 0.0
        if project is not None:
            cost = self.specforge_app.coordinator.metrics_for(project.id).total_cost
        self.query_one(ProjectPreviewPanel).show_project(project, cost)

    @on(OptionList.OptionHighlighted, "#project-list")
    def on_project_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        del event
        self._update_preview()

    @on(OptionList.OptionSelected, "#project-list")
    def on_project_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option.id is None:
            return
        self._open_project(event.option.id)

    def _open_project(self, project_id: str) -> None:
        from specforge.tui.screens.workspace import ProjectWorkspaceScreen

        self.app.push_screen(ProjectWorkspaceScreen(project_id))

    def action_new_project(self) -> None:
        """Ask for a name and create a new project."""

        def handle_name(name: str | None) -> None:
            if not name:
                return
            try:
                project = self.specforge_app.store.create_project(name)
            except StoreError as e:
                self.notify(f"Could not create project: {e}", severity="error")
                return
            logger.info("Created project %s (%s)", project.name, project.id)
            self.notify(f"Created: {project.name}")
            self._open_project(project.id)

        self.app.push_screen(NewProjectModal(), handle_name)

    def action_delete_project(self) -> None:
        """Delete the highlighted project after confirmation."""
        project = self.query_one(ProjectListPanel).selected_project
        if project is None:
            return

        def handle_delete(confirmed: bool | None) -> None:
            if not confirmed:
                return
            try:
                deleted = self.specforge_app.store.delete_project(project.id)
            except StoreError as e:
                logger.exception("Failed to delete %s", project.id)
                self.notify(f"Error: {e}", severity="error")
                deleted = False
            if deleted:
                self.notify(f"Deleted: {project.name}")
            self._refresh_projects()

        self.app.push_screen(ConfirmDeleteProjectModal(project), handle_delete)

    def action_cursor_down(self) -> None:
        self.query_one("#project-list", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#project-list", OptionList).action_cursor_up()
