"""Main SpecForge TUI application."""

import logging
from typing import Any

from textual.app import App
from textual.binding import Binding
from textual.command import DiscoveryHit, Hit, Hits, Provider

from specforge.config.project_root import get_projects_root
from specforge.models.store import ProjectStore
from specforge.orchestration import PipelineCoordinator
from specforge.tui.screens.project_selection import ProjectSelectionScreen

logger = logging.getLogger(__name__)


class SpecforgeCommands(Provider):
    """Command provider for SpecForge-specific commands."""

    async def discover(self) -> Hits:
        """Return default commands shown before user input."""
        yield DiscoveryHit(
            "Settings",
            self._open_settings,
            help="Model provider and preferred tech stack",
        )

    async def search(self, query: str) -> Hits:
        """Search for SpecForge commands."""
        matcher = self.matcher(query)
        command = "Settings"

        match = matcher.match(command)
        if match > 0:
            yield Hit(
                match,
                matcher.highlight(command),
                self._open_settings,
                help="Model provider and preferred tech stack",
            )

    async def _open_settings(self) -> None:
        await self.app.run_action("settings")


class SpecforgeApp(App[None]):
    """Main SpecForge TUI application."""

    TITLE = "SpecForge"
    SUB_TITLE = "Product requirements from rough ideas"

    COMMANDS = App.COMMANDS | {SpecforgeCommands}

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: $surface;
    }
    """

    def __init__(self, store: ProjectStore | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.store = store or ProjectStore(get_projects_root())
        self.coordinator = self._build_coordinator()

    def _build_coordinator(self) -> PipelineCoordinator:
        # Screens ask through ConfirmRewindModal before calling a stage
        return PipelineCoordinator(self.store, confirm=lambda step: True)

    def on_mount(self) -> None:
        logger.info("TUI started with projects in %s", self.store.root)
        self.push_screen(ProjectSelectionScreen())

    def action_settings(self) -> None:
        """Open the settings modal; the model provider is rebuilt on close."""
        from specforge.tui.screens.settings import SettingsModal

        def handle_close(result: None) -> None:
            del result
            self.coordinator = self._build_coordinator()

        self.push_screen(SettingsModal(), handle_close)
