"""Modal dialogs shared by the SpecForge screens."""

from typing import Any

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from specforge.models.project import Project
from specforge.models.step import Step

MODAL_CSS = """
{name} {{
    align: center middle;
    background: $surface 60%;
}}

{name} > Vertical {{
    width: 64;
    height: auto;
    max-height: 22;
    background: $surface;
    border: solid $surface-lighten-2;
    padding: 1 2;
}}

{name} .modal-title {{
    text-style: bold;
    color: $text;
    text-align: center;
    padding: 1 0;
    margin-bottom: 1;
}}

{name} .warning {{
    color: $text-muted;
    margin-top: 1;
}}

{name} .modal-actions {{
    height: auto;
    padding: 1 0 0 0;
    margin-top: 1;
    border-top: solid $surface-lighten-1;
    align: center middle;
}}

{name} Button {{
    margin: 0 1;
    min-width: 10;
}}
"""


class ConfirmDeleteProjectModal(ModalScreen[bool]):
    """Confirmation modal for deleting a project."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
        Binding("enter", "confirm", "Confirm", show=True),
    ]

    DEFAULT_CSS = MODAL_CSS.format(name="ConfirmDeleteProjectModal") + """
    ConfirmDeleteProjectModal .project-name {
        margin-bottom: 1;
        color: $text;
        text-style: bold;
    }

    ConfirmDeleteProjectModal Button#btn-delete {
        background: $error-darken-2;
    }
    """

    def __init__(self, project: Project, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.project = project

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Delete Project?", classes="modal-title")
            yield Static(self.project.name, classes="project-name")
            yield Static(
                "This will permanently delete the project, all five steps "
                "and their generated content.",
                classes="warning",
            )
            with Horizontal(classes="modal-actions"):
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Cancel", id="btn-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-delete":
            self.dismiss(True)
        else:
            self.dismiss(False)

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class ConfirmRewindModal(ModalScreen[bool]):
    """Asks before editing a finished step reopens the pipeline."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
        Binding("enter", "confirm", "Continue", show=True),
    ]

    DEFAULT_CSS = MODAL_CSS.format(name="ConfirmRewindModal")

    def __init__(self, step: Step, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.step = step

    @property
    def message(self) -> str:
        return (
            f'You\'re about to modify "{self.step.title}" which will reset the '
            "process back to this step. Any progress made in subsequent steps "
            "may be lost."
        )

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Reopen this step?", classes="modal-title")
            yield Static(self.message)
            yield Static("Do you want to continue?", classes="warning")
            with Horizontal(classes="modal-actions"):
                yield Button("Continue", id="btn-continue", variant="warning")
                yield Button("Cancel", id="btn-cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-continue")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class NewProjectModal(ModalScreen[str | None]):
    """Prompt for the name of a new project."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    DEFAULT_CSS = MODAL_CSS.format(name="NewProjectModal") + """
    NewProjectModal .error {
        color: $error;
        height: auto;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("New Project", classes="modal-title")
            yield Input(placeholder="Project name", id="project-name")
            yield Static("", classes="error", id="name-error")
            with Horizontal(classes="modal-actions"):
                yield Button("Create", id="btn-create", variant="primary")
                yield Button("Cancel", id="btn-cancel")

    def on_mount(self) -> None:
        self.query_one("#project-name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.action_submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-create":
            self.action_submit()
        else:
            self.dismiss(None)

    def action_submit(self) -> None:
        name = self.query_one("#project-name", Input).value.strip()
        if not name:
            self.query_one("#name-error", Static).update("Enter a project name")
            return
        self.dismiss(name)

    def action_cancel(self) -> None:
        self.dismiss(None)
