"""Project workspace screen: the five pipeline steps of one project.

The left panel lists the steps with their status. The right panel shows
the selected step's content and the actions available for it. Model calls
run in worker threads; each finished action reloads the project and moves
the view to whatever step is now active.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widget import Widget
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Markdown,
    OptionList,
    Select,
    Static,
    TextArea,
)
from textual.widgets.option_list import Option

from specforge.llm.metrics import BudgetExceededError
from specforge.models.pipeline import PipelineError, needs_rewind
from specforge.models.prd import TECH_STACK_KEYS, AnalysisResult, TechStack
from specforge.models.project import Project
from specforge.models.step import Step, StepKind
from specforge.models.store import StoreError
from specforge.orchestration import (
    RewindDeclined,
    StageError,
    StageInputError,
)
from specforge.prd.normalizer import SECTION_KEYS
from specforge.tui.screens.modals import ConfirmRewindModal
from specforge.tui.utils import step_label

if TYPE_CHECKING:
    from specforge.tui.app import SpecforgeApp

logger = logging.getLogger(__name__)

SECTION_LABELS: dict[str, str] = {
    "summary": "Overview",
    "personas": "Target Audience",
    "features": "Key Features",
    "techStack": "Technical Architecture",
    "uiDesign": "UI/UX Design",
    "implementation": "Implementation Plan",
    "implementationTimeline": "Implementation Timeline",
    "implementationResources": "Resource Allocation",
    "implementationStakeholders": "Stakeholder Communication",
}


def parse_file_list(value: str) -> list[Path]:
    """Split a comma-separated list of paths typed by the user."""
    return [
        Path(part.strip()).expanduser() for part in value.split(",") if part.strip()
    ]


class StepListPanel(Vertical):
    """Left panel listing the five steps of the project."""

    DEFAULT_CSS = """
    StepListPanel {
        width: 32;
        height: 100%;
        border-right: solid $surface-lighten-1;
    }

    StepListPanel .panel-title {
        text-style: bold;
        padding: 1 1 0 1;
        border-bottom: solid $surface-lighten-1;
    }

    StepListPanel OptionList {
        height: 1fr;
        border: none;
        background: $surface;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static("STEPS", classes="panel-title")
        yield OptionList(id="step-list")

    def update_steps(self, project: Project, selected: StepKind) -> None:
        option_list = self.query_one("#step-list", OptionList)
        option_list.clear_options()
        active_id = project.active_step.id
        for step in project.steps:
            option_list.add_option(
                Option(step_label(step, step.id == active_id), id=str(step.order))
            )
        option_list.highlighted = int(selected) - 1


class ProjectWorkspaceScreen(Screen[None]):
    """Work through one project's pipeline."""

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("escape", "back", "Projects", show=True),
        Binding("ctrl+e", "export", "Export", show=True),
    ]

    DEFAULT_CSS = """
    ProjectWorkspaceScreen {
        background: $surface;
    }

    ProjectWorkspaceScreen .main-container {
        height: 1fr;
    }

    ProjectWorkspaceScreen #step-detail {
        width: 1fr;
        height: 100%;
        padding: 1 2;
    }

    ProjectWorkspaceScreen .step-title {
        text-style: bold;
        margin-bottom: 1;
    }

    ProjectWorkspaceScreen .hint {
        color: $text-muted;
        text-style: italic;
    }

    ProjectWorkspaceScreen .field-label {
        color: $text-muted;
        margin-top: 1;
    }

    ProjectWorkspaceScreen TextArea {
        height: 10;
    }

    ProjectWorkspaceScreen .actions {
        height: auto;
        margin-top: 1;
    }

    ProjectWorkspaceScreen .actions Button {
        margin-right: 1;
    }

    ProjectWorkspaceScreen .actions Select {
        width: 36;
        margin-right: 1;
    }

    ProjectWorkspaceScreen #status-line {
        dock: bottom;
        height: 1;
        color: $warning;
        padding: 0 2;
    }
    """

    def __init__(self, project_id: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.project_id = project_id
        self.project: Project | None = None
        self.selected_kind = StepKind.INPUT_ANALYSIS
        self.is_busy = False

    @property
    def specforge_app(self) -> "SpecforgeApp":
        """Get the app as SpecforgeApp for type checking."""
        return cast("SpecforgeApp", self.app)

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(classes="main-container"):
            yield StepListPanel(id="step-panel")
            yield VerticalScroll(id="step-detail")
        yield Static("", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        try:
            project = self.specforge_app.store.get_project(self.project_id)
        except StoreError as e:
            logger.exception("Failed to load %s", self.project_id)
            self.notify(f"Error: {e}", severity="error")
            project = None
        if project is None:
            self.notify(f"Project {self.project_id} not found", severity="error")
            self.app.pop_screen()
            return
        self._show_project(project)

    # ─── Rendering ───────────────────────────────────────────────────────

    def _show_project(self, project: Project) -> None:
        """Adopt a freshly loaded project and show its active step."""
        self.project = project
        self.selected_kind = project.active_step.kind
        self.app.sub_title = f"{project.name} · {project.active_step.title}"
        self.query_one(StepListPanel).update_steps(project, self.selected_kind)
        self._render_step()

    @on(OptionList.OptionHighlighted, "#step-list")
    def on_step_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        if event.option.id is None:
            return
        kind = StepKind(int(event.option.id))
        if kind != self.selected_kind:
            self.selected_kind = kind
            self._render_step()

    def _render_step(self) -> None:
        if self.project is None:
            return
        step = self.project.step(self.selected_kind)
        detail = self.query_one("#step-detail", VerticalScroll)
        detail.remove_children()
        detail.mount(Static(f"{step.order}. {step.title}", classes="step-title"))
        builders: dict[StepKind, Callable[[Step], list[Widget]]] = {
            StepKind.INPUT_ANALYSIS: self._input_analysis_widgets,
            StepKind.IDEA_GENERATION: self._idea_generation_widgets,
            StepKind.IDEA_REFINEMENT: self._idea_refinement_widgets,
            StepKind.PRD_GENERATION: self._prd_generation_widgets,
            StepKind.PROJECT_FINALIZATION: self._finalization_widgets,
        }
        detail.mount_all(builders[step.kind](step))
        self._set_busy(self.is_busy)

    def _input_analysis_widgets(self, step: Step) -> list[Widget]:
        content = step.content
        text_area = TextArea(str(content.get("textInput") or ""), id="input-text")
        files = ", ".join(str(f) for f in content.get("files") or [])
        widgets: list[Widget] = [
            Static("Describe your project", classes="field-label"),
            text_area,
            Static("Attach files (comma separated paths)", classes="field-label"),
            Input(files, placeholder="notes.md, research.txt", id="input-files"),
            Horizontal(
                Button("Analyze", id="btn-analyze", variant="primary"),
                classes="actions",
            ),
        ]
        if content.get("analysis"):
            analysis = AnalysisResult.from_dict(content["analysis"])
            widgets.append(
                Static(
                    f"{len(analysis.ideas)} ideas generated. "
                    f"Best fit: {analysis.tech_stack.best_idea}",
                    classes="hint",
                )
            )
        return widgets

    def _idea_generation_widgets(self, step: Step) -> list[Widget]:
        assert self.project is not None
        raw = self.project.step(StepKind.INPUT_ANALYSIS).content.get("analysis")
        if not raw:
            return [Static("Run the input analysis first.", classes="hint")]
        analysis = AnalysisResult.from_dict(raw)
        ideas = OptionList(
            *[Option(idea, id=str(i)) for i, idea in enumerate(analysis.ideas)],
            id="idea-list",
        )
        stack = analysis.tech_stack
        widgets: list[Widget] = [
            ideas,
            Static(
                f"Recommended: {stack.best_idea}\n"
                f"Frontend: {stack.frontend} · Backend: {stack.backend} · "
                f"Database: {stack.database} · Hosting: {stack.hosting}",
                classes="hint",
            ),
            Static("Or write your own idea", classes="field-label"),
            Input(placeholder="A custom idea", id="custom-idea"),
            Horizontal(
                Button("Select", id="btn-select", variant="primary"),
                classes="actions",
            ),
        ]
        selected = step.content.get("selectedIdea")
        if selected:
            widgets.insert(0, Static(f"Selected: {selected}", classes="hint"))
        return widgets

    def _idea_refinement_widgets(self, step: Step) -> list[Widget]:
        content = step.content
        if "refinedIdea" not in content:
            return [Static("Select an idea first.", classes="hint")]
        raw_stack = content.get("refinedTechStack")
        stack = TechStack.from_dict(raw_stack if isinstance(raw_stack, dict) else {})
        widgets: list[Widget] = [
            Static("Refined idea", classes="field-label"),
            Input(str(content.get("refinedIdea") or ""), id="refined-idea"),
        ]
        for key in TECH_STACK_KEYS:
            widgets.append(Static(key.capitalize(), classes="field-label"))
            widgets.append(Input(getattr(stack, key), id=f"stack-{key}"))
        widgets.append(
            Horizontal(
                Button("Save", id="btn-save-refinement"),
                Button("Use defaults", id="btn-use-defaults"),
                Button("Continue", id="btn-complete-refinement", variant="primary"),
                classes="actions",
            )
        )
        return widgets

    def _prd_generation_widgets(self, step: Step) -> list[Widget]:
        prd_text = step.content.get("prdText")
        sections = Select(
            [(SECTION_LABELS[key], key) for key in SECTION_KEYS],
            prompt="Section",
            id="section-select",
        )
        return [
            Markdown(
                str(prd_text) if prd_text else "*No PRD generated yet.*",
                id="prd-view",
            ),
            Horizontal(
                Button("Generate", id="btn-generate", variant="primary"),
                sections,
                Button("Regenerate", id="btn-regenerate"),
                Button("Finalize", id="btn-finalize", variant="success"),
                classes="actions",
            ),
        ]

    def _finalization_widgets(self, step: Step) -> list[Widget]:
        content = step.content
        markdown = content.get("markdownContent")
        prompt = content.get("gettingStartedPrompt")
        widgets: list[Widget] = []
        if prompt:
            widgets += [
                Static("Getting-started prompt", classes="field-label"),
                TextArea(str(prompt), read_only=True, id="prompt-view"),
            ]
        widgets += [
            Markdown(
                str(markdown) if markdown else "*Not finalized yet.*",
                id="final-view",
            ),
            Horizontal(
                Button("Finalize", id="btn-finalize", variant="primary"),
                Button("Export Markdown", id="btn-export"),
                classes="actions",
            ),
        ]
        return widgets

    def _set_busy(self, busy: bool, label: str = "") -> None:
        """Disable actions while a stage runs."""
        self.is_busy = busy
        for button in self.query("#step-detail Button").results(Button):
            button.disabled = busy
        self.query_one("#status-line", Static).update(
            f"{label}..." if busy and label else ""
        )

    # ─── Actions ─────────────────────────────────────────────────────────

    def on_button_pressed(self, event: Button.Pressed) -> None:
        handlers: dict[str, Callable[[], None]] = {
            "btn-analyze": self._analyze,
            "btn-select": self._select_idea,
            "btn-save-refinement": self._save_refinement,
            "btn-use-defaults": self._use_defaults,
            "btn-complete-refinement": self._complete_refinement,
            "btn-generate": self._generate_prd,
            "btn-regenerate": self._regenerate_section,
            "btn-finalize": self._finalize,
            "btn-export": self.action_export,
        }
        handler = handlers.get(event.button.id or "")
        if handler is not None and not self.is_busy:
            handler()

    def _with_rewind(
        self, kind: StepKind, label: str, action: Callable[[], Project]
    ) -> None:
        """Run the action, asking first if it would reopen finished work."""
        project = self.project
        if project is None:
            return
        if not needs_rewind(project, kind):
            self._start_stage(label, action)
            return

        def handle_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._start_stage(label, action)
            else:
                self.notify("Edit cancelled")

        self.app.push_screen(ConfirmRewindModal(project.step(kind)), handle_confirm)

    def _start_stage(self, label: str, action: Callable[[], Project]) -> None:
        """Mark the screen busy on the UI thread, then hand off to a worker."""
        if self.is_busy:
            return
        self._set_busy(True, label)
        self._run_stage(label, action)

    @work(thread=True)
    def _run_stage(self, label: str, action: Callable[[], Project]) -> None:
        """Run a coordinator action off the UI thread."""
        try:
            project = action()
        except RewindDeclined as e:
            self.app.call_from_thread(self.notify, f"Cancelled: {e}")
        except (StageInputError, PipelineError) as e:
            self.app.call_from_thread(self.notify, str(e), severity="warning")
        except (StageError, BudgetExceededError, StoreError) as e:
            logger.exception("%s failed for %s", label, self.project_id)
            self.app.call_from_thread(self.notify, f"Error: {e}", severity="error")
        else:
            self.app.call_from_thread(self._show_project, project)
        finally:
            self.app.call_from_thread(self._set_busy, False)

    def _analyze(self) -> None:
        coordinator = self.specforge_app.coordinator
        text = self.query_one("#input-text", TextArea).text
        files = parse_file_list(self.query_one("#input-files", Input).value)
        self._with_rewind(
            StepKind.INPUT_ANALYSIS,
            "Analyzing input",
            lambda: asyncio.run(coordinator.analyze(self.project_id, text, files)),
        )

    def _select_idea(self) -> None:
        coordinator = self.specforge_app.coordinator
        custom = self.query_one("#custom-idea", Input).value.strip()
        highlighted = self.query_one("#idea-list", OptionList).highlighted
        if not custom and highlighted is None:
            self.notify("Choose an idea to continue", severity="warning")
            return

        def action() -> Project:
            if custom:
                return coordinator.select_idea(
                    self.project_id, idea=custom, allow_custom=True
                )
            return coordinator.select_idea(self.project_id, index=highlighted)

        self._with_rewind(StepKind.IDEA_GENERATION, "Selecting idea", action)

    def _refinement_values(self) -> tuple[str, dict[str, str]]:
        idea = self.query_one("#refined-idea", Input).value
        stack = {
            key: self.query_one(f"#stack-{key}", Input).value
            for key in TECH_STACK_KEYS
        }
        return idea, stack

    def _save_refinement(self) -> None:
        coordinator = self.specforge_app.coordinator
        idea, stack = self._refinement_values()
        self._with_rewind(
            StepKind.IDEA_REFINEMENT,
            "Saving",
            lambda: coordinator.save_refinement(
                self.project_id, refined_idea=idea, tech_stack=stack
            ),
        )

    def _use_defaults(self) -> None:
        coordinator = self.specforge_app.coordinator
        idea, stack = self._refinement_values()
        self._with_rewind(
            StepKind.IDEA_REFINEMENT,
            "Applying defaults",
            lambda: coordinator.save_refinement(
                self.project_id,
                refined_idea=idea,
                tech_stack=stack,
                use_defaults=True,
            ),
        )

    def _complete_refinement(self) -> None:
        coordinator = self.specforge_app.coordinator
        idea, stack = self._refinement_values()

        def action() -> Project:
            coordinator.save_refinement(
                self.project_id, refined_idea=idea, tech_stack=stack
            )
            return coordinator.complete_refinement(self.project_id)

        self._with_rewind(StepKind.IDEA_REFINEMENT, "Saving", action)

    def _generate_prd(self) -> None:
        coordinator = self.specforge_app.coordinator
        self._with_rewind(
            StepKind.PRD_GENERATION,
            "Generating PRD",
            lambda: asyncio.run(coordinator.generate_prd(self.project_id)),
        )

    def _regenerate_section(self) -> None:
        coordinator = self.specforge_app.coordinator
        key = self.query_one("#section-select", Select).value
        if not isinstance(key, str):
            self.notify("Choose a section to regenerate", severity="warning")
            return
        self._with_rewind(
            StepKind.PRD_GENERATION,
            f"Regenerating {SECTION_LABELS[key]}",
            lambda: asyncio.run(coordinator.regenerate_section(self.project_id, key)),
        )

    def _finalize(self) -> None:
        coordinator = self.specforge_app.coordinator
        self._with_rewind(
            StepKind.PROJECT_FINALIZATION,
            "Finalizing",
            lambda: asyncio.run(coordinator.finalize(self.project_id)),
        )

    def action_export(self) -> None:
        """Write the PRD Markdown to the exports directory."""
        try:
            path = self.specforge_app.coordinator.export_markdown(self.project_id)
        except (StageInputError, StoreError, OSError) as e:
            self.notify(str(e), severity="warning")
            return
        self.notify(f"Exported to {path}")

    def action_back(self) -> None:
        self.app.pop_screen()
