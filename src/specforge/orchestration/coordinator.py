"""Pipeline coordinator - runs stages against persisted projects.

Screens and CLI commands call coordinator methods and render the returned
Project. The coordinator owns the sequencing: it validates input, asks
for confirmation before reopening finished work, calls the stage function,
and writes the result only once a complete, normalized value exists.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from specforge.config.paths import get_paths
from specforge.config.settings import Settings
from specforge.config.settings import settings as default_settings
from specforge.llm.metrics import Budget, MetricsCollector
from specforge.llm.providers.base import LLMProvider
from specforge.llm.providers.factory import create_provider
from specforge.models.pipeline import StepPipeline, needs_rewind
from specforge.models.prd import (
    AnalysisResult,
    DefaultTechStack,
    TechStack,
)
from specforge.models.project import Project
from specforge.models.step import StepKind, StepStatus
from specforge.models.store import ProjectStore
from specforge.orchestration import stages
from specforge.orchestration.types import (
    ConfirmRewind,
    ProjectNotFoundError,
    RewindDeclined,
    StageError,
    StageInputError,
)
from specforge.prd.exporter import export_markdown, markdown_filename
from specforge.prd.normalizer import apply_section, normalize_prd
from specforge.prd.renderer import render_markdown

logger = logging.getLogger(__name__)

METRICS_FILE = "metrics.jsonl"


class PipelineCoordinator:
    """Coordinates the five generation stages independent of UI.

    Screens call coordinator methods and render results. The coordinator
    manages state and persistence through the injected store.
    """

    def __init__(
        self,
        store: ProjectStore,
        provider: LLMProvider | None = None,
        config: Settings | None = None,
        confirm: ConfirmRewind | None = None,
    ) -> None:
        """Initialize coordinator with a store and services.

        Args:
            store: Project store used for every read and write.
            provider: LLM provider (created from settings on first use if None).
            config: Settings to read preferences from (global settings if None).
            confirm: Asked before a completed step is reopened. Without it,
                any edit that needs a rewind is declined.
        """
        self.store = store
        self.pipeline = StepPipeline(store)
        self.config = config or default_settings
        self.confirm = confirm
        self._provider = provider

    # ─── Properties ──────────────────────────────────────────────────────

    @property
    def provider(self) -> LLMProvider:
        """Get the LLM provider, creating it from settings if necessary."""
        if self._provider is None:
            self._provider = create_provider(self.config)
        return self._provider

    def metrics_for(self, project_id: str) -> MetricsCollector:
        """Metrics collector backed by the project's metrics file."""
        return MetricsCollector(self.store.project_dir(project_id) / METRICS_FILE)

    # ─── Internal helpers ────────────────────────────────────────────────

    def _require(self, project_id: str) -> Project:
        project = self.store.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _saved(self, project: Project | None, project_id: str) -> Project:
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _guard_edit(self, project: Project, kind: StepKind) -> Project:
        """Rewind to the step if editing it would reopen finished work.

        Raises:
            RewindDeclined: If confirmation was refused or unavailable.
        """
        if not needs_rewind(project, kind):
            return project
        step = project.step(kind)
        if self.confirm is None or not self.confirm(step):
            logger.info("Rewind to step %d of %s declined", step.order, project.id)
            raise RewindDeclined(step)
        return self._saved(self.pipeline.rewind(project.id, kind), project.id)

    def _require_completed(self, project: Project, kind: StepKind) -> None:
        step = project.step(kind)
        if step.status is not StepStatus.COMPLETED:
            raise StageInputError(f'Complete "{step.title}" first')

    def _begin(self, project: Project, kind: StepKind) -> Project:
        step = project.step(kind)
        return self._saved(self.pipeline.begin(project.id, step.id), project.id)

    def _check_budget(self, metrics: MetricsCollector) -> None:
        Budget(self.config.llm_budget_usd).check(metrics)

    def _prd_inputs(self, project: Project) -> tuple[str, str, TechStack]:
        """Refined idea, original context and refined tech stack."""
        analysis = project.step(StepKind.INPUT_ANALYSIS).content
        refinement = project.step(StepKind.IDEA_REFINEMENT).content
        context = analysis.get("context") or analysis.get("textInput") or ""
        raw_stack = refinement.get("refinedTechStack")
        stack = TechStack.from_dict(raw_stack if isinstance(raw_stack, dict) else {})
        return str(refinement.get("refinedIdea") or ""), str(context), stack

    # ─── Generic editing ─────────────────────────────────────────────────

    def edit_step(
        self, project_id: str, kind: StepKind | int, patch: dict[str, Any]
    ) -> Project:
        """Merge user edits into a step's content.

        Editing a completed step that is not the active one rewinds the
        project to it, after confirmation.

        Raises:
            ProjectNotFoundError: If the project does not exist.
            RewindDeclined: If a needed rewind was not confirmed.
        """
        kind = StepKind(int(kind))
        project = self._guard_edit(self._require(project_id), kind)
        step = project.step(kind)
        return self._saved(
            self.pipeline.update_content(project_id, step.id, patch), project_id
        )

    # ─── Stage 1: input analysis ─────────────────────────────────────────

    async def analyze(
        self,
        project_id: str,
        text: str,
        files: Iterable[Path] = (),
    ) -> Project:
        """Run input analysis and complete step 1.

        Raises:
            StageInputError: If there is nothing to analyze.
            RewindDeclined: If step 1 is finished and the rewind was refused.
            StageError: If the model calls fail; nothing is written.
            BudgetExceededError: If the configured budget is used up.
        """
        file_list = [Path(f) for f in files]
        if not text.strip() and not file_list:
            raise StageInputError("Enter a project description or attach files")
        project = self._require(project_id)
        if not project.name.strip():
            raise StageInputError("The project needs a name")

        project = self._guard_edit(project, StepKind.INPUT_ANALYSIS)
        project = self._begin(project, StepKind.INPUT_ANALYSIS)
        metrics = self.metrics_for(project_id)
        self._check_budget(metrics)

        context = stages.build_context(
            text, file_list, self.config.context_limit_chars
        )
        defaults = DefaultTechStack.from_dict(self.config.default_tech_stack)
        logger.info("Starting input analysis for %s", project_id)
        try:
            analysis = await stages.analyze_input(
                self.provider, context, defaults, metrics=metrics
            )
        except StageError:
            logger.exception("Input analysis failed for %s", project_id)
            raise

        step = project.step(StepKind.INPUT_ANALYSIS)
        patch = {
            "textInput": text,
            "files": [str(f) for f in file_list],
            "context": context,
            "analysis": analysis.to_dict(),
        }
        return self._saved(
            self.pipeline.advance(project_id, step.id, patch), project_id
        )

    # ─── Stage 2: idea selection ─────────────────────────────────────────

    def select_idea(
        self,
        project_id: str,
        *,
        index: int | None = None,
        idea: str | None = None,
        allow_custom: bool = False,
    ) -> Project:
        """Select an idea, complete step 2 and seed the refinement step.

        Raises:
            StageInputError: If analysis has not run or the choice is invalid.
            RewindDeclined: If step 2 is finished and the rewind was refused.
        """
        project = self._require(project_id)
        self._require_completed(project, StepKind.INPUT_ANALYSIS)
        analysis = AnalysisResult.from_dict(
            project.step(StepKind.INPUT_ANALYSIS).content.get("analysis") or {}
        )
        selection = stages.select_idea(
            analysis, index=index, idea=idea, allow_custom=allow_custom
        )

        project = self._guard_edit(project, StepKind.IDEA_GENERATION)
        step = project.step(StepKind.IDEA_GENERATION)
        project = self._saved(
            self.pipeline.advance(project_id, step.id, selection), project_id
        )
        refinement = project.step(StepKind.IDEA_REFINEMENT)
        logger.info("Selected idea for %s: %s", project_id, selection["selectedIdea"])
        return self._saved(
            self.pipeline.update_content(
                project_id, refinement.id, stages.initial_refinement(selection)
            ),
            project_id,
        )

    # ─── Stage 3: refinement ─────────────────────────────────────────────

    def save_refinement(
        self,
        project_id: str,
        *,
        refined_idea: str | None = None,
        tech_stack: dict[str, str] | None = None,
        use_defaults: bool = False,
    ) -> Project:
        """Save edits to the refined idea and tech stack without advancing.

        Raises:
            StageInputError: If no idea has been selected yet.
            RewindDeclined: If step 3 is finished and the rewind was refused.
        """
        project = self._require(project_id)
        self._require_completed(project, StepKind.IDEA_GENERATION)
        project = self._guard_edit(project, StepKind.IDEA_REFINEMENT)
        project = self._begin(project, StepKind.IDEA_REFINEMENT)

        step = project.step(StepKind.IDEA_REFINEMENT)
        current = step.content.get("refinedTechStack") or {}
        stack = {**TechStack.from_dict(current).to_dict(), **(tech_stack or {})}
        if use_defaults:
            defaults = DefaultTechStack.from_dict(self.config.default_tech_stack)
            stack = stages.apply_default_tech_stack(stack, defaults)

        patch: dict[str, Any] = {"refinedTechStack": stack}
        if refined_idea is not None:
            patch["refinedIdea"] = refined_idea
        return self._saved(
            self.pipeline.update_content(project_id, step.id, patch), project_id
        )

    def complete_refinement(self, project_id: str) -> Project:
        """Complete step 3 with its current content.

        Raises:
            StageInputError: If the refined idea is empty.
        """
        project = self._require(project_id)
        self._require_completed(project, StepKind.IDEA_GENERATION)
        step = project.step(StepKind.IDEA_REFINEMENT)
        if not str(step.content.get("refinedIdea") or "").strip():
            raise StageInputError("The refined idea is empty")
        project = self._guard_edit(project, StepKind.IDEA_REFINEMENT)
        return self._saved(self.pipeline.advance(project_id, step.id), project_id)

    # ─── Stage 4: PRD generation ─────────────────────────────────────────

    async def generate_prd(
        self, project_id: str, *, include_implementation: bool | None = None
    ) -> Project:
        """Generate the full PRD into step 4.

        The step stays in progress so sections can be reviewed and
        regenerated; ``accept_prd`` (or finalization) completes it.

        Raises:
            StageInputError: If refinement is not complete.
            RewindDeclined: If step 4 is finished and the rewind was refused.
            StageError: If any section call fails; nothing is written.
            BudgetExceededError: If the configured budget is used up.
        """
        project = self._require(project_id)
        self._require_completed(project, StepKind.IDEA_REFINEMENT)
        if include_implementation is None:
            include_implementation = self.config.include_implementation

        project = self._guard_edit(project, StepKind.PRD_GENERATION)
        project = self._begin(project, StepKind.PRD_GENERATION)
        metrics = self.metrics_for(project_id)
        self._check_budget(metrics)

        refined_idea, context, stack = self._prd_inputs(project)
        logger.info("Starting PRD generation for %s", project_id)
        try:
            record = await stages.generate_prd(
                self.provider,
                refined_idea,
                context,
                stack,
                include_implementation=include_implementation,
                metrics=metrics,
            )
        except StageError:
            logger.exception("PRD generation failed for %s", project_id)
            raise

        step = project.step(StepKind.PRD_GENERATION)
        patch = {"prdData": record.to_dict(), "prdText": render_markdown(record)}
        return self._saved(
            self.pipeline.update_content(project_id, step.id, patch), project_id
        )

    async def regenerate_section(self, project_id: str, key: str) -> Project:
        """Regenerate one PRD section, keeping every other section.

        Raises:
            StageInputError: If refinement is not complete or the key is unknown.
            RewindDeclined: If step 4 is finished and the rewind was refused.
            StageError: If the call fails; nothing is written.
        """
        project = self._require(project_id)
        self._require_completed(project, StepKind.IDEA_REFINEMENT)
        project = self._guard_edit(project, StepKind.PRD_GENERATION)
        project = self._begin(project, StepKind.PRD_GENERATION)
        metrics = self.metrics_for(project_id)
        self._check_budget(metrics)

        refined_idea, context, stack = self._prd_inputs(project)
        try:
            value = await stages.regenerate_section(
                self.provider, key, refined_idea, context, stack, metrics=metrics
            )
        except StageError:
            logger.exception("Regenerating %s failed for %s", key, project_id)
            raise

        step = project.step(StepKind.PRD_GENERATION)
        record = normalize_prd(step.content.get("prdData") or {})
        apply_section(record, key, value)
        patch = {"prdData": record.to_dict(), "prdText": render_markdown(record)}
        return self._saved(
            self.pipeline.update_content(project_id, step.id, patch), project_id
        )

    def accept_prd(self, project_id: str) -> Project:
        """Complete step 4 once a PRD exists.

        Raises:
            StageInputError: If no PRD has been generated.
        """
        project = self._require(project_id)
        step = project.step(StepKind.PRD_GENERATION)
        if not step.content.get("prdData"):
            raise StageInputError("Generate the PRD first")
        if step.status is StepStatus.COMPLETED:
            return project
        return self._saved(self.pipeline.advance(project_id, step.id), project_id)

    # ─── Stage 5: finalization ───────────────────────────────────────────

    async def finalize(self, project_id: str) -> Project:
        """Render the final document and getting-started prompt into step 5.

        Completes step 4 first when it is still under review.

        Raises:
            StageInputError: If no PRD has been generated.
            StageError: If the getting-started call fails; nothing is written.
            BudgetExceededError: If the configured budget is used up.
        """
        project = self.accept_prd(project_id)
        project = self._guard_edit(project, StepKind.PROJECT_FINALIZATION)
        project = self._begin(project, StepKind.PROJECT_FINALIZATION)
        metrics = self.metrics_for(project_id)
        self._check_budget(metrics)

        record = normalize_prd(
            project.step(StepKind.PRD_GENERATION).content.get("prdData") or {}
        )
        logger.info("Finalizing %s", project_id)
        try:
            result = await stages.finalize(self.provider, record, metrics=metrics)
        except StageError:
            logger.exception("Finalization failed for %s", project_id)
            raise

        step = project.step(StepKind.PROJECT_FINALIZATION)
        patch = {
            "gettingStartedPrompt": result.getting_started_prompt,
            "markdownContent": result.markdown,
            "completedAt": datetime.now(UTC).isoformat(),
        }
        return self._saved(
            self.pipeline.advance(project_id, step.id, patch), project_id
        )

    def export_markdown(self, project_id: str, directory: Path | None = None) -> Path:
        """Write the PRD Markdown to disk.

        Uses the finalized document when there is one, otherwise renders the
        current PRD.

        Raises:
            StageInputError: If no PRD has been generated.
        """
        project = self._require(project_id)
        content = project.step(StepKind.PROJECT_FINALIZATION).content.get(
            "markdownContent"
        )
        if not content:
            prd_data = project.step(StepKind.PRD_GENERATION).content.get("prdData")
            if not prd_data:
                raise StageInputError("Generate the PRD first")
            content = render_markdown(normalize_prd(prd_data))
        target = directory or get_paths().exports_dir
        path = export_markdown(content, target, markdown_filename(project.name))
        logger.info("Exported PRD for %s to %s", project_id, path)
        return path
