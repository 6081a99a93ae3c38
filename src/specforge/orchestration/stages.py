"""Generation stage functions.

Each stage is an async transform from prior content to new content. None
of them touch the project store; the PipelineCoordinator decides what is
persisted and when. Stages that call the model raise StageError when the
call fails or the reply cannot be parsed, and StageInputError before any
call when their input is unusable.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from specforge.config.settings import DEFAULT_CONTEXT_LIMIT
from specforge.llm.json_output import extract_json_object
from specforge.llm.prompts import (
    ANALYSIS_TEMPERATURE,
    GETTING_STARTED_PROMPT,
    GETTING_STARTED_SYSTEM_PROMPT,
    IDEA_GENERATION_PROMPT,
    IDEA_SYSTEM_PROMPT,
    PRD_SYSTEM_PROMPT,
    PRD_TEMPERATURE,
    TECH_STACK_PROMPT,
    TECH_STACK_SYSTEM_PROMPT,
    build_section_prompt,
    format_preferences,
)
from specforge.llm.providers.base import LLMProvider
from specforge.models.prd import (
    NO_IDEA_SELECTED,
    AnalysisResult,
    DefaultTechStack,
    PRDRecord,
    TechStack,
    TechStackRecommendation,
)
from specforge.orchestration.types import (
    FinalizationResult,
    StageError,
    StageInputError,
)
from specforge.prd.normalizer import (
    SECTION_KEYS,
    apply_section,
    as_text,
    as_text_list,
    coerce_tech_stack,
    normalize_section,
)
from specforge.prd.renderer import render_markdown, render_prompt_context

if TYPE_CHECKING:
    from specforge.llm.metrics import MetricsCollector

logger = logging.getLogger(__name__)

# Sections generated, in order, by a full PRD run
PRD_SECTION_ORDER = ("summary", "personas", "features", "techStack", "uiDesign")


# ─── Shared helpers ──────────────────────────────────────────────────────


def build_context(
    text: str, files: Iterable[Path] = (), limit: int = DEFAULT_CONTEXT_LIMIT
) -> str:
    """Join the user's text with attached file contents.

    Files are appended after a blank line each; files that cannot be read
    are skipped with a warning. The result is cut to ``limit`` characters.
    """
    combined = text
    for path in files:
        try:
            combined += "\n\n" + Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s, skipping: %s", path, e)
    if len(combined) > limit:
        logger.info("Context truncated from %d to %d chars", len(combined), limit)
    return combined[:limit]


async def _request_json(
    provider: LLMProvider,
    prompt: str,
    *,
    system: str,
    temperature: float,
    phase: str,
    metrics: "MetricsCollector | None",
) -> dict[str, Any]:
    try:
        completion = await provider.complete(
            prompt,
            system,
            json_mode=True,
            temperature=temperature,
            metrics_collector=metrics,
            phase=phase,
        )
        return extract_json_object(completion.text)
    except Exception as e:
        raise StageError(phase, str(e)) from e


def describe_tech_stack(stack: TechStack) -> str:
    """One-line summary of a tech stack for prompts."""
    return (
        f"Frontend: {stack.frontend}; Backend: {stack.backend}; "
        f"Database: {stack.database}; Hosting: {stack.hosting}"
    )


# ─── Stage 1: input analysis ─────────────────────────────────────────────


async def analyze_input(
    provider: LLMProvider,
    context: str,
    default_tech_stack: DefaultTechStack | None = None,
    *,
    metrics: "MetricsCollector | None" = None,
) -> AnalysisResult:
    """Generate candidate ideas and a recommended tech stack.

    Two sequential calls: ideas first, then a tech stack conditioned on those
    ideas and on the user's preferred technologies. Non-empty preferences
    replace whatever the model suggested for that field.

    Args:
        provider: Text-generation provider.
        context: Combined user text and file contents (see build_context).
        default_tech_stack: The user's preferred technologies, if any.
        metrics: Optional metrics collector for cost tracking.

    Returns:
        The analysis result.

    Raises:
        StageInputError: If the context is blank.
        StageError: If either call fails.
    """
    if not context.strip():
        raise StageInputError("Nothing to analyze: provide a description or files")
    defaults = default_tech_stack or DefaultTechStack()

    logger.info("Analyzing input (%d chars)", len(context))
    idea_data = await _request_json(
        provider,
        IDEA_GENERATION_PROMPT.format(context=context),
        system=IDEA_SYSTEM_PROMPT,
        temperature=ANALYSIS_TEMPERATURE,
        phase="analysis-ideas",
        metrics=metrics,
    )
    ideas = as_text_list(idea_data.get("ideas"))
    logger.info("Generated %d ideas", len(ideas))

    stack_prompt = TECH_STACK_PROMPT.format(
        context=context,
        ideas=json.dumps(ideas),
        preferences=format_preferences(defaults.to_dict()),
    )
    stack_data = await _request_json(
        provider,
        stack_prompt,
        system=TECH_STACK_SYSTEM_PROMPT,
        temperature=ANALYSIS_TEMPERATURE,
        phase="analysis-tech-stack",
        metrics=metrics,
    )

    suggested = coerce_tech_stack(stack_data)
    best_idea = stack_data.get("bestIdea", stack_data.get("best_idea"))
    recommendation = TechStackRecommendation(
        best_idea=as_text(best_idea, NO_IDEA_SELECTED),
        **{**suggested.to_dict(), **defaults.overrides()},
    )
    return AnalysisResult(ideas=ideas, tech_stack=recommendation)


# ─── Stage 2: idea selection ─────────────────────────────────────────────


def select_idea(
    analysis: AnalysisResult,
    *,
    index: int | None = None,
    idea: str | None = None,
    allow_custom: bool = False,
) -> dict[str, Any]:
    """Pick one of the analysis ideas.

    Either ``index`` (0-based) or ``idea`` must be given. A free-text idea
    that is not among the analysis ideas is only accepted with
    ``allow_custom``.

    Raises:
        StageInputError: If nothing valid was chosen.
    """
    if index is not None:
        if not 0 <= index < len(analysis.ideas):
            raise StageInputError(
                f"Idea number {index + 1} does not exist "
                f"({len(analysis.ideas)} ideas available)"
            )
        selected = analysis.ideas[index]
    elif idea is not None and idea.strip():
        selected = idea.strip()
        if selected not in analysis.ideas and not allow_custom:
            raise StageInputError(f"Not one of the generated ideas: {selected!r}")
    else:
        raise StageInputError("Choose an idea to continue")
    return {"analysis": analysis.to_dict(), "selectedIdea": selected}


# ─── Stage 3: refinement ─────────────────────────────────────────────────


def initial_refinement(selection: dict[str, Any]) -> dict[str, Any]:
    """Seed the refinement step from the idea selection step's content."""
    analysis = AnalysisResult.from_dict(selection.get("analysis") or {})
    return {
        "refinedIdea": as_text(selection.get("selectedIdea")),
        "refinedTechStack": analysis.tech_stack.as_tech_stack().to_dict(),
    }


def apply_default_tech_stack(
    tech_stack: dict[str, Any], defaults: DefaultTechStack
) -> dict[str, Any]:
    """Overlay the user's non-empty preferred technologies."""
    stack = TechStack.from_dict(tech_stack)
    return {**stack.to_dict(), **defaults.overrides()}


# ─── Stage 4: PRD generation ─────────────────────────────────────────────


async def _generate_section(
    provider: LLMProvider,
    key: str,
    refined_idea: str,
    context: str,
    tech_stack: TechStack,
    metrics: "MetricsCollector | None",
) -> Any:
    prompt = build_section_prompt(
        key, refined_idea, context, describe_tech_stack(tech_stack)
    )
    raw = await _request_json(
        provider,
        prompt,
        system=PRD_SYSTEM_PROMPT,
        temperature=PRD_TEMPERATURE,
        phase=f"prd-{key}",
        metrics=metrics,
    )
    return normalize_section(key, raw)


async def generate_prd(
    provider: LLMProvider,
    refined_idea: str,
    context: str,
    refined_tech_stack: TechStack | None = None,
    *,
    include_implementation: bool = False,
    metrics: "MetricsCollector | None" = None,
) -> PRDRecord:
    """Generate a full PRD with one specialist call per section.

    The tech stack call is skipped when the refined stack names at least one
    technology; that stack is used as-is.

    Raises:
        StageInputError: If the refined idea is blank.
        StageError: If any section call fails. Nothing partial is returned.
    """
    if not refined_idea.strip():
        raise StageInputError("The refined idea is empty")
    stack = refined_tech_stack or TechStack()
    record = PRDRecord()

    sections = list(PRD_SECTION_ORDER)
    if include_implementation:
        sections.append("implementation")

    for key in sections:
        if key == "techStack" and stack.is_specified:
            logger.info("Using refined tech stack for PRD")
            record.tech_stack = TechStack.from_dict(stack.to_dict())
            continue
        logger.info("Generating PRD section %s", key)
        # The plan is drafted against the stack the PRD ended up with
        section_stack = record.tech_stack if key == "implementation" else stack
        value = await _generate_section(
            provider, key, refined_idea, context, section_stack, metrics
        )
        apply_section(record, key, value)
    return record


async def regenerate_section(
    provider: LLMProvider,
    key: str,
    refined_idea: str,
    context: str,
    refined_tech_stack: TechStack | None = None,
    *,
    metrics: "MetricsCollector | None" = None,
) -> Any:
    """Regenerate one PRD section.

    Returns:
        The normalized value for that slice of the record, ready for
        ``apply_section``.

    Raises:
        StageInputError: If the key is not a PRD section or the idea is blank.
        StageError: If the call fails.
    """
    if key not in SECTION_KEYS:
        raise StageInputError(
            f"Unknown PRD section {key!r}; expected one of {', '.join(SECTION_KEYS)}"
        )
    if not refined_idea.strip():
        raise StageInputError("The refined idea is empty")
    logger.info("Regenerating PRD section %s", key)
    return await _generate_section(
        provider,
        key,
        refined_idea,
        context,
        refined_tech_stack or TechStack(),
        metrics,
    )


# ─── Stage 5: finalization ───────────────────────────────────────────────


async def generate_getting_started(
    provider: LLMProvider,
    record: PRDRecord,
    *,
    metrics: "MetricsCollector | None" = None,
) -> str:
    """Ask the model for a coding-assistant kickoff prompt.

    Raises:
        StageError: If the call fails or returns nothing.
    """
    prompt = GETTING_STARTED_PROMPT.format(prd_context=render_prompt_context(record))
    try:
        completion = await provider.complete(
            prompt,
            GETTING_STARTED_SYSTEM_PROMPT,
            json_mode=False,
            temperature=PRD_TEMPERATURE,
            metrics_collector=metrics,
            phase="getting-started",
        )
    except Exception as e:
        raise StageError("getting-started", str(e)) from e
    text = completion.text.strip()
    if not text:
        raise StageError("getting-started", "the model returned an empty prompt")
    return text


async def finalize(
    provider: LLMProvider,
    record: PRDRecord,
    *,
    metrics: "MetricsCollector | None" = None,
) -> FinalizationResult:
    """Render the Markdown document and generate the getting-started prompt."""
    markdown = render_markdown(record)
    prompt = await generate_getting_started(provider, record, metrics=metrics)
    return FinalizationResult(markdown=markdown, getting_started_prompt=prompt)
