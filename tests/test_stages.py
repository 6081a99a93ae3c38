"""Tests for the generation stage functions."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from specforge.models.prd import (
    NO_IDEA_SELECTED,
    NOT_SPECIFIED,
    AnalysisResult,
    DefaultTechStack,
    PRDRecord,
    TechStack,
    TechStackRecommendation,
)
from specforge.orchestration import stages
from specforge.orchestration.types import StageError, StageInputError

IDEAS = json.dumps({"ideas": ["A", "B"]})
STACK = json.dumps(
    {
        "bestIdea": "A",
        "frontend": "React",
        "backend": "Node",
        "database": "Postgres",
        "hosting": "Vercel",
    }
)
SUMMARY = json.dumps({"elevatorPitch": "Pitch", "summary": "Summary"})
PERSONAS = json.dumps({"personas": [{"name": "Sam", "role": "Freelancer"}]})
FEATURES = json.dumps({"features": [{"name": "Lists", "priority": "must"}]})
TECH = json.dumps({"frontend": "Svelte", "backend": "Go"})
UI = json.dumps({"principles": ["Calm"], "palette": "blue", "screens": "Home"})
PLAN = json.dumps({"timeline": [{"phase": "MVP", "duration": "2w"}]})


class TestBuildContext:
    """Tests for build_context."""

    def test_appends_files_and_truncates(self, tmp_path: Path) -> None:
        notes = tmp_path / "notes.md"
        notes.write_text("file body")

        assert stages.build_context("text", [notes]) == "text\n\nfile body"
        assert stages.build_context("abcdef", [], limit=3) == "abc"

    def test_unreadable_file_is_skipped(self, tmp_path: Path) -> None:
        context = stages.build_context("text", [tmp_path / "missing.md"])

        assert context == "text"


class TestAnalyzeInput:
    """Tests for analyze_input."""

    def test_ideas_and_stack(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([IDEAS, STACK])

        result = asyncio.run(stages.analyze_input(provider, "Build a todo app"))

        assert result.ideas == ["A", "B"]
        assert result.tech_stack == TechStackRecommendation(
            best_idea="A",
            frontend="React",
            backend="Node",
            database="Postgres",
            hosting="Vercel",
        )
        assert "Build a todo app" in provider.prompts[0]
        assert '["A", "B"]' in provider.prompts[1]

    def test_preferences_override_model_choice(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([IDEAS, STACK])
        defaults = DefaultTechStack(frontend="Vue", additional="Tailwind")

        result = asyncio.run(stages.analyze_input(provider, "ctx", defaults))

        assert result.tech_stack.frontend == "Vue"
        assert result.tech_stack.backend == "Node"
        assert "- frontend: Vue" in provider.prompts[1]
        assert "- additional: Tailwind" in provider.prompts[1]

    def test_missing_fields_get_defaults(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls(['{"ideas": "Only one"}', "{}"])

        result = asyncio.run(stages.analyze_input(provider, "ctx"))

        assert result.ideas == ["Only one"]
        assert result.tech_stack.best_idea == NO_IDEA_SELECTED
        assert result.tech_stack.hosting == NOT_SPECIFIED

    def test_blank_context_makes_no_call(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([])

        with pytest.raises(StageInputError):
            asyncio.run(stages.analyze_input(provider, "   "))

        assert provider.prompts == []

    def test_malformed_output_is_stage_error(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls(["Sorry, no JSON today"])

        with pytest.raises(StageError) as exc_info:
            asyncio.run(stages.analyze_input(provider, "ctx"))

        assert exc_info.value.stage == "analysis-ideas"
        assert exc_info.value.__cause__ is not None


class TestSelectionAndRefinement:
    """Tests for select_idea, initial_refinement and apply_default_tech_stack."""

    def setup_method(self) -> None:
        self.analysis = AnalysisResult(
            ideas=["A", "B"],
            tech_stack=TechStackRecommendation(best_idea="A", frontend="React"),
        )

    def test_select_by_index(self) -> None:
        selection = stages.select_idea(self.analysis, index=1)

        assert selection["selectedIdea"] == "B"
        assert selection["analysis"]["ideas"] == ["A", "B"]

    def test_select_by_text(self) -> None:
        assert stages.select_idea(self.analysis, idea=" A ")["selectedIdea"] == "A"

    def test_custom_idea_needs_permission(self) -> None:
        with pytest.raises(StageInputError):
            stages.select_idea(self.analysis, idea="C")

        selection = stages.select_idea(self.analysis, idea="C", allow_custom=True)
        assert selection["selectedIdea"] == "C"

    @pytest.mark.parametrize("index", [-1, 2])
    def test_index_out_of_range(self, index: int) -> None:
        with pytest.raises(StageInputError):
            stages.select_idea(self.analysis, index=index)

    def test_nothing_chosen(self) -> None:
        with pytest.raises(StageInputError):
            stages.select_idea(self.analysis, idea="  ")

    def test_initial_refinement_copies_selection(self) -> None:
        selection = stages.select_idea(self.analysis, index=0)

        refinement = stages.initial_refinement(selection)

        assert refinement["refinedIdea"] == "A"
        assert refinement["refinedTechStack"]["frontend"] == "React"
        assert refinement["refinedTechStack"]["backend"] == NOT_SPECIFIED

    def test_apply_default_tech_stack(self) -> None:
        stack = stages.apply_default_tech_stack(
            {"frontend": "React", "backend": "Node"},
            DefaultTechStack(backend="Django", additional="Redis"),
        )

        assert stack == {
            "frontend": "React",
            "backend": "Django",
            "database": NOT_SPECIFIED,
            "hosting": NOT_SPECIFIED,
        }


class TestGeneratePrd:
    """Tests for generate_prd and regenerate_section."""

    def test_full_prd_asks_for_tech_stack_when_unspecified(
        self, fake_provider_cls: type
    ) -> None:
        provider = fake_provider_cls([SUMMARY, PERSONAS, FEATURES, TECH, UI])

        record = asyncio.run(stages.generate_prd(provider, "A todo app", "ctx"))

        assert record.summary.elevator_pitch == "Pitch"
        assert record.personas[0].name == "Sam"
        assert record.features[0].priority == "High"
        assert record.tech_stack.frontend == "Svelte"
        assert record.ui_design.palette == {"colors": "blue"}
        assert record.implementation is None
        assert len(provider.prompts) == 5

    def test_refined_stack_skips_tech_stack_call(
        self, fake_provider_cls: type
    ) -> None:
        provider = fake_provider_cls([SUMMARY, PERSONAS, FEATURES, UI, PLAN])
        stack = TechStack(frontend="React", backend="Node")

        record = asyncio.run(
            stages.generate_prd(
                provider, "A todo app", "ctx", stack, include_implementation=True
            )
        )

        assert record.tech_stack == stack
        assert record.implementation is not None
        assert record.implementation.timeline[0].phase == "MVP"
        assert "Frontend: React" in provider.prompts[-1]
        assert len(provider.prompts) == 5

    def test_failure_returns_nothing(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([SUMMARY, ValueError("bad request")])

        with pytest.raises(StageError) as exc_info:
            asyncio.run(stages.generate_prd(provider, "A todo app", "ctx"))

        assert exc_info.value.stage == "prd-personas"

    def test_blank_idea(self, fake_provider_cls: type) -> None:
        with pytest.raises(StageInputError):
            asyncio.run(stages.generate_prd(fake_provider_cls([]), " ", "ctx"))

    def test_regenerate_section(self, fake_provider_cls: type) -> None:
        provider = fake_provider_cls([FEATURES])

        value = asyncio.run(
            stages.regenerate_section(provider, "features", "A todo app", "ctx")
        )

        assert value[0].name == "Lists"

    def test_regenerate_unknown_section(self, fake_provider_cls: type) -> None:
        with pytest.raises(StageInputError):
            asyncio.run(
                stages.regenerate_section(
                    fake_provider_cls([]), "fileStructure", "idea", "ctx"
                )
            )


class TestFinalize:
    """Tests for the finalization stage."""

    def test_finalize_renders_and_prompts(
        self, fake_provider_cls: type, sample_record: PRDRecord
    ) -> None:
        provider = fake_provider_cls(["  Build a todo app with React.  "])

        result = asyncio.run(stages.finalize(provider, sample_record))

        assert result.getting_started_prompt == "Build a todo app with React."
        assert result.markdown.startswith("# Product Requirements Document")
        assert provider.json_modes == [False]
        assert "Project Summary:" in provider.prompts[0]

    def test_empty_prompt_is_error(
        self, fake_provider_cls: type, sample_record: PRDRecord
    ) -> None:
        with pytest.raises(StageError):
            asyncio.run(stages.finalize(fake_provider_cls(["   "]), sample_record))
