from __future__ import annotations

import copy
from collections.abc import Iterator
from pathlib import Path

import pytest

from specforge.config.paths import reset_paths
from specforge.config.settings import settings
from specforge.llm.providers.base import Completion, LLMProvider
from specforge.models.prd import (
    Feature,
    Implementation,
    Persona,
    PRDRecord,
    PRDSummary,
    ResourceAllocation,
    Screen,
    StakeholderUpdate,
    TechStack,
    TimelinePhase,
    UIDesign,
)
from specforge.models.store import ProjectStore


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Prevent tests from persisting settings to disk."""
    original_data = copy.deepcopy(settings._data)
    settings._data = {}

    def _noop_save() -> None:
        return None

    monkeypatch.setattr(settings, "_save", _noop_save)
    try:
        yield
    finally:
        settings._data = original_data
        reset_paths()


@pytest.fixture
def store(tmp_path: Path) -> ProjectStore:
    return ProjectStore(tmp_path / "projects")


class FakeProvider(LLMProvider):
    """Provider that replays queued responses and records prompts."""

    provider_name = "fake"

    def __init__(self, responses: list[str | Exception] | None = None) -> None:
        super().__init__(model="fake-model")
        self.responses: list[str | Exception] = list(responses or [])
        self.prompts: list[str] = []
        self.systems: list[str] = []
        self.json_modes: list[bool] = []
        self.sleeps: list[float] = []

    async def _complete_once(
        self,
        prompt: str,
        system: str,
        json_mode: bool,
        temperature: float | None,
    ) -> Completion:
        self.prompts.append(prompt)
        self.systems.append(system)
        self.json_modes.append(json_mode)
        if not self.responses:
            raise AssertionError("FakeProvider ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return Completion(text=response, cost_usd=0.01, tokens_in=10, tokens_out=5)

    async def _sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


@pytest.fixture
def fake_provider_cls() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def sample_record() -> PRDRecord:
    """A fully populated PRD record with an implementation plan."""
    return PRDRecord(
        summary=PRDSummary(
            elevator_pitch="Todo lists that plan your day.",
            summary="A todo app that orders tasks by deadline.",
        ),
        personas=[
            Persona(
                name="Sam",
                role="Freelancer",
                goals=["Meet deadlines"],
                frustrations=["Too many apps"],
            )
        ],
        features=[
            Feature(name="Smart list", description="Sorted by due date", priority="High"),
            Feature(name="Sharing", description="Share a list", priority="Low"),
        ],
        tech_stack=TechStack(
            frontend="React", backend="FastAPI", database="Postgres", hosting="Fly.io"
        ),
        ui_design=UIDesign(
            principles=["Calm", "Fast"],
            palette={"primary": "#1E88E5"},
            screens=[Screen(name="Today", description="Tasks due today")],
        ),
        implementation=Implementation(
            timeline=[
                TimelinePhase(
                    phase="MVP",
                    duration="4 weeks",
                    description="Core lists",
                    deliverables=["Web app"],
                )
            ],
            resources=[
                ResourceAllocation(
                    role="Engineer", commitment="Full-time", responsibilities=["Build"]
                )
            ],
            stakeholders=[
                StakeholderUpdate(
                    stakeholder="Founders",
                    communication="Email",
                    frequency="Weekly",
                    deliverables=["Progress report"],
                )
            ],
        ),
    )
