from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from specforge.config.settings import (
    DEFAULT_CONTEXT_LIMIT,
    DEFAULT_MODELS,
    TECH_STACK_FIELDS,
    settings,
)


def test_settings_do_not_write_to_disk(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    settings_path = tmp_path / "settings.json"
    settings_module = importlib.import_module("specforge.config.settings")
    monkeypatch.setattr(settings_module, "get_settings_path", lambda: settings_path)

    settings.project_directory = tmp_path

    assert settings.get("project_directory") == str(tmp_path)
    assert settings.project_directory == tmp_path.resolve()
    assert not settings_path.exists()


def test_llm_budget_round_trip() -> None:
    settings.llm_budget_usd = 25.0
    assert settings.llm_budget_usd == pytest.approx(25.0)

    settings.llm_budget_usd = None
    assert settings.llm_budget_usd is None


@pytest.mark.parametrize("raw", ["not-a-number", 0, -5, ""])
def test_llm_budget_invalid_data_is_ignored(raw: object) -> None:
    settings._data["llm"] = {"budget_usd": raw}
    assert settings.llm_budget_usd is None


def test_model_follows_provider_until_set() -> None:
    assert settings.llm_provider == "openai"
    assert settings.llm_model == DEFAULT_MODELS["openai"]

    settings.llm_provider = "anthropic"
    assert settings.llm_model == DEFAULT_MODELS["anthropic"]

    settings.llm_model = "claude-custom"
    assert settings.llm_model == "claude-custom"


def test_api_key_prefers_settings_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")
    assert settings.openai_api_key == "from-env"

    settings.openai_api_key = "from-settings"
    assert settings.openai_api_key == "from-settings"

    settings.openai_api_key = None
    assert settings.openai_api_key == "from-env"


def test_default_tech_stack_has_every_field() -> None:
    assert settings.default_tech_stack == {name: "" for name in TECH_STACK_FIELDS}

    settings.default_tech_stack = {"frontend": " Vue ", "mobile": "Flutter"}

    stack = settings.default_tech_stack
    assert stack["frontend"] == "Vue"
    assert "mobile" not in stack
    assert set(stack) == set(TECH_STACK_FIELDS)


def test_context_limit_falls_back_on_bad_values() -> None:
    assert settings.context_limit_chars == DEFAULT_CONTEXT_LIMIT

    settings.context_limit_chars = 500
    assert settings.context_limit_chars == 500

    settings._data["context_limit_chars"] = "lots"
    assert settings.context_limit_chars == DEFAULT_CONTEXT_LIMIT


def test_include_implementation_defaults_off() -> None:
    assert settings.include_implementation is False

    settings.include_implementation = True
    assert settings.include_implementation is True
    assert settings.use_web_auth is True
