"""Configuration and settings persistence."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from specforge.config.paths import get_paths

logger = logging.getLogger(__name__)

TECH_STACK_FIELDS = ("frontend", "backend", "database", "hosting", "additional")

DEFAULT_CONTEXT_LIMIT = 16000

DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-sonnet-4-5-20250929",
}


def get_settings_path() -> Path:
    """Get the path to the settings file."""
    return get_paths().global_settings


class Settings:
    """Persistent settings for SpecForge."""

    _defaults: dict[str, Any] = {
        "context_limit_chars": DEFAULT_CONTEXT_LIMIT,
    }

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load settings from disk."""
        path = get_settings_path()
        if path.exists():
            try:
                self._data = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                self._data = {}
        else:
            self._data = {}

    def _save(self) -> None:
        """Save settings to disk."""
        path = get_settings_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            logger.info("Saved settings to %s", path)
        except OSError as e:
            logger.error("Failed to save settings: %s", e)

    def get(self, key: str) -> Any:
        """Get a setting value, falling back to default."""
        return self._data.get(key, self._defaults.get(key))

    def set(self, key: str, value: Any) -> None:
        """Set a setting value and persist to disk."""
        self._data[key] = value
        self._save()

    @property
    def project_directory(self) -> Path:
        """Get the projects directory path.

        Returns the configured project directory, or defaults to
        the centralized paths workspace projects directory.
        """
        saved = self._data.get("project_directory")
        if saved:
            return Path(saved).expanduser().resolve()
        return get_paths().projects_dir

    @project_directory.setter
    def project_directory(self, value: str | Path) -> None:
        """Set the projects directory."""
        self.set("project_directory", str(value))

    # --- LLM Provider Settings ---

    def _get_llm_settings(self) -> dict[str, Any]:
        raw = self._data.get("llm", {})
        if isinstance(raw, dict):
            return raw
        return {}

    @property
    def llm_provider(self) -> str:
        """Get the LLM provider name ('openai' or 'anthropic')."""
        return str(self._get_llm_settings().get("provider", "openai"))

    @llm_provider.setter
    def llm_provider(self, value: str) -> None:
        """Set the LLM provider."""
        llm = self._get_llm_settings()
        llm["provider"] = value
        self.set("llm", llm)

    @property
    def llm_model(self) -> str:
        """Get the LLM model name.

        Returns the configured model, or a default based on the provider.
        """
        llm = self._get_llm_settings()
        if llm.get("model"):
            return str(llm["model"])
        return DEFAULT_MODELS.get(self.llm_provider, DEFAULT_MODELS["openai"])

    @llm_model.setter
    def llm_model(self, value: str) -> None:
        """Set the LLM model name."""
        llm = self._get_llm_settings()
        llm["model"] = value
        self.set("llm", llm)

    @property
    def llm_budget_usd(self) -> float | None:
        """Get optional LLM budget cap in USD.

        Returns:
            Configured budget cap, or None when no cap is configured.
        """
        raw_value = self._get_llm_settings().get("budget_usd")
        if raw_value in (None, ""):
            return None
        try:
            value = float(raw_value)
        except (TypeError, ValueError):
            return None
        if value <= 0:
            return None
        return value

    @llm_budget_usd.setter
    def llm_budget_usd(self, value: float | None) -> None:
        """Set optional LLM budget cap in USD.

        Passing None or a non-positive value disables the cap.
        """
        llm = self._get_llm_settings()
        if value is None or value <= 0:
            llm.pop("budget_usd", None)
        else:
            llm["budget_usd"] = float(value)
        self.set("llm", llm)

    @property
    def openai_api_key(self) -> str | None:
        """Get OpenAI API key from settings or environment.

        Priority: settings > OPENAI_API_KEY env var
        """
        key = self._get_llm_settings().get("openai_api_key")
        if key:
            return str(key)
        return os.environ.get("OPENAI_API_KEY")

    @openai_api_key.setter
    def openai_api_key(self, value: str | None) -> None:
        """Set OpenAI API key in settings."""
        llm = self._get_llm_settings()
        if value:
            llm["openai_api_key"] = value
        else:
            llm.pop("openai_api_key", None)
        self.set("llm", llm)

    @property
    def anthropic_api_key(self) -> str | None:
        """Get Anthropic API key from settings or environment.

        Priority: settings > ANTHROPIC_API_KEY env var
        """
        key = self._get_llm_settings().get("anthropic_api_key")
        if key:
            return str(key)
        return os.environ.get("ANTHROPIC_API_KEY")

    @anthropic_api_key.setter
    def anthropic_api_key(self, value: str | None) -> None:
        """Set Anthropic API key in settings."""
        llm = self._get_llm_settings()
        if value:
            llm["anthropic_api_key"] = value
        else:
            llm.pop("anthropic_api_key", None)
        self.set("llm", llm)

    @property
    def use_web_auth(self) -> bool:
        """Whether to use web auth for Anthropic (default True).

        When True and no API key is set, the Anthropic provider uses
        browser-based authentication via Claude Agent SDK.
        """
        return bool(self._get_llm_settings().get("use_web_auth", True))

    @use_web_auth.setter
    def use_web_auth(self, value: bool) -> None:
        """Set web auth preference for Anthropic."""
        llm = self._get_llm_settings()
        llm["use_web_auth"] = value
        self.set("llm", llm)

    # --- Generation Settings ---

    @property
    def default_tech_stack(self) -> dict[str, str]:
        """Get the user's preferred technologies.

        Every field is present; unset fields are empty strings.
        """
        raw = self._data.get("default_tech_stack", {})
        if not isinstance(raw, dict):
            raw = {}
        return {name: str(raw.get(name) or "") for name in TECH_STACK_FIELDS}

    @default_tech_stack.setter
    def default_tech_stack(self, value: dict[str, str]) -> None:
        """Replace the preferred technologies, dropping unknown fields."""
        cleaned = {
            name: str(value.get(name) or "").strip() for name in TECH_STACK_FIELDS
        }
        self.set("default_tech_stack", cleaned)

    @property
    def context_limit_chars(self) -> int:
        """Maximum characters of project context sent with analysis prompts."""
        raw = self.get("context_limit_chars")
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return DEFAULT_CONTEXT_LIMIT
        return value if value > 0 else DEFAULT_CONTEXT_LIMIT

    @context_limit_chars.setter
    def context_limit_chars(self, value: int) -> None:
        self.set("context_limit_chars", int(value))

    @property
    def include_implementation(self) -> bool:
        """Whether full PRD generation also drafts an implementation plan."""
        prd = self._data.get("prd", {})
        if not isinstance(prd, dict):
            return False
        return bool(prd.get("include_implementation", False))

    @include_implementation.setter
    def include_implementation(self, value: bool) -> None:
        prd = self._data.get("prd", {})
        if not isinstance(prd, dict):
            prd = {}
        prd["include_implementation"] = value
        self.set("prd", prd)


# Global settings instance
settings = Settings()
