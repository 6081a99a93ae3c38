"""Settings modal for provider and generation preferences."""

import logging

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static, Switch

from specforge.config import get_settings_path, settings
from specforge.config.settings import DEFAULT_MODELS, TECH_STACK_FIELDS

logger = logging.getLogger(__name__)

PROVIDER_OPTIONS = [
    ("OpenAI (GPT)", "openai"),
    ("Anthropic (Claude)", "anthropic"),
]


def parse_budget(value: str) -> float | None:
    """Parse the budget field. Blank means no limit.

    Raises:
        ValueError: If the value is not a non-negative number.
    """
    text = value.strip().lstrip("$")
    if not text:
        return None
    budget = float(text)
    if budget < 0:
        raise ValueError("Budget cannot be negative")
    return budget


class SettingsModal(ModalScreen[None]):
    """Modal for viewing and editing application settings."""

    BINDINGS = [
        Binding("escape", "close", "Close", show=True),
    ]

    DEFAULT_CSS = """
    SettingsModal {
        align: center middle;
    }

    SettingsModal > Vertical {
        width: 70;
        max-width: 90%;
        height: auto;
        max-height: 85%;
        background: $surface;
        border: solid $primary;
        padding: 1 2;
    }

    SettingsModal .modal-title {
        text-align: center;
        text-style: bold;
        padding-bottom: 1;
        border-bottom: solid $surface-lighten-1;
        margin-bottom: 1;
    }

    SettingsModal .settings-scroll {
        height: auto;
        max-height: 30;
    }

    SettingsModal .section-header {
        text-style: bold;
        color: $primary;
        margin-top: 1;
    }

    SettingsModal .setting-label {
        margin-top: 1;
        color: $text-muted;
    }

    SettingsModal .toggle-row {
        height: auto;
        align: left middle;
        margin-top: 1;
    }

    SettingsModal .toggle-row Label {
        margin-right: 2;
    }

    SettingsModal .file-path {
        color: $text-disabled;
        text-style: italic;
        padding: 1 0 0 0;
        text-align: center;
    }

    SettingsModal .button-row {
        padding-top: 1;
        align: center middle;
        height: auto;
    }

    SettingsModal .button-row Button {
        margin: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        budget = settings.llm_budget_usd
        defaults = settings.default_tech_stack
        with Vertical():
            yield Static("Settings", classes="modal-title")

            with VerticalScroll(classes="settings-scroll"):
                yield Static("Model", classes="section-header")
                yield Static("Provider", classes="setting-label")
                yield Select(
                    PROVIDER_OPTIONS,
                    value=settings.llm_provider,
                    allow_blank=False,
                    id="provider-select",
                )
                yield Static("Model", classes="setting-label")
                yield Input(value=settings.llm_model, id="model-input")
                yield Static("Budget in USD (blank for none)", classes="setting-label")
                yield Input(
                    value="" if budget is None else str(budget), id="budget-input"
                )
                with Horizontal(classes="toggle-row", id="web-auth-row"):
                    yield Label("Anthropic web auth")
                    yield Switch(value=settings.use_web_auth, id="web-auth-switch")
                yield Static("API key", classes="setting-label")
                yield Input(password=True, placeholder="Unchanged", id="api-key-input")

                yield Static("Preferred Tech Stack", classes="section-header")
                for name in TECH_STACK_FIELDS:
                    yield Static(name.capitalize(), classes="setting-label")
                    yield Input(value=defaults[name], id=f"default-{name}")

                yield Static("PRD", classes="section-header")
                with Horizontal(classes="toggle-row"):
                    yield Label("Include implementation plan")
                    yield Switch(
                        value=settings.include_implementation,
                        id="implementation-switch",
                    )

            yield Static(f"Settings file: {get_settings_path()}", classes="file-path")

            with Horizontal(classes="button-row"):
                yield Button("Save", id="btn-save", variant="primary")
                yield Button("Close", id="btn-close")

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "provider-select":
            return
        # Swap the model for the new provider's default unless it was customized
        model_input = self.query_one("#model-input", Input)
        if model_input.value in DEFAULT_MODELS.values():
            model_input.value = DEFAULT_MODELS.get(str(event.value), model_input.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save" and not self._save_settings():
            return
        self.dismiss(None)

    def _save_settings(self) -> bool:
        """Save all settings. Returns False if a field is invalid."""
        try:
            budget = parse_budget(self.query_one("#budget-input", Input).value)
        except ValueError:
            self.notify("Budget must be a positive number", severity="error")
            return False

        provider = str(self.query_one("#provider-select", Select).value)
        settings.llm_provider = provider
        model = self.query_one("#model-input", Input).value.strip()
        if model:
            settings.llm_model = model
        settings.llm_budget_usd = budget
        settings.use_web_auth = self.query_one("#web-auth-switch", Switch).value

        # Only save a key that was typed, so env vars stay in charge otherwise
        api_key = self.query_one("#api-key-input", Input).value.strip()
        if api_key and provider == "anthropic":
            settings.anthropic_api_key = api_key
        elif api_key:
            settings.openai_api_key = api_key

        settings.default_tech_stack = {
            name: self.query_one(f"#default-{name}", Input).value
            for name in TECH_STACK_FIELDS
        }
        settings.include_implementation = self.query_one(
            "#implementation-switch", Switch
        ).value

        self.notify("Settings saved", severity="information")
        logger.info(
            "Settings saved: provider=%s, model=%s", settings.llm_provider, model
        )
        return True

    def action_close(self) -> None:
        self.dismiss(None)
