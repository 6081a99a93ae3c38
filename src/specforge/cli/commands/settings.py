"""Settings command: preferred tech stack and LLM options."""

from __future__ import annotations

import argparse
import json

from specforge.config.settings import TECH_STACK_FIELDS, settings


def _masked(key: str | None) -> str | None:
    if not key:
        return None
    return f"{key[:4]}…{key[-4:]}" if len(key) > 12 else "set"


def _current() -> dict[str, object]:
    return {
        "project_directory": str(settings.project_directory),
        "llm": {
            "provider": settings.llm_provider,
            "model": settings.llm_model,
            "budget_usd": settings.llm_budget_usd,
            "openai_api_key": _masked(settings.openai_api_key),
            "anthropic_api_key": _masked(settings.anthropic_api_key),
            "use_web_auth": settings.use_web_auth,
        },
        "default_tech_stack": settings.default_tech_stack,
        "context_limit_chars": settings.context_limit_chars,
        "prd": {"include_implementation": settings.include_implementation},
    }


def cmd_settings(args: argparse.Namespace) -> int:
    """Update preferences from flags, then print them when asked."""
    stack_updates = {
        name: value
        for name in TECH_STACK_FIELDS
        if (value := getattr(args, name, None)) is not None
    }
    if stack_updates:
        settings.default_tech_stack = {**settings.default_tech_stack, **stack_updates}
    if args.provider is not None:
        settings.llm_provider = args.provider
    if args.model is not None:
        settings.llm_model = args.model
    if args.budget is not None:
        settings.llm_budget_usd = args.budget
    if args.context_limit is not None:
        settings.context_limit_chars = args.context_limit
    if args.include_implementation is not None:
        settings.include_implementation = args.include_implementation

    changed = bool(stack_updates) or any(
        value is not None
        for value in (
            args.provider,
            args.model,
            args.budget,
            args.context_limit,
            args.include_implementation,
        )
    )
    if args.show or not changed:
        print(json.dumps(_current(), indent=2, ensure_ascii=False))
    return 0
