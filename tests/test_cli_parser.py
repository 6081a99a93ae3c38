from __future__ import annotations

from pathlib import Path

import pytest

from specforge.cli.parser import parse_args


def test_parse_args_defaults_to_tui_mode() -> None:
    args = parse_args([])
    assert args.command is None
    assert args.workdir is None


def test_parse_args_analyze_with_files() -> None:
    args = parse_args(
        ["analyze", "p1", "-t", "Build a todo app", "-f", "a.md", "-f", "b.txt"]
    )
    assert args.command == "analyze"
    assert args.project == "p1"
    assert args.text == "Build a todo app"
    assert args.files == [Path("a.md"), Path("b.txt")]
    assert args.yes is False


def test_parse_args_select_requires_a_choice() -> None:
    with pytest.raises(SystemExit):
        _ = parse_args(["select", "p1"])

    args = parse_args(["select", "p1", "--index", "2", "--yes"])
    assert args.index == 2
    assert args.idea is None
    assert args.yes is True


def test_parse_args_select_rejects_both_choices() -> None:
    with pytest.raises(SystemExit):
        _ = parse_args(["select", "p1", "--index", "1", "--idea", "A"])


def test_parse_args_refine_tech_stack() -> None:
    args = parse_args(
        ["refine", "p1", "--frontend", "Vue", "--use-defaults", "--complete"]
    )
    assert args.frontend == "Vue"
    assert args.backend is None
    assert args.use_defaults is True
    assert args.complete is True


def test_parse_args_generate_implementation_is_tri_state() -> None:
    assert parse_args(["generate", "p1"]).with_implementation is None
    assert parse_args(["generate", "p1", "--with-implementation"]).with_implementation


def test_parse_args_regenerate_rejects_unknown_section() -> None:
    assert parse_args(["regenerate", "p1", "techStack"]).section == "techStack"
    with pytest.raises(SystemExit):
        _ = parse_args(["regenerate", "p1", "fileStructure"])


def test_parse_args_show_step_range() -> None:
    assert parse_args(["show", "p1", "--step", "5"]).step == 5
    with pytest.raises(SystemExit):
        _ = parse_args(["show", "p1", "--step", "6"])


def test_parse_args_settings() -> None:
    args = parse_args(
        [
            "settings",
            "--provider",
            "anthropic",
            "--budget",
            "5",
            "--no-include-implementation",
        ]
    )
    assert args.provider == "anthropic"
    assert args.budget == 5.0
    assert args.include_implementation is False

    with pytest.raises(SystemExit):
        _ = parse_args(["settings", "--provider", "gemini"])


def test_parse_args_export_output() -> None:
    args = parse_args(["-w", "work", "export", "p1", "-o", "out"])
    assert args.workdir == Path("work")
    assert args.output == Path("out")


def test_parse_args_edit_assignments() -> None:
    args = parse_args(
        [
            "edit",
            "p1",
            "3",
            "--set",
            "refinedIdea=Shared lists",
            "--set",
            'refinedTechStack={"frontend": "Vue"}',
        ]
    )
    assert args.command == "edit"
    assert args.step == 3
    assert args.assignments == [
        ("refinedIdea", "Shared lists"),
        ("refinedTechStack", {"frontend": "Vue"}),
    ]


@pytest.mark.parametrize("value", ["novalue", "=x"])
def test_parse_args_edit_rejects_bad_assignment(value: str) -> None:
    with pytest.raises(SystemExit):
        _ = parse_args(["edit", "p1", "1", "--set", value])
