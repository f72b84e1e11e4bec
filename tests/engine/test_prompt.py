"""Tests for tool instruction rendering."""

from __future__ import annotations

import pytest

from cipherstudio.engine.execution.prompt import channel_title, render_instructions
from cipherstudio.engine.models.enums import ToolKind


def test_explain_instructions() -> None:
    instructions = render_instructions(ToolKind.EXPLAIN, language="Go", path="/main.go", code="package main")

    assert instructions.prompt == "Explain the following code from file /main.go:\n\n```package main```"
    assert "written in Go" in instructions.system
    assert "(Go//main.go)" in instructions.system


def test_convert_instructions_name_both_languages() -> None:
    instructions = render_instructions(
        ToolKind.CONVERT,
        language="Python",
        path="/main.py",
        code="x = 1",
        target="Rust",
    )
    assert instructions.prompt.startswith("Convert the following code from Python to Rust:")
    assert "```Rust...```" in instructions.system


def test_simulation_prompt_fences_code() -> None:
    instructions = render_instructions(
        ToolKind.SIMULATE_EXECUTION,
        language="Java",
        path="/Main.java",
        code="class Main {}",
    )
    assert instructions.prompt.endswith("```Java\nclass Main {}\n```")
    assert instructions.system.startswith("You are a terminal emulator for Java.")


def test_code_is_not_escaped() -> None:
    code = "if a < b && c > d: print('<tag>')"
    instructions = render_instructions(ToolKind.REVIEW, language="Python", path="/main.py", code=code)
    assert code in instructions.prompt


@pytest.mark.parametrize(
    ("kind", "target", "expected"),
    [
        (ToolKind.EXPLAIN, None, "Code Explanation"),
        (ToolKind.REVIEW, None, "Code Review"),
        (ToolKind.GENERATE, None, "Code Generation"),
        (ToolKind.CONVERT, "C#", "Code Conversion to C#"),
        (ToolKind.SIMULATE_EXECUTION, None, "Output"),
    ],
)
def test_channel_titles(kind: ToolKind, target: str | None, expected: str) -> None:
    assert channel_title(kind, target=target) == expected
