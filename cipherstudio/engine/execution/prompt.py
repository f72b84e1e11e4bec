"""Instruction rendering for tool channels (Jinja2 templates).

Every channel sends two texts to the inference service: a *system*
instruction that fixes the role and output format, and a *prompt* carrying
the user's code.  Both are Jinja2 templates rendered with:

- ``language``    : str        -- source language id (e.g. "Python")
- ``path``        : str        -- active file path
- ``code``        : str        -- active file content
- ``target``      : str | None -- conversion target language (convert only)
- ``description`` : str | None -- free-text request (generate only)
"""

from __future__ import annotations

from typing import NamedTuple

import jinja2

from cipherstudio.engine.models.enums import ToolKind

_SYSTEM_TEMPLATES: dict[ToolKind, str] = {
    ToolKind.EXPLAIN: (
        "You are a helpful programming tutor. Your task is to analyze the provided code snippet written in "
        "{{ language }} and explain its purpose, key components, and function flow in clear, easy-to-understand "
        "language. Focus on the context ({{ language }}/{{ path }}) and be concise."
    ),
    ToolKind.REVIEW: (
        "You are an expert code reviewer specializing in modern {{ language }} and software best practices. "
        "Analyze the provided code for potential improvements, bugs, or refactoring suggestions. Your response "
        "should be structured with markdown bullet points and code examples where applicable. If no issues are "
        'found, state "Code looks great! Ready for commit."'
    ),
    ToolKind.GENERATE: (
        "You are a top-tier software engineer specializing in {{ language }}. Generate a complete, self-contained "
        "code snippet based on the user's description. Enclose the code in a single markdown code block "
        "(e.g., ```{{ language }}...```). Do not include any text outside the markdown code block."
    ),
    ToolKind.CONVERT: (
        "You are an expert code translator. Your task is to accurately convert the provided code from "
        "{{ language }} to {{ target }}. The output must contain ONLY the converted code snippet, enclosed in a "
        "single markdown code block (e.g., ```{{ target }}...```). Do not include any explanatory text or "
        "commentary outside the markdown block."
    ),
    ToolKind.SIMULATE_EXECUTION: (
        "You are a terminal emulator for {{ language }}. Given the user's code, execute it mentally and provide "
        "the console output. Respond with ONLY the expected terminal output text. Do not provide code blocks, "
        "explanations, or commentary. If the code is complex, multi-file, or requires user input, respond with "
        '"Simulation too complex or interactive. Cannot determine output."'
    ),
}

_PROMPT_TEMPLATES: dict[ToolKind, str] = {
    ToolKind.EXPLAIN: "Explain the following code from file {{ path }}:\n\n```{{ code }}```",
    ToolKind.REVIEW: (
        "Review the following code from file {{ path }} in {{ language }} and suggest improvements:\n\n```{{ code }}```"
    ),
    ToolKind.GENERATE: "Generate code for the following in {{ language }}, suitable for file {{ path }}: {{ description }}",
    ToolKind.CONVERT: "Convert the following code from {{ language }} to {{ target }}:\n\n```{{ code }}```",
    ToolKind.SIMULATE_EXECUTION: (
        "Simulate the console output for the following {{ language }} code:\n\n```{{ language }}\n{{ code }}\n```"
    ),
}

_TITLES: dict[ToolKind, str] = {
    ToolKind.EXPLAIN: "Code Explanation",
    ToolKind.REVIEW: "Code Review",
    ToolKind.GENERATE: "Code Generation",
    ToolKind.CONVERT: "Code Conversion to {{ target }}",
    ToolKind.SIMULATE_EXECUTION: "Output",
}

# keep_trailing_newline: the simulation prompt ends with a fenced block.
_env = jinja2.Environment(autoescape=False, keep_trailing_newline=True)  # noqa: S701


class Instructions(NamedTuple):
    prompt: str
    system: str


def render_instructions(
    kind: ToolKind,
    *,
    language: str,
    path: str,
    code: str = "",
    target: str | None = None,
    description: str | None = None,
) -> Instructions:
    """Render the prompt and system instruction for one channel call."""
    template_vars: dict[str, object] = {
        "language": language,
        "path": path,
        "code": code,
        "target": target,
        "description": description,
    }
    prompt = _env.from_string(_PROMPT_TEMPLATES[kind]).render(**template_vars)
    system = _env.from_string(_SYSTEM_TEMPLATES[kind]).render(**template_vars)
    return Instructions(prompt=prompt, system=system)


def channel_title(kind: ToolKind, *, target: str | None = None) -> str:
    return _env.from_string(_TITLES[kind]).render(target=target)
