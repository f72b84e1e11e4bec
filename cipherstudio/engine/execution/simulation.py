"""Local output heuristic for execution simulation.

Extracts string literals passed to the common print/log calls of each
language.  When anything matches, the matches (one per line, in source
order) are the simulated output and the remote call is skipped.
"""

from __future__ import annotations

import re

LOCAL_PREVIEW_PLACEHOLDER = "[Local Preview] Basic output simulation active"

# Minimum stripped code length worth simulating at all.
MIN_SIMULATED_LENGTH = 5

_LITERAL = r"""(?:"((?:[^"\\\n]|\\.)*)"|'((?:[^'\\\n]|\\.)*)')"""

_PATTERNS: dict[str, re.Pattern[str]] = {
    "python": re.compile(rf"\bprint\(\s*{_LITERAL}\s*\)"),
    "javascript": re.compile(rf"\bconsole\.log\(\s*{_LITERAL}\s*\)"),
    "java": re.compile(rf"\bSystem\.out\.println\(\s*{_LITERAL}\s*\)"),
    "go": re.compile(rf"\bfmt\.Println\(\s*{_LITERAL}\s*\)"),
    "rust": re.compile(rf"\bprintln!\(\s*{_LITERAL}\s*\)"),
    "csharp": re.compile(rf"\bConsole\.WriteLine\(\s*{_LITERAL}\s*\)"),
    "cpp": re.compile(rf"std::cout\s*<<\s*{_LITERAL}"),
}

_LANGUAGE_PATTERNS: dict[str, tuple[str, ...]] = {
    "Python": ("python",),
    "JavaScript": ("javascript",),
    "React.js": ("javascript",),
    "Java": ("java",),
    "Go": ("go",),
    "Rust": ("rust",),
    "C#": ("csharp",),
    "C++": ("cpp",),
}


def simulate_locally(code: str, language: str) -> str | None:
    """Best-effort output for ``code``; ``None`` when nothing matched.

    Unknown languages are tried against every pattern.
    """
    names = _LANGUAGE_PATTERNS.get(language, tuple(_PATTERNS))
    found: list[tuple[int, str]] = []
    for name in names:
        for match in _PATTERNS[name].finditer(code):
            literal = match.group(1) if match.group(1) is not None else match.group(2)
            found.append((match.start(), literal))
    if not found:
        return None
    found.sort(key=lambda item: item[0])
    return "\n".join(literal for _, literal in found)


def too_short_to_simulate(code: str) -> bool:
    return len(code.strip()) <= MIN_SIMULATED_LENGTH
