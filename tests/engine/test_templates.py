"""Tests for the read-only language template catalog."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cipherstudio.engine.templates import (
    DEFAULT_LANGUAGE,
    LANGUAGE_TEMPLATES,
    UnknownLanguageError,
    conversion_targets,
    get_template,
    language_ids,
)


def test_catalog_contents() -> None:
    assert set(LANGUAGE_TEMPLATES) == {"React.js", "JavaScript", "HTML", "Python", "Java", "C++", "C#", "Go", "Rust"}
    assert DEFAULT_LANGUAGE in LANGUAGE_TEMPLATES


def test_live_languages() -> None:
    live = {language_id for language_id, template in LANGUAGE_TEMPLATES.items() if template.live}
    assert live == {"React.js", "HTML"}


def test_catalog_is_read_only() -> None:
    with pytest.raises(TypeError):
        LANGUAGE_TEMPLATES["Python"] = get_template("Go")  # type: ignore[index]


def test_templates_are_frozen() -> None:
    template = get_template("Python")
    with pytest.raises(ValidationError):
        template.live = True  # type: ignore[misc]


def test_get_template_unknown_language() -> None:
    with pytest.raises(UnknownLanguageError):
        get_template("COBOL")


@pytest.mark.parametrize("language_id", sorted(LANGUAGE_TEMPLATES))
def test_entry_path_is_visible_file(language_id: str) -> None:
    template = get_template(language_id)
    files = dict(template.files)
    assert template.entry_path in files
    assert not files[template.entry_path].hidden


def test_react_entry_and_hidden_files() -> None:
    template = get_template("React.js")
    files = dict(template.files)
    assert template.entry_path == "/src/index.js"
    assert files["/package.json"].hidden
    assert files["/public/index.html"].hidden


def test_conversion_targets_exclude_react_and_current() -> None:
    targets = conversion_targets("Python")
    assert "React.js" not in targets
    assert "Python" not in targets
    assert "Go" in targets
    assert targets == sorted(targets)


def test_language_ids_sorted() -> None:
    assert language_ids() == sorted(LANGUAGE_TEMPLATES)
