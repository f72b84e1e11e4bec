"""Language template catalog.

Process-wide, read-only mapping of language id -> default project files.
Built once at import time from frozen models and exposed through a
``MappingProxyType``; nothing mutates it at runtime.  Callers that need a
mutable tree take a deep copy via ``FileTree.from_template``.
"""

from __future__ import annotations

from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

DEFAULT_LANGUAGE = "React.js"
FALLBACK_PATH = "/src/App.js"
"""Selection used when neither the tree nor its template offers a better one."""


class TemplateFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    hidden: bool = False
    entry: bool = False


class LanguageTemplate(BaseModel):
    """Default project for one language."""

    model_config = ConfigDict(frozen=True)

    language_id: str
    label: str
    icon: str
    description: str
    editable: bool = True
    live: bool = False
    """Output is directly renderable (markup); execution simulation is skipped."""

    files: tuple[tuple[str, TemplateFile], ...]

    @property
    def entry_path(self) -> str:
        """The marked entry file, else the first visible path."""
        for path, default in self.files:
            if default.entry and not default.hidden:
                return path
        visible = sorted(path for path, default in self.files if not default.hidden)
        return visible[0] if visible else FALLBACK_PATH


_REACT_APP = """import React, { useState } from 'react';

// Main App Component
const App = () => {
  const [count, setCount] = useState(0);

  const increment = () => {
      setCount(c => c + 1);
  };

  return (
    <div className="flex flex-col items-center p-4 min-h-full">
      <h1 className="text-3xl font-bold mb-4 text-green-500">CipherStudio Live React App</h1>
      <p className="text-xl mb-6">Count: {count}</p>
      <button onClick={increment}>
        Increment
      </button>
      <p className="mt-8 text-sm text-gray-500">Edit code in /src/App.js to see changes here!</p>
    </div>
  );
};

export default App;"""

_SIMULATED = "**Editable Code/Files.** Execution is simulated."


def _template(
    language_id: str,
    icon: str,
    description: str,
    files: dict[str, TemplateFile],
    *,
    live: bool = False,
) -> LanguageTemplate:
    return LanguageTemplate(
        language_id=language_id,
        label=language_id,
        icon=icon,
        description=description,
        live=live,
        files=tuple(files.items()),
    )


_CATALOG: dict[str, LanguageTemplate] = {
    t.language_id: t
    for t in (
        _template(
            "React.js",
            "⚛️",
            "React environment. **Live rendering is now a static output simulation.**",
            {
                "/src/index.js": TemplateFile(
                    content="import React from 'react';\nimport App from './App';\n\n// React entry point (Simulated).",
                    entry=True,
                ),
                "/src/App.js": TemplateFile(content=_REACT_APP),
                "/src/styles.css": TemplateFile(
                    content="/* Global styles for React app */\nbody { font-family: sans-serif; }"
                ),
                "/public/index.html": TemplateFile(content="<!DOCTYPE html>...", hidden=True),
                "/package.json": TemplateFile(content='{"dependencies": {"react": "18.2.0"}}', hidden=True),
            },
            live=True,
        ),
        _template(
            "JavaScript",
            "JS",
            "Pure JS environment. **Execution is simulated.**",
            {"/index.js": TemplateFile(content='console.log("Hello pure JavaScript");', entry=True)},
        ),
        _template(
            "HTML",
            "HTML",
            "HTML environment. **Live HTML rendering enabled.**",
            {
                "/index.html": TemplateFile(
                    content=(
                        "<!DOCTYPE html>\n<html>\n<body>\n"
                        '  <h1 class="text-2xl text-blue-500">Pure HTML Project</h1>\n'
                        "  <p>This is editable.</p>\n</body>\n</html>"
                    ),
                    entry=True,
                )
            },
            live=True,
        ),
        _template(
            "Python",
            "🐍",
            _SIMULATED,
            {
                "/main.py": TemplateFile(
                    content=(
                        'def greet(name):\n    return f"Hello, {name}!"\n\n'
                        "# Code is editable, but **execution is simulated**.\n"
                        'print(greet("Python Dev"))'
                    ),
                    entry=True,
                )
            },
        ),
        _template(
            "Java",
            "☕",
            _SIMULATED,
            {
                "/Main.java": TemplateFile(
                    content=(
                        "class Main {\n  public static void main(String[] args) {\n"
                        '    System.out.println("Hello Java World!");\n  }\n}'
                    ),
                    entry=True,
                )
            },
        ),
        _template(
            "C++",
            "C++",
            _SIMULATED,
            {
                "/main.cpp": TemplateFile(
                    content='#include <iostream>\n\nint main() {\n  std::cout << "Hello C++" << std::endl;\n  return 0;\n}',
                    entry=True,
                )
            },
        ),
        _template(
            "C#",
            "C#",
            _SIMULATED,
            {"/Program.cs": TemplateFile(content='using System;\n\nConsole.WriteLine("Hello C#");', entry=True)},
        ),
        _template(
            "Go",
            "Go",
            _SIMULATED,
            {
                "/main.go": TemplateFile(
                    content='package main\n\nimport "fmt"\n\nfunc main() {\n\tfmt.Println("Hello Go")\n}',
                    entry=True,
                )
            },
        ),
        _template(
            "Rust",
            "Rs",
            _SIMULATED,
            {"/main.rs": TemplateFile(content='fn main() {\n    println!("Hello Rust!");\n}', entry=True)},
        ),
    )
}

LANGUAGE_TEMPLATES: MappingProxyType[str, LanguageTemplate] = MappingProxyType(_CATALOG)


class UnknownLanguageError(LookupError):
    """Raised when a language id is not in the catalog."""


def get_template(language_id: str) -> LanguageTemplate:
    """Look up a template.  Raises ``UnknownLanguageError`` if missing."""
    try:
        return LANGUAGE_TEMPLATES[language_id]
    except KeyError:
        raise UnknownLanguageError(language_id) from None


def language_ids() -> list[str]:
    return sorted(LANGUAGE_TEMPLATES)


def conversion_targets(current: str | None = None) -> list[str]:
    """Languages code can be converted to (never React.js, never ``current``)."""
    return [lang for lang in language_ids() if lang not in ("React.js", current)]
