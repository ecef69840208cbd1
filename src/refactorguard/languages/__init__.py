"""Language detection and the per-language extractor registry."""

from __future__ import annotations

import importlib
import os

from refactorguard.engine._types import Extractor
from refactorguard.errors import BackendUnavailable

SUPPORTED_LANGUAGES: set[str] = {"python", "typescript", "tsx", "javascript"}

_EXTENSION_MAP: dict[str, str] = {
    ".py": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

# Dialects compared against each other, so code moved between e.g. a .ts and
# a .tsx file still matches.
_FAMILY: dict[str, str] = {
    "python": "python",
    "typescript": "typescript",
    "tsx": "typescript",
    "javascript": "typescript",
}

_DECLARATION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")


def detect_language(filename: str) -> str | None:
    """Detect language from file extension. Declaration files are skipped."""
    if filename.endswith(_DECLARATION_SUFFIXES):
        return None
    _, ext = os.path.splitext(filename)
    return _EXTENSION_MAP.get(ext)


def language_family(language: str) -> str:
    """Map a dialect to the family whose definitions are compared together."""
    family = _FAMILY.get(language)
    if family is None:
        msg = f"Unsupported language: {language}"
        raise ValueError(msg)
    return family


def get_extractor(family: str, *, python_executable: str | None = None) -> Extractor:
    """Build the extractor for a language family.

    Raises BackendUnavailable when the family's parser cannot be loaded.
    """
    if family == "python":
        from refactorguard.languages.python import ExternalPythonExtractor, PythonExtractor

        if python_executable:
            return ExternalPythonExtractor(python_executable)
        return PythonExtractor()
    if family == "typescript":
        try:
            module = importlib.import_module("refactorguard.languages.typescript")
        except ImportError as e:
            raise BackendUnavailable(family, f"tree-sitter grammar not importable: {e}") from e
        return module.TypeScriptExtractor()  # type: ignore[no-any-return]
    msg = f"Unsupported language: {family}"
    raise ValueError(msg)
