"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from refactorguard.engine._types import Definition, DefinitionKind, make_definition
from refactorguard.languages.python import PythonExtractor
from refactorguard.languages.typescript import TypeScriptExtractor


@pytest.fixture
def py() -> PythonExtractor:
    return PythonExtractor()


@pytest.fixture
def ts() -> TypeScriptExtractor:
    return TypeScriptExtractor()


@pytest.fixture
def make_def() -> Callable[..., Definition]:
    """Build a Definition from a body string."""

    def _make(
        name: str = "foo",
        body: str | None = None,
        kind: DefinitionKind = "function",
        signature: str | None = None,
        path: str = "mod.py",
        line: int = 1,
    ) -> Definition:
        text = body if body is not None else f"def {name}():\n    return 1"
        return make_definition(
            name=name,
            kind=kind,
            normalized_body=text,
            signature=signature if signature is not None else f"def {name}()",
            path=path,
            start_line=line,
            end_line=line + text.count("\n"),
        )

    return _make
