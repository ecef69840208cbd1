"""Shared types for the refactorguard engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal, Protocol

from refactorguard.engine.fingerprint import compute_fingerprint

DefinitionKind = Literal["function", "class", "interface", "type-alias", "enum", "constant"]

DEFINITION_KINDS: tuple[DefinitionKind, ...] = (
    "function",
    "class",
    "interface",
    "type-alias",
    "enum",
    "constant",
)


def qualify(kind: str, name: str) -> str:
    """Build the kind-prefixed name, e.g. ``function:foo``."""
    return f"{kind}:{name}"


def split_qualified(qualified_name: str) -> tuple[str, str]:
    """Split ``kind:name`` into ``(kind, name)``."""
    kind, _, name = qualified_name.partition(":")
    return kind, name


@dataclass(frozen=True)
class Definition:
    """A named top-level unit of code."""

    name: str
    kind: DefinitionKind
    normalized_body: str
    fingerprint: str
    signature: str  # normalized header, used only to label modifications
    path: str
    start_line: int
    end_line: int

    @property
    def qualified_name(self) -> str:
        return qualify(self.kind, self.name)


DefinitionSet = dict[str, Definition]
"""Qualified name -> Definition."""

Source = str | bytes
"""File content: decoded text, or raw bytes as read from disk or git.

Extractors decode raw bytes themselves, so a Python coding declaration is
honored and an undecodable file fails alone as a ParseError.
"""


def make_definition(
    *,
    name: str,
    kind: DefinitionKind,
    normalized_body: str,
    signature: str,
    path: str,
    start_line: int,
    end_line: int,
) -> Definition:
    """Build a Definition, fingerprinting its normalized body."""
    return Definition(
        name=name,
        kind=kind,
        normalized_body=normalized_body,
        fingerprint=compute_fingerprint(normalized_body),
        signature=signature,
        path=path,
        start_line=start_line,
        end_line=end_line,
    )


def add_definition(definitions: DefinitionSet, definition: Definition) -> None:
    """Insert into a single file's set, folding repeated bindings.

    Overload stubs and rebound names in one file become one definition whose
    body is every occurrence in source order.
    """
    key = definition.qualified_name
    existing = definitions.get(key)
    if existing is None:
        definitions[key] = definition
        return
    body = f"{existing.normalized_body}\n{definition.normalized_body}"
    definitions[key] = replace(
        existing,
        normalized_body=body,
        fingerprint=compute_fingerprint(body),
        signature=f"{existing.signature}\n{definition.signature}",
        start_line=min(existing.start_line, definition.start_line),
        end_line=max(existing.end_line, definition.end_line),
    )


@dataclass(frozen=True)
class ChangedFile:
    """One path with its content on each side. ``None`` means absent."""

    path: str
    old_text: Source | None
    new_text: Source | None


@dataclass(frozen=True)
class RenameAlias:
    """Configured old -> new qualified name pair, applied before matching."""

    source: str
    target: str


class Extractor(Protocol):
    """Per-language definition extraction capability."""

    language: str

    def extract(self, source: Source, path: str) -> DefinitionSet:
        """Return the file's top-level definitions or raise ParseError."""
        ...
