"""refactorguard output schema — Pydantic v2 models."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict, computed_field

Revision = Literal["old", "new"]


class DefinitionRef(BaseModel):
    """A definition named in a report."""

    model_config = ConfigDict(frozen=True)

    name: str  # qualified, e.g. "function:foo"
    kind: str
    path: str
    line: int


class ModifiedDefinition(BaseModel):
    """A definition present on both sides whose fingerprints differ."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: str
    reason: Literal["signature", "body"]
    old_fingerprint: str
    new_fingerprint: str
    old_path: str
    new_path: str
    line: int
    renamed_from: str | None = None
    diff: str | None = None


class Rename(BaseModel):
    """An alias that was applied during matching."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class SkippedAlias(BaseModel):
    """An alias that names a definition of this language but did not apply."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    reason: str


class ComparisonResult(BaseModel):
    """Classification of every definition of one language.

    ``removed``, ``added``, ``modified`` and ``matching`` are disjoint.
    ``renames`` only records which aliases applied; the renamed pair itself
    sits in ``matching`` or ``modified`` under its target name.
    ``skipped_aliases`` lists aliases that matched a definition on one side
    but could not be applied, typically a mistyped name.
    """

    model_config = ConfigDict(frozen=True)

    removed: list[DefinitionRef] = []
    added: list[DefinitionRef] = []
    modified: list[ModifiedDefinition] = []
    matching: list[DefinitionRef] = []
    renames: list[Rename] = []
    skipped_aliases: list[SkippedAlias] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def identical(self) -> bool:
        return not (self.removed or self.added or self.modified)


class ExtractionFailure(BaseModel):
    """A file whose definitions could not be extracted."""

    model_config = ConfigDict(frozen=True)

    path: str
    revision: Revision
    message: str
    line: int | None = None
    column: int | None = None


class Collision(BaseModel):
    """Two files of one revision define the same qualified name."""

    model_config = ConfigDict(frozen=True)

    name: str
    revision: Revision
    overwritten_path: str
    winning_path: str


class LanguageReport(BaseModel):
    """Everything verified for one language family."""

    model_config = ConfigDict(frozen=True)

    language: str
    files: list[str] = []
    comparison: ComparisonResult | None = None
    failures: list[ExtractionFailure] = []
    collisions: list[Collision] = []
    cascaded_removals: list[str] = []
    cascaded_additions: list[str] = []
    backend_error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        if self.backend_error is not None or self.comparison is None:
            return False
        return not self.failures and self.comparison.identical


class Meta(BaseModel):
    """Run metadata."""

    source: str
    files: int
    timing_ms: float | None = None


class VerificationReport(BaseModel):
    """Top-level refactorguard output."""

    schema_version: str = "1.0"
    meta: Meta
    languages: list[LanguageReport] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return all(lang.passed for lang in self.languages)


def export_json_schema() -> str:
    """Export the JSON schema as a string."""
    return json.dumps(VerificationReport.model_json_schema(mode="serialization"), indent=2)
