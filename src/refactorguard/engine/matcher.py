"""Definition matching of old and new revisions, with rename aliases."""

from __future__ import annotations

import difflib
import logging
import re
from collections.abc import Iterable
from dataclasses import replace

from refactorguard.engine._types import (
    DEFINITION_KINDS,
    Definition,
    DefinitionSet,
    RenameAlias,
    qualify,
    split_qualified,
)
from refactorguard.engine.fingerprint import compute_fingerprint
from refactorguard.schema import (
    ComparisonResult,
    DefinitionRef,
    ModifiedDefinition,
    Rename,
    SkippedAlias,
)

logger = logging.getLogger(__name__)

_DIFF_CONTEXT = 2


def expand_aliases(pairs: Iterable[tuple[str, str]]) -> list[RenameAlias]:
    """Build aliases from ``(old, new)`` pairs.

    Qualified names (``function:old``) are taken as-is. A bare pair ``old``,
    ``new`` expands to one alias per definition kind.
    """
    aliases: list[RenameAlias] = []
    for source, target in pairs:
        if ":" in source and ":" in target:
            aliases.append(RenameAlias(source, target))
        elif ":" not in source and ":" not in target:
            aliases.extend(RenameAlias(qualify(k, source), qualify(k, target)) for k in DEFINITION_KINDS)
        else:
            msg = f"Alias must qualify both names or neither: {source!r} -> {target!r}"
            raise ValueError(msg)
    return aliases


def rename_definition(definition: Definition, target: str) -> Definition:
    """Re-express *definition* under the qualified name *target*.

    Whole-word occurrences of the old bare name in the normalized body are
    replaced, so a definition that only changed its name fingerprints equal.
    """
    kind, new_name = split_qualified(target)
    pattern = re.compile(rf"(?<![\w$]){re.escape(definition.name)}(?![\w$])")
    body = pattern.sub(new_name, definition.normalized_body)
    return replace(
        definition,
        name=new_name,
        kind=kind,  # type: ignore[arg-type]
        normalized_body=body,
        fingerprint=compute_fingerprint(body),
        signature=pattern.sub(new_name, definition.signature),
    )


def line_diff(old_body: str, new_body: str) -> str:
    """Unified diff of two normalized bodies."""
    lines = difflib.unified_diff(
        old_body.splitlines(),
        new_body.splitlines(),
        fromfile="old",
        tofile="new",
        lineterm="",
        n=_DIFF_CONTEXT,
    )
    return "\n".join(lines)


def _ref(d: Definition) -> DefinitionRef:
    return DefinitionRef(name=d.qualified_name, kind=d.kind, path=d.path, line=d.start_line)


def _modified(
    name: str,
    old: Definition,
    new: Definition,
    *,
    detailed: bool,
    renamed_from: str | None = None,
) -> ModifiedDefinition:
    return ModifiedDefinition(
        name=name,
        kind=new.kind,
        reason="signature" if old.signature != new.signature else "body",
        old_fingerprint=old.fingerprint,
        new_fingerprint=new.fingerprint,
        old_path=old.path,
        new_path=new.path,
        line=new.start_line,
        renamed_from=renamed_from,
        diff=line_diff(old.normalized_body, new.normalized_body) if detailed else None,
    )


def _skip_reason(
    alias: RenameAlias,
    old: DefinitionSet,
    old_pool: DefinitionSet,
    new: DefinitionSet,
    new_pool: DefinitionSet,
) -> str | None:
    if alias.source not in old:
        return "source not defined in old revision"
    if alias.source not in old_pool:
        return "source already renamed by an earlier alias"
    if alias.target not in new:
        return "target not defined in new revision"
    if alias.target not in new_pool:
        return "target already claimed by an earlier alias"
    if alias.target in old:
        return "target also defined in old revision"
    return None


def compare(
    old: DefinitionSet,
    new: DefinitionSet,
    aliases: Iterable[RenameAlias] = (),
    *,
    detailed: bool = False,
) -> ComparisonResult:
    """Classify every definition as removed, added, modified or matching.

    Aliases are resolved first, in order. An alias applies only when its
    source exists in *old*, its target exists in *new* and the target is not
    also an *old* name; otherwise it is ignored, and recorded in
    ``skipped_aliases`` when either of its names exists here. Neither input
    is mutated.
    """
    old_pool = dict(old)
    new_pool = dict(new)

    removed: list[DefinitionRef] = []
    added: list[DefinitionRef] = []
    modified: list[ModifiedDefinition] = []
    matching: list[DefinitionRef] = []
    renames: list[Rename] = []
    skipped: list[SkippedAlias] = []

    for alias in aliases:
        reason = _skip_reason(alias, old, old_pool, new, new_pool)
        if reason is not None:
            logger.debug("Alias %s -> %s does not apply: %s", alias.source, alias.target, reason)
            if alias.source in old or alias.target in new:
                skipped.append(SkippedAlias(source=alias.source, target=alias.target, reason=reason))
            continue
        old_def = rename_definition(old_pool.pop(alias.source), alias.target)
        new_def = new_pool.pop(alias.target)
        renames.append(Rename(source=alias.source, target=alias.target))
        if old_def.fingerprint == new_def.fingerprint:
            matching.append(_ref(new_def))
        else:
            modified.append(
                _modified(alias.target, old_def, new_def, detailed=detailed, renamed_from=alias.source)
            )

    for name, old_def in old_pool.items():
        new_def = new_pool.pop(name, None)
        if new_def is None:
            removed.append(_ref(old_def))
        elif old_def.fingerprint != new_def.fingerprint:
            modified.append(_modified(name, old_def, new_def, detailed=detailed))
        else:
            matching.append(_ref(new_def))

    for new_def in new_pool.values():
        added.append(_ref(new_def))

    return ComparisonResult(
        removed=sorted(removed, key=lambda r: r.name),
        added=sorted(added, key=lambda r: r.name),
        modified=sorted(modified, key=lambda m: m.name),
        matching=sorted(matching, key=lambda r: r.name),
        renames=renames,
        skipped_aliases=skipped,
    )
