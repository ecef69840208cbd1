"""Human-readable text rendering of a VerificationReport.

Sections follow review priority: anything that makes the result unknowable
(backend and extraction failures) first, then behavioral differences, then
the informational renames and matches.
"""

from __future__ import annotations

from refactorguard.engine.fingerprint import short_fingerprint
from refactorguard.schema import (
    ComparisonResult,
    DefinitionRef,
    LanguageReport,
    ModifiedDefinition,
    VerificationReport,
)

_RULE = "=" * 70
_NONE = "  (none)"


def render_text(report: VerificationReport) -> str:
    """Render the full report, one block per language, then the verdict."""
    lines: list[str] = []
    if not report.languages:
        lines.append("No supported files changed.")
    for lang in report.languages:
        lines.extend(_render_language(lang))
        lines.append("")
    lines.extend(_render_verdict(report))
    return "\n".join(lines)


def _render_language(lang: LanguageReport) -> list[str]:
    n = len(lang.files)
    lines = [
        _RULE,
        f"{lang.language.upper()} ({n} file{'s' if n != 1 else ''})",
        _RULE,
    ]

    if lang.backend_error is not None:
        lines.append(f"BACKEND UNAVAILABLE: {lang.backend_error}")
        return lines

    if lang.failures:
        lines.append("")
        lines.append("EXTRACTION FAILURES (definitions unknown):")
        for f in lang.failures:
            where = f.path
            if f.line is not None:
                where += f":{f.line}"
                if f.column is not None:
                    where += f":{f.column}"
            lines.append(f"  - [{f.revision}] {where}: {f.message}")
        if lang.cascaded_removals:
            lines.append("  Reported as removed because of these failures:")
            lines.extend(f"    - {name}" for name in lang.cascaded_removals)
        if lang.cascaded_additions:
            lines.append("  Reported as added because of these failures:")
            lines.extend(f"    - {name}" for name in lang.cascaded_additions)

    if lang.collisions:
        lines.append("")
        lines.append("COLLISIONS (last file wins):")
        for c in lang.collisions:
            lines.append(
                f"  - [{c.revision}] {c.name}: {c.winning_path} overrides {c.overwritten_path}"
            )

    if lang.comparison is not None:
        lines.extend(_render_comparison(lang.comparison))
    return lines


def _render_refs(title: str, refs: list[DefinitionRef]) -> list[str]:
    lines = ["", f"{title}:"]
    if not refs:
        lines.append(_NONE)
    lines.extend(f"  - {r.name} ({r.path}:{r.line})" for r in refs)
    return lines


def _render_modified(items: list[ModifiedDefinition]) -> list[str]:
    lines = ["", "MODIFIED (fingerprint differs):"]
    if not items:
        lines.append(_NONE)
    for m in items:
        label = f"  - {m.name} ({m.reason} changed) {m.new_path}:{m.line}"
        if m.renamed_from:
            label += f" [renamed from {m.renamed_from}]"
        lines.append(label)
        if m.diff:
            lines.extend(f"      {dl}" for dl in m.diff.splitlines())
        else:
            lines.append(f"      old: {short_fingerprint(m.old_fingerprint)}...")
            lines.append(f"      new: {short_fingerprint(m.new_fingerprint)}...")
    return lines


def _render_comparison(comparison: ComparisonResult) -> list[str]:
    lines: list[str] = []
    lines.extend(_render_refs("REMOVED (in old, missing in new)", comparison.removed))
    lines.extend(_render_refs("ADDED (in new, missing in old)", comparison.added))
    lines.extend(_render_modified(comparison.modified))
    if comparison.renames:
        lines.append("")
        lines.append("RENAMED:")
        lines.extend(f"  - {r.source} → {r.target}" for r in comparison.renames)
    if comparison.skipped_aliases:
        lines.append("")
        lines.append("ALIASES NOT APPLIED:")
        lines.extend(
            f"  - {a.source} → {a.target}: {a.reason}" for a in comparison.skipped_aliases
        )
    lines.append("")
    lines.append(f"MATCHING: {len(comparison.matching)} definitions")
    return lines


def _render_verdict(report: VerificationReport) -> list[str]:
    lines = [_RULE]
    if report.passed:
        lines.append("VERIFICATION PASSED: refactor is purely structural")
        lines.append(_RULE)
        return lines

    lines.append("VERIFICATION FAILED: changes detected beyond refactoring")
    lines.append(_RULE)
    for lang in report.languages:
        if lang.passed:
            continue
        if lang.backend_error is not None:
            lines.append(f"  {lang.language}: not verified ({lang.backend_error})")
            continue
        c = lang.comparison
        assert c is not None
        lines.append(
            f"  {lang.language}: removed {len(c.removed)}, added {len(c.added)}, "
            f"modified {len(c.modified)}, matching {len(c.matching)}, "
            f"extraction failures {len(lang.failures)}"
        )
    return lines
