"""End-to-end pipeline: changed files → VerificationReport."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from functools import partial

from refactorguard.engine._types import ChangedFile, Extractor, RenameAlias
from refactorguard.engine.aggregator import RevisionDefinitions, aggregate
from refactorguard.engine.matcher import compare
from refactorguard.errors import BackendUnavailable
from refactorguard.languages import detect_language, get_extractor, language_family
from refactorguard.schema import ComparisonResult, LanguageReport, Meta, VerificationReport

logger = logging.getLogger(__name__)

ExtractorFactory = Callable[[str], Extractor]
"""language family -> Extractor. May raise BackendUnavailable."""


def group_by_language(files: Sequence[ChangedFile]) -> dict[str, list[ChangedFile]]:
    """Group supported files by language family, in first-seen order."""
    groups: dict[str, list[ChangedFile]] = {}
    for cf in files:
        language = detect_language(cf.path)
        if language is None:
            logger.debug("Skipping unsupported file %s", cf.path)
            continue
        groups.setdefault(language_family(language), []).append(cf)
    return groups


def run_verification(
    files: Sequence[ChangedFile],
    aliases: Sequence[RenameAlias] = (),
    *,
    source: str = "",
    detailed: bool = False,
    jobs: int = 1,
    python_executable: str | None = None,
    extractor_factory: ExtractorFactory | None = None,
) -> VerificationReport:
    """Verify every language present in *files*.

    Args:
        files: Changed files with old/new content.
        aliases: Rename aliases applied before matching.
        source: Label for metadata, e.g. the base ref.
        detailed: Include unified diffs for modified definitions.
        jobs: Extraction threads per revision.
        python_executable: Extract Python under this interpreter instead of
            in process.
        extractor_factory: Override extractor construction (tests).

    Returns:
        One LanguageReport per language family, in first-seen order.
    """
    t0 = time.monotonic()

    factory = extractor_factory or partial(get_extractor, python_executable=python_executable)

    reports = [
        verify_language(
            family,
            group,
            factory,
            aliases,
            detailed=detailed,
            jobs=jobs,
        )
        for family, group in group_by_language(files).items()
    ]

    elapsed_ms = (time.monotonic() - t0) * 1000
    return VerificationReport(
        meta=Meta(source=source, files=len(files), timing_ms=round(elapsed_ms, 2)),
        languages=reports,
    )


def verify_language(
    family: str,
    files: Sequence[ChangedFile],
    extractor_factory: ExtractorFactory,
    aliases: Sequence[RenameAlias] = (),
    *,
    detailed: bool = False,
    jobs: int = 1,
) -> LanguageReport:
    """Aggregate, compare and report one language family.

    A BackendUnavailable is confined to this language's report.
    """
    paths = sorted(cf.path for cf in files)
    try:
        extractor = extractor_factory(family)
        old = aggregate([(cf.path, cf.old_text) for cf in files], extractor, revision="old", jobs=jobs)
        new = aggregate([(cf.path, cf.new_text) for cf in files], extractor, revision="new", jobs=jobs)
    except BackendUnavailable as e:
        logger.error("%s", e)
        return LanguageReport(language=family, files=paths, backend_error=str(e))

    comparison = compare(old.definitions, new.definitions, aliases, detailed=detailed)
    removals, additions = _cascades(comparison, old, new)

    return LanguageReport(
        language=family,
        files=paths,
        comparison=comparison,
        failures=[*old.failures, *new.failures],
        collisions=[*old.collisions, *new.collisions],
        cascaded_removals=removals,
        cascaded_additions=additions,
    )


def _cascades(
    comparison: ComparisonResult,
    old: RevisionDefinitions,
    new: RevisionDefinitions,
) -> tuple[list[str], list[str]]:
    """Removals/additions explained by a parse failure on the other side."""
    new_failed = new.failed_paths
    old_failed = old.failed_paths
    removals = [r.name for r in comparison.removed if r.path in new_failed]
    additions = [a.name for a in comparison.added if a.path in old_failed]
    return removals, additions
