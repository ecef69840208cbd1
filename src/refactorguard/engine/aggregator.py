"""Per-revision aggregation of extracted definitions across files."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from refactorguard.engine._types import DefinitionSet, Extractor, Source
from refactorguard.errors import ParseError
from refactorguard.schema import Collision, ExtractionFailure, Revision

logger = logging.getLogger(__name__)

SourceText = tuple[str, Source | None]
"""(path, text). ``None`` or empty text means the file is absent."""


@dataclass
class RevisionDefinitions:
    """All definitions of one side of the comparison."""

    revision: Revision
    definitions: DefinitionSet = field(default_factory=dict)
    failures: list[ExtractionFailure] = field(default_factory=list)
    collisions: list[Collision] = field(default_factory=list)

    @property
    def failed_paths(self) -> set[str]:
        return {f.path for f in self.failures}


def _extract_one(extractor: Extractor, path: str, text: Source) -> DefinitionSet | ParseError:
    try:
        return extractor.extract(text, path)
    except ParseError as e:
        return e


def aggregate(
    files: list[SourceText],
    extractor: Extractor,
    *,
    revision: Revision,
    jobs: int = 1,
) -> RevisionDefinitions:
    """Extract every file and merge the results into one revision-level set.

    Files are merged in lexicographic path order, so when two files define
    the same qualified name the later path wins and a Collision is recorded.
    Extraction may run on *jobs* threads; merge order does not depend on it.
    BackendUnavailable propagates and aborts the revision.
    """
    present = sorted(((path, text) for path, text in files if text), key=lambda item: item[0])

    if jobs > 1 and len(present) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            results = list(pool.map(lambda item: _extract_one(extractor, *item), present))
    else:
        results = [_extract_one(extractor, path, text) for path, text in present]

    out = RevisionDefinitions(revision=revision)
    for (path, _), result in zip(present, results):
        if isinstance(result, ParseError):
            logger.info("Could not extract %s (%s): %s", path, revision, result)
            out.failures.append(
                ExtractionFailure(
                    path=path,
                    revision=revision,
                    message=result.message,
                    line=result.line,
                    column=result.column,
                )
            )
            continue
        for name, definition in result.items():
            previous = out.definitions.get(name)
            if previous is not None:
                logger.warning(
                    "%s defined in both %s and %s (%s revision); keeping %s",
                    name,
                    previous.path,
                    path,
                    revision,
                    path,
                )
                out.collisions.append(
                    Collision(
                        name=name,
                        revision=revision,
                        overwritten_path=previous.path,
                        winning_path=path,
                    )
                )
            out.definitions[name] = definition
    return out
