"""Pair files of two directory trees without git."""

from __future__ import annotations

import logging
from pathlib import Path

from refactorguard.engine._types import ChangedFile
from refactorguard.languages import detect_language

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv", "venv"})


def _supported_files(root: Path) -> dict[str, Path]:
    found: dict[str, Path] = {}
    if not root.is_dir():
        return found
    for path in root.rglob("*"):
        rel = path.relative_to(root)
        if any(part in _SKIPPED_DIRS for part in rel.parts):
            continue
        if path.is_file() and detect_language(path.name) is not None:
            found[rel.as_posix()] = path
    return found


def collect_tree_changes(old_root: str | Path, new_root: str | Path) -> list[ChangedFile]:
    """Pair supported files of two directories by relative path.

    Files with identical content on both sides are left out, mirroring what
    ``git diff --name-only`` would list. Content is kept as raw bytes; the
    extractors decode it.
    """
    old_files = _supported_files(Path(old_root))
    new_files = _supported_files(Path(new_root))

    changed: list[ChangedFile] = []
    for rel in sorted(old_files.keys() | new_files.keys()):
        old_text = old_files[rel].read_bytes() if rel in old_files else None
        new_text = new_files[rel].read_bytes() if rel in new_files else None
        if old_text == new_text:
            continue
        changed.append(ChangedFile(path=rel, old_text=old_text, new_text=new_text))
    logger.debug("%d changed file(s) between %s and %s", len(changed), old_root, new_root)
    return changed
