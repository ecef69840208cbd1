"""Git change discovery and file retrieval.

All git subprocess calls live here. Nothing else touches git.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any

from refactorguard.engine._types import ChangedFile
from refactorguard.errors import GitError
from refactorguard.languages import detect_language

logger = logging.getLogger(__name__)

DEFAULT_BASE_CANDIDATES: tuple[str, ...] = ("origin/staging", "origin/main")
FALLBACK_BASE = "HEAD~1"


def _git(
    args: list[str],
    repo_path: str | Path,
    *,
    text: bool = True,
) -> subprocess.CompletedProcess[Any]:
    return subprocess.run(
        ["git", *args],
        capture_output=True,
        text=text,
        encoding="utf-8" if text else None,
        errors="replace" if text else None,
        cwd=str(repo_path),
        check=False,
    )


def _failure_message(
    command: str,
    result: subprocess.CompletedProcess[Any],
    repo_path: str | Path,
    base: str,
) -> str:
    stderr = result.stderr.strip()
    first_line = stderr.split("\n")[0] if stderr else "unknown error"
    if "not a git repository" in stderr.lower():
        return f"Not a git repository: {repo_path}"
    if "unknown revision" in stderr.lower() or "bad revision" in stderr.lower():
        return f"Invalid base '{base}': {first_line}"
    return f"git {command} failed: {first_line}"


def find_base_ref(
    repo_path: str | Path = ".",
    candidates: tuple[str, ...] = DEFAULT_BASE_CANDIDATES,
) -> str:
    """Return the first candidate sharing a merge base with HEAD, else ``HEAD~1``."""
    for ref in candidates:
        result = _git(["merge-base", ref, "HEAD"], repo_path)
        if result.returncode == 0 and result.stdout.strip():
            logger.debug("Using base %s (merge base %s)", ref, result.stdout.strip())
            return ref
    return FALLBACK_BASE


def repo_root(repo_path: str | Path = ".") -> Path:
    """Top-level directory of the work tree containing *repo_path*."""
    result = _git(["rev-parse", "--show-toplevel"], repo_path)
    if result.returncode != 0:
        msg = _failure_message("rev-parse", result, repo_path, "HEAD")
        logger.error(msg)
        raise GitError(msg)
    return Path(result.stdout.strip())


def list_changed_files(base: str, repo_path: str | Path = ".") -> list[str]:
    """Supported files that differ between *base* and the working tree.

    Paths are relative to the repository root, wherever *repo_path* points
    inside it.
    """
    result = _git(["diff", "--name-only", "--no-renames", "-z", base], repo_path)
    if result.returncode != 0:
        msg = _failure_message("diff", result, repo_path, base)
        logger.error(msg)
        raise GitError(msg)
    paths = [p for p in result.stdout.split("\0") if p.strip()]
    return sorted(p for p in paths if detect_language(p) is not None)


def get_file_at_ref(
    ref: str,
    file_path: str,
    repo_path: str | Path = ".",
) -> bytes | None:
    """Raw file contents at a git ref (path relative to the root). None if missing."""
    result = _git(["show", f"{ref}:{file_path}"], repo_path, text=False)
    if result.returncode != 0:
        return None
    return result.stdout


def read_working_file(file_path: str, repo_path: str | Path = ".") -> bytes | None:
    """Raw working-tree contents, or None if the file no longer exists."""
    path = Path(repo_path) / file_path
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def collect_changed_files(base: str, repo_path: str | Path = ".") -> list[ChangedFile]:
    """Old (at *base*) and new (working tree) content of every changed file."""
    root = repo_root(repo_path)
    return [
        ChangedFile(
            path=p,
            old_text=get_file_at_ref(base, p, root),
            new_text=read_working_file(p, root),
        )
        for p in list_changed_files(base, root)
    ]
