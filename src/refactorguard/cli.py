"""refactorguard CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from refactorguard import __version__
from refactorguard.engine._types import ChangedFile, RenameAlias
from refactorguard.engine.matcher import expand_aliases
from refactorguard.engine.pipeline import run_verification
from refactorguard.engine.report import render_text
from refactorguard.errors import RefactorGuardError
from refactorguard.git import collect_changed_files, find_base_ref
from refactorguard.schema import VerificationReport
from refactorguard.tree import collect_tree_changes

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0  # Purely structural
EXIT_DIFFERENCES = 1  # Behavioral differences or unextractable files
EXIT_ERROR = 2  # Something went wrong, or a language could not be verified
EXIT_NO_CHANGES = 3  # No supported files changed


def _parse_alias(value: str) -> tuple[str, str]:
    source, sep, target = value.partition("=")
    if not sep or not source.strip() or not target.strip():
        msg = f"expected OLD=NEW, got {value!r}"
        raise click.BadParameter(msg, param_hint="--alias")
    return source.strip(), target.strip()


def _load_alias_file(path: str) -> list[tuple[str, str]]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"cannot read {path}: {e}", param_hint="--aliases") from e
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise click.BadParameter(
            f"{path} must contain a JSON object of old -> new names", param_hint="--aliases"
        )
    return list(data.items())


def _build_aliases(alias: tuple[str, ...], aliases_file: str | None) -> list[RenameAlias]:
    pairs = [_parse_alias(a) for a in alias]
    if aliases_file:
        pairs.extend(_load_alias_file(aliases_file))
    try:
        return expand_aliases(pairs)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--alias") from e


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option(
            "--alias",
            "alias",
            multiple=True,
            metavar="OLD=NEW",
            help="Rename alias; qualified (function:old=function:new) or bare (old=new). Repeatable.",
        ),
        click.option(
            "--aliases",
            "aliases_file",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="JSON file mapping old names to new names.",
        ),
        click.option(
            "--detailed",
            is_flag=True,
            default=False,
            help="Show line diffs of modified definitions instead of hash prefixes.",
        ),
        click.option(
            "--format",
            "fmt",
            type=click.Choice(["text", "json"]),
            default="text",
            help="Output format (default: text).",
        ),
        click.option(
            "--jobs",
            type=click.IntRange(min=1),
            default=1,
            help="Files extracted in parallel per revision (default: 1).",
        ),
        click.option(
            "--python",
            "python_executable",
            default=None,
            help="Extract Python definitions with this interpreter instead of in process.",
        ),
        click.option("--debug", is_flag=True, default=False, help="Enable debug logging."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _emit(report: VerificationReport, fmt: str) -> None:
    if fmt == "json":
        click.echo(report.model_dump_json(indent=2))
    else:
        click.echo(render_text(report))


def _exit_code(report: VerificationReport) -> int:
    if any(lang.backend_error is not None for lang in report.languages):
        return EXIT_ERROR
    return EXIT_SUCCESS if report.passed else EXIT_DIFFERENCES


def _run(
    collect: Callable[[], tuple[list[ChangedFile], str]],
    *,
    alias: tuple[str, ...],
    aliases_file: str | None,
    detailed: bool,
    fmt: str,
    jobs: int,
    python_executable: str | None,
    debug: bool,
) -> None:
    """Shared implementation for the verify/compare commands."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    aliases = _build_aliases(alias, aliases_file)
    try:
        files, source = collect()
        if not files:
            click.echo("No supported files changed.", err=True)
            sys.exit(EXIT_NO_CHANGES)

        report = run_verification(
            files,
            aliases,
            source=source,
            detailed=detailed,
            jobs=jobs,
            python_executable=python_executable,
        )
        _emit(report, fmt)
        sys.exit(_exit_code(report))

    except SystemExit:
        raise
    except RefactorGuardError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)
    except Exception as exc:
        logger.debug("CLI error", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_ERROR)


@click.group()
@click.version_option(__version__, "--version", "-v")
def main() -> None:
    """refactorguard — verify that a refactor moved, split or renamed code without changing what it does."""


@main.command()
@click.option(
    "--base",
    default=None,
    help="Base revision (default: origin/staging or origin/main if they share history with HEAD, else HEAD~1).",
)
@click.option("--repo", default=".", help="Repository path (default: current directory).")
@_common_options
def verify(base: str | None, repo: str, **kwargs: Any) -> None:
    """Compare the working tree against a base revision.

    \b
    Exit codes:
      0 — Purely structural
      1 — Behavioral differences or unextractable files
      2 — Error, or a language could not be verified
      3 — No supported files changed
    """

    def collect() -> tuple[list[ChangedFile], str]:
        ref = base or find_base_ref(repo)
        logger.debug("Comparing working tree against %s", ref)
        return collect_changed_files(ref, repo), ref

    _run(collect, **kwargs)


@main.command()
@click.argument("old_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("new_dir", type=click.Path(exists=True, file_okay=False))
@_common_options
def compare(old_dir: str, new_dir: str, **kwargs: Any) -> None:
    """Compare two directory trees without git.

    OLD_DIR is the tree before the refactor, NEW_DIR the tree after it.
    """

    def collect() -> tuple[list[ChangedFile], str]:
        return collect_tree_changes(old_dir, new_dir), f"{old_dir}..{new_dir}"

    _run(collect, **kwargs)
