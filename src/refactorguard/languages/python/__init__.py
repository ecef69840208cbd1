"""Python language support.

Two backends share one extraction module: :class:`PythonExtractor` runs it in
process, :class:`ExternalPythonExtractor` runs it as a script under another
interpreter so that code written for a newer grammar can still be checked.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from refactorguard.engine._types import DefinitionSet, Source, add_definition, make_definition
from refactorguard.errors import BackendUnavailable, ParseError
from refactorguard.languages.python._ast_extract import extract_records

logger = logging.getLogger(__name__)

_SCRIPT = Path(__file__).with_name("_ast_extract.py")


def _to_definitions(records: list[dict[str, Any]], path: str) -> DefinitionSet:
    definitions: DefinitionSet = {}
    for rec in records:
        add_definition(
            definitions,
            make_definition(
                name=rec["name"],
                kind=rec["kind"],
                normalized_body=rec["body"],
                signature=rec["signature"],
                path=path,
                start_line=rec["start_line"],
                end_line=rec["end_line"],
            ),
        )
    return definitions


class PythonExtractor:
    """In-process extraction with the host interpreter's grammar."""

    language = "python"

    def extract(self, source: Source, path: str) -> DefinitionSet:
        try:
            records = extract_records(source, path)
        except SyntaxError as e:
            raise ParseError(path, e.msg, e.lineno, e.offset) from e
        except ValueError as e:
            raise ParseError(path, str(e)) from e
        return _to_definitions(records, path)


class ExternalPythonExtractor:
    """Extraction in a subprocess running *executable*."""

    language = "python"

    def __init__(self, executable: str, timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def extract(self, source: Source, path: str) -> DefinitionSet:
        data = source.encode("utf-8") if isinstance(source, str) else source
        try:
            result = subprocess.run(
                [self.executable, str(_SCRIPT), path],
                input=data,
                capture_output=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise BackendUnavailable("python", f"interpreter not found: {self.executable}") from e
        except subprocess.TimeoutExpired as e:
            raise BackendUnavailable("python", f"extraction timed out for {path}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            last_line = stderr.splitlines()[-1] if stderr else f"exit status {result.returncode}"
            logger.debug("External extractor failed for %s:\n%s", path, stderr)
            raise BackendUnavailable("python", f"{self.executable} failed: {last_line}")

        try:
            payload = json.loads(result.stdout)
        except ValueError as e:
            raise BackendUnavailable("python", f"unreadable extractor output: {e}") from e

        if "error" in payload:
            raise ParseError(path, payload["error"], payload.get("line"), payload.get("column"))
        return _to_definitions(payload["definitions"], path)
