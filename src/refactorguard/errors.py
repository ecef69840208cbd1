"""Exception hierarchy.

Parse failures are recovered per file and backend failures per language;
only git failures and unexpected errors abort a whole run.
"""

from __future__ import annotations


class RefactorGuardError(Exception):
    """Base class for all refactorguard errors."""


class ParseError(RefactorGuardError):
    """Source text does not parse under its language grammar."""

    def __init__(
        self,
        path: str,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.path = path
        self.message = message
        self.line = line
        self.column = column
        location = f"{path}:{line}" if line is not None else path
        if line is not None and column is not None:
            location += f":{column}"
        super().__init__(f"{location}: {message}")


class BackendUnavailable(RefactorGuardError):
    """The parser backend for a language cannot be used."""

    def __init__(self, language: str, reason: str) -> None:
        self.language = language
        self.reason = reason
        super().__init__(f"{language} backend unavailable: {reason}")


class GitError(RefactorGuardError):
    """A git command failed."""
