"""Configuration error types.

Configuration problems are collected into a list of issues and raised
together, so a config author can fix everything in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ConfigIssue:
    """A single configuration problem."""

    code: str
    message: str
    where: str = ""

    def __str__(self) -> str:
        if self.where:
            return f"{self.where}: {self.message} ({self.code})"
        return f"{self.message} ({self.code})"


class ConfigError(Exception):
    """Base exception for configuration problems.

    Always carries the full list of issues found in a validation pass.
    """

    def __init__(self, issues: Iterable[ConfigIssue], message: str | None = None) -> None:
        self.issues: list[ConfigIssue] = list(issues)
        self.message = message or "Log configuration errors"
        super().__init__(self._describe())

    @property
    def codes(self) -> list[str]:
        """Issue codes in the order they were found."""
        return [issue.code for issue in self.issues]

    def to_dict(self) -> dict[str, object]:
        """Convert the error to a plain dictionary."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "issues": [
                {"code": i.code, "message": i.message, "where": i.where} for i in self.issues
            ],
        }

    def _describe(self) -> str:
        if not self.issues:
            return self.message
        lines = [f"{self.message}:"]
        lines.extend(f"  {issue}" for issue in self.issues)
        return "\n".join(lines)


class InvalidConfig(ConfigError):
    """Raised when a replacement configuration fails validation."""


class InvalidLevel(ConfigError):
    """Raised when a level name or rank is not in the level table."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            [ConfigIssue("invalid-level", f'Level "{value}" is not a valid level')],
            message="Invalid level",
        )
