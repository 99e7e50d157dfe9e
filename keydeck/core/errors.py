"""Exception hierarchy for keydeck.

Every error raised by the library derives from :class:`KeydeckError`.
Layout parsing failures derive from :class:`LayoutParseError` and come in
five flavours so callers can give different guidance for each: a file that
cannot be read, text that is not JSON, JSON that fails validation, and the
two reference-graph failures (cycles and depth overruns).
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from keydeck.layout.results import ValidationIssue


class KeydeckError(Exception):
    """Base exception for all keydeck errors."""


class ConfigError(KeydeckError):
    """Raised when keydeck settings cannot be loaded or are invalid."""


class LayoutParseError(KeydeckError):
    """Base class for failures while turning layout text into a model.

    Attributes:
        message: Human-readable description of the failure
        file_path: Layout file the failure belongs to, when known
        suggestion: Hint telling the author how to fix the problem
    """

    headline = "Layout parsing failed"

    def __init__(
        self,
        message: str,
        *,
        file_path: str | Path | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.message = message
        self.file_path = str(file_path) if file_path is not None else None
        self.suggestion = suggestion
        super().__init__(message)

    def with_file_path(self, file_path: str | Path) -> LayoutParseError:
        """Attach a file path if the error does not already carry one."""
        if self.file_path is None:
            self.file_path = str(file_path)
        return self

    def _location(self) -> str:
        return f" in file '{self.file_path}'" if self.file_path else ""

    def _details(self) -> str:
        return f": {self.message}"

    def __str__(self) -> str:
        text = f"{self.headline}{self._location()}{self._details()}"
        if self.suggestion:
            text += f"\n  Suggestion: {self.suggestion}"
        return text


class LayoutIOError(LayoutParseError):
    """Raised when a layout file cannot be read (missing, unreadable)."""

    headline = "I/O error"

    def __init__(
        self,
        message: str,
        *,
        file_path: str | Path | None = None,
        suggestion: str | None = "Check that the file exists and you have read permissions",
    ) -> None:
        super().__init__(message, file_path=file_path, suggestion=suggestion)

    def _location(self) -> str:
        return f" reading file '{self.file_path}'" if self.file_path else ""


class LayoutJSONError(LayoutParseError):
    """Raised when layout text is not well-formed JSON.

    Attributes:
        line: 1-based line of the syntax error
        column: 1-based column of the syntax error
    """

    headline = "JSON parsing error"

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        file_path: str | Path | None = None,
        suggestion: str | None = "Check the JSON syntax at the indicated line",
    ) -> None:
        self.line = line
        self.column = column
        super().__init__(message, file_path=file_path, suggestion=suggestion)

    def _details(self) -> str:
        position = ""
        if self.line is not None:
            position = f" at line {self.line}"
            if self.column is not None:
                position += f", column {self.column}"
        return f"{position}: {self.message}"


class LayoutValidationError(LayoutParseError):
    """Raised when one or more Error-severity issues make a layout unusable.

    Attributes:
        issues: Every issue collected in the failing validation pass
    """

    headline = "Validation failed"

    def __init__(
        self,
        issues: Sequence[ValidationIssue],
        *,
        file_path: str | Path | None = None,
    ) -> None:
        self.issues = list(issues)
        super().__init__(
            f"{len(self.issues)} issue(s)", file_path=file_path, suggestion=None
        )

    @property
    def errors(self) -> list[ValidationIssue]:
        """Only the fatal issues."""
        return [issue for issue in self.issues if issue.is_error]

    def _location(self) -> str:
        return f" for file '{self.file_path}'" if self.file_path else ""

    def _details(self) -> str:
        lines = [f" with {len(self.issues)} issue(s):"]
        for index, issue in enumerate(self.issues, start=1):
            lines.append(f"  {index}. {issue}")
        return "\n".join(lines)


class CircularReferenceError(LayoutParseError):
    """Raised when a panel-embedding or inheritance chain loops back on itself.

    Attributes:
        chain: Every node on the cycle, starting and ending with the
            repeated node (e.g. ``["a.json", "b.json", "a.json"]``)
    """

    headline = "Circular reference detected"

    def __init__(
        self,
        message: str,
        chain: Sequence[str],
        *,
        file_path: str | Path | None = None,
        suggestion: str | None = "Remove or break the circular dependency",
    ) -> None:
        self.chain = [str(node) for node in chain]
        super().__init__(message, file_path=file_path, suggestion=suggestion)

    def _details(self) -> str:
        return f": {self.message}\n  Dependency chain: {' -> '.join(self.chain)}"


class MaxDepthExceededError(LayoutParseError):
    """Raised when a panel-embedding or inheritance chain is nested too deeply.

    Attributes:
        path: Nodes from the root to the first node past the limit
        max_depth: The configured limit
    """

    headline = "Maximum depth exceeded"

    def __init__(
        self,
        message: str,
        path: Sequence[str],
        max_depth: int,
        *,
        file_path: str | Path | None = None,
    ) -> None:
        self.path = [str(node) for node in path]
        self.max_depth = max_depth
        super().__init__(
            message,
            file_path=file_path,
            suggestion=f"Reduce nesting depth to {max_depth} or less",
        )

    @property
    def actual_depth(self) -> int:
        """Depth reached when the limit was hit (root is depth 0)."""
        return len(self.path) - 1

    def _details(self) -> str:
        return (
            f": {self.message} (limit: {self.max_depth}, actual: {self.actual_depth})"
            f"\n  Path: {' -> '.join(self.path)}"
        )


__all__ = [
    "CircularReferenceError",
    "ConfigError",
    "KeydeckError",
    "LayoutIOError",
    "LayoutJSONError",
    "LayoutParseError",
    "LayoutValidationError",
    "MaxDepthExceededError",
]
