"""Validation issues and parse results."""

from enum import Enum

from pydantic import Field

from keydeck.layout.models import Layout
from keydeck.models.base import KeydeckBaseModel


class Severity(str, Enum):
    """How serious a validation issue is.

    Only ``ERROR`` issues make a parse fail; ``WARNING`` issues are returned
    alongside a successfully defaulted layout.
    """

    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(KeydeckBaseModel):
    """A single problem found while decoding or validating a layout."""

    severity: Severity
    message: str
    field_path: str
    suggestion: str | None = None
    line_number: int | None = None
    # File the issue was found in, for issues raised while loading ancestors
    source: str | None = None

    @classmethod
    def error(
        cls, message: str, field_path: str, suggestion: str | None = None
    ) -> "ValidationIssue":
        return cls(
            severity=Severity.ERROR,
            message=message,
            field_path=field_path,
            suggestion=suggestion,
        )

    @classmethod
    def warning(
        cls, message: str, field_path: str, suggestion: str | None = None
    ) -> "ValidationIssue":
        return cls(
            severity=Severity.WARNING,
            message=message,
            field_path=field_path,
            suggestion=suggestion,
        )

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        text = f"[{self.severity.value.upper()}] {self.field_path}: {self.message}"
        if self.line_number is not None:
            text += f" (line {self.line_number})"
        if self.source:
            text += f" [{self.source}]"
        if self.suggestion:
            text += f"\n  Suggestion: {self.suggestion}"
        return text


def sort_issues(issues: list[ValidationIssue]) -> list[ValidationIssue]:
    """Order issues errors first, then by field path."""
    return sorted(issues, key=lambda issue: (not issue.is_error, issue.field_path))


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.is_error for issue in issues)


class ParseResult(KeydeckBaseModel):
    """Successful parse: the resolved layout plus advisory warnings."""

    layout: Layout
    warnings: tuple[ValidationIssue, ...] = Field(default_factory=tuple)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


__all__ = ["ParseResult", "Severity", "ValidationIssue", "has_errors", "sort_issues"]
