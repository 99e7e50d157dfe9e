"""Keydeck - keyboard layout compiler.

Turns declarative layout files (Layout -> Panels -> Rows -> Cells) into a
resolved, validated model with inheritance merged in.
"""

from importlib.metadata import distribution

from .core.errors import (
    CircularReferenceError,
    KeydeckError,
    LayoutIOError,
    LayoutJSONError,
    LayoutParseError,
    LayoutValidationError,
    MaxDepthExceededError,
)
from .layout.models import Layout
from .layout.parser import LayoutParser, parse_layout_file, parse_layout_from_string
from .layout.results import ParseResult, Severity, ValidationIssue


__version__ = distribution(__package__ or "keydeck").version

__all__ = [
    "CircularReferenceError",
    "KeydeckError",
    "Layout",
    "LayoutIOError",
    "LayoutJSONError",
    "LayoutParseError",
    "LayoutParser",
    "LayoutValidationError",
    "MaxDepthExceededError",
    "ParseResult",
    "Severity",
    "ValidationIssue",
    "__version__",
    "parse_layout_file",
    "parse_layout_from_string",
]
