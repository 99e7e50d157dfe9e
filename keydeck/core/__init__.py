from .errors import (
    CircularReferenceError,
    ConfigError,
    KeydeckError,
    LayoutIOError,
    LayoutJSONError,
    LayoutParseError,
    LayoutValidationError,
    MaxDepthExceededError,
)
from .logging import get_struct_logger, setup_logging


__all__ = [
    "setup_logging",
    "get_struct_logger",
    "KeydeckError",
    "ConfigError",
    "LayoutParseError",
    "LayoutIOError",
    "LayoutJSONError",
    "LayoutValidationError",
    "CircularReferenceError",
    "MaxDepthExceededError",
]
