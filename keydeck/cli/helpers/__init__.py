"""CLI helper functions."""

from keydeck.cli.helpers.output import (
    print_error_message,
    print_issue,
    print_json,
    print_success_message,
    print_warning_message,
)


__all__ = [
    "print_error_message",
    "print_issue",
    "print_json",
    "print_success_message",
    "print_warning_message",
]
