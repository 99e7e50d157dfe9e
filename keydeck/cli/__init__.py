"""Command-line interface for keydeck."""

from keydeck.cli.app import app, main


__all__ = ["app", "main"]
