"""Configuration for the keydeck layout parser."""

from .settings import DEFAULT_MAX_DEPTH, ParserSettings, load_settings


__all__ = ["DEFAULT_MAX_DEPTH", "ParserSettings", "load_settings"]
