"""Shared model base classes for keydeck."""

from .base import KeydeckBaseModel


__all__ = ["KeydeckBaseModel"]
