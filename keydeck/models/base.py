"""Base model for all keydeck Pydantic models.

This module provides a base model class that enforces consistent
construction behavior across the layout model tree.
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class KeydeckBaseModel(BaseModel):
    """Base model class for all keydeck Pydantic models.

    Models are frozen: a parsed layout is handed to renderers and input
    layers as an immutable value. Frozen models compare by value and are
    hashable, which lets alternative keys be used as dictionary keys.
    """

    model_config = ConfigDict(
        frozen=True,
        # Unknown fields are reported by the deserializer, never stored
        extra="forbid",
        # Enums stay enums so callers can match on them
        use_enum_values=False,
    )

    def replace(self, **changes: Any) -> Self:
        """Return a copy of this model with the given fields replaced.

        Args:
            **changes: Field values to substitute

        Returns:
            New model instance; the original is left untouched
        """
        return self.model_copy(update=changes)
