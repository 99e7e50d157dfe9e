"""Layout models for keyboard layouts.

The tree is ``Layout -> Panel -> Row -> Cell`` where a cell is exactly one
of :class:`Key`, :class:`Widget` or :class:`PanelRef`. Every tagged union
of the JSON format (cells, key codes, sizing, alternative keys, actions)
is a plain union of variant classes here, so consumers dispatch with
``match``/``isinstance`` instead of inspecting a type string.
"""

from collections.abc import Iterator
from enum import Enum
from typing import TypeAlias

from pydantic import Field, field_validator

from keydeck.models.base import KeydeckBaseModel


class Modifier(str, Enum):
    """Keyboard modifiers, declared in canonical sort order."""

    SHIFT = "Shift"
    CTRL = "Ctrl"
    ALT = "Alt"
    SUPER = "Super"

    @property
    def rank(self) -> int:
        """Position of this modifier in the canonical order."""
        return _MODIFIER_ORDER.index(self)

    def __str__(self) -> str:
        return self.value


_MODIFIER_ORDER: tuple[Modifier, ...] = tuple(Modifier)


class SwipeDirection(str, Enum):
    """Directions of a swipe gesture starting on a key."""

    UP = "Up"
    DOWN = "Down"
    LEFT = "Left"
    RIGHT = "Right"

    def __str__(self) -> str:
        return self.value


# Key codes


class Unicode(KeydeckBaseModel):
    """Key code emitting a single Unicode character."""

    char: str = Field(min_length=1, max_length=1)

    def __str__(self) -> str:
        return repr(self.char)


class Keysym(KeydeckBaseModel):
    """Key code naming an XKB keysym such as ``BackSpace`` or ``Return``."""

    name: str

    def __str__(self) -> str:
        return f"Keysym({self.name})"


KeyCode: TypeAlias = Unicode | Keysym


# Sizing


class Relative(KeydeckBaseModel):
    """Size relative to a standard key (1.0 is one key unit)."""

    value: float

    def __str__(self) -> str:
        return f"{self.value:g}"


class Pixels(KeydeckBaseModel):
    """Absolute size such as ``"20px"``, stored verbatim.

    Converting to physical units is left to the renderer.
    """

    value: str

    def __str__(self) -> str:
        return self.value


Sizing: TypeAlias = Relative | Pixels

DEFAULT_SIZING = Relative(value=1.0)


def as_relative(sizing: Sizing) -> float:
    """Relative size of *sizing*; pixel sizes count as one unit."""
    if isinstance(sizing, Relative):
        return sizing.value
    return 1.0


# Alternative keys


class SingleModifier(KeydeckBaseModel):
    """Alternative triggered while one modifier is held."""

    modifier: Modifier

    def __str__(self) -> str:
        return str(self.modifier)


class ModifierCombo(KeydeckBaseModel):
    """Alternative triggered while a set of modifiers is held.

    The modifiers are sorted into canonical order on construction, so two
    combos naming the same set compare and hash equal. Emptiness and
    duplicates are reported by the structural validator.
    """

    modifiers: tuple[Modifier, ...]

    @field_validator("modifiers")
    @classmethod
    def sort_modifiers(cls, v: tuple[Modifier, ...]) -> tuple[Modifier, ...]:
        """Store modifiers in canonical order."""
        return tuple(sorted(v, key=lambda modifier: modifier.rank))

    @classmethod
    def of(cls, *modifiers: Modifier) -> "ModifierCombo":
        """Build a combo from modifiers given in any order."""
        return cls(modifiers=modifiers)

    @property
    def has_duplicates(self) -> bool:
        return len(set(self.modifiers)) != len(self.modifiers)

    def __str__(self) -> str:
        return "+".join(str(modifier) for modifier in self.modifiers)


class Swipe(KeydeckBaseModel):
    """Alternative triggered by swiping from the key in a direction."""

    direction: SwipeDirection

    def __str__(self) -> str:
        return f"Swipe {self.direction}"


AlternativeKey: TypeAlias = SingleModifier | ModifierCombo | Swipe


# Actions


class Character(KeydeckBaseModel):
    """Action typing a single character."""

    char: str = Field(min_length=1, max_length=1)

    def __str__(self) -> str:
        return repr(self.char)


class KeyCodeAction(KeydeckBaseModel):
    """Action emitting a key code."""

    code: KeyCode

    def __str__(self) -> str:
        return str(self.code)


class Script(KeydeckBaseModel):
    """Action running a named script.

    The name is an opaque identifier; the parser never resolves it.
    """

    name: str

    def __str__(self) -> str:
        return f"Script({self.name})"


class PanelSwitch(KeydeckBaseModel):
    """Action switching the visible panel."""

    panel_id: str

    def __str__(self) -> str:
        return f"PanelSwitch({self.panel_id})"


Action: TypeAlias = Character | KeyCodeAction | Script | PanelSwitch


# Cells


class Key(KeydeckBaseModel):
    """A pressable key.

    ``identifier`` is what inheritance uses to match a child key against a
    parent key; keys without one can never be overridden. ``sticky`` keys
    stay logically pressed after release: one-shot when ``stickyrelease``
    is true (released after the next key), toggle otherwise.
    """

    label: str
    code: KeyCode
    identifier: str | None = None
    width: Sizing = DEFAULT_SIZING
    height: Sizing = DEFAULT_SIZING
    min_width: int | None = Field(default=None, ge=0)
    min_height: int | None = Field(default=None, ge=0)
    sticky: bool = False
    stickyrelease: bool = True
    alternatives: dict[AlternativeKey, Action] = Field(default_factory=dict)

    @property
    def has_identifier(self) -> bool:
        return bool(self.identifier)


class Widget(KeydeckBaseModel):
    """A non-key element such as a trackpad; ``widget_type`` is open-ended."""

    widget_type: str
    width: Sizing = DEFAULT_SIZING
    height: Sizing = DEFAULT_SIZING


class PanelRef(KeydeckBaseModel):
    """Embeds another panel of the same layout into a row."""

    panel_id: str
    width: Sizing = DEFAULT_SIZING
    height: Sizing = DEFAULT_SIZING


Cell: TypeAlias = Key | Widget | PanelRef


# Containers


class Row(KeydeckBaseModel):
    """Cells in visual left-to-right order."""

    cells: tuple[Cell, ...] = ()


class Panel(KeydeckBaseModel):
    """A named, independently addressable group of rows."""

    id: str
    padding: float | None = None
    margin: float | None = None
    rows: tuple[Row, ...] = ()

    def iter_cells(self) -> Iterator[tuple[int, int, Cell]]:
        """Yield ``(row_index, cell_index, cell)`` for every cell."""
        for row_idx, row in enumerate(self.rows):
            for cell_idx, cell in enumerate(row.cells):
                yield row_idx, cell_idx, cell

    def panel_refs(self) -> list[PanelRef]:
        """Panel references in this panel's own rows, in document order."""
        return [cell for _, _, cell in self.iter_cells() if isinstance(cell, PanelRef)]

    def keys(self) -> list[Key]:
        return [cell for _, _, cell in self.iter_cells() if isinstance(cell, Key)]


class Layout(KeydeckBaseModel):
    """Root of a keyboard layout definition."""

    name: str
    version: str
    default_panel_id: str
    description: str | None = None
    author: str | None = None
    language: str | None = None
    locale: str | None = None
    inherits: str | None = None
    panels: dict[str, Panel] = Field(default_factory=dict)

    @property
    def default_panel(self) -> Panel | None:
        """The panel shown first, if it exists."""
        return self.panels.get(self.default_panel_id)

    def iter_cells(self) -> Iterator[tuple[str, int, int, Cell]]:
        """Yield ``(panel_id, row_index, cell_index, cell)`` for every cell."""
        for panel_id, panel in self.panels.items():
            for row_idx, cell_idx, cell in panel.iter_cells():
                yield panel_id, row_idx, cell_idx, cell


def panel_path(panel_id: str) -> str:
    """Field path of a panel, e.g. ``panels["main"]``."""
    return f'panels["{panel_id}"]'


def cell_path(panel_id: str, row_idx: int, cell_idx: int) -> str:
    """Field path of a cell, e.g. ``panels["main"].rows[0].cells[2]``."""
    return f"{panel_path(panel_id)}.rows[{row_idx}].cells[{cell_idx}]"


__all__ = [
    "DEFAULT_SIZING",
    "Action",
    "AlternativeKey",
    "Cell",
    "Character",
    "Key",
    "KeyCode",
    "KeyCodeAction",
    "Keysym",
    "Layout",
    "Modifier",
    "ModifierCombo",
    "Panel",
    "PanelRef",
    "PanelSwitch",
    "Pixels",
    "Relative",
    "Row",
    "Script",
    "SingleModifier",
    "Sizing",
    "Swipe",
    "SwipeDirection",
    "Unicode",
    "Widget",
    "as_relative",
    "cell_path",
    "panel_path",
]
