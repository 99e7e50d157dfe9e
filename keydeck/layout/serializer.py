"""Write layout models back out in the tagged JSON format."""

import json
import logging
from pathlib import Path
from typing import Any

from keydeck.core.errors import LayoutIOError
from keydeck.layout.models import (
    Action,
    AlternativeKey,
    Cell,
    Character,
    Key,
    KeyCode,
    KeyCodeAction,
    Layout,
    ModifierCombo,
    Panel,
    Relative,
    Script,
    SingleModifier,
    Sizing,
    Unicode,
    Widget,
)


logger = logging.getLogger(__name__)

LAYOUT_METADATA_FIELDS = ("description", "author", "language", "locale", "inherits")


def code_to_json(code: KeyCode) -> dict[str, str]:
    if isinstance(code, Unicode):
        return {"Unicode": code.char}
    return {"Keysym": code.name}


def sizing_to_json(sizing: Sizing) -> dict[str, Any]:
    if isinstance(sizing, Relative):
        return {"Relative": sizing.value}
    return {"Pixels": sizing.value}


def action_to_json(action: Action) -> dict[str, Any]:
    if isinstance(action, Character):
        return {"Character": action.char}
    if isinstance(action, KeyCodeAction):
        return {"KeyCode": code_to_json(action.code)}
    if isinstance(action, Script):
        return {"Script": action.name}
    return {"PanelSwitch": action.panel_id}


def alternative_to_json(alt_key: AlternativeKey, action: Action) -> dict[str, Any]:
    """One alternative as a tagged ``[trigger, action]`` entry."""
    if isinstance(alt_key, SingleModifier):
        return {"SingleModifier": [alt_key.modifier.value, action_to_json(action)]}
    if isinstance(alt_key, ModifierCombo):
        modifiers = [modifier.value for modifier in alt_key.modifiers]
        return {"ModifierCombo": [modifiers, action_to_json(action)]}
    return {"Swipe": [alt_key.direction.value, action_to_json(action)]}


def key_to_json(key: Key) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": "key",
        "label": key.label,
        "code": code_to_json(key.code),
    }
    if key.identifier is not None:
        data["identifier"] = key.identifier
    data["width"] = sizing_to_json(key.width)
    data["height"] = sizing_to_json(key.height)
    if key.min_width is not None:
        data["min_width"] = key.min_width
    if key.min_height is not None:
        data["min_height"] = key.min_height
    if key.sticky:
        data["sticky"] = True
    if not key.stickyrelease:
        data["stickyrelease"] = False
    if key.alternatives:
        data["alternatives"] = [
            alternative_to_json(alt_key, action)
            for alt_key, action in key.alternatives.items()
        ]
    return data


def cell_to_json(cell: Cell) -> dict[str, Any]:
    if isinstance(cell, Key):
        return key_to_json(cell)
    if isinstance(cell, Widget):
        return {
            "type": "widget",
            "widget_type": cell.widget_type,
            "width": sizing_to_json(cell.width),
            "height": sizing_to_json(cell.height),
        }
    return {
        "type": "panel_ref",
        "panel_id": cell.panel_id,
        "width": sizing_to_json(cell.width),
        "height": sizing_to_json(cell.height),
    }


def panel_to_json(panel: Panel) -> dict[str, Any]:
    data: dict[str, Any] = {"id": panel.id}
    if panel.padding is not None:
        data["padding"] = panel.padding
    if panel.margin is not None:
        data["margin"] = panel.margin
    data["rows"] = [
        {"cells": [cell_to_json(cell) for cell in row.cells]} for row in panel.rows
    ]
    return data


def layout_to_dict(layout: Layout) -> dict[str, Any]:
    """Convert a layout to JSON-ready data in the tagged wire format.

    Panels are written as a list and optional fields only when set, so
    parsing the result yields an equal layout.
    """
    data: dict[str, Any] = {
        "name": layout.name,
        "version": layout.version,
        "default_panel_id": layout.default_panel_id,
    }
    for field_name in LAYOUT_METADATA_FIELDS:
        value = getattr(layout, field_name)
        if value is not None:
            data[field_name] = value
    data["panels"] = [panel_to_json(panel) for panel in layout.panels.values()]
    return data


def dump_layout_json(layout: Layout, indent: int | None = 2) -> str:
    """Serialize a layout to JSON text."""
    return json.dumps(layout_to_dict(layout), indent=indent, ensure_ascii=False)


def save_layout_file(layout: Layout, file_path: Path) -> None:
    """Save a layout to a JSON file.

    Args:
        layout: Layout to save
        file_path: Path where to save the file

    Raises:
        LayoutIOError: If the file cannot be written
    """
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(dump_layout_json(layout) + "\n", encoding="utf-8")
    except OSError as e:
        raise LayoutIOError(
            f"Failed to save layout: {e}",
            file_path=file_path,
            suggestion="Check that the directory is writable",
        ) from e
    logger.debug("Saved layout '%s' to %s", layout.name, file_path)


__all__ = [
    "action_to_json",
    "cell_to_json",
    "code_to_json",
    "dump_layout_json",
    "layout_to_dict",
    "save_layout_file",
    "sizing_to_json",
]
