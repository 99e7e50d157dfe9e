"""Decode layout JSON text into the layout model.

Decoding is permissive: every field is read by a decode-or-default helper,
so an absent optional field silently takes its default and a malformed
field is reported as an issue and defaulted, letting one pass report every
problem in the file. Absent required strings decode to ``""`` (and an
absent key code to an empty keysym) so the structural validator can flag
them alongside everything else.

Text that is not JSON at all raises :class:`LayoutJSONError` instead; that
is the only failure this module raises for syntax.
"""

import bisect
import difflib
import json
import json.decoder
import json.scanner
import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from keydeck.core.errors import LayoutJSONError, LayoutValidationError
from keydeck.layout.models import (
    DEFAULT_SIZING,
    Action,
    AlternativeKey,
    Cell,
    Character,
    Key,
    KeyCode,
    KeyCodeAction,
    Keysym,
    Layout,
    Modifier,
    ModifierCombo,
    Panel,
    PanelRef,
    PanelSwitch,
    Pixels,
    Relative,
    Row,
    Script,
    SingleModifier,
    Sizing,
    Swipe,
    SwipeDirection,
    Unicode,
    Widget,
    cell_path,
    panel_path,
)
from keydeck.layout.results import ValidationIssue


logger = logging.getLogger(__name__)

LAYOUT_FIELDS = (
    "name",
    "version",
    "default_panel_id",
    "description",
    "author",
    "language",
    "locale",
    "inherits",
    "panels",
)
PANEL_FIELDS = ("id", "padding", "margin", "rows")
ROW_FIELDS = ("cells",)
KEY_FIELDS = (
    "type",
    "label",
    "code",
    "identifier",
    "width",
    "height",
    "min_width",
    "min_height",
    "sticky",
    "stickyrelease",
    "alternatives",
)
WIDGET_FIELDS = ("type", "widget_type", "width", "height")
PANEL_REF_FIELDS = ("type", "panel_id", "width", "height")

CELL_TYPES = ("key", "widget", "panel_ref")
ALTERNATIVE_TAGS = ("SingleModifier", "ModifierCombo", "Swipe")
ACTION_TAGS = ("Character", "KeyCode", "Script", "PanelSwitch")

MISSING_CODE = Keysym(name="")

_PATH_TAIL = re.compile(r"^(.*)(\[[^\[\]]*\]|\.[^.\[\]]+)$")


class SourcePositions(dict[str, int]):
    """Map of field path to the 1-based line its JSON object starts on."""

    def line_for(self, path: str) -> int | None:
        """Line of *path*, or of its closest enclosing object."""
        while True:
            if path in self:
                return self[path]
            if not path:
                return None
            match = _PATH_TAIL.match(path)
            path = match.group(1) if match else ""


class _SourceDict(dict[str, Any]):
    """JSON object remembering where it started and which keys repeated."""

    __slots__ = ("line", "duplicate_keys")

    def __init__(self, pairs: list[tuple[str, Any]], line: int) -> None:
        super().__init__(pairs)
        self.line = line
        seen: set[str] = set()
        self.duplicate_keys: list[str] = []
        for key, _ in pairs:
            if key in seen:
                self.duplicate_keys.append(key)
            seen.add(key)


class _PositionTrackingDecoder(json.JSONDecoder):
    """JSON decoder tagging every object with the line it starts on.

    Uses the pure-Python scanner so object parsing can be intercepted.
    """

    def __init__(self) -> None:
        super().__init__()
        self._line_starts: list[int] = [0]
        self.parse_object = self._parse_object
        self.scan_once = json.scanner.py_make_scanner(self)

    def decode(self, s: str, *args: Any, **kwargs: Any) -> Any:
        self._line_starts = [0] + [match.end() for match in re.finditer("\n", s)]
        return super().decode(s, *args, **kwargs)

    def _parse_object(
        self,
        s_and_end: tuple[str, int],
        strict: bool,
        scan_once: Callable[[str, int], tuple[Any, int]],
        object_hook: Any,
        object_pairs_hook: Any,
        memo: dict[str, str] | None = None,
    ) -> tuple[_SourceDict, int]:
        _, end = s_and_end
        pairs, new_end = json.decoder.JSONObject(
            s_and_end, strict, scan_once, None, list, memo
        )
        # `end` points just past the opening brace
        line = bisect.bisect_right(self._line_starts, end - 1)
        return _SourceDict(pairs, line), new_end


def load_json(text: str, source: str | None = None) -> Any:
    """Parse JSON text, converting syntax errors into :class:`LayoutJSONError`."""
    try:
        return _PositionTrackingDecoder().decode(text)
    except json.JSONDecodeError as e:
        raise LayoutJSONError(
            e.msg, line=e.lineno, column=e.colno, file_path=source
        ) from e
    except RecursionError as e:
        raise LayoutJSONError(
            "JSON is nested too deeply",
            file_path=source,
            suggestion="Layouts never need arrays or objects nested this deep",
        ) from e
    except ValueError as e:
        # Integers beyond the interpreter's digit limit
        raise LayoutJSONError(
            str(e), file_path=source, suggestion="Use a number of sensible size"
        ) from e


@dataclass(frozen=True)
class DecodedLayout:
    """Result of decoding one layout document.

    Attributes:
        layout: The decoded, not yet validated, layout
        issues: Problems found while decoding (errors and warnings)
        positions: Field path to source line, for diagnostics
        source: File the layout came from, if any
    """

    layout: Layout
    issues: list[ValidationIssue] = field(default_factory=list)
    positions: SourcePositions = field(default_factory=SourcePositions)
    source: str | None = None


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _as_float(value: int | float) -> float:
    """Convert a JSON number, mapping integers too large for a float to infinity."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def _single_tag(value: Any) -> tuple[str, Any] | None:
    """Return ``(tag, payload)`` when *value* is a one-key object."""
    if isinstance(value, dict) and len(value) == 1:
        return next(iter(value.items()))
    return None


def _lookup_enum(enum_cls: type[Modifier] | type[SwipeDirection], name: str) -> Any:
    for member in enum_cls:
        if member.value.lower() == name.strip().lower():
            return member
    return None


class _LayoutDecoder:
    """Decodes one JSON document, collecting issues as it goes."""

    def __init__(self, source: str | None, warn_unknown_fields: bool) -> None:
        self.source = source
        self.warn_unknown_fields = warn_unknown_fields
        self.issues: list[ValidationIssue] = []
        self.positions = SourcePositions()

    # Issue helpers

    def _add(self, issue: ValidationIssue) -> None:
        self.issues.append(
            issue.replace(
                line_number=self.positions.line_for(issue.field_path),
                source=self.source,
            )
        )

    def error(self, message: str, path: str, suggestion: str | None = None) -> None:
        self._add(ValidationIssue.error(message, path, suggestion))

    def warning(self, message: str, path: str, suggestion: str | None = None) -> None:
        self._add(ValidationIssue.warning(message, path, suggestion))

    def _mark(self, path: str, value: Any) -> None:
        if isinstance(value, _SourceDict):
            self.positions[path] = value.line

    def _check_fields(self, obj: dict[str, Any], allowed: tuple[str, ...], path: str) -> None:
        for key in getattr(obj, "duplicate_keys", ()):
            self.warning(
                f"Field '{key}' is defined more than once; the last value wins",
                self._join(path, key),
            )
        if not self.warn_unknown_fields:
            return
        for key in obj:
            if key not in allowed:
                close = difflib.get_close_matches(key, allowed, n=1)
                self.warning(
                    f"Unknown field '{key}' is ignored",
                    self._join(path, key),
                    f"Did you mean '{close[0]}'?" if close else None,
                )

    @staticmethod
    def _join(path: str, name: str) -> str:
        return f"{path}.{name}" if path else name

    # Scalar helpers

    def string(self, obj: dict[str, Any], name: str, path: str) -> str | None:
        value = obj.get(name)
        if value is None or isinstance(value, str):
            return value
        self.error(
            f"Field '{name}' must be a string, got {_type_name(value)}",
            self._join(path, name),
        )
        return None

    def required_string(self, obj: dict[str, Any], name: str, path: str) -> str:
        return self.string(obj, name, path) or ""

    def number(self, obj: dict[str, Any], name: str, path: str) -> float | None:
        value = obj.get(name)
        if value is None:
            return None
        if _is_number(value):
            return _as_float(value)
        self.error(
            f"Field '{name}' must be a number, got {_type_name(value)}",
            self._join(path, name),
        )
        return None

    def boolean(self, obj: dict[str, Any], name: str, path: str, default: bool) -> bool:
        value = obj.get(name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        self.error(
            f"Field '{name}' must be true or false, got {_type_name(value)}",
            self._join(path, name),
        )
        return default

    def pixel_floor(self, obj: dict[str, Any], name: str, path: str) -> int | None:
        value = obj.get(name)
        if value is None:
            return None
        if (
            _is_number(value)
            and value >= 0
            and (isinstance(value, int) or value.is_integer())
        ):
            return int(value)
        self.error(
            f"Field '{name}' must be a non-negative whole number of pixels",
            self._join(path, name),
            "Use a value such as 40",
        )
        return None

    # Layout tree

    def decode_layout(self, data: Any) -> Layout:
        if not isinstance(data, dict):
            raise LayoutValidationError(
                [
                    ValidationIssue.error(
                        f"Layout must be a JSON object, got {_type_name(data)}", "layout"
                    )
                ],
                file_path=self.source,
            )
        self._mark("", data)
        self._check_fields(data, LAYOUT_FIELDS, "")

        return Layout(
            name=self.required_string(data, "name", ""),
            version=self.required_string(data, "version", ""),
            default_panel_id=self.required_string(data, "default_panel_id", ""),
            description=self.string(data, "description", ""),
            author=self.string(data, "author", ""),
            language=self.string(data, "language", ""),
            locale=self.string(data, "locale", ""),
            inherits=self.string(data, "inherits", ""),
            panels=self.decode_panels(data.get("panels")),
        )

    def decode_panels(self, value: Any) -> dict[str, Panel]:
        panels: dict[str, Panel] = {}
        if value is None:
            return panels

        if isinstance(value, list):
            entries: list[tuple[str, Any, str | None]] = [
                (f"panels[{index}]", item, None) for index, item in enumerate(value)
            ]
        elif isinstance(value, dict):
            entries = [(panel_path(key), item, key) for key, item in value.items()]
        else:
            self.error(
                f"Field 'panels' must be an array of panels, got {_type_name(value)}",
                "panels",
            )
            return panels

        for hint_path, item, key in entries:
            panel = self.decode_panel(item, hint_path, key)
            if panel is None:
                continue
            if panel.id in panels:
                self.error(
                    f"Duplicate panel id '{panel.id}'",
                    panel_path(panel.id),
                    "Panel ids must be unique within a layout",
                )
                continue
            panels[panel.id] = panel
        return panels

    def decode_panel(self, value: Any, hint_path: str, key: str | None) -> Panel | None:
        if not isinstance(value, dict):
            self.error(f"Panel must be an object, got {_type_name(value)}", hint_path)
            return None
        self._mark(hint_path, value)

        panel_id = self.string(value, "id", hint_path)
        if key is not None:
            if panel_id is None:
                panel_id = key
            elif panel_id != key:
                self.warning(
                    f"Panel id '{panel_id}' does not match its key '{key}'; using '{key}'",
                    f"{hint_path}.id",
                )
                panel_id = key
        panel_id = panel_id or ""

        path = panel_path(panel_id)
        self._mark(path, value)
        self._check_fields(value, PANEL_FIELDS, path)

        return Panel(
            id=panel_id,
            padding=self.number(value, "padding", path),
            margin=self.number(value, "margin", path),
            rows=self.decode_rows(value.get("rows"), panel_id, path),
        )

    def decode_rows(self, value: Any, panel_id: str, path: str) -> tuple[Row, ...]:
        if value is None:
            return ()
        if not isinstance(value, list):
            self.error(
                f"Field 'rows' must be an array, got {_type_name(value)}", f"{path}.rows"
            )
            return ()

        rows = []
        for row_idx, row_value in enumerate(value):
            row_path = f"{path}.rows[{row_idx}]"
            if not isinstance(row_value, dict):
                self.error(f"Row must be an object, got {_type_name(row_value)}", row_path)
                continue
            self._mark(row_path, row_value)
            self._check_fields(row_value, ROW_FIELDS, row_path)

            cells_value = row_value.get("cells")
            if cells_value is None:
                cells_value = []
            elif not isinstance(cells_value, list):
                self.error(
                    f"Field 'cells' must be an array, got {_type_name(cells_value)}",
                    f"{row_path}.cells",
                )
                cells_value = []

            cells: list[Cell] = []
            for cell_idx, cell_value in enumerate(cells_value):
                cell = self.decode_cell(cell_value, cell_path(panel_id, row_idx, cell_idx))
                if cell is not None:
                    cells.append(cell)
            rows.append(Row(cells=tuple(cells)))
        return tuple(rows)

    def decode_cell(self, value: Any, path: str) -> Cell | None:
        if not isinstance(value, dict):
            self.error(f"Cell must be an object, got {_type_name(value)}", path)
            return None
        self._mark(path, value)

        cell_type = value.get("type")
        if cell_type == "key":
            return self.decode_key(value, path)
        if cell_type == "widget":
            self._check_fields(value, WIDGET_FIELDS, path)
            return Widget(
                widget_type=self.required_string(value, "widget_type", path),
                width=self.decode_sizing(value.get("width"), f"{path}.width"),
                height=self.decode_sizing(value.get("height"), f"{path}.height"),
            )
        if cell_type == "panel_ref":
            self._check_fields(value, PANEL_REF_FIELDS, path)
            return PanelRef(
                panel_id=self.required_string(value, "panel_id", path),
                width=self.decode_sizing(value.get("width"), f"{path}.width"),
                height=self.decode_sizing(value.get("height"), f"{path}.height"),
            )

        expected = ", ".join(f"'{name}'" for name in CELL_TYPES)
        if cell_type is None:
            self.error("Cell is missing its 'type' tag", f"{path}.type", f"Use one of {expected}")
        else:
            self.error(
                f"Unknown cell type {cell_type!r}", f"{path}.type", f"Use one of {expected}"
            )
        return None

    def decode_key(self, value: dict[str, Any], path: str) -> Key:
        self._check_fields(value, KEY_FIELDS, path)
        return Key(
            label=self.required_string(value, "label", path),
            code=self.decode_code(value.get("code"), f"{path}.code"),
            identifier=self.string(value, "identifier", path),
            width=self.decode_sizing(value.get("width"), f"{path}.width"),
            height=self.decode_sizing(value.get("height"), f"{path}.height"),
            min_width=self.pixel_floor(value, "min_width", path),
            min_height=self.pixel_floor(value, "min_height", path),
            sticky=self.boolean(value, "sticky", path, default=False),
            stickyrelease=self.boolean(value, "stickyrelease", path, default=True),
            alternatives=self.decode_alternatives(
                value.get("alternatives"), f"{path}.alternatives"
            ),
        )

    # Tagged values

    def decode_code(self, value: Any, path: str) -> KeyCode:
        if value is None:
            return MISSING_CODE
        if isinstance(value, str):
            # Shorthand: one character is a Unicode code, anything else a keysym
            return Unicode(char=value) if len(value) == 1 else Keysym(name=value)

        tagged = _single_tag(value)
        if tagged is not None:
            self._mark(path, value)
            tag, payload = tagged
            if tag == "Unicode":
                if isinstance(payload, str) and len(payload) == 1:
                    return Unicode(char=payload)
                self.error(
                    "Unicode key code must be a single character",
                    path,
                    'Use {"Keysym": "<name>"} for named keys',
                )
                return MISSING_CODE
            if tag == "Keysym":
                if isinstance(payload, str):
                    return Keysym(name=payload)
                self.error("Keysym key code must be a string", path)
                return MISSING_CODE
            self.error(
                f"Unknown key code tag {tag!r}", path, "Use 'Unicode' or 'Keysym'"
            )
            return MISSING_CODE

        self.error(
            f"Key code must be a string or a tagged object, got {_type_name(value)}",
            path,
            'Use {"Unicode": "q"} or {"Keysym": "BackSpace"}',
        )
        return MISSING_CODE

    def decode_sizing(self, value: Any, path: str) -> Sizing:
        if value is None:
            return DEFAULT_SIZING
        if _is_number(value):
            return Relative(value=_as_float(value))
        if isinstance(value, str):
            return Pixels(value=value)

        tagged = _single_tag(value)
        if tagged is not None:
            self._mark(path, value)
            tag, payload = tagged
            if tag == "Relative" and _is_number(payload):
                return Relative(value=_as_float(payload))
            if tag == "Pixels" and isinstance(payload, str):
                return Pixels(value=payload)
            if tag in ("Relative", "Pixels"):
                self.error(f"Invalid {tag} sizing value {payload!r}", path)
                return DEFAULT_SIZING
            self.error(f"Unknown sizing tag {tag!r}", path, "Use 'Relative' or 'Pixels'")
            return DEFAULT_SIZING

        self.error(
            f"Sizing must be a number, a pixel string or a tagged object, "
            f"got {_type_name(value)}",
            path,
            'Use {"Relative": 1.5} or {"Pixels": "20px"}',
        )
        return DEFAULT_SIZING

    def decode_action(self, value: Any, path: str) -> Action | None:
        if isinstance(value, str):
            if len(value) == 1:
                return Character(char=value)
            if value:
                return KeyCodeAction(code=Keysym(name=value))
            self.error("Action must not be empty", path)
            return None

        tagged = _single_tag(value)
        if tagged is None:
            self.error(
                f"Action must be a string or a tagged object, got {_type_name(value)}",
                path,
            )
            return None

        self._mark(path, value)
        tag, payload = tagged
        if tag == "Character":
            if isinstance(payload, str) and len(payload) == 1:
                return Character(char=payload)
            self.error("Character action must be a single character", path)
            return None
        if tag == "KeyCode":
            reported = len(self.issues)
            code = self.decode_code(payload, f"{path}.KeyCode")
            if code == MISSING_CODE:
                if len(self.issues) == reported:
                    self.error(
                        "KeyCode action needs a non-empty key code",
                        path,
                        'Use {"KeyCode": {"Keysym": "Return"}}',
                    )
                return None
            return KeyCodeAction(code=code)
        if tag in ("Script", "PanelSwitch"):
            if not isinstance(payload, str) or not payload:
                self.error(f"{tag} action needs a non-empty name", path)
                return None
            if tag == "Script":
                return Script(name=payload)
            return PanelSwitch(panel_id=payload)

        self.error(
            f"Unknown action tag {tag!r}",
            path,
            "Use one of " + ", ".join(f"'{name}'" for name in ACTION_TAGS),
        )
        return None

    def decode_modifier(self, value: Any, path: str) -> Modifier | None:
        modifier = _lookup_enum(Modifier, value) if isinstance(value, str) else None
        if modifier is None:
            self.error(
                f"Unknown modifier {value!r}",
                path,
                "Use one of " + ", ".join(m.value for m in Modifier),
            )
        return modifier

    def decode_direction(self, value: Any, path: str) -> SwipeDirection | None:
        direction = _lookup_enum(SwipeDirection, value) if isinstance(value, str) else None
        if direction is None:
            self.error(
                f"Unknown swipe direction {value!r}",
                path,
                "Use one of " + ", ".join(d.value for d in SwipeDirection),
            )
        return direction

    def _tagged_alternative(
        self, tag: str, payload: Any, path: str
    ) -> tuple[AlternativeKey, Any] | None:
        """Decode ``{"Swipe": ["Up", <action>]}`` style entries."""
        if not isinstance(payload, list) or len(payload) != 2:
            self.error(
                f"{tag} alternative must be a [trigger, action] pair",
                path,
                f'Use {{"{tag}": [<trigger>, <action>]}}',
            )
            return None
        trigger, action = payload

        if tag == "SingleModifier":
            modifier = self.decode_modifier(trigger, path)
            if modifier is None:
                return None
            return SingleModifier(modifier=modifier), action
        if tag == "Swipe":
            direction = self.decode_direction(trigger, path)
            if direction is None:
                return None
            return Swipe(direction=direction), action

        if not isinstance(trigger, list):
            self.error("ModifierCombo trigger must be an array of modifiers", path)
            return None
        modifiers = [self.decode_modifier(name, path) for name in trigger]
        if any(modifier is None for modifier in modifiers):
            return None
        return ModifierCombo(modifiers=tuple(m for m in modifiers if m is not None)), action

    def _shorthand_alternative(self, name: str, path: str) -> AlternativeKey | None:
        """Decode ``"Shift"``, ``"Ctrl+Alt"`` or ``"Up"`` style trigger names."""
        if "+" in name:
            modifiers = [self.decode_modifier(part, path) for part in name.split("+")]
            if any(modifier is None for modifier in modifiers):
                return None
            return ModifierCombo(modifiers=tuple(m for m in modifiers if m is not None))

        modifier = _lookup_enum(Modifier, name)
        if modifier is not None:
            return SingleModifier(modifier=modifier)
        direction = _lookup_enum(SwipeDirection, name)
        if direction is not None:
            return Swipe(direction=direction)

        self.error(
            f"Unknown alternative trigger {name!r}",
            path,
            "Use a modifier (Shift, Ctrl, Alt, Super), a combination such as "
            "'Ctrl+Alt', or a swipe direction (Up, Down, Left, Right)",
        )
        return None

    def decode_alternatives(self, value: Any, path: str) -> dict[AlternativeKey, Action]:
        if value is None:
            return {}

        raw: list[tuple[AlternativeKey, Any, str]] = []
        if isinstance(value, dict):
            self._mark(path, value)
            for name, action_value in value.items():
                entry_path = f'{path}["{name}"]'
                if name in ALTERNATIVE_TAGS:
                    decoded = self._tagged_alternative(name, action_value, entry_path)
                    if decoded is not None:
                        raw.append((decoded[0], decoded[1], entry_path))
                    continue
                alt_key = self._shorthand_alternative(name, entry_path)
                if alt_key is not None:
                    raw.append((alt_key, action_value, entry_path))
        elif isinstance(value, list):
            for index, entry in enumerate(value):
                entry_path = f"{path}[{index}]"
                tagged = _single_tag(entry)
                if tagged is None or tagged[0] not in ALTERNATIVE_TAGS:
                    self.error(
                        "Alternative entry must be an object with one of the tags "
                        + ", ".join(f"'{tag}'" for tag in ALTERNATIVE_TAGS),
                        entry_path,
                    )
                    continue
                self._mark(entry_path, entry)
                decoded = self._tagged_alternative(tagged[0], tagged[1], entry_path)
                if decoded is not None:
                    raw.append((decoded[0], decoded[1], entry_path))
        else:
            self.error(
                f"Field 'alternatives' must be an object, got {_type_name(value)}", path
            )
            return {}

        alternatives: dict[AlternativeKey, Action] = {}
        for alt_key, action_value, entry_path in raw:
            action = self.decode_action(action_value, entry_path)
            if action is None:
                continue
            if alt_key in alternatives:
                self.warning(
                    f"Alternative '{alt_key}' is bound more than once; "
                    "the later binding wins",
                    entry_path,
                )
            alternatives[alt_key] = action
        return alternatives


def deserialize_layout(
    text: str,
    source: str | None = None,
    *,
    warn_unknown_fields: bool = True,
) -> DecodedLayout:
    """Decode layout JSON text into a layout model.

    Args:
        text: Raw JSON text
        source: File the text came from, attached to issues and errors
        warn_unknown_fields: Report fields the format does not define

    Returns:
        The decoded layout with decode-time issues and source positions

    Raises:
        LayoutJSONError: If the text is not well-formed JSON
        LayoutValidationError: If the document is not a JSON object
    """
    data = load_json(text, source)
    decoder = _LayoutDecoder(source, warn_unknown_fields)
    layout = decoder.decode_layout(data)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Decoded layout '%s' with %d panel(s) and %d decode issue(s)",
            layout.name,
            len(layout.panels),
            len(decoder.issues),
        )

    return DecodedLayout(
        layout=layout,
        issues=decoder.issues,
        positions=decoder.positions,
        source=source,
    )


__all__ = [
    "DecodedLayout",
    "SourcePositions",
    "deserialize_layout",
    "load_json",
]
