"""Structural validation of layout models.

The validator walks a layout once, collecting every issue instead of
stopping at the first, and builds a defaulted copy in which each advisory
problem (bad sizing, negative spacing, malformed modifier combos) has been
replaced by a safe value. The input layout is never modified.
"""

import difflib
import logging
import math
import re
from dataclasses import dataclass, field

from keydeck.config.settings import ParserSettings
from keydeck.layout.deserializer import DecodedLayout, SourcePositions
from keydeck.layout.models import (
    DEFAULT_SIZING,
    Action,
    AlternativeKey,
    Cell,
    Key,
    KeyCodeAction,
    Keysym,
    Layout,
    Modifier,
    ModifierCombo,
    Panel,
    PanelRef,
    PanelSwitch,
    Pixels,
    Row,
    Sizing,
    Widget,
    cell_path,
    panel_path,
)
from keydeck.layout.results import ValidationIssue, sort_issues


logger = logging.getLogger(__name__)

PIXELS_PATTERN = re.compile(r"^\d+px$")


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of one validation pass.

    Attributes:
        layout: Copy of the input with advisory problems defaulted
        issues: Every issue found, errors first then by field path
    """

    layout: Layout
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.is_error]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if not issue.is_error]

    @property
    def has_errors(self) -> bool:
        return any(issue.is_error for issue in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors


def _panel_list(panel_ids: list[str]) -> str:
    return ", ".join(f"'{panel_id}'" for panel_id in sorted(panel_ids)) or "(none)"


class _StructuralValidator:
    """Single-use walker collecting issues for one layout."""

    def __init__(self, layout: Layout, settings: ParserSettings) -> None:
        self.layout = layout
        self.settings = settings
        self.issues: list[ValidationIssue] = []
        self.panel_ids = list(layout.panels)

    def error(self, message: str, path: str, suggestion: str | None = None) -> None:
        self.issues.append(ValidationIssue.error(message, path, suggestion))

    def warning(self, message: str, path: str, suggestion: str | None = None) -> None:
        self.issues.append(ValidationIssue.warning(message, path, suggestion))

    def _require(self, value: str, name: str, path: str) -> None:
        if not value:
            self.error(f"Required field '{name}' is missing or empty", path)

    def _dangling_suggestion(self, target: str) -> str:
        close = difflib.get_close_matches(target, self.panel_ids, n=1)
        if close:
            return f"Did you mean '{close[0]}'?"
        return f"Available panels: {_panel_list(self.panel_ids)}"

    # Layout

    def run(self) -> Layout:
        layout = self.layout
        self._require(layout.name, "name", "name")
        self._require(layout.version, "version", "version")
        self._require(layout.default_panel_id, "default_panel_id", "default_panel_id")

        if layout.default_panel_id and layout.default_panel is None:
            self.warning(
                f"Default panel '{layout.default_panel_id}' does not exist",
                "default_panel_id",
                f"Set default_panel_id to one of: {_panel_list(self.panel_ids)}",
            )

        if self.settings.warn_missing_metadata:
            if layout.description is None:
                self.warning(
                    "Layout has no description",
                    "description",
                    "Add a short description of the layout",
                )
            if layout.author is None:
                self.warning("Layout has no author", "author", "Add an author field")

        panels = {
            panel_id: self.check_panel(panel_id, panel)
            for panel_id, panel in layout.panels.items()
        }
        self.check_unreferenced(panels)
        return layout.replace(panels=panels)

    def check_unreferenced(self, panels: dict[str, Panel]) -> None:
        referenced = {self.layout.default_panel_id}
        for panel in panels.values():
            for _, _, cell in panel.iter_cells():
                if isinstance(cell, PanelRef):
                    referenced.add(cell.panel_id)
                elif isinstance(cell, Key):
                    referenced.update(
                        action.panel_id
                        for action in cell.alternatives.values()
                        if isinstance(action, PanelSwitch)
                    )

        for panel_id in panels:
            if panel_id not in referenced:
                self.warning(
                    f"Panel '{panel_id}' is never referenced",
                    panel_path(panel_id),
                    "Reference it from another panel, switch to it from a key, "
                    "or remove it",
                )

    # Panels

    def check_panel(self, panel_id: str, panel: Panel) -> Panel:
        path = panel_path(panel_id)
        self._require(panel.id, "id", f"{path}.id")
        if panel.id and panel.id != panel_id:
            self.warning(
                f"Panel stored under '{panel_id}' has id '{panel.id}'",
                f"{path}.id",
            )

        padding = self.check_spacing(panel.padding, "padding", path)
        margin = self.check_spacing(panel.margin, "margin", path)

        rows = []
        for row_idx, row in enumerate(panel.rows):
            cells = tuple(
                self.check_cell(cell, cell_path(panel_id, row_idx, cell_idx))
                for cell_idx, cell in enumerate(row.cells)
            )
            rows.append(Row(cells=cells))

        return panel.replace(padding=padding, margin=margin, rows=tuple(rows))

    def check_spacing(self, value: float | None, name: str, path: str) -> float | None:
        if value is None or (math.isfinite(value) and value >= 0):
            return value
        self.warning(
            f"Panel {name} must be a non-negative number, got {value}; ignoring it",
            f"{path}.{name}",
            f"Use a {name} of 0 or more",
        )
        return None

    # Cells

    def check_cell(self, cell: Cell, path: str) -> Cell:
        if isinstance(cell, Key):
            return self.check_key(cell, path)

        if isinstance(cell, Widget):
            self._require(cell.widget_type, "widget_type", f"{path}.widget_type")
        else:
            self._require(cell.panel_id, "panel_id", f"{path}.panel_id")
            if cell.panel_id and cell.panel_id not in self.layout.panels:
                self.warning(
                    f"Panel reference points to unknown panel '{cell.panel_id}'",
                    f"{path}.panel_id",
                    self._dangling_suggestion(cell.panel_id),
                )

        return cell.replace(
            width=self.check_sizing(cell.width, f"{path}.width", "width"),
            height=self.check_sizing(cell.height, f"{path}.height", "height"),
        )

    def check_key(self, key: Key, path: str) -> Key:
        self._require(key.label, "label", f"{path}.label")
        if isinstance(key.code, Keysym) and not key.code.name:
            self.error(
                "Required field 'code' is missing or empty",
                f"{path}.code",
                'Use {"Unicode": "q"} or {"Keysym": "BackSpace"}',
            )

        return key.replace(
            width=self.check_sizing(key.width, f"{path}.width", "width"),
            height=self.check_sizing(key.height, f"{path}.height", "height"),
            alternatives=self.check_alternatives(
                key.alternatives, f"{path}.alternatives"
            ),
        )

    def check_sizing(self, sizing: Sizing, path: str, dimension: str) -> Sizing:
        if isinstance(sizing, Pixels):
            if PIXELS_PATTERN.match(sizing.value):
                return sizing
            self.warning(
                f"Invalid pixel size '{sizing.value}', using {DEFAULT_SIZING.value}",
                path,
                'Pixel sizes must match "<digits>px", e.g. "20px"',
            )
            return DEFAULT_SIZING

        if not math.isfinite(sizing.value) or sizing.value <= 0:
            self.warning(
                "Relative size must be a finite number greater than 0, "
                f"got {sizing.value}; using {DEFAULT_SIZING.value}",
                path,
                "Use a positive value such as 1.0",
            )
            return DEFAULT_SIZING

        limit = (
            self.settings.max_relative_width
            if dimension == "width"
            else self.settings.max_relative_height
        )
        if sizing.value > limit:
            self.warning(
                f"Relative {dimension} {sizing.value:g} is unusually large",
                path,
                f"Relative {dimension}s above {limit:g} are rarely intended",
            )
        return sizing

    def check_alternatives(
        self, alternatives: dict[AlternativeKey, Action], path: str
    ) -> dict[AlternativeKey, Action]:
        checked: dict[AlternativeKey, Action] = {}
        for alt_key, action in alternatives.items():
            entry_path = f'{path}["{alt_key}"]'

            if isinstance(alt_key, ModifierCombo):
                if not alt_key.modifiers:
                    self.warning(
                        "Modifier combination is empty; removing the alternative",
                        entry_path,
                        "Use at least one modifier",
                    )
                    continue
                if alt_key.has_duplicates:
                    deduplicated = ModifierCombo(
                        modifiers=tuple(dict.fromkeys(alt_key.modifiers))
                    )
                    self.warning(
                        f"Modifier combination '{alt_key}' repeats a modifier; "
                        f"using '{deduplicated}'",
                        entry_path,
                        "List each modifier once",
                    )
                    alt_key = deduplicated
                if len(alt_key.modifiers) == len(Modifier):
                    self.warning(
                        f"Modifier combination '{alt_key}' uses every modifier",
                        entry_path,
                        "Combinations of all four modifiers are hard to press",
                    )

            if (
                isinstance(action, KeyCodeAction)
                and isinstance(action.code, Keysym)
                and not action.code.name
            ):
                self.error(
                    "KeyCode action needs a non-empty key code",
                    entry_path,
                    'Use {"KeyCode": {"Keysym": "Return"}}',
                )

            if isinstance(action, PanelSwitch) and action.panel_id not in self.layout.panels:
                self.warning(
                    f"Panel switch targets unknown panel '{action.panel_id}'",
                    entry_path,
                    self._dangling_suggestion(action.panel_id),
                )

            if alt_key in checked:
                self.warning(
                    f"Alternative '{alt_key}' is bound more than once; "
                    "the later binding wins",
                    entry_path,
                )
            checked[alt_key] = action
        return checked


def validate_layout(
    layout: Layout,
    positions: SourcePositions | None = None,
    settings: ParserSettings | None = None,
) -> ValidationReport:
    """Validate a layout and build its defaulted copy.

    Args:
        layout: Layout to check; never modified
        positions: Source positions used to attach line numbers to issues
        settings: Thresholds and toggles; defaults when omitted

    Returns:
        Report holding every issue and the defaulted layout
    """
    settings = settings or ParserSettings()
    validator = _StructuralValidator(layout, settings)
    defaulted = validator.run()

    issues = validator.issues
    if positions:
        issues = [
            issue.replace(line_number=positions.line_for(issue.field_path))
            for issue in issues
        ]

    logger.debug(
        "Validated layout '%s': %d issue(s)", layout.name or "<unnamed>", len(issues)
    )
    return ValidationReport(issues=sort_issues(issues), layout=defaulted)


def validate_decoded(
    decoded: DecodedLayout, settings: ParserSettings | None = None
) -> ValidationReport:
    """Validate a freshly decoded layout, folding in its decode issues.

    A structural error on a field that already failed to decode is the
    same problem seen twice, so it is dropped in favour of the decode
    error, which says what was actually wrong.
    """
    report = validate_layout(decoded.layout, decoded.positions, settings)
    decode_errors = {issue.field_path for issue in decoded.issues if issue.is_error}
    structural = [
        issue
        for issue in report.issues
        if not (issue.is_error and issue.field_path in decode_errors)
    ]
    return ValidationReport(
        issues=sort_issues([*decoded.issues, *structural]), layout=report.layout
    )


__all__ = ["PIXELS_PATTERN", "ValidationReport", "validate_decoded", "validate_layout"]
