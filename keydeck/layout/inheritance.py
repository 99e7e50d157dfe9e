"""Layout inheritance: loading ancestors and merging them into one layout.

A layout may name a parent through ``inherits``. The resolver walks that
chain one ancestor at a time (every ancestor is loaded, decoded, validated
and graph-checked before anything is merged), then folds the chain from
the root-most ancestor down so each descendant overrides what it inherits.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from keydeck.config.settings import ParserSettings
from keydeck.core.errors import LayoutParseError, LayoutValidationError
from keydeck.layout.deserializer import DecodedLayout, deserialize_layout
from keydeck.layout.graph import InheritanceChain, analyze_panel_graph
from keydeck.layout.loader import create_file_loader
from keydeck.layout.models import Cell, Key, Layout, Panel, Row, Widget
from keydeck.layout.results import ValidationIssue
from keydeck.layout.validation import validate_decoded
from keydeck.protocols import LayoutLoaderProtocol


logger = logging.getLogger(__name__)

#: Chain label used for layouts parsed from in-memory text.
STRING_SOURCE = "<string>"


@dataclass(frozen=True)
class ResolvedLayout:
    """A layout with its whole ``inherits`` chain merged in.

    Attributes:
        layout: The merged layout; ``inherits`` is always ``None``
        chain: Sources from the layout itself to its root-most ancestor
        warnings: Decode-time warnings raised while loading ancestors
    """

    layout: Layout
    chain: list[str] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)


def _pick(child: str | None, parent: str | None) -> str | None:
    """Child value whenever it is set, even to an empty string."""
    return child if child is not None else parent


def merge_keys(child: Key, parent: Key) -> Key:
    """Override *parent* with *child*, keeping alternatives the child lacks."""
    return child.replace(alternatives={**parent.alternatives, **child.alternatives})


def _cell_at(panel: Panel, row_idx: int, cell_idx: int) -> Cell | None:
    if row_idx < len(panel.rows) and cell_idx < len(panel.rows[row_idx].cells):
        return panel.rows[row_idx].cells[cell_idx]
    return None


def merge_panels(child: Panel, parent: Panel) -> Panel:
    """Merge a panel declared by both a child layout and its parent.

    The child's rows define the structure. Child keys with an
    ``identifier`` found anywhere in the parent panel are merged with that
    key; child widgets matching the parent's widget type at the same
    position replace it. Everything else in the child is taken as is.
    """
    parent_keys = {key.identifier: key for key in parent.keys() if key.identifier}

    rows = []
    for row_idx, row in enumerate(child.rows):
        cells: list[Cell] = []
        for cell_idx, cell in enumerate(row.cells):
            if isinstance(cell, Key) and cell.identifier in parent_keys:
                logger.debug(
                    "Panel '%s': key '%s' overrides inherited key",
                    child.id,
                    cell.identifier,
                )
                cell = merge_keys(cell, parent_keys[cell.identifier])
            elif isinstance(cell, Widget):
                # The child widget always wins; a positional match is only
                # recorded in the debug log
                base = _cell_at(parent, row_idx, cell_idx)
                if isinstance(base, Widget) and base.widget_type == cell.widget_type:
                    logger.debug(
                        "Panel '%s': widget '%s' at row %d cell %d overrides "
                        "inherited widget",
                        child.id,
                        cell.widget_type,
                        row_idx,
                        cell_idx,
                    )
            cells.append(cell)
        rows.append(Row(cells=tuple(cells)))

    return child.replace(
        padding=child.padding if child.padding is not None else parent.padding,
        margin=child.margin if child.margin is not None else parent.margin,
        rows=tuple(rows),
    )


def merge_layouts(child: Layout, parent: Layout) -> Layout:
    """Merge a child layout over its (already resolved) parent.

    Args:
        child: The inheriting layout
        parent: The layout named by ``child.inherits``

    Returns:
        A new layout with ``inherits`` cleared
    """
    panels = dict(parent.panels)
    for panel_id, child_panel in child.panels.items():
        parent_panel = parent.panels.get(panel_id)
        if parent_panel is None:
            panels[panel_id] = child_panel
        else:
            panels[panel_id] = merge_panels(child_panel, parent_panel)

    return Layout(
        name=child.name,
        version=child.version,
        default_panel_id=child.default_panel_id,
        description=_pick(child.description, parent.description),
        author=_pick(child.author, parent.author),
        language=_pick(child.language, parent.language),
        locale=_pick(child.locale, parent.locale),
        inherits=None,
        panels=panels,
    )


class InheritanceResolver:
    """Resolves ``inherits`` chains using a pluggable loader.

    The resolver keeps no state between calls, so one instance may serve
    any number of parses.
    """

    def __init__(
        self,
        loader: LayoutLoaderProtocol | None = None,
        settings: ParserSettings | None = None,
    ) -> None:
        self.loader = loader or create_file_loader()
        self.settings = settings or ParserSettings()

    def resolve(
        self,
        decoded: DecodedLayout,
        source: str | Path | None = None,
        base_dir: Path | None = None,
    ) -> ResolvedLayout:
        """Merge every ancestor of a decoded layout into it.

        Args:
            decoded: The layout at the bottom of the chain
            source: File the layout came from; relative ``inherits`` paths
                resolve against its directory
            base_dir: Directory for relative paths when there is no
                *source* (in-memory text); defaults to the working directory

        Returns:
            The merged layout with the chain that produced it

        Raises:
            LayoutIOError: If an ancestor cannot be read
            LayoutJSONError: If an ancestor is not valid JSON
            LayoutValidationError: If an ancestor has fatal issues
            CircularReferenceError: If the chain loops back on itself
            MaxDepthExceededError: If the chain is too long
        """
        if source is not None:
            root = str(Path(source).resolve())
            directory = Path(root).parent
        else:
            root = STRING_SOURCE
            directory = base_dir or Path.cwd()

        chain = InheritanceChain(root, self.settings.max_inheritance_depth)
        layouts = [decoded.layout]
        warnings: list[ValidationIssue] = []
        inherits = decoded.layout.inherits

        while inherits:
            parent_path = (directory / inherits).resolve()
            chain.enter(parent_path)
            parent = self._load_ancestor(parent_path)

            warnings.extend(issue for issue in parent.issues if not issue.is_error)
            layouts.append(parent.layout)
            directory = parent_path.parent
            inherits = parent.layout.inherits

        if len(layouts) == 1:
            return ResolvedLayout(layout=decoded.layout, chain=chain.path)

        merged = layouts[-1].replace(inherits=None)
        for child in reversed(layouts[:-1]):
            merged = merge_layouts(child, merged)

        logger.info(
            "Resolved inheritance for '%s' across %d layout(s)",
            decoded.layout.name,
            len(layouts),
        )
        return ResolvedLayout(layout=merged, chain=chain.path, warnings=warnings)

    def _load_ancestor(self, path: Path) -> DecodedLayout:
        """Load one ancestor and check it the way a root layout is checked."""
        text = self.loader.load(path)
        decoded = deserialize_layout(
            text, str(path), warn_unknown_fields=self.settings.warn_unknown_fields
        )

        report = validate_decoded(decoded, self.settings)
        if report.has_errors:
            raise LayoutValidationError(report.errors, file_path=path)

        try:
            analyze_panel_graph(decoded.layout, self.settings.max_nesting_depth)
        except LayoutParseError as e:
            e.with_file_path(path)
            raise

        return decoded


__all__ = [
    "STRING_SOURCE",
    "InheritanceResolver",
    "ResolvedLayout",
    "merge_keys",
    "merge_layouts",
    "merge_panels",
]
