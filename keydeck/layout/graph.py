"""Cycle and depth analysis for the two reference graphs of a layout.

Panels embed other panels through ``PanelRef`` cells, and layouts inherit
from other layouts through ``inherits``. Both graphs must be acyclic and
no deeper than a fixed limit. Traversals use an explicit stack and an
"on the current path" set, so hostile input cannot exhaust the
interpreter's recursion limit and revisiting a shared node from a second
branch is not mistaken for a cycle.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from keydeck.config.settings import DEFAULT_MAX_DEPTH
from keydeck.core.errors import CircularReferenceError, MaxDepthExceededError
from keydeck.layout.models import Layout


logger = logging.getLogger(__name__)

MAX_DEPTH = DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class PanelGraphReport:
    """Panel-embedding graph of one layout.

    Attributes:
        edges: Panel id to the ids of existing panels it embeds, in order
        depths: Panel id to its nesting depth (0 when it embeds nothing)
    """

    edges: dict[str, tuple[str, ...]] = field(default_factory=dict)
    depths: dict[str, int] = field(default_factory=dict)

    @property
    def max_depth(self) -> int:
        return max(self.depths.values(), default=0)


def build_panel_edges(layout: Layout) -> dict[str, tuple[str, ...]]:
    """Collect embedding edges; references to unknown panels are skipped."""
    edges: dict[str, tuple[str, ...]] = {}
    for panel_id, panel in layout.panels.items():
        targets = (ref.panel_id for ref in panel.panel_refs())
        edges[panel_id] = tuple(
            dict.fromkeys(target for target in targets if target in layout.panels)
        )
    return edges


def _longest_path(start: str, next_hop: dict[str, str]) -> list[str]:
    path = [start]
    while path[-1] in next_hop:
        path.append(next_hop[path[-1]])
    return path


def analyze_panel_graph(layout: Layout, max_depth: int = MAX_DEPTH) -> PanelGraphReport:
    """Check the panel-embedding graph for cycles and excessive nesting.

    Args:
        layout: Layout whose panels are analyzed
        max_depth: Deepest allowed nesting, counting a leaf panel as 0

    Returns:
        The graph's edges and each panel's nesting depth

    Raises:
        CircularReferenceError: If a panel embeds itself, directly or not
        MaxDepthExceededError: If any embedding chain is deeper than allowed
    """
    edges = build_panel_edges(layout)
    depths: dict[str, int] = {}
    next_hop: dict[str, str] = {}

    for root in edges:
        if root in depths:
            continue

        stack: list[tuple[str, Iterator[str]]] = [(root, iter(edges[root]))]
        path = [root]
        on_path = {root}

        while stack:
            node, children = stack[-1]
            child = next(children, None)

            if child is None:
                stack.pop()
                path.pop()
                on_path.discard(node)

                depth = 0
                for target in edges[node]:
                    if depths[target] + 1 > depth:
                        depth = depths[target] + 1
                        next_hop[node] = target
                depths[node] = depth

                if depth > max_depth:
                    deepest = _longest_path(node, next_hop)
                    raise MaxDepthExceededError(
                        f"Panel '{node}' nests panels {depth} levels deep",
                        deepest,
                        max_depth,
                    )
                continue

            if child in on_path:
                chain = path[path.index(child) :] + [child]
                raise CircularReferenceError(
                    f"Panel '{child}' embeds itself through panel references", chain
                )
            if child in depths:
                continue

            stack.append((child, iter(edges[child])))
            path.append(child)
            on_path.add(child)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Panel graph of '%s': %d panel(s), %d edge(s), max nesting depth %d",
            layout.name,
            len(edges),
            sum(len(targets) for targets in edges.values()),
            max(depths.values(), default=0),
        )
    return PanelGraphReport(edges=edges, depths=depths)


class InheritanceChain:
    """The active path of layout sources while resolving ``inherits``.

    The root layout is depth 0; each :meth:`enter` adds one hop.
    """

    def __init__(self, root: str | Path, max_depth: int = MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self._path: list[str] = [str(root)]

    @property
    def path(self) -> list[str]:
        return list(self._path)

    @property
    def depth(self) -> int:
        return len(self._path) - 1

    @property
    def current(self) -> str:
        return self._path[-1]

    def __contains__(self, source: object) -> bool:
        return str(source) in self._path

    def __len__(self) -> int:
        return len(self._path)

    def enter(self, source: str | Path) -> None:
        """Push the parent named by the current node.

        Raises:
            CircularReferenceError: If *source* is already on the path
            MaxDepthExceededError: If the new depth would exceed the limit
        """
        node = str(source)
        if node in self._path:
            chain = self._path[self._path.index(node) :] + [node]
            raise CircularReferenceError(
                f"Layout '{self.current}' inherits from '{node}', "
                "which is already being resolved",
                chain,
                file_path=self.current,
            )

        if len(self._path) > self.max_depth:
            raise MaxDepthExceededError(
                "Inheritance chain is too deep",
                self._path + [node],
                self.max_depth,
                file_path=self._path[0],
            )

        self._path.append(node)
        logger.debug("Inheritance depth %d: %s", self.depth, node)


def check_inheritance_chain(
    sources: Iterable[str | Path], max_depth: int = MAX_DEPTH
) -> InheritanceChain:
    """Validate a whole chain of sources, root first.

    Raises:
        ValueError: If *sources* is empty
        CircularReferenceError: If a source appears twice
        MaxDepthExceededError: If the chain has more than *max_depth* hops
    """
    iterator = iter(sources)
    try:
        root = next(iterator)
    except StopIteration:
        raise ValueError("An inheritance chain needs at least one source") from None

    chain = InheritanceChain(root, max_depth)
    for source in iterator:
        chain.enter(source)
    return chain


__all__ = [
    "MAX_DEPTH",
    "InheritanceChain",
    "PanelGraphReport",
    "analyze_panel_graph",
    "build_panel_edges",
    "check_inheritance_chain",
]
