"""Tests for panel-embedding and inheritance graph analysis."""

import pytest

from keydeck.core.errors import CircularReferenceError, MaxDepthExceededError
from keydeck.layout.graph import (
    MAX_DEPTH,
    InheritanceChain,
    analyze_panel_graph,
    build_panel_edges,
    check_inheritance_chain,
)
from keydeck.layout.models import Key, Layout, Panel, PanelRef, Row, Unicode


def make_layout(refs: dict[str, list[str]]) -> Layout:
    """Build a layout where each panel holds one key plus refs to the given panels."""
    panels = {}
    for panel_id, targets in refs.items():
        cells = [Key(label="k", code=Unicode(char="k"))]
        cells.extend(PanelRef(panel_id=target) for target in targets)
        panels[panel_id] = Panel(id=panel_id, rows=(Row(cells=tuple(cells)),))
    return Layout(
        name="Graph",
        version="1",
        default_panel_id=next(iter(refs)),
        panels=panels,
    )


def chain_layout(length: int) -> Layout:
    """p0 -> p1 -> ... -> p{length}."""
    refs = {f"p{i}": [f"p{i + 1}"] for i in range(length)}
    refs[f"p{length}"] = []
    return make_layout(refs)


class TestPanelGraph:
    def test_edges_skip_unknown_targets_and_duplicates(self):
        layout = make_layout({"main": ["nums", "missing", "nums"], "nums": []})
        assert build_panel_edges(layout) == {"main": ("nums",), "nums": ()}

    def test_depths(self):
        layout = make_layout({"main": ["a", "b"], "a": ["b"], "b": []})

        report = analyze_panel_graph(layout)

        assert report.depths == {"main": 2, "a": 1, "b": 0}
        assert report.max_depth == 2

    def test_shared_child_is_not_a_cycle(self):
        layout = make_layout({"main": ["left", "right"], "left": ["shared"], "right": ["shared"], "shared": []})
        assert analyze_panel_graph(layout).max_depth == 2

    def test_two_panel_cycle(self):
        layout = make_layout({"p1": ["p2"], "p2": ["p1"]})

        with pytest.raises(CircularReferenceError) as exc_info:
            analyze_panel_graph(layout)

        assert exc_info.value.chain == ["p1", "p2", "p1"]

    def test_self_reference(self):
        layout = make_layout({"main": [], "loop": ["loop"]})

        with pytest.raises(CircularReferenceError) as exc_info:
            analyze_panel_graph(layout)

        assert exc_info.value.chain == ["loop", "loop"]
        assert "Dependency chain: loop -> loop" in str(exc_info.value)

    def test_depth_at_limit_passes(self):
        report = analyze_panel_graph(chain_layout(MAX_DEPTH))
        assert report.depths["p0"] == MAX_DEPTH

    def test_depth_past_limit_fails(self):
        with pytest.raises(MaxDepthExceededError) as exc_info:
            analyze_panel_graph(chain_layout(MAX_DEPTH + 1))

        error = exc_info.value
        assert error.max_depth == MAX_DEPTH
        assert error.actual_depth == MAX_DEPTH + 1
        assert error.path == [f"p{i}" for i in range(MAX_DEPTH + 2)]

    def test_custom_limit(self):
        with pytest.raises(MaxDepthExceededError):
            analyze_panel_graph(chain_layout(2), max_depth=1)

    def test_long_chain_does_not_recurse(self):
        report = analyze_panel_graph(chain_layout(3000), max_depth=5000)
        assert report.max_depth == 3000


class TestInheritanceChain:
    def test_enter_tracks_path(self):
        chain = InheritanceChain("child.json")
        chain.enter("base.json")

        assert chain.path == ["child.json", "base.json"]
        assert chain.depth == 1
        assert chain.current == "base.json"
        assert "child.json" in chain
        assert len(chain) == 2

    def test_cycle_names_both_layouts(self):
        chain = InheritanceChain("a.json")
        chain.enter("b.json")

        with pytest.raises(CircularReferenceError) as exc_info:
            chain.enter("a.json")

        assert exc_info.value.chain == ["a.json", "b.json", "a.json"]
        assert exc_info.value.file_path == "b.json"

    def test_limit_allows_max_depth_hops(self):
        sources = [f"l{i}.json" for i in range(MAX_DEPTH + 1)]
        assert check_inheritance_chain(sources).depth == MAX_DEPTH

    def test_one_hop_too_many(self):
        sources = [f"l{i}.json" for i in range(MAX_DEPTH + 2)]

        with pytest.raises(MaxDepthExceededError) as exc_info:
            check_inheritance_chain(sources)

        assert exc_info.value.actual_depth == MAX_DEPTH + 1
        assert exc_info.value.file_path == "l0.json"

    def test_empty_chain_rejected(self):
        with pytest.raises(ValueError):
            check_inheritance_chain([])
