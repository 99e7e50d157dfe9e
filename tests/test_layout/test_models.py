"""Tests for the layout model types."""

import pytest
from pydantic import ValidationError

from keydeck.layout.models import (
    DEFAULT_SIZING,
    Character,
    Key,
    KeyCodeAction,
    Keysym,
    Layout,
    Modifier,
    ModifierCombo,
    Panel,
    PanelRef,
    Pixels,
    Relative,
    Row,
    SingleModifier,
    Swipe,
    SwipeDirection,
    Unicode,
    Widget,
    as_relative,
    cell_path,
    panel_path,
)


class TestModifierCombo:
    """Canonical ordering of modifier combinations."""

    def test_modifiers_sorted_on_construction(self):
        combo = ModifierCombo.of(Modifier.SUPER, Modifier.SHIFT, Modifier.ALT)
        assert combo.modifiers == (Modifier.SHIFT, Modifier.ALT, Modifier.SUPER)

    def test_equal_sets_compare_and_hash_equal(self):
        first = ModifierCombo.of(Modifier.CTRL, Modifier.SHIFT)
        second = ModifierCombo.of(Modifier.SHIFT, Modifier.CTRL)
        assert first == second
        assert hash(first) == hash(second)
        assert {first: "x"}[second] == "x"

    def test_string_form_uses_canonical_order(self):
        assert str(ModifierCombo.of(Modifier.ALT, Modifier.CTRL)) == "Ctrl+Alt"

    def test_duplicates_are_detected(self):
        combo = ModifierCombo.of(Modifier.SHIFT, Modifier.SHIFT)
        assert combo.has_duplicates
        assert not ModifierCombo.of(Modifier.SHIFT).has_duplicates

    def test_modifier_rank_follows_declaration_order(self):
        assert [m.rank for m in Modifier] == [0, 1, 2, 3]


class TestAlternativeKeys:
    """Alternative keys are usable as dictionary keys."""

    def test_variants_are_distinct_keys(self):
        alternatives = {
            SingleModifier(modifier=Modifier.SHIFT): Character(char="Q"),
            ModifierCombo.of(Modifier.SHIFT): Character(char="q"),
            Swipe(direction=SwipeDirection.UP): Character(char="1"),
        }
        assert len(alternatives) == 3
        assert alternatives[Swipe(direction=SwipeDirection.UP)] == Character(char="1")

    def test_string_forms(self):
        assert str(SingleModifier(modifier=Modifier.SHIFT)) == "Shift"
        assert str(Swipe(direction=SwipeDirection.LEFT)) == "Swipe Left"


class TestValueTypes:
    """Key codes, sizing and actions."""

    def test_unicode_requires_single_character(self):
        assert Unicode(char="q").char == "q"
        with pytest.raises(ValidationError):
            Unicode(char="qq")
        with pytest.raises(ValidationError):
            Unicode(char="")

    def test_character_action_requires_single_character(self):
        with pytest.raises(ValidationError):
            Character(char="ab")

    def test_as_relative(self):
        assert as_relative(Relative(value=2.5)) == 2.5
        assert as_relative(Pixels(value="40px")) == 1.0

    def test_models_are_frozen(self):
        code = Keysym(name="Return")
        with pytest.raises(ValidationError):
            code.name = "BackSpace"  # type: ignore[misc]

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            Relative(value=1.0, unit="em")  # type: ignore[call-arg]


class TestKey:
    """Key defaults and helpers."""

    def test_defaults(self):
        key = Key(label="Q", code=Unicode(char="q"))
        assert key.width == DEFAULT_SIZING
        assert key.height == DEFAULT_SIZING
        assert key.sticky is False
        assert key.stickyrelease is True
        assert key.alternatives == {}
        assert key.identifier is None
        assert not key.has_identifier

    def test_min_sizes_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            Key(label="Q", code=Unicode(char="q"), min_width=-1)

    def test_replace_returns_updated_copy(self):
        key = Key(label="Q", code=Unicode(char="q"))
        wide = key.replace(width=Relative(value=2.0))
        assert wide.width == Relative(value=2.0)
        assert key.width == DEFAULT_SIZING

    def test_code_accepts_both_variants(self):
        assert isinstance(Key(label="⌫", code=Keysym(name="BackSpace")).code, Keysym)
        action = KeyCodeAction(code=Unicode(char="x"))
        assert action.code == Unicode(char="x")


class TestLayout:
    """Container helpers."""

    @pytest.fixture
    def layout(self) -> Layout:
        main = Panel(
            id="main",
            rows=(
                Row(
                    cells=(
                        Key(label="Q", code=Unicode(char="q")),
                        PanelRef(panel_id="numpad"),
                    )
                ),
                Row(cells=(Widget(widget_type="trackpad"),)),
            ),
        )
        numpad = Panel(id="numpad", rows=(Row(cells=(Key(label="1", code=Unicode(char="1")),)),))
        return Layout(
            name="Test",
            version="1.0",
            default_panel_id="main",
            panels={"main": main, "numpad": numpad},
        )

    def test_default_panel(self, layout):
        assert layout.default_panel is layout.panels["main"]
        assert layout.replace(default_panel_id="missing").default_panel is None

    def test_iter_cells(self, layout):
        positions = [(pid, r, c) for pid, r, c, _ in layout.iter_cells()]
        assert positions == [("main", 0, 0), ("main", 0, 1), ("main", 1, 0), ("numpad", 0, 0)]

    def test_panel_refs_and_keys(self, layout):
        main = layout.panels["main"]
        assert [ref.panel_id for ref in main.panel_refs()] == ["numpad"]
        assert [key.label for key in main.keys()] == ["Q"]

    def test_path_helpers(self):
        assert panel_path("main") == 'panels["main"]'
        assert cell_path("main", 0, 2) == 'panels["main"].rows[0].cells[2]'
