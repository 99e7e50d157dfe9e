"""Tests for the layout parsing entry points."""

import json
import logging

import pytest
from conftest import key_cell, layout_data, panel, panel_ref_cell

from keydeck.config.settings import ParserSettings
from keydeck.core.errors import (
    CircularReferenceError,
    LayoutIOError,
    LayoutJSONError,
    LayoutParseError,
    LayoutValidationError,
    MaxDepthExceededError,
)
from keydeck.layout.loader import InMemoryLayoutLoader
from keydeck.layout.models import DEFAULT_SIZING
from keydeck.layout.parser import (
    LayoutParser,
    ParseStage,
    parse_layout_file,
    parse_layout_from_string,
)
from keydeck.layout.results import ParseResult


def nested_panels(depth):
    panels = [panel(f"p{i}", [panel_ref_cell(f"p{i + 1}")]) for i in range(depth)]
    panels.append(panel(f"p{depth}", [key_cell("K")]))
    return layout_data(panels, default_panel_id="p0")


class TestParseString:
    def test_valid_layout(self):
        result = parse_layout_from_string(json.dumps(layout_data()))

        assert isinstance(result, ParseResult)
        assert result.layout.name == "Test Layout"
        assert result.warnings == ()
        assert not result.has_warnings

    def test_warnings_do_not_fail_the_parse(self):
        data = layout_data()
        del data["author"]

        result = parse_layout_from_string(json.dumps(data))

        assert result.warning_count == 1
        assert result.warnings[0].field_path == "author"

    def test_advisory_problems_are_defaulted(self):
        data = layout_data([panel("main", [key_cell("Q", width={"Pixels": "wide"})])])

        result = parse_layout_from_string(json.dumps(data))

        assert result.layout.panels["main"].rows[0].cells[0].width == DEFAULT_SIZING
        assert result.warning_count == 1

    def test_errors_raise_with_every_issue(self):
        data = layout_data(
            [panel("main", [{"type": "key"}, {"type": "slider"}])], version=""
        )

        with pytest.raises(LayoutValidationError) as exc_info:
            parse_layout_from_string(json.dumps(data))

        error = exc_info.value
        assert len(error.errors) == 4
        assert error.file_path is None
        assert all(issue.line_number is not None for issue in error.errors)

    def test_syntax_error(self):
        with pytest.raises(LayoutJSONError):
            parse_layout_from_string('{"name": }')

    def test_errors_share_a_base_class(self):
        with pytest.raises(LayoutParseError):
            parse_layout_from_string("not json")

    def test_panel_cycle(self):
        data = layout_data(
            [
                panel("main", [panel_ref_cell("p1")]),
                panel("p1", [panel_ref_cell("p2")]),
                panel("p2", [panel_ref_cell("p1")]),
            ]
        )

        with pytest.raises(CircularReferenceError) as exc_info:
            parse_layout_from_string(json.dumps(data))

        assert exc_info.value.chain == ["p1", "p2", "p1"]

    def test_panel_nesting_limit(self):
        parse_layout_from_string(json.dumps(nested_panels(5)))
        with pytest.raises(MaxDepthExceededError):
            parse_layout_from_string(json.dumps(nested_panels(6)))

    def test_nesting_limit_from_settings(self):
        settings = ParserSettings(max_nesting_depth=8)
        result = parse_layout_from_string(json.dumps(nested_panels(6)), settings=settings)
        assert len(result.layout.panels) == 7


class TestStrictMode:
    def test_strict_rejects_warnings(self):
        data = layout_data()
        del data["description"]

        with pytest.raises(LayoutValidationError) as exc_info:
            parse_layout_from_string(json.dumps(data), settings=ParserSettings(strict=True))

        (issue,) = exc_info.value.issues
        assert issue.field_path == "description"
        assert exc_info.value.errors == []

    def test_strict_accepts_clean_layout(self):
        result = parse_layout_from_string(
            json.dumps(layout_data()), settings=ParserSettings(strict=True)
        )
        assert result.warnings == ()


class TestParseFile:
    def test_parse_file(self, write_layout):
        path = write_layout("layout.json", layout_data())
        assert parse_layout_file(path).layout.name == "Test Layout"

    def test_accepts_string_path(self, write_layout):
        path = write_layout("layout.json", layout_data())
        assert parse_layout_file(str(path)).layout.name == "Test Layout"

    def test_missing_file(self, tmp_path):
        with pytest.raises(LayoutIOError) as exc_info:
            parse_layout_file(tmp_path / "missing.json")

        assert "File not found" in str(exc_info.value)
        assert exc_info.value.file_path == str(tmp_path / "missing.json")

    def test_errors_name_the_file(self, write_layout):
        path = write_layout("broken.json", '{\n  "name": "x",\n}')

        with pytest.raises(LayoutJSONError) as exc_info:
            parse_layout_file(path)

        assert exc_info.value.file_path == str(path)
        assert exc_info.value.line == 3

    def test_validation_errors_name_the_file(self, write_layout):
        path = write_layout("bad.json", layout_data(name=""))

        with pytest.raises(LayoutValidationError) as exc_info:
            parse_layout_file(path)

        assert exc_info.value.file_path == str(path)
        assert f"for file '{path}'" in str(exc_info.value)

    def test_inherited_layout_keeps_unresolved_warnings(self, write_layout):
        write_layout("base.json", layout_data())
        child = layout_data(
            [panel("main", [key_cell("Q"), panel_ref_cell("nowhere")])],
            inherits="base.json",
        )
        path = write_layout("child.json", child)

        result = parse_layout_file(path)

        dangling = [issue for issue in result.warnings if "unknown panel" in issue.message]
        assert len(dangling) == 1
        assert dangling[0].line_number is None

    def test_custom_loader(self, tmp_path):
        loader = InMemoryLayoutLoader({tmp_path / "mem.json": json.dumps(layout_data())})
        result = parse_layout_file(tmp_path / "mem.json", loader=loader)
        assert result.layout.name == "Test Layout"


class TestLayoutParser:
    def test_parser_is_reusable(self, write_layout):
        parser = LayoutParser(settings=ParserSettings(warn_missing_metadata=False))
        good = write_layout("good.json", layout_data())
        bad = write_layout("bad.json", layout_data(version=""))

        with pytest.raises(LayoutValidationError):
            parser.parse_file(bad)
        assert parser.parse_file(good).warnings == ()

    def test_stages_are_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="keydeck.layout.parser")

        LayoutParser().parse_string(json.dumps(layout_data()))

        messages = caplog.text
        for stage in (
            ParseStage.START,
            ParseStage.DESERIALIZED,
            ParseStage.STRUCTURALLY_VALID,
            ParseStage.FINALLY_VALID,
            ParseStage.DONE,
        ):
            assert stage.value in messages
        assert ParseStage.INHERITANCE_RESOLVING.value not in messages

    def test_failure_is_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="keydeck.layout.parser")
        with pytest.raises(LayoutJSONError):
            LayoutParser().parse_string("[")
        assert ParseStage.FAILED.value in caplog.text
