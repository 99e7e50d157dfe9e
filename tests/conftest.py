"""Core test fixtures for the keydeck project."""

import json
import logging
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import structlog
from typer.testing import CliRunner

from keydeck.config.settings import ParserSettings


# ---- Layout builders ----


def key_cell(label: str, code: Any = None, **extra: Any) -> dict[str, Any]:
    """Build a key cell; the code defaults to the lowercased label."""
    cell: dict[str, Any] = {
        "type": "key",
        "label": label,
        "code": code if code is not None else {"Unicode": label.lower()[:1]},
    }
    cell.update(extra)
    return cell


def panel_ref_cell(panel_id: str, **extra: Any) -> dict[str, Any]:
    cell: dict[str, Any] = {
        "type": "panel_ref",
        "panel_id": panel_id,
        "width": {"Relative": 1.0},
        "height": {"Relative": 1.0},
    }
    cell.update(extra)
    return cell


def panel(panel_id: str, *rows: list[dict[str, Any]], **extra: Any) -> dict[str, Any]:
    """Build a panel from rows given as lists of cells."""
    data: dict[str, Any] = {"id": panel_id, "rows": [{"cells": cells} for cells in rows]}
    data.update(extra)
    return data


def layout_data(
    panels: list[dict[str, Any]] | None = None, **extra: Any
) -> dict[str, Any]:
    """Build a complete layout document that parses without warnings."""
    data: dict[str, Any] = {
        "name": "Test Layout",
        "version": "1.0",
        "description": "Layout used in tests",
        "author": "Keydeck Tests",
        "default_panel_id": "main",
        "panels": panels
        if panels is not None
        else [panel("main", [key_cell("Q", identifier="key_q"), key_cell("W")])],
    }
    data.update(extra)
    return data


# ---- Base Fixtures ----


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Keep tests away from the user's config files and KEYDECK_ variables."""
    for key in list(os.environ):
        if key.startswith("KEYDECK_"):
            monkeypatch.delenv(key)
    config_home = tmp_path / "xdg-config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.chdir(tmp_path)

    root_logger = logging.getLogger()
    level = root_logger.level
    yield tmp_path

    # Drop handlers installed by setup_logging during CLI invocations
    for handler in root_logger.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings() -> ParserSettings:
    """Default parser settings (environment already isolated)."""
    return ParserSettings()


@pytest.fixture
def quiet_settings() -> ParserSettings:
    """Settings that skip the missing-metadata warnings."""
    return ParserSettings(warn_missing_metadata=False)


@pytest.fixture
def write_layout(tmp_path: Path) -> Callable[..., Path]:
    """Return a function writing a layout document under ``tmp_path``.

    Usage:
        def test_parse(write_layout):
            path = write_layout("child.json", layout_data(inherits="base.json"))
    """

    def _write(name: str, data: dict[str, Any] | str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        text = data if isinstance(data, str) else json.dumps(data, indent=2)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
