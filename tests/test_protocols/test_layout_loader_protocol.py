"""Tests for layout loaders and their protocol."""

import pytest

from keydeck.core.errors import LayoutIOError
from keydeck.layout.loader import FileLayoutLoader, InMemoryLayoutLoader, create_file_loader
from keydeck.protocols import LayoutLoaderProtocol


def test_loaders_implement_protocol():
    assert isinstance(create_file_loader(), LayoutLoaderProtocol)
    assert isinstance(InMemoryLayoutLoader({}), LayoutLoaderProtocol)


def test_custom_loader_satisfies_protocol():
    class DictLoader:
        def load(self, path):
            return "{}"

    assert isinstance(DictLoader(), LayoutLoaderProtocol)


class TestFileLayoutLoader:
    def test_reads_text(self, tmp_path):
        path = tmp_path / "layout.json"
        path.write_text('{"name": "ü"}', encoding="utf-8")
        assert FileLayoutLoader().load(path) == '{"name": "ü"}'

    def test_missing_file(self, tmp_path):
        with pytest.raises(LayoutIOError, match="File not found"):
            FileLayoutLoader().load(tmp_path / "missing.json")

    def test_invalid_encoding(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"name": "\xff"}')

        with pytest.raises(LayoutIOError) as exc_info:
            FileLayoutLoader().load(path)

        assert "not valid utf-8" in exc_info.value.message

    def test_directory(self, tmp_path):
        with pytest.raises(LayoutIOError) as exc_info:
            FileLayoutLoader().load(tmp_path)
        assert exc_info.value.file_path == str(tmp_path)


def test_in_memory_loader_resolves_paths(tmp_path):
    loader = InMemoryLayoutLoader({tmp_path / "a" / ".." / "base.json": "{}"})
    assert loader.load(tmp_path / "base.json") == "{}"
