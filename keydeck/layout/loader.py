"""Layout loaders: where the text of a layout file comes from."""

import logging
from collections.abc import Mapping
from pathlib import Path

from keydeck.core.errors import LayoutIOError
from keydeck.protocols import LayoutLoaderProtocol


logger = logging.getLogger(__name__)


class FileLayoutLoader:
    """Reads layouts from the file system."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def load(self, path: Path) -> str:
        """Read a layout file as text."""
        try:
            logger.debug("Reading layout file: %s", path)
            with path.open(mode="r", encoding=self.encoding) as f:
                content = f.read()
            logger.debug("Read %d characters from %s", len(content), path)
            return content
        except FileNotFoundError as e:
            logger.error("Layout file not found: %s", path)
            raise LayoutIOError(
                "File not found",
                file_path=path,
                suggestion="Check the path; inherited layouts are resolved "
                "relative to the file that names them",
            ) from e
        except PermissionError as e:
            logger.error("Permission denied reading layout file: %s", path)
            raise LayoutIOError("Permission denied", file_path=path) from e
        except UnicodeDecodeError as e:
            logger.error("Encoding error reading layout file %s: %s", path, e)
            raise LayoutIOError(
                f"File is not valid {self.encoding} text",
                file_path=path,
                suggestion=f"Save the layout as {self.encoding}",
            ) from e
        except OSError as e:
            logger.error("Error reading layout file %s: %s", path, e)
            raise LayoutIOError(str(e), file_path=path) from e


class InMemoryLayoutLoader:
    """Serves layouts from a mapping of path to text.

    Useful for hosts that bundle their layouts and for tests. Paths are
    compared after resolving them the same way the parser does.
    """

    def __init__(self, layouts: Mapping[str | Path, str]) -> None:
        self._layouts = {Path(path).resolve(): text for path, text in layouts.items()}

    def load(self, path: Path) -> str:
        try:
            return self._layouts[path.resolve()]
        except KeyError:
            raise LayoutIOError("File not found", file_path=path) from None


def create_file_loader(encoding: str = "utf-8") -> LayoutLoaderProtocol:
    """Create a layout loader reading from the file system."""
    return FileLayoutLoader(encoding)


__all__ = ["FileLayoutLoader", "InMemoryLayoutLoader", "create_file_loader"]
