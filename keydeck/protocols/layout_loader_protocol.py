"""Protocol definition for fetching layout text by path."""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class LayoutLoaderProtocol(Protocol):
    """Protocol for loading the raw text of a layout file.

    The inheritance resolver calls :meth:`load` once per ancestor, strictly
    one after another. Implementations that cache are responsible for their
    own thread safety.
    """

    def load(self, path: Path) -> str:
        """Load the text of a layout.

        Args:
            path: Resolved path of the layout to load

        Returns:
            The layout's raw JSON text

        Raises:
            LayoutIOError: If the layout cannot be read
        """
        ...
