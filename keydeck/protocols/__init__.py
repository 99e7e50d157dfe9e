"""Protocol definitions for keydeck collaborators.

These protocols use Python's typing.Protocol system with the
@runtime_checkable decorator so hosts can supply their own implementations
and still pass isinstance() checks.
"""

from .layout_loader_protocol import LayoutLoaderProtocol


__all__ = ["LayoutLoaderProtocol"]
