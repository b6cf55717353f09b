"""Exceptions raised by the placement engine.

Everything derives from ``HexEditorError`` and also from ``ValueError`` so
callers that only care about "bad input" can catch the builtin.
"""

from __future__ import annotations

from typing import Any


class HexEditorError(Exception):
    pass


class AlreadyOccupied(HexEditorError, ValueError):
    """A tile already fills this layer at this cell.

    Brush placement sweeps many cells and treats this as a silent no-op.
    """

    def __init__(self, coord: Any, layer: int) -> None:
        self.coord = coord
        self.layer = layer
        super().__init__(f"layer {layer} already occupied at {coord}")


class InvalidRadius(HexEditorError, ValueError):
    def __init__(self, radius: int) -> None:
        self.radius = radius
        super().__init__(f"brush radius must be >= 0, got {radius}")


class MalformedDocument(HexEditorError, ValueError):
    """The persisted editor state could not be parsed into a grid."""
