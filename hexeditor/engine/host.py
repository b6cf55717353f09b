"""The capability the editing host lends the engine.

The engine never decides how a tile becomes visible. ``GridStore`` calls
``instantiate`` once per record it creates and ``destroy`` once per record it
removes, keeping one opaque handle per record. ``content_height`` reports
how tall a piece of content is, which drives stacking.
"""

from __future__ import annotations

from typing import Any, Protocol


class TileHost(Protocol):
    def instantiate(self, content_id: str) -> Any:
        """Create the visible object for ``content_id`` and return a handle."""
        ...

    def destroy(self, handle: Any) -> None:
        """Destroy the object behind ``handle``."""
        ...

    def content_height(self, content_id: str) -> float:
        """Height of the content's top surface above its bottom."""
        ...


class NullHost:
    """Headless host: handles are sequential ints, nothing is drawn.

    ``live`` maps each handle not yet destroyed to its content id, which
    makes the one-handle-per-record invariant easy to check.
    """

    def __init__(self, heights: dict[str, float] | None = None) -> None:
        self.heights = dict(heights or {})
        self.live: dict[int, str] = {}
        self.instantiate_calls = 0
        self.destroy_calls = 0
        self._next_handle = 1

    def instantiate(self, content_id: str) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self.live[handle] = content_id
        self.instantiate_calls += 1
        return handle

    def destroy(self, handle: int) -> None:
        if handle not in self.live:
            raise KeyError(f"Unknown or already destroyed handle {handle}")
        del self.live[handle]
        self.destroy_calls += 1

    def content_height(self, content_id: str) -> float:
        return self.heights.get(content_id, 0.0)
