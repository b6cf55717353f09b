"""One interactive editing session: a grid plus its editor settings.

The host window forwards pointer hits here as world-space points. The
session resolves each point to a cell, expands it with the current brush,
and applies the operation for the current mode:

  * **AddRemove**: ``paint`` places the selected palette tile on every
    brushed cell (cells whose layer is already filled are skipped);
    ``erase`` removes whole stacks.
  * **HeightMap**: ``paint`` raises every brushed stack by
    ``height_step``; ``erase`` lowers it.

The session also owns the small bits of editor state that used to live on
the window: the ghost rotation (stepped in 60° increments, the angle
between hex faces), palette selection, brush size (0 to 3) and mode.
Nothing here is global; each session owns exactly one ``GridStore`` and one
``EditorSettings``.
"""

from __future__ import annotations

from typing import Any

from ..engine.axial import world_to_axial
from ..engine.brush import expand_ordered
from ..engine.codec import decode, encode
from ..engine.errors import AlreadyOccupied
from ..engine.grid import GridStore
from ..engine.host import TileHost
from ..engine.types import (
    EDITOR_MODES,
    MODE_HEIGHT_MAP,
    AxialCoord,
    EditorSettings,
    TileRecord,
    TileSetting,
    clamp_brush_size,
    normalize_rotation,
)

ROTATION_STEP_DEG = 60.0


class EditorSession:
    def __init__(
        self,
        settings: EditorSettings | None = None,
        host: TileHost | None = None,
        store: GridStore | None = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        if store is None:
            store = GridStore(
                hex_size=self.settings.hex_size,
                stacking_policy=self.settings.stacking_policy,
                host=host,
            )
        self.store = store
        self.last_warnings: list[str] = []

    # -- document round trip ---------------------------------------------

    def to_document(self) -> dict:
        return encode(self.store, self.settings)

    @staticmethod
    def from_document(
        document: Any,
        host: TileHost | None = None,
        known_content: set[str] | None = None,
    ) -> EditorSession:
        result = decode(document, host=host, known_content=known_content)
        session = EditorSession(settings=result.settings, store=result.store)
        session.last_warnings = result.warnings
        return session

    # -- settings ---------------------------------------------------------

    def target(self, world_point) -> AxialCoord:
        return world_to_axial(world_point, self.settings.hex_size)

    def selected_tile(self) -> TileSetting | None:
        tiles = self.settings.tile_settings
        if not tiles:
            return None
        idx = min(max(self.settings.selected_tile_index, 0), len(tiles) - 1)
        return tiles[idx]

    def select_tile(self, index: int) -> int:
        tiles = self.settings.tile_settings
        if tiles:
            index = min(max(index, 0), len(tiles) - 1)
        else:
            index = 0
        self.settings.selected_tile_index = index
        return index

    def set_mode(self, mode: str) -> None:
        if mode not in EDITOR_MODES:
            raise ValueError(
                f"Unknown editor mode {mode!r}, expected one of {EDITOR_MODES}"
            )
        self.settings.current_mode = mode

    def set_brush_size(self, size: int) -> int:
        self.settings.brush_size = clamp_brush_size(size)
        return self.settings.brush_size

    def set_hex_size(self, hex_size: float) -> None:
        """Change the cell size used for future placements.

        Tiles already placed keep their world positions.
        """
        if not hex_size > 0:
            raise ValueError(f"hex_size must be positive, got {hex_size}")
        self.settings.hex_size = hex_size
        self.store.hex_size = hex_size

    def rotate_ghost(self, steps: int = 1) -> float:
        self.settings.ghost_rotation_deg = normalize_rotation(
            self.settings.ghost_rotation_deg + steps * ROTATION_STEP_DEG
        )
        return self.settings.ghost_rotation_deg

    # -- brush operations -------------------------------------------------

    def _brush(self, center: AxialCoord) -> list[AxialCoord]:
        radius = clamp_brush_size(self.settings.brush_size)
        return expand_ordered(AxialCoord.of(center), radius)

    def place_with_brush(self, center: AxialCoord) -> list[TileRecord]:
        tile = self.selected_tile()
        if tile is None or not tile.prefab_reference:
            return []
        placed = []
        for coord in self._brush(center):
            try:
                placed.append(
                    self.store.place(
                        coord,
                        tile.layer,
                        tile.prefab_reference,
                        self.settings.ghost_rotation_deg,
                    )
                )
            except AlreadyOccupied:
                continue
        return placed

    def remove_with_brush(self, center: AxialCoord) -> list[TileRecord]:
        removed: list[TileRecord] = []
        for coord in self._brush(center):
            removed.extend(self.store.remove(coord))
        return removed

    def raise_lower_with_brush(
        self, center: AxialCoord, delta_y: float
    ) -> int:
        return sum(
            self.store.raise_lower(coord, delta_y)
            for coord in self._brush(center)
        )

    def paint(self, world_point) -> list[TileRecord] | int:
        """Primary action at a world point (left click)."""
        center = self.target(world_point)
        if self.settings.current_mode == MODE_HEIGHT_MAP:
            return self.raise_lower_with_brush(
                center, self.settings.height_step
            )
        return self.place_with_brush(center)

    def erase(self, world_point) -> list[TileRecord] | int:
        """Secondary action at a world point (right click)."""
        center = self.target(world_point)
        if self.settings.current_mode == MODE_HEIGHT_MAP:
            return self.raise_lower_with_brush(
                center, -self.settings.height_step
            )
        return self.remove_with_brush(center)

    def clear_all(self) -> list[TileRecord]:
        return self.store.clear_all()
