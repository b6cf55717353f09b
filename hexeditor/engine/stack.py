"""Per-cell layered tile stack.

A ``LayerStack`` holds the tiles placed on one hex cell, at most one per
layer. Layers are caller-defined ordering keys (0 = floor, 1 = building,
...), so a cell can carry a floor tile with a wall on top of it but never two
floors.

When a tile is placed, its bottom is computed from the tiles on *lower*
layers already in the cell: the highest top surface among them is the base,
and the stack's ``StackingPolicy`` decides whether the new tile sits flush on
that base or a fixed offset above it. Tiles on higher layers do not affect
placement. The horizontal position always comes from the cell center.

Records restored from a saved document bypass the stacking rule via
``insert`` so their persisted positions stay authoritative.

The stack knows nothing about the host; ``GridStore`` owns handle
bookkeeping.
"""

from __future__ import annotations

from typing import Any, Iterator

from .axial import axial_to_world3
from .errors import AlreadyOccupied
from .types import (
    AxialCoord,
    StackingPolicy,
    TileRecord,
    normalize_rotation,
)


class LayerStack:
    def __init__(
        self,
        coord: AxialCoord,
        policy: StackingPolicy | None = None,
    ) -> None:
        self.coord = coord
        self.policy = policy or StackingPolicy.flush_on_top()
        self._records: dict[int, TileRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TileRecord]:
        return iter(self.records())

    def __contains__(self, layer: object) -> bool:
        return layer in self._records

    def __repr__(self) -> str:
        return f"LayerStack({self.coord}, layers={self.layers()})"

    def is_empty(self) -> bool:
        return not self._records

    def get(self, layer: int) -> TileRecord | None:
        return self._records.get(layer)

    def layers(self) -> list[int]:
        return sorted(self._records)

    def records(self) -> list[TileRecord]:
        """Records ordered bottom layer first."""
        return [self._records[layer] for layer in self.layers()]

    def check_free(self, layer: int) -> None:
        """Raise if a tile could not be placed on ``layer``."""
        if layer < 0:
            raise ValueError(f"layer must be >= 0, got {layer}")
        if layer in self._records:
            raise AlreadyOccupied(self.coord, layer)

    def base_height(self, layer: int) -> float:
        """Highest top surface among records below ``layer`` (0.0 if none)."""
        tops = [
            rec.top_surface
            for lyr, rec in self._records.items()
            if lyr < layer
        ]
        return max(tops, default=0.0)

    def has_below(self, layer: int) -> bool:
        return any(lyr < layer for lyr in self._records)

    def bottom_for(self, layer: int) -> float:
        """World y of the bottom of a new tile on ``layer``."""
        return self.policy.bottom_for(
            self.base_height(layer), stacked=self.has_below(layer)
        )

    def top_surface(self) -> float:
        return max(
            (rec.top_surface for rec in self._records.values()), default=0.0
        )

    def try_place(
        self,
        layer: int,
        content_id: str,
        rotation_deg: float,
        hex_size: float,
        coordinate: AxialCoord | None = None,
        top_height: float = 0.0,
        handle: Any = None,
    ) -> TileRecord:
        """Place a new tile on ``layer``.

        Raises ``AlreadyOccupied`` (leaving the stack unchanged) when the
        layer is taken.
        """
        self.check_free(layer)
        coord = self.coord if coordinate is None else coordinate
        bottom = self.bottom_for(layer)
        rec = TileRecord(
            content_id=content_id,
            layer=layer,
            rotation_deg=normalize_rotation(rotation_deg),
            world_position=axial_to_world3(coord, hex_size, y=bottom),
            top_height=top_height,
            handle=handle,
        )
        self._records[layer] = rec
        return rec

    def insert(self, rec: TileRecord) -> TileRecord:
        """Add an already-positioned record verbatim."""
        self.check_free(rec.layer)
        self._records[rec.layer] = rec
        return rec

    def remove_layer(self, layer: int) -> TileRecord | None:
        return self._records.pop(layer, None)

    def remove_all(self) -> list[TileRecord]:
        removed = self.records()
        self._records.clear()
        return removed

    def raise_lower_all(self, delta_y: float) -> None:
        for rec in self._records.values():
            rec.shift_y(delta_y)
