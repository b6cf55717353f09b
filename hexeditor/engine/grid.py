"""Sparse grid of layered tile stacks.

``GridStore`` maps ``AxialCoord`` to ``LayerStack`` for the whole map. Stacks
are created lazily on first placement into a cell and deleted as soon as they
empty, so every key present always has at least one tile.

Host bookkeeping lives here: every record created calls the host's
``instantiate`` exactly once and every record removed calls ``destroy``
exactly once. If the host fails partway through a removal, records the host
already destroyed are dropped from the store, the rest stay, and the host's
exception propagates. The store therefore never holds a handle the host has
destroyed.

``snapshot``/``restore`` move the grid to and from the flat
``SerializedTileEntry`` list used by ``codec.py``. Restore trusts persisted
positions verbatim and does not reapply stacking, so repeated save/load
cycles cannot drift.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .host import NullHost, TileHost
from .stack import LayerStack
from .types import (
    AxialCoord,
    SerializedTileEntry,
    StackingPolicy,
    TileRecord,
    normalize_rotation,
)

logger = logging.getLogger(__name__)


class GridStore:
    def __init__(
        self,
        hex_size: float = 1.0,
        stacking_policy: StackingPolicy | None = None,
        host: TileHost | None = None,
    ) -> None:
        if not hex_size > 0:
            raise ValueError(f"hex_size must be positive, got {hex_size}")
        self.hex_size = hex_size
        self.stacking_policy = (
            stacking_policy or StackingPolicy.flush_on_top()
        )
        self.host: TileHost = host if host is not None else NullHost()
        self._stacks: dict[AxialCoord, LayerStack] = {}

    # -- queries --------------------------------------------------------

    def __len__(self) -> int:
        return len(self._stacks)

    def __contains__(self, coord: object) -> bool:
        if isinstance(coord, tuple):
            coord = AxialCoord.of(coord)
        return coord in self._stacks

    def coordinates(self) -> list[AxialCoord]:
        return list(self._stacks)

    def get_stack(self, coord: AxialCoord) -> LayerStack | None:
        return self._stacks.get(AxialCoord.of(coord))

    def records_at(self, coord: AxialCoord) -> list[TileRecord]:
        stack = self.get_stack(coord)
        return stack.records() if stack else []

    def iter_records(self) -> Iterator[tuple[AxialCoord, TileRecord]]:
        for coord, stack in self._stacks.items():
            for rec in stack.records():
                yield coord, rec

    def record_count(self) -> int:
        return sum(len(s) for s in self._stacks.values())

    # -- mutation -------------------------------------------------------

    def place(
        self,
        coord: AxialCoord,
        layer: int,
        content_id: str,
        rotation_deg: float = 0.0,
        hex_size: float | None = None,
        top_height: float | None = None,
    ) -> TileRecord:
        """Place a tile, creating the cell's stack if needed.

        Raises ``AlreadyOccupied`` if the layer is taken; the store is left
        unchanged and the host is not called. The record is built before
        the host instantiates anything, so any invalid argument fails
        without creating a handle. If ``instantiate`` itself fails the
        record is rolled back.
        """
        coord = AxialCoord.of(coord)
        stack = self._stacks.get(coord)
        if stack is None:
            stack = LayerStack(coord, self.stacking_policy)
        stack.check_free(layer)

        if top_height is None:
            top_height = self.host.content_height(content_id)
        rec = stack.try_place(
            layer,
            content_id,
            rotation_deg,
            self.hex_size if hex_size is None else hex_size,
            coord,
            top_height=top_height,
        )
        try:
            rec.handle = self.host.instantiate(content_id)
        except Exception:
            stack.remove_layer(layer)
            raise
        self._stacks[coord] = stack
        logger.debug(
            "Placed %s at %s layer %d (y=%.3f)",
            content_id,
            coord,
            layer,
            rec.world_position.y,
        )
        return rec

    def _destroy(
        self, coord: AxialCoord, stack: LayerStack, records: list[TileRecord]
    ) -> list[TileRecord]:
        destroyed: list[TileRecord] = []
        try:
            for rec in records:
                if rec.handle is not None:
                    self.host.destroy(rec.handle)
                stack.remove_layer(rec.layer)
                destroyed.append(rec)
        finally:
            if stack.is_empty():
                self._stacks.pop(coord, None)
        return destroyed

    def remove(self, coord: AxialCoord) -> list[TileRecord]:
        """Remove every layer at ``coord``. Absent cells are a no-op."""
        coord = AxialCoord.of(coord)
        stack = self._stacks.get(coord)
        if stack is None:
            return []
        destroyed = self._destroy(coord, stack, stack.records())
        logger.debug("Removed %d record(s) at %s", len(destroyed), coord)
        return destroyed

    def remove_layer(
        self, coord: AxialCoord, layer: int
    ) -> TileRecord | None:
        coord = AxialCoord.of(coord)
        stack = self._stacks.get(coord)
        if stack is None:
            return None
        rec = stack.get(layer)
        if rec is None:
            return None
        self._destroy(coord, stack, [rec])
        return rec

    def raise_lower(self, coord: AxialCoord, delta_y: float) -> int:
        """Shift every tile at ``coord`` vertically. Returns records moved."""
        stack = self.get_stack(coord)
        if stack is None:
            return 0
        stack.raise_lower_all(delta_y)
        return len(stack)

    def clear_all(self) -> list[TileRecord]:
        destroyed: list[TileRecord] = []
        for coord in list(self._stacks):
            stack = self._stacks[coord]
            destroyed.extend(self._destroy(coord, stack, stack.records()))
        logger.debug("Cleared grid: %d record(s) destroyed", len(destroyed))
        return destroyed

    # -- persistence ----------------------------------------------------

    def snapshot(self) -> list[SerializedTileEntry]:
        """Flatten the grid, sorted by cell then layer."""
        return [
            SerializedTileEntry.from_record(coord, rec)
            for coord in sorted(self._stacks)
            for rec in self._stacks[coord].records()
        ]

    def restore(
        self,
        entries: Iterable[SerializedTileEntry],
        known_content: set[str] | None = None,
    ) -> list[str]:
        """Replace the grid contents with ``entries``.

        Positions and rotations are taken verbatim. Entries whose content is
        not in ``known_content`` (when given) or whose layer is already
        filled by an earlier entry are skipped; one warning string per
        skipped entry is returned.
        """
        self.clear_all()
        warnings: list[str] = []
        for entry in entries:
            coord = entry.coord
            unknown = (
                known_content is not None
                and entry.content_id not in known_content
            )
            if unknown:
                msg = (
                    f"Skipping tile at {coord} layer {entry.layer}: "
                    f"unknown content {entry.content_id!r}"
                )
                logger.warning(msg)
                warnings.append(msg)
                continue
            stack = self._stacks.get(coord)
            if stack is not None and entry.layer in stack:
                msg = (
                    f"Skipping duplicate tile at {coord} layer {entry.layer}"
                )
                logger.warning(msg)
                warnings.append(msg)
                continue
            if stack is None:
                stack = LayerStack(coord, self.stacking_policy)
            rec = TileRecord(
                content_id=entry.content_id,
                layer=entry.layer,
                rotation_deg=normalize_rotation(entry.rotation_deg),
                world_position=entry.position,
                top_height=self.host.content_height(entry.content_id),
            )
            stack.check_free(rec.layer)
            rec.handle = self.host.instantiate(entry.content_id)
            stack.insert(rec)
            self._stacks[coord] = stack
        logger.debug(
            "Restored %d record(s) in %d cell(s)",
            self.record_count(),
            len(self._stacks),
        )
        return warnings
