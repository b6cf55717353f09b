"""Brush expansion: one target cell to the disk of cells a brush covers.

Every editing operation (place, remove, raise/lower) goes through here so a
brush of radius 0 touches just the target cell, radius 1 adds the six
neighbours, and so on. A disk of radius r always holds ``3r^2 + 3r + 1``
cells.
"""

from __future__ import annotations

from .errors import InvalidRadius
from .types import AxialCoord


def disk_size(radius: int) -> int:
    if radius < 0:
        raise InvalidRadius(radius)
    return 3 * radius * radius + 3 * radius + 1


def expand_ordered(center: AxialCoord, radius: int) -> list[AxialCoord]:
    """Cells within ``radius`` of ``center``, swept q-major then r.

    The sweep order is deterministic so brush operations visit cells the
    same way every time.
    """
    if radius < 0:
        raise InvalidRadius(radius)
    center = AxialCoord.of(center)
    cells = []
    for dq in range(-radius, radius + 1):
        # |dq| + |dr| + |dq + dr| <= 2 * radius
        lo = max(-radius, -dq - radius)
        hi = min(radius, -dq + radius)
        for dr in range(lo, hi + 1):
            cells.append(center.offset(dq, dr))
    return cells


def expand(center: AxialCoord, radius: int) -> set[AxialCoord]:
    return set(expand_ordered(center, radius))


def visible_cells(center: AxialCoord, grid_range: int) -> list[AxialCoord]:
    """Cells a host draws as wireframe around its camera target."""
    return expand_ordered(center, max(grid_range, 0))
