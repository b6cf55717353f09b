"""Axial hex coordinate math for a pointy-top grid on the x/z plane.

Cells are addressed by axial ``(q, r)``; the implied third cube coordinate is
``s = -q - r``. World space has y up, so only x and z take part in the
conversion and the vertical component is always the caller's business.

  * ``axial_to_world``: cell center for ``(q, r)``.
  * ``world_to_axial``: nearest cell for a world point, via fractional
    axial coordinates and ``cube_round``.
  * ``world_to_axial_many``: numpy-vectorized version of the above for
    hosts resolving many points at once (e.g. a drag stroke).
  * ``hex_distance``: cube distance in cells.
  * ``hex_corners``: the six corner points of a cell, for wireframe drawing.

Rounding uses round-half-to-even on each cube axis (Python ``round`` and
``np.rint`` agree on this), then repairs the component with the largest
rounding error so the cube coordinates sum to zero. Ties between errors are
broken q, then r, then s, so a point exactly on a cell edge always lands in
the same cell.
"""

from __future__ import annotations

import math
from typing import Sequence, Union

import numpy as np

from .types import AxialCoord, Vec3

SQRT3 = math.sqrt(3.0)

Point = Union[Vec3, Sequence[float]]


def _check_hex_size(hex_size: float) -> None:
    if not hex_size > 0:
        raise ValueError(f"hex_size must be positive, got {hex_size}")


def _xz(position: Point) -> tuple[float, float]:
    """Accept a Vec3, an (x, z) pair, or an (x, y, z) triple."""
    if isinstance(position, Vec3):
        return position.x, position.z
    if len(position) == 2:
        return float(position[0]), float(position[1])
    if len(position) == 3:
        return float(position[0]), float(position[2])
    raise ValueError(f"Expected 2 or 3 components, got {len(position)}")


def axial_to_world(q: int, r: int, hex_size: float) -> tuple[float, float]:
    """Center of cell (q, r) as (x, z)."""
    _check_hex_size(hex_size)
    x = SQRT3 * (q + r / 2.0) * hex_size
    z = 1.5 * r * hex_size
    return x, z


def axial_to_world3(
    coord: AxialCoord, hex_size: float, y: float = 0.0
) -> Vec3:
    x, z = axial_to_world(coord.q, coord.r, hex_size)
    return Vec3(x, y, z)


def cube_round(qf: float, rf: float) -> AxialCoord:
    """Round fractional axial coords to the nearest cell."""
    sf = -qf - rf
    rq, rr, rs = round(qf), round(rf), round(sf)

    if rq + rr + rs != 0:
        dq = abs(rq - qf)
        dr = abs(rr - rf)
        ds = abs(rs - sf)
        if dq > dr and dq > ds:
            rq = -rr - rs
        elif dr > ds:
            rr = -rq - rs
        else:
            rs = -rq - rr

    return AxialCoord(int(rq), int(rr))


def world_to_axial(position: Point, hex_size: float) -> AxialCoord:
    """Nearest cell to a world point. Any y component is ignored."""
    _check_hex_size(hex_size)
    x, z = _xz(position)
    ax = x / hex_size
    az = z / hex_size
    qf = SQRT3 / 3.0 * ax - az / 3.0
    rf = 2.0 / 3.0 * az
    return cube_round(qf, rf)


def world_to_axial_many(points, hex_size: float) -> list[AxialCoord]:
    """Vectorized ``world_to_axial`` over an (N, 2) or (N, 3) array.

    Columns are (x, z) or (x, y, z). Results match the scalar function
    point for point.
    """
    _check_hex_size(hex_size)
    pts = np.asarray(points, dtype=float)
    if pts.size == 0:
        return []
    if pts.ndim != 2 or pts.shape[1] not in (2, 3):
        raise ValueError(
            f"Expected an (N, 2) or (N, 3) array, got shape {pts.shape}"
        )
    ax = pts[:, 0] / hex_size
    az = pts[:, -1] / hex_size
    qf = SQRT3 / 3.0 * ax - az / 3.0
    rf = 2.0 / 3.0 * az
    sf = -qf - rf

    rq, rr, rs = np.rint(qf), np.rint(rf), np.rint(sf)
    dq = np.abs(rq - qf)
    dr = np.abs(rr - rf)
    ds = np.abs(rs - sf)

    unbalanced = (rq + rr + rs) != 0
    fix_q = unbalanced & (dq > dr) & (dq > ds)
    fix_r = unbalanced & ~fix_q & (dr > ds)
    rq = np.where(fix_q, -rr - rs, rq)
    rr = np.where(fix_r, -rq - rs, rr)

    return [
        AxialCoord(int(q), int(r))
        for q, r in zip(rq.astype(np.int64), rr.astype(np.int64))
    ]


def hex_distance(a: AxialCoord, b: AxialCoord) -> int:
    """Number of steps between two cells."""
    dq = a.q - b.q
    dr = a.r - b.r
    ds = a.s - b.s
    return (abs(dq) + abs(dr) + abs(ds)) // 2


def hex_corners(
    coord: AxialCoord, hex_size: float
) -> list[tuple[float, float]]:
    """The six (x, z) corners of a cell, counter-clockwise from -30°."""
    cx, cz = axial_to_world(coord.q, coord.r, hex_size)
    corners = []
    for i in range(6):
        angle = math.radians(60.0 * i - 30.0)
        corners.append(
            (cx + hex_size * math.cos(angle), cz + hex_size * math.sin(angle))
        )
    return corners
