"""Data types matching the hex editor JSON state document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

MODE_ADD_REMOVE = "AddRemove"
MODE_HEIGHT_MAP = "HeightMap"
EDITOR_MODES = (MODE_ADD_REMOVE, MODE_HEIGHT_MAP)
MAX_BRUSH_SIZE = 3


def clamp_brush_size(size: int) -> int:
    return min(max(int(size), 0), MAX_BRUSH_SIZE)


def _integral(d: dict, key: str, default: Any = None) -> int:
    """Read an integer field, rejecting bools and fractional numbers."""
    value = d[key] if default is None else d.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be an integer, got {value!r}")
    return int(value)


def _flag(d: dict, key: str) -> bool:
    value = d.get(key, False)
    if not isinstance(value, bool):
        raise TypeError(f"{key} must be true or false, got {value!r}")
    return value


def normalize_rotation(deg: float) -> float:
    """Wrap a yaw angle into [0, 360)."""
    wrapped = float(deg) % 360.0
    # Tiny negative inputs wrap to exactly 360.0 in float arithmetic.
    if wrapped >= 360.0:
        return 0.0
    return wrapped


@dataclass(frozen=True, order=True)
class AxialCoord:
    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    @staticmethod
    def of(value: AxialCoord | tuple[int, int]) -> AxialCoord:
        if isinstance(value, AxialCoord):
            return value
        q, r = value
        return AxialCoord(int(q), int(r))

    def offset(self, dq: int, dr: int) -> AxialCoord:
        return AxialCoord(self.q + dq, self.r + dr)

    def __str__(self) -> str:
        return f"({self.q}, {self.r})"


@dataclass(frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def with_y(self, y: float) -> Vec3:
        return Vec3(self.x, y, self.z)

    def shifted_y(self, delta_y: float) -> Vec3:
        return Vec3(self.x, self.y + delta_y, self.z)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class StackingPolicy:
    """How high a new tile sits above the lower layers of its cell.

    ``flush_on_top``: the new tile's bottom is exactly the highest top
    surface below it. ``fixed_offset``: the same plus ``offset`` when the
    tile is stacked on something; a tile with nothing below it always sits
    on the ground.
    """

    kind: str = "flush_on_top"
    offset: float = 0.0

    @staticmethod
    def flush_on_top() -> StackingPolicy:
        return StackingPolicy("flush_on_top", 0.0)

    @staticmethod
    def fixed_offset(offset: float) -> StackingPolicy:
        return StackingPolicy("fixed_offset", float(offset))

    def bottom_for(self, base_y: float, stacked: bool = True) -> float:
        if self.kind == "fixed_offset" and stacked:
            return base_y + self.offset
        return base_y

    @staticmethod
    def from_dict(d: dict | None) -> StackingPolicy:
        if not d:
            return StackingPolicy.flush_on_top()
        kind = d.get("kind", "flush_on_top")
        if kind == "flush_on_top":
            return StackingPolicy.flush_on_top()
        if kind == "fixed_offset":
            return StackingPolicy.fixed_offset(d.get("offset", 0.0))
        raise ValueError(f"Unknown stacking policy: {kind!r}")

    def to_dict(self) -> dict:
        if self.kind == "fixed_offset":
            return {"kind": self.kind, "offset": self.offset}
        return {"kind": self.kind}


@dataclass
class TileRecord:
    content_id: str
    layer: int
    rotation_deg: float
    world_position: Vec3
    # Height of the content's top surface above its own bottom, as
    # reported by the host.
    top_height: float = 0.0
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def top_surface(self) -> float:
        return self.world_position.y + self.top_height

    def shift_y(self, delta_y: float) -> None:
        self.world_position = self.world_position.shifted_y(delta_y)


@dataclass
class SerializedTileEntry:
    q: int
    r: int
    content_id: str
    rotation_deg: float
    pos_x: float
    pos_y: float
    pos_z: float
    layer: int = 0

    @property
    def coord(self) -> AxialCoord:
        return AxialCoord(self.q, self.r)

    @property
    def position(self) -> Vec3:
        return Vec3(self.pos_x, self.pos_y, self.pos_z)

    @staticmethod
    def from_record(coord: AxialCoord, rec: TileRecord) -> SerializedTileEntry:
        p = rec.world_position
        return SerializedTileEntry(
            q=coord.q,
            r=coord.r,
            content_id=rec.content_id,
            rotation_deg=rec.rotation_deg,
            pos_x=p.x,
            pos_y=p.y,
            pos_z=p.z,
            layer=rec.layer,
        )

    @staticmethod
    def from_dict(d: dict) -> SerializedTileEntry:
        layer = _integral(d, "layer", 0)
        if layer < 0:
            raise ValueError(f"layer must be >= 0, got {layer}")
        content_id = d["content_id"]
        if not isinstance(content_id, str):
            raise TypeError("content_id must be a string")
        return SerializedTileEntry(
            q=_integral(d, "q"),
            r=_integral(d, "r"),
            content_id=content_id,
            rotation_deg=float(d.get("rotation_deg", 0.0)),
            pos_x=float(d.get("pos_x", 0.0)),
            pos_y=float(d.get("pos_y", 0.0)),
            pos_z=float(d.get("pos_z", 0.0)),
            layer=layer,
        )

    def to_dict(self) -> dict:
        return {
            "q": self.q,
            "r": self.r,
            "content_id": self.content_id,
            "rotation_deg": self.rotation_deg,
            "pos_x": self.pos_x,
            "pos_y": self.pos_y,
            "pos_z": self.pos_z,
            "layer": self.layer,
        }


@dataclass
class TileSetting:
    """One palette entry: which content to place and on which layer."""

    tile_name: str
    prefab_reference: str
    layer: int = 0

    @staticmethod
    def from_dict(d: dict) -> TileSetting:
        return TileSetting(
            tile_name=str(d.get("tile_name", "")),
            prefab_reference=str(d.get("prefab_reference", "")),
            layer=int(d.get("layer", 0)),
        )

    def to_dict(self) -> dict:
        return {
            "tile_name": self.tile_name,
            "prefab_reference": self.prefab_reference,
            "layer": self.layer,
        }


@dataclass
class GridMapRef:
    """Where the host finds its grid object: an asset or a scene object."""

    is_scene_object: bool = False
    asset_guid: str = ""
    scene_object_name: str = ""


@dataclass
class EditorSettings:
    hex_size: float = 1.0
    grid_range: int = 10
    selected_tile_index: int = 0
    ghost_rotation_deg: float = 0.0
    current_mode: str = MODE_ADD_REMOVE
    height_step: float = 0.2
    brush_size: int = 0
    tile_settings: list[TileSetting] = field(default_factory=list)
    grid_map: GridMapRef = field(default_factory=GridMapRef)
    stacking_policy: StackingPolicy = field(
        default_factory=StackingPolicy.flush_on_top
    )
    # Keys this version does not know about, carried through untouched.
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: dict) -> EditorSettings:
        hex_size = float(d.get("hex_size", 1.0))
        if hex_size <= 0:
            raise ValueError(f"hex_size must be positive, got {hex_size}")
        tiles = d.get("tile_settings", [])
        if not isinstance(tiles, list):
            raise TypeError("tile_settings must be a list")
        return EditorSettings(
            hex_size=hex_size,
            grid_range=int(d.get("grid_range", 10)),
            selected_tile_index=int(d.get("selected_tile_index", 0)),
            ghost_rotation_deg=float(d.get("ghost_rotation_deg", 0.0)),
            current_mode=str(d.get("current_mode", MODE_ADD_REMOVE)),
            height_step=float(d.get("height_step", 0.2)),
            brush_size=clamp_brush_size(_integral(d, "brush_size", 0)),
            tile_settings=[TileSetting.from_dict(t) for t in tiles],
            grid_map=GridMapRef(
                is_scene_object=_flag(d, "is_grid_map_scene_object"),
                asset_guid=str(d.get("grid_map_guid", "")),
                scene_object_name=str(d.get("grid_map_scene_name", "")),
            ),
            stacking_policy=StackingPolicy.from_dict(
                d.get("stacking_policy")
            ),
        )

    def to_dict(self) -> dict:
        d: dict = dict(self.extra)
        d.update(
            {
                "hex_size": self.hex_size,
                "grid_range": self.grid_range,
                "selected_tile_index": self.selected_tile_index,
                "ghost_rotation_deg": self.ghost_rotation_deg,
                "current_mode": self.current_mode,
                "height_step": self.height_step,
                "brush_size": self.brush_size,
                "tile_settings": [t.to_dict() for t in self.tile_settings],
                "is_grid_map_scene_object": self.grid_map.is_scene_object,
                "grid_map_guid": self.grid_map.asset_guid,
                "grid_map_scene_name": self.grid_map.scene_object_name,
                "stacking_policy": self.stacking_policy.to_dict(),
            }
        )
        return d
