"""Encode and decode the full editor state document.

The document is a flat JSON object: the editor settings (hex size, grid
range, palette, brush, mode, grid-map reference, stacking policy) plus
``placed_hexes``, the list of ``SerializedTileEntry`` dicts from
``GridStore.snapshot()``. Example::

    {
      "hex_size": 1.0,
      "grid_range": 10,
      "selected_tile_index": 0,
      "ghost_rotation_deg": 60.0,
      "current_mode": "AddRemove",
      "height_step": 0.2,
      "brush_size": 0,
      "tile_settings": [
        {"tile_name": "Floor", "prefab_reference": "floor", "layer": 0}
      ],
      "is_grid_map_scene_object": true,
      "grid_map_guid": "",
      "grid_map_scene_name": "GridMap",
      "stacking_policy": {"kind": "flush_on_top"},
      "placed_hexes": [
        {"q": 0, "r": 0, "content_id": "floor", "rotation_deg": 0.0,
         "pos_x": 0.0, "pos_y": 0.0, "pos_z": 0.0, "layer": 0}
      ]
    }

Settings are passed through without interpretation; keys this version does
not recognise land in ``EditorSettings.extra`` and are written back out.

Decoding distinguishes two kinds of failure:

  * **Document-level**: not JSON, not an object, or a settings field of the
    wrong type. ``decode`` raises ``MalformedDocument``. Since a fresh store
    is built, the caller's existing grid is untouched.
  * **Entry-level**: a single placed tile that is malformed, refers to
    unknown content, or duplicates a layer. The entry is skipped and a
    warning is recorded in ``DecodeResult.warnings``.

An unrecognised ``current_mode`` falls back to ``"AddRemove"`` with a
warning rather than failing the whole load.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import MalformedDocument
from .grid import GridStore
from .host import TileHost
from .types import (
    EDITOR_MODES,
    MODE_ADD_REMOVE,
    EditorSettings,
    SerializedTileEntry,
)

logger = logging.getLogger(__name__)

SETTINGS_KEYS = frozenset(
    {
        "hex_size",
        "grid_range",
        "selected_tile_index",
        "ghost_rotation_deg",
        "current_mode",
        "height_step",
        "brush_size",
        "tile_settings",
        "is_grid_map_scene_object",
        "grid_map_guid",
        "grid_map_scene_name",
        "stacking_policy",
    }
)
PLACED_KEY = "placed_hexes"


@dataclass
class DecodeResult:
    store: GridStore
    settings: EditorSettings
    warnings: list[str] = field(default_factory=list)


def encode(store: GridStore, settings: EditorSettings) -> dict:
    """Build the JSON-compatible state document."""
    doc = settings.to_dict()
    doc[PLACED_KEY] = [e.to_dict() for e in store.snapshot()]
    return doc


def encode_json(store: GridStore, settings: EditorSettings) -> str:
    return json.dumps(encode(store, settings), indent=2)


def _parse(document: Any) -> dict:
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except ValueError as e:
            raise MalformedDocument(f"State is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedDocument(
            f"State must be a JSON object, got {type(document).__name__}"
        )
    return document


def decode_settings(document: Any) -> tuple[EditorSettings, list[str]]:
    doc = _parse(document)
    try:
        settings = EditorSettings.from_dict(doc)
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedDocument(f"Invalid editor settings: {e}") from e
    settings.extra = {
        k: v
        for k, v in doc.items()
        if k not in SETTINGS_KEYS and k != PLACED_KEY
    }

    warnings: list[str] = []
    if settings.current_mode not in EDITOR_MODES:
        msg = (
            f"Unknown editor mode {settings.current_mode!r}, "
            f"using {MODE_ADD_REMOVE!r}"
        )
        logger.warning(msg)
        warnings.append(msg)
        settings.current_mode = MODE_ADD_REMOVE
    return settings, warnings


def decode_entries(raw: Any) -> tuple[list[SerializedTileEntry], list[str]]:
    """Parse ``placed_hexes``, skipping entries that fail individually."""
    if raw is None:
        return [], []
    if not isinstance(raw, list):
        raise MalformedDocument(
            f"'{PLACED_KEY}' must be a list, got {type(raw).__name__}"
        )
    entries: list[SerializedTileEntry] = []
    warnings: list[str] = []
    for i, d in enumerate(raw):
        try:
            if not isinstance(d, dict):
                raise TypeError(f"expected an object, got {type(d).__name__}")
            entries.append(SerializedTileEntry.from_dict(d))
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Skipping malformed entry {i} in '{PLACED_KEY}': {e!r}"
            logger.warning(msg)
            warnings.append(msg)
    return entries, warnings


def decode(
    document: Any,
    host: TileHost | None = None,
    known_content: set[str] | None = None,
) -> DecodeResult:
    """Rebuild a ``GridStore`` and ``EditorSettings`` from a document.

    ``document`` may be a dict or JSON text. Raises ``MalformedDocument`` on
    document-level failures.
    """
    doc = _parse(document)
    settings, warnings = decode_settings(doc)
    entries, entry_warnings = decode_entries(doc.get(PLACED_KEY))
    warnings.extend(entry_warnings)

    store = GridStore(
        hex_size=settings.hex_size,
        stacking_policy=settings.stacking_policy,
        host=host,
    )
    warnings.extend(store.restore(entries, known_content=known_content))
    return DecodeResult(store=store, settings=settings, warnings=warnings)


def decode_json(
    text: str | bytes,
    host: TileHost | None = None,
    known_content: set[str] | None = None,
) -> DecodeResult:
    return decode(text, host=host, known_content=known_content)
