"""Save and load the editor state file.

The engine only turns a grid into a dict and back; this module is the thin
layer that puts that dict on disk. The state lives at a fixed location
chosen by the host integration (``DEFAULT_STATE_PATH`` by default) as
indented JSON.

Used by the host's Save/Load buttons and by its open/close hooks.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..engine.errors import MalformedDocument
from ..engine.host import TileHost
from .session import EditorSession

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = Path("Assets/Editor/HexEditorData.json")


def save_state(document: dict, path: Path = DEFAULT_STATE_PATH) -> None:
    """Write a state document as JSON.

    Creates parent directories if they don't exist.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(document, f, indent=2)
        f.write("\n")
    logger.info("Editor state saved to %s", path)


def load_state(path: Path = DEFAULT_STATE_PATH) -> dict | None:
    """Load a state document, or ``None`` if no state has been saved yet.

    Raises ``MalformedDocument`` if the file is not valid JSON.
    """
    path = Path(path)
    if not path.is_file():
        return None
    with open(path) as f:
        try:
            data = json.load(f)
        except ValueError as e:
            raise MalformedDocument(f"{path}: {e}") from e
    logger.info("Editor state loaded from %s", path)
    return data


def save_session(
    session: EditorSession, path: Path = DEFAULT_STATE_PATH
) -> None:
    save_state(session.to_document(), path)


def load_session(
    path: Path = DEFAULT_STATE_PATH,
    host: TileHost | None = None,
    known_content: set[str] | None = None,
) -> EditorSession | None:
    """Load a session from disk; ``None`` if the file does not exist."""
    data = load_state(path)
    if data is None:
        return None
    return EditorSession.from_document(
        data, host=host, known_content=known_content
    )
