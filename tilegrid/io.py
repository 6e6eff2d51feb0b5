from __future__ import annotations

import json
import logging
from typing import List, Optional

from .grid import TileMap


logger = logging.getLogger(__name__)


def read_blob(path: str, offset: int = 0, length: Optional[int] = None) -> bytes:
    """Read raw bytes from a file, starting at offset.

    With no length the rest of the file is returned; the decoder ignores
    whatever follows the map.
    """
    with open(path, "rb") as f:
        f.seek(offset)
        data = f.read() if length is None else f.read(length)
    logger.debug("read %d bytes from %s at offset %d", len(data), path, offset)
    return data


def write_blob(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)
    logger.debug("wrote %d bytes to %s", len(data), path)


def load_map(path: str, offset: int = 0) -> TileMap:
    return TileMap.from_bytes(read_blob(path, offset))


def load_rows(json_path: str) -> List[List[int]]:
    """Load map rows from JSON: either a bare list of rows or {"rows": [...]}."""
    with open(json_path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data["rows"]
    return data
