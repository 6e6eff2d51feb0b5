from __future__ import annotations

from typing import Optional


class TileMapError(Exception):
    """Base class for all tile map failures."""


class MapDecodeError(TileMapError, ValueError):
    """Compressed stream ended (or overran the grid) before a full map was produced."""

    def __init__(self, message: str, offset: Optional[int] = None, cells: Optional[int] = None):
        super().__init__(message)
        self.offset = offset
        self.cells = cells


class MapBoundsError(TileMapError, IndexError):
    """Coordinate or rectangle outside the map."""


class TileValueError(TileMapError, ValueError):
    """Tile value cannot be stored or encoded."""
