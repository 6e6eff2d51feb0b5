"""Fixed-size tile maps with run-length compression.

Modules:
- codec: compressed stream decode/encode
- grid: TileMap, MapElement cell handles, flood and pattern filtering
- patterns: reusable pattern -> replacement tables
- io: raw blob and JSON loading helpers
- cli: command-line entrypoint
"""

from .errors import MapBoundsError, MapDecodeError, TileMapError, TileValueError
from .grid import Coord, MapElement, Size, TileMap
from .patterns import PatternFilter
from .io import load_map

__all__ = [
    "TileMap",
    "MapElement",
    "Coord",
    "Size",
    "PatternFilter",
    "load_map",
    "TileMapError",
    "MapDecodeError",
    "MapBoundsError",
    "TileValueError",
]
