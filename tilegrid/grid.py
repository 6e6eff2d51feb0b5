from __future__ import annotations

import logging
import weakref
from collections import deque
from typing import (
    TYPE_CHECKING,
    Callable,
    Iterator,
    Mapping,
    NamedTuple,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

import numpy as np

from .codec import ByteData, decode_cells, encode_cells
from .errors import MapBoundsError, TileValueError

if TYPE_CHECKING:
    from .patterns import PatternFilter


logger = logging.getLogger(__name__)


class Coord(NamedTuple):
    x: int
    y: int


class Size(NamedTuple):
    w: int
    h: int


# Rows of tile values, hashable so it can key a replacement table
Pattern = Tuple[Tuple[int, ...], ...]
Block = Union[np.ndarray, Sequence[Sequence[int]]]
Visitor = Callable[["MapElement"], bool]


def _check_tile(value: int) -> int:
    value = int(value)
    if not 0 <= value <= 0xFF:
        raise TileValueError(f"tile value {value} is outside 0..255")
    return value


def as_pattern(rows: Block) -> Pattern:
    """Normalize rows (lists, tuples or a 2-D array) into a Pattern."""
    if isinstance(rows, np.ndarray):
        rows = rows.tolist()
    return tuple(tuple(int(v) for v in row) for row in rows)


def check_pattern_tiles(pattern: Pattern) -> None:
    bad = sorted({v for row in pattern for v in row if not 0 <= v <= 0xFF})
    if bad:
        raise TileValueError(f"pattern {pattern} holds tiles {bad} outside 0..255")


def pattern_size(pattern: Pattern) -> Size:
    h = len(pattern)
    w = len(pattern[0]) if h else 0
    if any(len(row) != w for row in pattern):
        raise ValueError(f"pattern rows have uneven lengths: {[len(r) for r in pattern]}")
    return Size(w, h)


class TileMap:
    """Fixed-size grid of byte tiles with run-length compressed serialization.

    Cells are stored as a (ROW_COUNT, ROW_LENGTH) uint8 array indexed
    [row, col]. ``tilemap[row, col]`` and ``tilemap[Coord(x, y)]`` address the
    same cell; ``get``/``set`` take (x, y). Subclasses may override the
    dimensions to reuse the codec for other fixed sizes.
    """

    ROW_LENGTH = 64
    ROW_COUNT = 64

    def __init__(self, fill: int = 0):
        self._cells = np.full((self.ROW_COUNT, self.ROW_LENGTH), _check_tile(fill), dtype=np.uint8)

    @classmethod
    def from_bytes(cls, data: ByteData) -> "TileMap":
        tilemap = cls.__new__(cls)
        tilemap._cells = decode_cells(data, cls.ROW_LENGTH, cls.ROW_COUNT)
        return tilemap

    @classmethod
    def from_rows(cls, rows: Block) -> "TileMap":
        try:
            arr = np.asarray(rows, dtype=np.int64)
        except (ValueError, TypeError, OverflowError) as e:
            raise TileValueError(f"rows are not a rectangular grid of integer tiles: {e}") from e
        if arr.shape != (cls.ROW_COUNT, cls.ROW_LENGTH):
            raise MapBoundsError(
                f"expected {cls.ROW_COUNT}x{cls.ROW_LENGTH} rows, got shape {arr.shape}"
            )
        if arr.size and (arr.min() < 0 or arr.max() > 0xFF):
            raise TileValueError("rows contain values outside 0..255")
        tilemap = cls.__new__(cls)
        tilemap._cells = arr.astype(np.uint8)
        return tilemap

    @property
    def size(self) -> Size:
        return Size(self.ROW_LENGTH, self.ROW_COUNT)

    def clone(self) -> "TileMap":
        tilemap = self.__class__.__new__(self.__class__)
        tilemap._cells = self._cells.copy()
        return tilemap

    def to_bytes(self) -> bytes:
        return encode_cells(self._cells)

    def to_rows(self) -> list:
        return self._cells.tolist()

    # Access

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.ROW_LENGTH and 0 <= y < self.ROW_COUNT

    def _check_coord(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise MapBoundsError(
                f"({x}, {y}) is outside the {self.ROW_LENGTH}x{self.ROW_COUNT} map"
            )

    def _check_rect(self, origin: Coord, size: Size) -> None:
        x, y = origin
        w, h = size
        if w < 0 or h < 0:
            raise MapBoundsError(f"negative rectangle size {tuple(size)}")
        if w == 0 or h == 0:
            return
        if not (self.in_bounds(x, y) and self.in_bounds(x + w - 1, y + h - 1)):
            raise MapBoundsError(
                f"rectangle at {tuple(origin)} of size {tuple(size)} leaves the "
                f"{self.ROW_LENGTH}x{self.ROW_COUNT} map"
            )

    def _key(self, key) -> Tuple[int, int]:
        # Coord is (x, y); a plain tuple is (row, col) like the underlying array
        if isinstance(key, Coord):
            row, col = key.y, key.x
        else:
            row, col = key
        self._check_coord(col, row)
        return row, col

    def __getitem__(self, key) -> int:
        return int(self._cells[self._key(key)])

    def __setitem__(self, key, value: int) -> None:
        self._cells[self._key(key)] = _check_tile(value)

    def get(self, x: int, y: int) -> int:
        self._check_coord(x, y)
        return int(self._cells[y, x])

    def set(self, x: int, y: int, value: int) -> None:
        self._check_coord(x, y)
        self._cells[y, x] = _check_tile(value)

    def cell(self, x: int, y: int) -> "MapElement":
        return MapElement(self, x, y)

    def cell_at(self, coord: Tuple[int, int]) -> "MapElement":
        x, y = coord
        return MapElement(self, x, y)

    def __iter__(self) -> Iterator["MapElement"]:
        """Yield every cell row-major. Writing an element's value writes this map."""
        for y in range(self.ROW_COUNT):
            for x in range(self.ROW_LENGTH):
                yield MapElement(self, x, y)

    def __len__(self) -> int:
        return self._cells.size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileMap):
            return NotImplemented
        return np.array_equal(self._cells, other._cells)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.ROW_LENGTH}x{self.ROW_COUNT})"

    # Rectangular operations

    def fill(self, origin: Tuple[int, int], size: Tuple[int, int], value: int) -> None:
        origin, size = Coord(*origin), Size(*size)
        self._check_rect(origin, size)
        self._cells[origin.y : origin.y + size.h, origin.x : origin.x + size.w] = _check_tile(value)

    def put(self, origin: Tuple[int, int], block: Block) -> None:
        """Copy block rows into the map starting at origin.

        Ragged blocks are written one row at a time, each row starting at
        origin.x. Nothing is written unless every row fits.
        """
        origin = Coord(*origin)
        if isinstance(block, np.ndarray):
            if block.ndim != 2:
                raise ValueError(f"block must be 2-D, got {block.ndim}-D array")
            rows = block
        else:
            rows = [np.asarray(row) for row in block]
            for i, row in enumerate(rows):
                if row.ndim != 1:
                    raise ValueError(f"block row {i} is not a sequence of tiles")
        for i, row in enumerate(rows):
            self._check_rect(Coord(origin.x, origin.y + i), Size(len(row), 1))
            if len(row) and (np.min(row) < 0 or np.max(row) > 0xFF):
                raise TileValueError(f"block row {i} contains values outside 0..255")
        for i, row in enumerate(rows):
            y = origin.y + i
            self._cells[y, origin.x : origin.x + len(row)] = row

    def section(self, origin: Tuple[int, int], size: Tuple[int, int]) -> Pattern:
        origin, size = Coord(*origin), Size(*size)
        self._check_rect(origin, size)
        return as_pattern(self._cells[origin.y : origin.y + size.h, origin.x : origin.x + size.w])

    # Traversal

    def flood(self, origin: Tuple[int, int], visit: Visitor) -> int:
        """Breadth-first flood over 4-neighbours with toroidal wraparound.

        ``visit`` is called once per reached cell; returning True expands to
        its neighbours, False makes it a boundary. Each coordinate is queued at
        most once, so the walk ends even though the torus has no edges.
        Returns the number of cells visited.
        """
        start = Coord(*origin)
        self._check_coord(*start)
        w, h = self.ROW_LENGTH, self.ROW_COUNT
        queue = deque([start])
        seen: Set[Coord] = {start}
        visited = 0
        while queue:
            x, y = queue.popleft()
            visited += 1
            if not visit(MapElement(self, x, y)):
                continue
            for nxt in (
                Coord((x - 1) % w, y),
                Coord((x + 1) % w, y),
                Coord(x, (y - 1) % h),
                Coord(x, (y + 1) % h),
            ):
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return visited

    # Pattern replacement

    def filter(
        self,
        patterns: Union[Mapping[Pattern, Pattern], "PatternFilter"],
        size: Optional[Tuple[int, int]] = None,
    ) -> bool:
        """Replace every window that exactly matches a pattern key.

        Windows are scanned with origins 0 <= x < W - pw and 0 <= y < H - ph,
        y outer and x inner, so the last pw columns and ph rows are never
        origins. Matches are written immediately and later overlapping
        windows see the replaced values. Returns True if anything changed.
        """
        from .patterns import PatternFilter

        if isinstance(patterns, PatternFilter):
            table = patterns.table
            size = patterns.size if size is None else size
        else:
            table = {as_pattern(k): as_pattern(v) for k, v in patterns.items()}
        if size is None:
            raise ValueError("pattern size is required")
        pw, ph = Size(*size)
        for key, replacement in table.items():
            if pattern_size(key) != (pw, ph) or pattern_size(replacement) != (pw, ph):
                raise ValueError(f"pattern {key} -> {replacement} does not match size {(pw, ph)}")
            check_pattern_tiles(key)
            check_pattern_tiles(replacement)
        if not table:
            return False

        replaced = 0
        for y in range(self.ROW_COUNT - ph):
            for x in range(self.ROW_LENGTH - pw):
                window = self._cells[y : y + ph, x : x + pw]
                replacement = table.get(as_pattern(window))
                if replacement is not None:
                    window[:, :] = replacement
                    replaced += 1
        logger.debug("filter of %d patterns (%dx%d) replaced %d windows", len(table), pw, ph, replaced)
        return replaced > 0


class MapElement:
    """One addressable cell of a TileMap.

    Holds only a weak reference to its map and the cell coordinates, so
    reading or writing ``value`` goes straight to the map.
    """

    __slots__ = ("_map_ref", "_x", "_y")

    def __init__(self, tilemap: TileMap, x: int, y: int):
        tilemap._check_coord(x, y)
        self._map_ref = weakref.ref(tilemap)
        self._x = x
        self._y = y

    @property
    def map(self) -> TileMap:
        tilemap = self._map_ref()
        if tilemap is None:
            raise ReferenceError("tile map behind this element no longer exists")
        return tilemap

    @property
    def x(self) -> int:
        return self._x

    @property
    def y(self) -> int:
        return self._y

    @property
    def coord(self) -> Coord:
        return Coord(self._x, self._y)

    @property
    def value(self) -> int:
        return self.map.get(self._x, self._y)

    @value.setter
    def value(self, value: int) -> None:
        self.map.set(self._x, self._y, value)

    def __repr__(self) -> str:
        return f"MapElement(x={self._x}, y={self._y})"
