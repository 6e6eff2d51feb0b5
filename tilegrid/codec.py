from __future__ import annotations

import logging
from typing import List, Sequence, Union

import numpy as np

from .errors import MapDecodeError, TileValueError


logger = logging.getLogger(__name__)

ByteData = Union[bytes, bytearray, memoryview, Sequence[int]]

# Wire format:
#   literal token: one byte, top bit clear, value is the tile (0..127)
#   run token:     (tile | RUN_FLAG), count byte; count 0 stands for 256
# The encoder appends TERMINATOR once after the last token.
RUN_FLAG = 0x80
TILE_MASK = 0x7F
MAX_TILE = 0x7F
MAX_RUN = 256
TERMINATOR = 0xFF


def decode_cells(data: ByteData, width: int, height: int) -> np.ndarray:
    """Decode a compressed stream into a (height, width) uint8 array.

    Cells are produced row-major. Decoding stops as soon as width*height
    cells exist; anything after that point is ignored.
    """
    total = width * height
    flat = np.empty(total, dtype=np.uint8)
    buf = bytes(data)
    offset = 0
    pos = 0
    while pos < total:
        if offset >= len(buf):
            raise MapDecodeError(
                f"stream ended after {pos} of {total} cells", offset=offset, cells=pos
            )
        token = buf[offset]
        offset += 1
        if not token & RUN_FLAG:
            flat[pos] = token
            pos += 1
            continue
        if offset >= len(buf):
            raise MapDecodeError(
                f"run token at byte {offset - 1} has no count byte", offset=offset, cells=pos
            )
        count = buf[offset] or MAX_RUN
        offset += 1
        if pos + count > total:
            raise MapDecodeError(
                f"run of {count} at cell {pos} overruns the {total}-cell map",
                offset=offset,
                cells=pos,
            )
        flat[pos : pos + count] = token & TILE_MASK
        pos += count

    if offset < len(buf):
        logger.debug("ignored %d trailing bytes after %d-cell map", len(buf) - offset, total)
    return flat.reshape(height, width)


def encode_cells(cells: np.ndarray) -> bytes:
    """Compress cells (scanned row-major) and append the terminator byte."""
    flat = np.asarray(cells).ravel().tolist()
    bad = [v for v in set(flat) if v < 0 or v > MAX_TILE]
    if bad:
        raise TileValueError(f"tiles {sorted(bad)} do not fit in 7 bits and cannot be encoded")

    out: List[int] = []
    n = len(flat)
    i = 0
    while i < n:
        tile = flat[i]
        i += 1
        if i >= n or flat[i] != tile:
            out.append(tile)
            continue
        count = 1
        while i < n and count < MAX_RUN and flat[i] == tile:
            count += 1
            i += 1
        out.append(tile | RUN_FLAG)
        out.append(count & 0xFF)

    out.append(TERMINATOR)
    return bytes(out)
