from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from .errors import TileMapError
from .grid import TileMap
from .io import load_map, load_rows, write_blob
from .patterns import PatternFilter


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _decode(args: argparse.Namespace) -> int:
    tilemap = load_map(args.blob, args.offset)
    w, h = tilemap.size
    print(json.dumps({"width": w, "height": h, "rows": tilemap.to_rows()}))
    return 0


def _encode(args: argparse.Namespace) -> int:
    tilemap = TileMap.from_rows(load_rows(args.json))
    data = tilemap.to_bytes()
    write_blob(args.out, data)
    print(json.dumps({"out": args.out, "bytes": len(data)}, indent=2))
    return 0


def _filter(args: argparse.Namespace) -> int:
    tilemap = load_map(args.blob, args.offset)
    flt = PatternFilter.load(args.patterns)
    passes = flt.apply_until_stable(tilemap, max_passes=args.passes)
    data = tilemap.to_bytes()
    write_blob(args.out, data)
    logger.info("applied %d patterns in %d changing passes", len(flt), passes)
    print(json.dumps({"out": args.out, "bytes": len(data), "changed_passes": passes}, indent=2))
    return 0


def main(argv: Any = None) -> int:
    parser = argparse.ArgumentParser(description="Compressed 64x64 tile map tools")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decode", help="Decode a compressed map and print its rows as JSON")
    p.add_argument("--blob", required=True, help="Path to a file holding the compressed map")
    p.add_argument("--offset", type=int, default=0, help="Byte offset of the map in the file")
    p.set_defaults(func=_decode)

    p = sub.add_parser("encode", help="Compress map rows from JSON")
    p.add_argument("--json", required=True, help="JSON file with a list of rows or {'rows': [...]}")
    p.add_argument("--out", required=True, help="Output path for the compressed map")
    p.set_defaults(func=_encode)

    p = sub.add_parser("filter", help="Apply a saved pattern filter to a compressed map")
    p.add_argument("--blob", required=True, help="Path to a file holding the compressed map")
    p.add_argument("--offset", type=int, default=0, help="Byte offset of the map in the file")
    p.add_argument("--patterns", required=True, help="Pattern filter JSON file")
    p.add_argument("--out", required=True, help="Output path for the re-encoded map")
    p.add_argument("--passes", type=int, default=16, help="Max filter passes")
    p.set_defaults(func=_filter)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)

    try:
        return args.func(args)
    except TileMapError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
