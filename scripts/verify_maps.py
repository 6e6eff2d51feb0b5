from __future__ import annotations

import argparse
import glob
import json
import logging
import os
from typing import Any, Dict, List

from tqdm import tqdm

from tilegrid.errors import TileMapError
from tilegrid.grid import TileMap
from tilegrid.io import read_blob


logger = logging.getLogger(__name__)


def verify_maps(directory: str, pattern: str = "*.bin", progress: bool = True) -> Dict[str, Any]:
    """Decode every blob in a directory, re-encode it and check the round trip.

    A map passes when decoding the re-encoded bytes reproduces the first
    decode cell for cell. ``same_bytes`` records whether the re-encoded
    stream is also byte-identical to the input prefix.
    """
    paths = sorted(glob.glob(os.path.join(directory, pattern)))
    per_map: List[Dict[str, Any]] = []
    passed = 0
    failed = 0

    for path in tqdm(paths, desc="Verifying maps", disable=not progress):
        name = os.path.basename(path)
        data = read_blob(path)
        try:
            tilemap = TileMap.from_bytes(data)
            encoded = tilemap.to_bytes()
            ok = TileMap.from_bytes(encoded) == tilemap
        except TileMapError as e:
            logger.warning("%s: %s", name, e)
            failed += 1
            per_map.append({"map": name, "ok": False, "error": str(e)})
            continue
        if ok:
            passed += 1
        else:
            failed += 1
        per_map.append({
            "map": name,
            "ok": ok,
            "input_bytes": len(data),
            "encoded_bytes": len(encoded),
            "same_bytes": data[: len(encoded)] == encoded,
        })

    return {
        "num_maps": len(paths),
        "passed": passed,
        "failed": failed,
        "details": per_map,
    }


def main(argv: Any = None) -> int:
    parser = argparse.ArgumentParser(description="Round-trip check a directory of compressed tile maps")
    parser.add_argument("--dir", required=True, help="Directory holding one compressed map per file")
    parser.add_argument("--glob", default="*.bin", help="File name pattern")
    parser.add_argument("--no_progress", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    summary = verify_maps(args.dir, pattern=args.glob, progress=not args.no_progress)
    print(json.dumps(summary, indent=2))
    return 0 if summary["failed"] == 0 else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
