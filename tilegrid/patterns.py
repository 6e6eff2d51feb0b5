from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .grid import Block, Pattern, Size, TileMap, as_pattern, check_pattern_tiles, pattern_size


@dataclass
class PatternFilter:
    """A table of same-sized tile patterns and their replacements.

    Keys and replacements are stored as tuples of row tuples, so lookups
    compare window contents structurally.
    """

    size: Size
    table: Dict[Pattern, Pattern] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.size = Size(*self.size)
        table, self.table = self.table, {}
        for key, replacement in table.items():
            self.add(key, replacement)

    def add(self, pattern: Block, replacement: Block) -> None:
        key = as_pattern(pattern)
        value = as_pattern(replacement)
        for p in (key, value):
            if pattern_size(p) != self.size:
                raise ValueError(f"pattern {p} is not {self.size.w}x{self.size.h}")
            check_pattern_tiles(p)
        self.table[key] = value

    def apply(self, tilemap: TileMap) -> bool:
        return tilemap.filter(self)

    def apply_until_stable(self, tilemap: TileMap, max_passes: int = 16) -> int:
        """Apply repeatedly until a pass changes nothing; return passes that changed the map."""
        changed = 0
        for _ in range(max_passes):
            if not self.apply(tilemap):
                break
            changed += 1
        return changed

    def __len__(self) -> int:
        return len(self.table)

    # Serialization helpers
    def to_dict(self) -> Dict[str, object]:
        pairs: List[Tuple[Pattern, Pattern]] = list(self.table.items())
        return {
            "size": [self.size.w, self.size.h],
            "patterns": [[[list(r) for r in k], [list(r) for r in v]] for k, v in pairs],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PatternFilter":
        w, h = data["size"]
        flt = cls(Size(int(w), int(h)))
        for pattern, replacement in data.get("patterns", []):
            flt.add(pattern, replacement)
        return flt

    def save(self, path: str) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f)

    @classmethod
    def load(cls, path: str) -> "PatternFilter":
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
