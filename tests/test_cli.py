import contextlib
import io
import json
import os
import tempfile
import unittest

from tilegrid.cli import main
from tilegrid.grid import TileMap
from tilegrid.patterns import PatternFilter


class TestCli(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.td = self._td.name
        self.tilemap = TileMap(4)
        self.tilemap.put((10, 10), [[1, 1], [1, 1]])
        self.blob = os.path.join(self.td, "map.bin")
        with open(self.blob, "wb") as f:
            f.write(b"\x00\x00" + self.tilemap.to_bytes())

    def tearDown(self):
        self._td.cleanup()

    def _run(self, argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def test_decode(self):
        code, out = self._run(["decode", "--blob", self.blob, "--offset", "2"])
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual((data["width"], data["height"]), (64, 64))
        self.assertEqual(data["rows"][10][10], 1)
        self.assertEqual(data["rows"][0][0], 4)

    def test_encode(self):
        rows_path = os.path.join(self.td, "rows.json")
        with open(rows_path, "w") as f:
            json.dump({"rows": self.tilemap.to_rows()}, f)
        out_path = os.path.join(self.td, "out.bin")
        code, _ = self._run(["encode", "--json", rows_path, "--out", out_path])
        self.assertEqual(code, 0)
        with open(out_path, "rb") as f:
            self.assertEqual(f.read(), self.tilemap.to_bytes())

    def test_filter(self):
        patterns_path = os.path.join(self.td, "filter.json")
        PatternFilter((2, 2), {((1, 1), (1, 1)): ((7, 7), (7, 7))}).save(patterns_path)
        out_path = os.path.join(self.td, "filtered.bin")
        code, out = self._run([
            "filter", "--blob", self.blob, "--offset", "2",
            "--patterns", patterns_path, "--out", out_path,
        ])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["changed_passes"], 1)
        with open(out_path, "rb") as f:
            filtered = TileMap.from_bytes(f.read())
        self.assertEqual(filtered.get(11, 11), 7)
        self.assertEqual(filtered.get(0, 0), 4)

    def test_encode_ragged_rows_fails(self):
        rows_path = os.path.join(self.td, "ragged.json")
        rows = self.tilemap.to_rows()
        rows[5] = rows[5][:3]
        with open(rows_path, "w") as f:
            json.dump(rows, f)
        out_path = os.path.join(self.td, "out.bin")
        with self.assertLogs("tilegrid.cli", level="ERROR"):
            code, _ = self._run(["encode", "--json", rows_path, "--out", out_path])
        self.assertEqual(code, 1)
        self.assertFalse(os.path.exists(out_path))

    def test_truncated_blob_fails(self):
        bad = os.path.join(self.td, "bad.bin")
        with open(bad, "wb") as f:
            f.write(self.tilemap.to_bytes()[:10])
        with self.assertLogs("tilegrid.cli", level="ERROR"):
            code, _ = self._run(["decode", "--blob", bad])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
