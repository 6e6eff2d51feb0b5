import os
import tempfile
import unittest

from scripts.verify_maps import verify_maps
from tilegrid.grid import TileMap


class TestVerifyMaps(unittest.TestCase):
    def test_directory_summary(self):
        with tempfile.TemporaryDirectory() as td:
            good = TileMap(2)
            good.fill((5, 5), (10, 3), 9)
            with open(os.path.join(td, "a.bin"), "wb") as f:
                f.write(good.to_bytes())
            with open(os.path.join(td, "b.bin"), "wb") as f:
                f.write(TileMap(0).to_bytes() + b"\x01\x02")
            with open(os.path.join(td, "c.bin"), "wb") as f:
                f.write(good.to_bytes()[:5])
            with open(os.path.join(td, "notes.txt"), "w") as f:
                f.write("not a map")

            summary = verify_maps(td, progress=False)

        self.assertEqual(summary["num_maps"], 3)
        self.assertEqual(summary["passed"], 2)
        self.assertEqual(summary["failed"], 1)
        details = {d["map"]: d for d in summary["details"]}
        self.assertTrue(details["a.bin"]["same_bytes"])
        self.assertTrue(details["b.bin"]["ok"])
        self.assertFalse(details["c.bin"]["ok"])
        self.assertIn("error", details["c.bin"])


if __name__ == "__main__":
    unittest.main()
