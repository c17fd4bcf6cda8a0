from __future__ import annotations

from pathlib import Path
import unittest

from mbt.location import Location, TargetPaths


class LocationTests(unittest.TestCase):
    def test_target_defaults_to_source(self) -> None:
        location = Location(source=Path("/work/proj"))
        self.assertEqual(location.get_target(), Path("/work/proj"))
        self.assertEqual(location.get_target_tmp_dir(), Path("/work/proj/.proj_mta_build_tmp"))

    def test_paths_under_explicit_target(self) -> None:
        location = Location(source=Path("/work/proj"), target=Path("/out"))
        self.assertEqual(location.get_target_tmp_dir(), Path("/out/.proj_mta_build_tmp"))
        self.assertEqual(location.get_meta_path(), Path("/out/.proj_mta_build_tmp/META-INF"))
        self.assertEqual(location.get_manifest_path(), Path("/out/.proj_mta_build_tmp/META-INF/MANIFEST.MF"))

    def test_descriptor_path(self) -> None:
        self.assertEqual(Location(source=Path("/work/proj")).get_descriptor_path(), Path("/work/proj/mta.yaml"))
        custom = Location(source=Path("/work/proj"), descriptor="mtad.yaml")
        self.assertEqual(custom.get_descriptor_path(), Path("/work/proj/mtad.yaml"))

    def test_implements_target_paths(self) -> None:
        self.assertIsInstance(Location(source=Path("/work/proj")), TargetPaths)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
