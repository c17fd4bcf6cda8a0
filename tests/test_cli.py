from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
import io
import json
import tempfile
import textwrap
import unittest

from mbt import cli
from mbt.location import Location


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.source = Path(self.temp_dir.name).resolve() / "demo"
        self.source.mkdir()
        (self.source / "mta.yaml").write_text(
            textwrap.dedent(
                """
                ID: demo
                version: 0.1.0
                modules:
                  - name: ui
                    path: ui
                    build-parameters:
                      requires:
                        - name: srv
                  - name: srv
                    path: srv
                    requires:
                      - name: db-content
                        parameters:
                          path: db
                  - name: tools
                    path: tools
                resources:
                  - name: xsuaa
                    parameters:
                      path: xs-security.json
                """
            )
        )

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _run(self, *argv: str) -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = cli.main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_order(self) -> None:
        code, output, _ = self._run("order", "-s", str(self.source))
        self.assertEqual(code, 0)
        self.assertEqual(output.splitlines(), ["srv", "tools", "ui"])

    def test_order_json_with_selection(self) -> None:
        code, output, _ = self._run("order", "-s", str(self.source), "-m", "ui", "--json")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output), ["srv", "ui"])

    def test_order_reports_cycle(self) -> None:
        (self.source / "mta.yaml").write_text(
            textwrap.dedent(
                """
                ID: demo
                modules:
                  - name: a
                    build-parameters:
                      requires:
                        - name: b
                  - name: b
                    build-parameters:
                      requires:
                        - name: a
                """
            )
        )
        code, _, errors = self._run("order", "-s", str(self.source))
        self.assertEqual(code, 1)
        self.assertIn("[ERROR] Circular dependency found", errors)

    def test_modules(self) -> None:
        code, output, _ = self._run("modules", "-s", str(self.source))
        self.assertEqual(code, 0)
        self.assertEqual(output.splitlines(), ["ui", "srv", "tools"])

    def test_manifest(self) -> None:
        location = Location(source=self.source)
        tmp_dir = location.get_target_tmp_dir()
        for name in ("ui", "srv", "tools", "db"):
            (tmp_dir / name).mkdir(parents=True)
        (tmp_dir / "xs-security.json").write_text("{}")

        code, output, _ = self._run("manifest", "-s", str(self.source))

        self.assertEqual(code, 0)
        manifest_path = location.get_manifest_path()
        self.assertIn(str(manifest_path), output)
        content = manifest_path.read_text(encoding="utf-8")
        self.assertTrue(content.startswith("Manifest-Version: 1.0\nCreated-By: SAP Application Archive Builder "))
        self.assertIn("Name: db\nMTA-Requires: srv/db-content\nContent-Type: text/directory\n", content)
        self.assertIn("Name: xs-security.json\nMTA-Resource: xsuaa\nContent-Type: application/zip\n", content)

    def test_manifest_only_modules_with_target(self) -> None:
        target = Path(self.temp_dir.name).resolve() / "out"
        location = Location(source=self.source, target=target)
        tmp_dir = location.get_target_tmp_dir()
        (tmp_dir / "srv").mkdir(parents=True)

        code, _, _ = self._run("manifest", "-s", str(self.source), "-t", str(target), "-m", "srv", "--only-modules")

        self.assertEqual(code, 0)
        content = location.get_manifest_path().read_text(encoding="utf-8")
        self.assertIn("MTA-Module: srv", content)
        self.assertNotIn("MTA-Requires", content)
        self.assertNotIn("MTA-Resource", content)
        self.assertNotIn("MTA-Module: ui", content)

    def test_manifest_missing_content(self) -> None:
        code, _, errors = self._run("manifest", "-s", str(self.source))
        self.assertEqual(code, 1)
        self.assertIn("getting the ui module content type", errors)
        self.assertIn("does not exist", errors)

    def test_missing_descriptor(self) -> None:
        (self.source / "mta.yaml").unlink()
        code, _, errors = self._run("order", "-s", str(self.source))
        self.assertEqual(code, 1)
        self.assertIn("MTA descriptor not found", errors)

    def test_version(self) -> None:
        code, output, _ = self._run("version")
        self.assertEqual(code, 0)
        self.assertTrue(output.strip())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
