"""
Tests for CLI entry points.

These tests focus on:
- Basic CLI argument validation (lookups require valid input)
- Exit codes of the offline tools, run against temporary directories
  (to avoid touching the packaged data files during tests)
"""

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from rich.console import Console

from coursecatalog.cli import main
from coursecatalog.model import CourseMapping, CoursePayload
from coursecatalog.storage import load_mappings


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("coursecatalog.cli.console", Console(quiet=True))
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_cli_rmp_requires_name(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["rmp", ""])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_cli_course_rejects_invalid_identifier(self) -> None:
        with mock.patch("coursecatalog.cli.search_course") as search:
            with self.assertRaises(SystemExit) as ctx:
                main(["course", "CSE-1010"])
            search.assert_not_called()
        self.assertEqual(ctx.exception.code, 1)

    def test_cli_course_rejects_invalid_campus(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            main(["course", "CSE1010", "--campus", "torrington"])
        self.assertEqual(ctx.exception.code, 1)

    def test_cli_course_flags(self) -> None:
        payload = mock.Mock(spec=CoursePayload)
        payload.to_dict.return_value = {"name": "Intro"}
        with mock.patch("coursecatalog.cli.search_course", return_value=payload) as search:
            with self.assertRaises(SystemExit) as ctx:
                main(["course", "CSE1010", "--campus", "Hartford", "--no-professors"])

        self.assertEqual(ctx.exception.code, 0)
        kwargs = search.call_args.kwargs
        self.assertEqual(kwargs["campus"], "hartford")
        self.assertEqual([p.value for p in kwargs["include"]], ["sections"])

    def test_cli_merge_without_snapshots_fails(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(SystemExit) as ctx:
                main(["merge", "--dir", d])
        self.assertEqual(ctx.exception.code, 1)

    def test_cli_index_writes_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            src = Path(d) / "rmpIds-storrs.json"
            src.write_text(json.dumps([{"name": "Ada Lovelace", "id": "T1"}]), encoding="utf-8")
            out = Path(d) / "rmp_ids.json"

            with self.assertRaises(SystemExit) as ctx:
                main(["index", str(src), "--out", str(out)])

            self.assertEqual(ctx.exception.code, 0)
            self.assertEqual(json.loads(out.read_text(encoding="utf-8")), [{"name": "Ada Lovelace", "rmpIds": ["T1"]}])

    def test_cli_mappings_keeps_previous_file(self) -> None:
        fresh = [CourseMapping("CSE1010", "Intro", "1010", "None.", 3, "Graded", "Text.")]
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "courses.json"
            out.write_text("[]", encoding="utf-8")

            with mock.patch("coursecatalog.cli.generate_mappings", return_value=fresh):
                with self.assertRaises(SystemExit) as ctx:
                    main(["mappings", "--out", str(out)])

            self.assertEqual(ctx.exception.code, 0)
            self.assertEqual([m.name for m in load_mappings(out)], ["CSE1010"])
            backups = [p for p in Path(d).iterdir() if p.name != "courses.json"]
            self.assertEqual(len(backups), 1)
            self.assertEqual(backups[0].read_text(encoding="utf-8"), "[]")

    def test_cli_mappings_grad_prefixes(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "courses-grad.json"
            with mock.patch("coursecatalog.cli.generate_grad_mappings", return_value=[]) as generate:
                with self.assertRaises(SystemExit) as ctx:
                    main(["mappings", "--grad", "--prefix", "cse", "--out", str(out)])

            self.assertEqual(ctx.exception.code, 0)
            self.assertEqual(generate.call_args.args[0], ["CSE"])
            self.assertEqual(load_mappings(out), [])

    def test_cli_mappings_fetch_failure(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "courses.json"
            with mock.patch("coursecatalog.cli.generate_mappings", return_value=None):
                with self.assertRaises(SystemExit) as ctx:
                    main(["mappings", "--out", str(out)])

            self.assertEqual(ctx.exception.code, 1)
            self.assertFalse(out.exists())

    def test_cli_index_missing_source(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with self.assertRaises(SystemExit) as ctx:
                main(["index", str(Path(d) / "nope.json"), "--out", str(Path(d) / "out.json")])
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
