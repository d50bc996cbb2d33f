import json
import shutil
import tempfile
import unittest
from pathlib import Path

from yeast.compiler.build import body_file_name, build_project, default_output_name, translate_file
from yeast.compiler.build_artifacts import ArtifactBuilder

PAGE = b'<html><head><script yst="model">var m;</script></head><body><p yst="if">x</p></body></html>'


class TestTranslateFile(unittest.TestCase):
    def setUp(self) -> None:
        self.test_dir = tempfile.mkdtemp()
        self.tmp_path = Path(self.test_dir).resolve()
        (self.tmp_path / "page.html").write_bytes(PAGE)

    def tearDown(self) -> None:
        shutil.rmtree(self.test_dir)

    def test_output_names(self) -> None:
        self.assertEqual(default_output_name("page.html"), "page_t.html")
        self.assertEqual(default_output_name("page.v2.htm"), "page.v2_t.htm")
        self.assertEqual(default_output_name("page"), "page_t")
        self.assertEqual(body_file_name("page_t.html"), "page_t_b.js")
        self.assertEqual(body_file_name("page"), "page_b.js")

    def test_inline(self) -> None:
        translated = translate_file("page.html", path=self.tmp_path)
        self.assertEqual(translated.output, self.tmp_path / "page_t.html")
        self.assertIsNone(translated.body)
        self.assertEqual(translated.output.read_bytes(), translated.result.artifact.content)

    def test_cacheable(self) -> None:
        translated = translate_file("page.html", path=self.tmp_path, dest="sub/p.html", cacheable=True)
        self.assertEqual(translated.output, self.tmp_path / "sub" / "p.html")
        self.assertEqual(translated.body, self.tmp_path / "sub" / "p_b.js")
        assert translated.body is not None
        self.assertEqual(translated.body.read_bytes(), translated.result.cached_body_bytes)


class TestArtifactBuilder(unittest.TestCase):
    def setUp(self) -> None:
        self.test_dir = tempfile.mkdtemp()
        self.tmp_path = Path(self.test_dir).resolve()
        self.templates = self.tmp_path / "templates"
        (self.templates / ".hidden").mkdir(parents=True)
        (self.templates / "page.html").write_bytes(PAGE)
        (self.templates / ".hidden" / "skip.html").write_bytes(PAGE)
        (self.templates / "notes.txt").write_text("not a template")

    def tearDown(self) -> None:
        shutil.rmtree(self.test_dir)

    def test_manifest(self) -> None:
        summary = build_project(self.templates, out_dir=self.tmp_path / "out")
        self.assertEqual(summary.templates, 1)
        self.assertEqual(summary.bodies, 0)
        self.assertEqual(summary.errors, [])

        manifest = json.loads((self.tmp_path / "out" / "manifest.json").read_text(encoding="utf-8"))
        self.assertEqual(manifest["mode"], "inline")
        self.assertEqual(list(manifest["entries"]), ["/page"])
        entry = manifest["entries"]["/page"]
        self.assertEqual(len(entry["hash"]), 64)
        self.assertNotIn("body", entry)

        content = (self.tmp_path / "out" / "page.html").read_bytes()
        self.assertTrue(content[entry["model_init"] :].startswith(b'<script yst="model">'))

    def test_rebuild_replaces_output(self) -> None:
        out_dir = self.tmp_path / "out"
        out_dir.mkdir()
        (out_dir / "stale.html").write_text("old")
        ArtifactBuilder(self.templates, out_dir).build()
        self.assertFalse((out_dir / "stale.html").exists())

    def test_output_must_not_contain_templates(self) -> None:
        with self.assertRaises(ValueError):
            ArtifactBuilder(self.templates, self.tmp_path).build()

    def test_missing_templates_folder(self) -> None:
        with self.assertRaises(ValueError):
            build_project(self.tmp_path / "missing")
