import logging
import os
import shutil
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from yeast.compiler.codegen import translate
from yeast.compiler.exceptions import TranslationError
from yeast.config import YeastConfig
from yeast.runtime.cache import (
    BasicCachedTemplate,
    BrowserCacheableTemplate,
    CacheMode,
    TranslatedCachedTemplate,
)
from yeast.runtime.context import YeastContext
from yeast.runtime.sources import SourceReadError

PAGE = (
    '<html><head><meta http-equiv="Content-Type" content="text/html; charset=utf-8"></head>'
    '<body><p yst="value" ystaux="name">{text}</p>'
    '<script yst="model">var sample = 1;</script></body></html>'
)


class CacheTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.test_dir = tempfile.mkdtemp()
        self.tmp_path = Path(self.test_dir).resolve()
        self.page = self.tmp_path / "page.html"
        self.write_page("Sample")

    def tearDown(self) -> None:
        shutil.rmtree(self.test_dir)

    def write_page(self, text: str, mtime_offset: float = 0) -> None:
        self.page.write_text(PAGE.format(text=text), encoding="utf-8")
        if mtime_offset:
            stat = os.stat(self.page)
            os.utime(self.page, (stat.st_atime, stat.st_mtime + mtime_offset))

    def context(self, **kwargs: object) -> YeastContext:
        config = YeastConfig(snapshot_dir=self.tmp_path / "snapshots", **kwargs)  # type: ignore[arg-type]
        context = YeastContext(config)
        self.addCleanup(context.close)
        return context


class TestCachedTemplate(CacheTestCase):
    def test_first_access_compiles(self) -> None:
        entry = self.context().get_entry("/page", self.page)
        self.assertIsInstance(entry, TranslatedCachedTemplate)
        self.assertIsNone(entry.last_load)

        artifact = entry.get_content()
        self.assertTrue(artifact.is_template)
        self.assertIn(b"YST.Txt.value", artifact.content)
        self.assertEqual(entry.last_load, os.stat(self.page).st_mtime)
        self.assertEqual(entry.bounds, (artifact.model_init, artifact.model_end))
        self.assertEqual(entry.charset_encoding, "utf-8")
        self.assertFalse(entry.has_new_version())

    def test_memory_hit_returns_same_artifact(self) -> None:
        entry = self.context().get_entry("/page", self.page)
        first = entry.get_content()
        with patch("yeast.runtime.cache.translate", side_effect=AssertionError("recompiled")):
            self.assertIs(entry.get_content(), first)

    def test_stale_source_is_recompiled(self) -> None:
        entry = self.context().get_entry("/page", self.page)
        old = entry.get_content()
        old_load = entry.last_load

        self.write_page("Changed", mtime_offset=10)
        self.assertTrue(entry.has_new_version())

        new = entry.get_content()
        self.assertNotEqual(new, old)
        self.assertIn(b"Changed", new.content)
        self.assertGreater(entry.last_load, old_load)
        self.assertEqual(entry.last_load, os.stat(self.page).st_mtime)
        self.assertFalse(entry.has_new_version())

    def test_epoch_mtime_is_a_real_load_time(self) -> None:
        os.utime(self.page, (0, 0))
        entry = self.context().get_entry("/page", self.page)

        with patch("yeast.runtime.cache.translate", wraps=translate) as mock_translate:
            first = entry.get_content()
            self.assertIs(entry.get_content(), first)
            self.assertIs(entry.get_content(), first)

        self.assertEqual(mock_translate.call_count, 1)
        self.assertEqual(entry.last_load, 0.0)
        self.assertFalse(entry.has_new_version())

        self.write_page("Changed")
        self.assertTrue(entry.has_new_version())

    def test_evicted_artifact_comes_back_from_snapshot(self) -> None:
        context = self.context()
        entry = context.get_entry("/page", self.page)
        assert isinstance(entry, TranslatedCachedTemplate)
        original = entry.get_content()
        self.assertIsNotNone(entry.snapshot_path)
        assert entry.snapshot_path is not None
        self.assertTrue(entry.snapshot_path.name.endswith(".html.tmp"))

        context.memory.clear()
        with patch("yeast.runtime.cache.translate", side_effect=AssertionError("recompiled")):
            reloaded = entry.get_content()

        self.assertEqual(reloaded.content, entry.snapshot_path.read_bytes())
        self.assertEqual(reloaded, original)

    def test_unreadable_snapshot_recompiles(self) -> None:
        context = self.context()
        entry = context.get_entry("/page", self.page)
        assert isinstance(entry, TranslatedCachedTemplate)
        original = entry.get_content()

        context.memory.clear()
        assert entry.snapshot_path is not None
        entry.snapshot_path.unlink()
        with patch("yeast.runtime.cache.translate", wraps=translate) as mock_translate:
            reloaded = entry.get_content()

        self.assertEqual(mock_translate.call_count, 1)
        self.assertEqual(reloaded, original)

    def test_snapshot_write_failure_keeps_serving(self) -> None:
        entry = self.context().get_entry("/page", self.page)
        assert isinstance(entry, TranslatedCachedTemplate)

        with patch.object(Path, "write_bytes", side_effect=OSError("disk full")):
            with self.assertLogs("yeast.runtime.cache", level="WARNING"):
                artifact = entry.get_content()

        self.assertTrue(artifact.is_template)
        self.assertIsNone(entry.snapshot_path)
        self.assertEqual(entry.snapshot_files(), [])

    def test_without_persistence_evicted_artifact_is_recompiled(self) -> None:
        context = self.context(persist_snapshots=False)
        entry = context.get_entry("/page", self.page)
        entry.get_content()

        context.memory.clear()
        with patch("yeast.runtime.cache.translate", wraps=translate) as mock_translate:
            entry.get_content()
        self.assertEqual(mock_translate.call_count, 1)

    def test_translation_error_is_tagged_and_raised(self) -> None:
        self.page.write_text('<html><body><p yst="bogus">x</p></body></html>', encoding="utf-8")
        entry = self.context().get_entry("/bad", self.page)
        with self.assertLogs("yeast.runtime.cache", level="ERROR"):
            with self.assertRaises(TranslationError) as ctx:
                entry.get_content()
        self.assertEqual(ctx.exception.template_id, "/bad")
        self.assertIsNone(entry.last_load)

    def test_missing_source(self) -> None:
        entry = self.context().get_entry("/none", self.tmp_path / "none.html")
        with self.assertRaises(SourceReadError):
            entry.get_content()
        self.assertIsInstance(SourceReadError("x"), OSError)

    def test_concurrent_requests_compile_once(self) -> None:
        entry = self.context().get_entry("/page", self.page)
        results = []
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            results.append(entry.get_content())

        with patch("yeast.runtime.cache.translate", wraps=translate) as mock_translate:
            threads = [threading.Thread(target=worker) for _ in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        self.assertEqual(mock_translate.call_count, 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(r is results[0] for r in results))


class TestCacheModes(CacheTestCase):
    def test_basic_mode_serves_source(self) -> None:
        context = self.context(translate_templates=False)
        entry = context.get_entry("/page", self.page)
        self.assertIsInstance(entry, BasicCachedTemplate)
        self.assertEqual(entry.key[0], "B")

        with patch("yeast.runtime.cache.translate", side_effect=AssertionError("translated")):
            artifact = entry.get_content()
        self.assertEqual(artifact.content, self.page.read_bytes())
        self.assertTrue(artifact.is_template)
        self.assertEqual(entry.snapshot_files(), [])

    def test_basic_mode_reloads_source_after_eviction(self) -> None:
        context = self.context(translate_templates=False)
        entry = context.get_entry("/page", self.page)
        first = entry.get_content()
        context.memory.clear()
        self.assertEqual(entry.get_content(), first)

    def test_browser_cacheable_writes_body(self) -> None:
        context = self.context(browser_side_cacheable=True)
        entry = context.get_entry("/docs/page", self.page)
        assert isinstance(entry, BrowserCacheableTemplate)
        self.assertEqual(entry.key[0], "C")

        artifact = entry.get_content()
        self.assertIn(entry.body_url.encode(), artifact.content)
        self.assertTrue(entry.body_url.startswith("/_yeast/body/docs_page"))
        self.assertTrue(entry.body_path.name.endswith(".js.tmp"))
        self.assertIn(b"document.write(__TemplateBody([], 0, {}));", entry.body_path.read_bytes())
        self.assertEqual(len(entry.snapshot_files()), 2)

    def test_mode_can_be_chosen_per_entry(self) -> None:
        context = self.context()
        entry = context.get_entry("/page", self.page, CacheMode.BASIC)
        self.assertIsInstance(entry, BasicCachedTemplate)
        self.assertIsNot(entry, context.get_entry("/page", self.page))

    def test_close_removes_snapshots(self) -> None:
        context = self.context(browser_side_cacheable=True)
        entry = context.get_entry("/page", self.page)
        entry.get_content()
        files = entry.snapshot_files()
        self.assertTrue(all(f.exists() for f in files))

        context.close()
        self.assertFalse(any(f.exists() for f in files))
        self.assertEqual(context.loader.entries(), [])
        self.assertTrue((self.tmp_path / "snapshots" / "README.txt").exists())

    def test_invalidate_removes_snapshots(self) -> None:
        context = self.context(browser_side_cacheable=True)
        entry = context.get_entry("/page", self.page)
        entry.get_content()
        files = entry.snapshot_files()
        self.assertEqual(len(files), 2)
        self.assertTrue(all(f.exists() for f in files))

        dropped = context.loader.invalidate_cache("/page")
        self.assertEqual(dropped, {"C_file_/page"})
        self.assertFalse(any(f.exists() for f in files))
        self.assertNotIn(entry.key, context.memory)

        context.close()
        self.assertEqual(sorted(p.name for p in (self.tmp_path / "snapshots").iterdir()), ["README.txt"])

    def test_invalidate_keeps_other_templates(self) -> None:
        other = self.tmp_path / "other.html"
        other.write_text(PAGE.format(text="Other"), encoding="utf-8")
        context = self.context()
        kept = context.get_entry("/other", other)
        kept.get_content()
        context.get_entry("/page", self.page).get_content()

        context.loader.invalidate_cache("/page")
        self.assertEqual(context.loader.entries(), [kept])
        self.assertTrue(all(f.exists() for f in kept.snapshot_files()))

    def test_disabled_logging_silences_the_yeast_logger(self) -> None:
        yeast_logger = logging.getLogger("yeast")
        self.addCleanup(yeast_logger.setLevel, yeast_logger.level)
        self.context(logging_enabled=False)
        cache_logger = logging.getLogger("yeast.runtime.cache")
        self.assertGreater(cache_logger.getEffectiveLevel(), logging.CRITICAL)
        self.assertFalse(cache_logger.isEnabledFor(logging.ERROR))
