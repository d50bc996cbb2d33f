"""The object owning every cache of one Yeast installation."""

import logging
from pathlib import Path
from typing import Optional, Union

from yeast import __version__
from yeast.compiler.paths import ensure_snapshot_folder
from yeast.config import YeastConfig
from yeast.runtime.artifact import CompiledArtifact
from yeast.runtime.cache import CachedTemplate, CacheMode
from yeast.runtime.loader import TemplateLoader
from yeast.runtime.memory import MemoryCache
from yeast.runtime.sources import FileSource, TemplateSource
from yeast.runtime.template import Template

logger = logging.getLogger(__name__)


class YeastContext:
    """Owns the configuration, the artifact memory cache, the loader and the snapshot folder.

    Create one at startup and share it; :meth:`close` removes the snapshot
    files written by its entries.
    """

    def __init__(self, config: Optional[YeastConfig] = None) -> None:
        self.config = config or YeastConfig()
        if not self.config.logging_enabled:
            # Process-wide: module loggers of every context inherit this level
            logging.getLogger("yeast").setLevel(logging.CRITICAL + 1)

        self.memory: MemoryCache[CompiledArtifact] = MemoryCache(self.config.memory_cache_size)
        self.loader = TemplateLoader(self.config, self.memory)
        if self.config.cache_mode is not CacheMode.BASIC:
            ensure_snapshot_folder(self.config.snapshot_dir)

        logger.info("Yeast v%s started\n%s", __version__, self.config.describe())

    @property
    def snapshot_dir(self) -> Path:
        return self.config.snapshot_dir

    def get_entry(
        self,
        template_id: str,
        source: Union[TemplateSource, Path, str],
        mode: Optional[CacheMode] = None,
    ) -> CachedTemplate:
        if not isinstance(source, TemplateSource):
            source = FileSource(Path(source))
        return self.loader.get_entry(template_id, source, mode)

    def get_template(
        self,
        template_id: str,
        source: Union[TemplateSource, Path, str],
        mode: Optional[CacheMode] = None,
    ) -> Template:
        return Template(self.get_entry(template_id, source, mode))

    def close(self) -> None:
        """Forget every entry and delete its snapshot files."""
        dropped = self.loader.invalidate_cache()
        self.memory.clear()
        logger.debug("Closed %d cache entries", len(dropped))

    def __enter__(self) -> "YeastContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
