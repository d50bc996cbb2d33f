"""Template loader - creates and keeps one cache entry per template."""

import logging
import threading
from typing import Dict, List, Optional, Set

from yeast.config import YeastConfig
from yeast.runtime.artifact import CompiledArtifact
from yeast.runtime.cache import CachedTemplate, CacheMode, create_entry
from yeast.runtime.memory import MemoryCache
from yeast.runtime.sources import TemplateSource

logger = logging.getLogger(__name__)


class TemplateLoader:
    """Maps (mode, store, template id) to the entry compiling that template."""

    def __init__(
        self, config: YeastConfig, memory: Optional[MemoryCache[CompiledArtifact]] = None
    ) -> None:
        self.config = config
        self.memory: MemoryCache[CompiledArtifact] = (
            memory if memory is not None else MemoryCache(config.memory_cache_size)
        )
        self._cache: Dict[str, CachedTemplate] = {}  # key -> entry
        self._lock = threading.Lock()

    @staticmethod
    def cache_key(mode: CacheMode, source: TemplateSource, template_id: str) -> str:
        return f"{mode.value}_{source.store_name}_{template_id}"

    def get_entry(
        self, template_id: str, source: TemplateSource, mode: Optional[CacheMode] = None
    ) -> CachedTemplate:
        """Return the entry for a template, creating it on first use."""
        if mode is None:
            mode = self.config.cache_mode
        key = self.cache_key(mode, source, template_id)

        entry = self._cache.get(key)
        if entry is not None:
            return entry

        with self._lock:
            # Another thread may have created it while we waited
            entry = self._cache.get(key)
            if entry is None:
                entry = create_entry(mode, template_id, source, self.memory, self.config)
                self._cache[key] = entry
                logger.info("New %s cache entry for %s", mode.name.lower(), template_id)
            return entry

    def entries(self) -> List[CachedTemplate]:
        with self._lock:
            return list(self._cache.values())

    def invalidate_cache(self, template_id: Optional[str] = None) -> Set[str]:
        """Drop entries and delete their snapshot files.

        If template_id given, only the entries of that template.

        Returns the set of dropped keys.
        """
        with self._lock:
            if template_id is None:
                dropped = list(self._cache.items())
            else:
                dropped = [(k, e) for k, e in self._cache.items() if e.template_id == template_id]
            for key, entry in dropped:
                del self._cache[key]
                self.memory.discard(entry.key)
        for _, entry in dropped:
            remove_snapshot_files(entry)
        return {key for key, _ in dropped}


def remove_snapshot_files(entry: CachedTemplate) -> int:
    """Delete the snapshot files of an entry, returning how many were removed."""
    removed = 0
    with entry.lock:
        for path in entry.snapshot_files():
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Can't remove snapshot %s: %s", path, e)
    if removed:
        logger.debug("Removed %d snapshot files of %s", removed, entry.template_id)
    return removed
