"""Per-template cache entries holding compiled artifacts."""

import enum
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Tuple

from yeast.compiler.codegen import TranslationMode, translate
from yeast.compiler.encoding import guess_char_encoding
from yeast.compiler.exceptions import TranslationError, YeastError
from yeast.compiler.model_section import find_model_section_bounds
from yeast.compiler.paths import ensure_snapshot_folder, snapshot_base_name
from yeast.runtime.artifact import CompiledArtifact
from yeast.runtime.memory import MemoryCache
from yeast.runtime.sources import TemplateSource

if TYPE_CHECKING:
    from yeast.config import YeastConfig

logger = logging.getLogger(__name__)

HTML_SNAPSHOT_SUFFIX = ".html.tmp"
JS_SNAPSHOT_SUFFIX = ".js.tmp"


class CacheMode(enum.Enum):
    """How an entry compiles its template. Values are the cache key prefixes."""

    BASIC = "B"
    TRANSLATED = "T"
    BROWSER_CACHEABLE = "C"


class SnapshotReadError(YeastError, OSError):
    """Raised when an on-disk snapshot can't be read back."""

    pass


class CachedTemplate:
    """The cached artifact of one template.

    The artifact itself lives in the shared :class:`MemoryCache` and may be
    evicted from it at any time; the entry keeps what it needs to bring it
    back: the source, the model bounds and, when persisted, a snapshot file.
    """

    mode = CacheMode.BASIC

    def __init__(
        self,
        template_id: str,
        source: TemplateSource,
        memory: MemoryCache[CompiledArtifact],
        config: "YeastConfig",
    ) -> None:
        self.template_id = template_id
        self.source = source
        self.config = config
        # mtime of the source the current artifact was compiled from; None until the first load
        self.last_load: Optional[float] = None
        self.charset_encoding: Optional[str] = None
        self.model_init = -1
        self.model_end = -1
        self._memory = memory
        self._lock = threading.RLock()
        self.key = (self.mode.value, source.store_name, template_id)

    @property
    def lock(self) -> threading.RLock:
        """Held while the entry loads or stores its artifact."""
        return self._lock

    @property
    def bounds(self) -> Tuple[int, int]:
        return self.model_init, self.model_end

    def has_new_version(self) -> bool:
        """Whether the source changed since the artifact was compiled."""
        return self.last_load is not None and self.last_load < self.source.last_modified()

    def get_content(self) -> CompiledArtifact:
        """Return the current artifact, compiling it when needed.

        Raises:
            TranslationError: if the template can't be translated.
            SourceReadError: if the source can't be read.
        """
        with self._lock:
            if self.last_load is None:
                return self._load()
            if self.has_new_version():
                logger.info("New version of %s, recompiling", self.template_id)
                return self._load()

            artifact = self._memory.get(self.key)
            if artifact is not None:
                return artifact

            artifact = self._reload()
            if artifact is None:
                return self._load()
            self._memory.put(self.key, artifact)
            return artifact

    def _load(self) -> CompiledArtifact:
        # Read the time first: an edit made while compiling must look newer
        modified = self.source.last_modified()
        data = self.source.read_bytes()
        try:
            artifact = self.compile(data)
        except TranslationError as e:
            logger.error("Error translating template %s: %s", self.template_id, e.message)
            raise e.for_template(self.template_id) from e

        self.model_init, self.model_end = artifact.model_init, artifact.model_end
        self.store(artifact)
        self._memory.put(self.key, artifact)
        self.last_load = modified
        logger.debug(
            "Loaded %s (%d bytes, model %d-%d)",
            self.template_id,
            len(artifact.content),
            self.model_init,
            self.model_end,
        )
        return artifact

    def compile(self, data: bytes) -> CompiledArtifact:
        self.charset_encoding = guess_char_encoding(data, self.config.default_encoding)
        return CompiledArtifact(data, *find_model_section_bounds(data))

    def store(self, artifact: CompiledArtifact) -> None:
        """Persist a freshly compiled artifact; nothing to do for plain templates."""

    def _reload(self) -> Optional[CompiledArtifact]:
        """Bring back an evicted artifact without compiling, or return None."""
        return None

    def snapshot_files(self) -> List[Path]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.template_id!r}, {self.source!r})"


class BasicCachedTemplate(CachedTemplate):
    """Serves the template as written; evicted artifacts are read from the source again."""

    mode = CacheMode.BASIC


class TranslatedCachedTemplate(CachedTemplate):
    """Serves the translated template and keeps an ``.html.tmp`` snapshot of it."""

    mode = CacheMode.TRANSLATED
    translation_mode = TranslationMode.INLINE

    def __init__(
        self,
        template_id: str,
        source: TemplateSource,
        memory: MemoryCache[CompiledArtifact],
        config: "YeastConfig",
    ) -> None:
        super().__init__(template_id, source, memory, config)
        self.base_name = snapshot_base_name(template_id)
        self.snapshot_path: Optional[Path] = None
        if config.persist_snapshots:
            self.snapshot_path = config.snapshot_dir / (self.base_name + HTML_SNAPSHOT_SUFFIX)

    def compile(self, data: bytes) -> CompiledArtifact:
        result = translate(
            data,
            self.translation_mode,
            encoding=guess_char_encoding(data, self.config.default_encoding),
            hide_directive_attributes=self.config.hide_directive_attributes,
            body_url=self.body_url,
        )
        self.charset_encoding = result.encoding
        self.on_translated(result.cached_body_bytes)
        return result.artifact

    @property
    def body_url(self) -> str:
        return ""

    def on_translated(self, cached_body: Optional[bytes]) -> None:
        pass

    def store(self, artifact: CompiledArtifact) -> None:
        if self.snapshot_path is None:
            return
        try:
            ensure_snapshot_folder(self.snapshot_path.parent)
            self.snapshot_path.write_bytes(artifact.content)
        except OSError as e:
            logger.warning(
                "Can't write snapshot %s, keeping %s in memory only: %s",
                self.snapshot_path,
                self.template_id,
                e,
            )
            self._drop_snapshot()

    def _drop_snapshot(self) -> None:
        # A stale snapshot must never be read back with newer bounds
        assert self.snapshot_path is not None
        try:
            self.snapshot_path.unlink()
        except OSError:
            logger.debug("No snapshot to remove at %s", self.snapshot_path)
        self.snapshot_path = None

    def read_snapshot(self) -> CompiledArtifact:
        """Return the artifact saved by the last compile.

        Raises:
            SnapshotReadError: if there's no usable snapshot.
        """
        if self.snapshot_path is None:
            raise SnapshotReadError(f"No snapshot for {self.template_id}")
        try:
            content = self.snapshot_path.read_bytes()
        except OSError as e:
            raise SnapshotReadError(f"Can't read snapshot {self.snapshot_path}: {e}") from e
        if self.model_end > len(content):
            raise SnapshotReadError(f"Truncated snapshot {self.snapshot_path}")
        return CompiledArtifact(content, self.model_init, self.model_end)

    def _reload(self) -> Optional[CompiledArtifact]:
        try:
            artifact = self.read_snapshot()
        except SnapshotReadError as e:
            logger.info("%s, recompiling %s", e, self.template_id)
            return None
        logger.debug("Reloaded %s from %s", self.template_id, self.snapshot_path)
        return artifact

    def snapshot_files(self) -> List[Path]:
        return [self.snapshot_path] if self.snapshot_path is not None else []


class BrowserCacheableTemplate(TranslatedCachedTemplate):
    """Serves the cache-split translation; the body script is written next to the snapshot."""

    mode = CacheMode.BROWSER_CACHEABLE
    translation_mode = TranslationMode.CACHE_SPLIT

    def __init__(
        self,
        template_id: str,
        source: TemplateSource,
        memory: MemoryCache[CompiledArtifact],
        config: "YeastConfig",
    ) -> None:
        super().__init__(template_id, source, memory, config)
        # Always written: the browser fetches it through the body endpoint
        self.body_path = config.snapshot_dir / (self.base_name + JS_SNAPSHOT_SUFFIX)

    @property
    def body_id(self) -> str:
        return self.base_name + ".js"

    @property
    def body_url(self) -> str:
        return self.config.body_url_prefix + self.body_id

    def on_translated(self, cached_body: Optional[bytes]) -> None:
        if cached_body is None:
            return
        try:
            ensure_snapshot_folder(self.body_path.parent)
            self.body_path.write_bytes(cached_body)
        except OSError as e:
            logger.warning("Can't write cached body %s: %s", self.body_path, e)

    def snapshot_files(self) -> List[Path]:
        return super().snapshot_files() + [self.body_path]


_ENTRY_TYPES = {
    CacheMode.BASIC: BasicCachedTemplate,
    CacheMode.TRANSLATED: TranslatedCachedTemplate,
    CacheMode.BROWSER_CACHEABLE: BrowserCacheableTemplate,
}


def create_entry(
    mode: CacheMode,
    template_id: str,
    source: TemplateSource,
    memory: MemoryCache[CompiledArtifact],
    config: "YeastConfig",
) -> CachedTemplate:
    return _ENTRY_TYPES[mode](template_id, source, memory, config)
