"""Yeast configuration."""

import configparser
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional

from yeast.compiler.exceptions import ConfigurationError

if TYPE_CHECKING:
    from yeast.runtime.cache import CacheMode

logger = logging.getLogger(__name__)

_TRUE = {"yes", "true", "on", "1"}
_FALSE = {"no", "false", "off", "0"}

# yst.properties keys
TRANSLATE_KEY = "manager.translate.templates"
CACHEABLE_KEY = "manager.browser-side.cacheable"
LOGGING_KEY = "ystsrv.logging"
DEFAULT_STORE_KEY = "manager.default.templateStore"
SOFT_REFERENCES_KEY = "softReferences"
CACHE_SIZE_KEY = "yeast.cache.size"
SNAPSHOT_DIR_KEY = "yeast.snapshot.dir"

DEFAULT_MEMORY_CACHE_SIZE = 128


def is_true(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _TRUE


def is_false(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in _FALSE


def _parse_bool(name: str, value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    if is_true(value):
        return True
    if is_false(value):
        return False
    raise ConfigurationError(f"{name}: expected a boolean, got {value!r}")


def _parse_size(name: str, value: Optional[str], default: Optional[int]) -> Optional[int]:
    if value is None or not value.strip():
        return default
    try:
        size = int(value)
    except ValueError:
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}") from None
    if size < 0:
        raise ConfigurationError(f"{name}: must not be negative")
    # 0 means unbounded
    return size or None


def _default_snapshot_dir() -> Path:
    return Path(tempfile.gettempdir()) / "yeast-snapshots"


@dataclass
class YeastConfig:
    """Settings shared by every template handled by one :class:`YeastContext`."""

    translate_templates: bool = True
    browser_side_cacheable: bool = False
    snapshot_dir: Path = field(default_factory=_default_snapshot_dir)
    persist_snapshots: bool = True
    # None keeps every compiled artifact in memory
    memory_cache_size: Optional[int] = DEFAULT_MEMORY_CACHE_SIZE
    hide_directive_attributes: bool = True
    body_url_prefix: str = "/_yeast/body/"
    default_encoding: Optional[str] = None
    default_store: str = "file"
    # False silences the "yeast" logger for the whole process, not only this configuration
    logging_enabled: bool = True

    def __post_init__(self) -> None:
        self.snapshot_dir = Path(self.snapshot_dir)
        if self.memory_cache_size is not None and self.memory_cache_size < 1:
            raise ConfigurationError("memory_cache_size must be positive or None")
        if not self.body_url_prefix.startswith("/") or not self.body_url_prefix.endswith("/"):
            raise ConfigurationError("body_url_prefix must start and end with '/'")

    @property
    def cache_mode(self) -> "CacheMode":
        from yeast.runtime.cache import CacheMode

        if self.browser_side_cacheable:
            return CacheMode.BROWSER_CACHEABLE
        if self.translate_templates:
            return CacheMode.TRANSLATED
        return CacheMode.BASIC

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "YeastConfig":
        """Build a configuration from ``YEAST_*`` environment variables."""
        env = os.environ if environ is None else environ
        kwargs = {
            "translate_templates": _parse_bool(
                "YEAST_TRANSLATE", env.get("YEAST_TRANSLATE"), True
            ),
            "browser_side_cacheable": _parse_bool(
                "YEAST_CACHEABLE", env.get("YEAST_CACHEABLE"), False
            ),
            "persist_snapshots": _parse_bool(
                "YEAST_PERSIST_SNAPSHOTS", env.get("YEAST_PERSIST_SNAPSHOTS"), True
            ),
            "hide_directive_attributes": _parse_bool(
                "YEAST_HIDE_DIRECTIVES", env.get("YEAST_HIDE_DIRECTIVES"), True
            ),
            "logging_enabled": _parse_bool("YEAST_LOGGING", env.get("YEAST_LOGGING"), True),
            "memory_cache_size": _parse_size(
                "YEAST_CACHE_SIZE", env.get("YEAST_CACHE_SIZE"), DEFAULT_MEMORY_CACHE_SIZE
            ),
            "default_encoding": env.get("YEAST_ENCODING") or None,
        }
        if env.get("YEAST_SNAPSHOT_DIR"):
            kwargs["snapshot_dir"] = Path(env["YEAST_SNAPSHOT_DIR"])
        if env.get("YEAST_BODY_URL_PREFIX"):
            kwargs["body_url_prefix"] = env["YEAST_BODY_URL_PREFIX"]
        if env.get("YEAST_DEFAULT_STORE"):
            kwargs["default_store"] = env["YEAST_DEFAULT_STORE"]
        return cls(**kwargs)

    @classmethod
    def from_properties(cls, path: Path) -> "YeastConfig":
        """Read a ``yst.properties`` file.

        Raises:
            ConfigurationError: if the file can't be read or holds bad values.
        """
        parser = configparser.ConfigParser(delimiters=("=", ":"), interpolation=None)
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        try:
            text = Path(path).read_text(encoding="latin-1")
        except OSError as e:
            raise ConfigurationError(f"Can't read {path}: {e}") from e
        try:
            parser.read_string("[yst]\n" + text)
        except configparser.Error as e:
            raise ConfigurationError(f"Invalid properties file {path}: {e}") from e
        props = parser["yst"]

        if props.get(SOFT_REFERENCES_KEY) is not None:
            logger.warning(
                "%s is ignored, use %s to bound the memory cache",
                SOFT_REFERENCES_KEY,
                CACHE_SIZE_KEY,
            )

        kwargs = {
            "translate_templates": _parse_bool(TRANSLATE_KEY, props.get(TRANSLATE_KEY), True),
            "browser_side_cacheable": _parse_bool(
                CACHEABLE_KEY, props.get(CACHEABLE_KEY), False
            ),
            "logging_enabled": _parse_bool(LOGGING_KEY, props.get(LOGGING_KEY), True),
            "memory_cache_size": _parse_size(
                CACHE_SIZE_KEY, props.get(CACHE_SIZE_KEY), DEFAULT_MEMORY_CACHE_SIZE
            ),
        }
        if props.get(DEFAULT_STORE_KEY):
            kwargs["default_store"] = props[DEFAULT_STORE_KEY].strip()
        if props.get(SNAPSHOT_DIR_KEY):
            kwargs["snapshot_dir"] = Path(props[SNAPSHOT_DIR_KEY].strip())
        return cls(**kwargs)

    def describe(self) -> str:
        lines = [
            f"Translate templates: {'yes' if self.translate_templates else 'no'}",
            f"Browser-side cacheable: {'yes' if self.browser_side_cacheable else 'no'}",
            f"Cache mode: {self.cache_mode.name}",
            f"Memory cache size: {self.memory_cache_size or 'unbounded'}",
            f"Snapshots: {self.snapshot_dir if self.persist_snapshots else 'disabled'}",
            f"Default template store: {self.default_store}",
        ]
        return "\n".join(lines)
