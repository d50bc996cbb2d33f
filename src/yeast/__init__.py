from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("yeast-templates")
except PackageNotFoundError:
    __version__ = "unknown"

from yeast.config import YeastConfig
from yeast.compiler.codegen import translate, TranslationMode
from yeast.compiler.exceptions import TranslationError, YeastError
from yeast.compiler.model_section import find_model_section_bounds
from yeast.runtime.artifact import CompiledArtifact, ModelSection
from yeast.runtime.cache import CacheMode, CachedTemplate, SnapshotReadError
from yeast.runtime.context import YeastContext
from yeast.runtime.sources import FileSource, SourceReadError, TemplateSource
from yeast.runtime.template import Template

__all__ = [
    "YeastConfig",
    "YeastContext",
    "translate",
    "TranslationMode",
    "find_model_section_bounds",
    "CompiledArtifact",
    "ModelSection",
    "CacheMode",
    "CachedTemplate",
    "Template",
    "TemplateSource",
    "FileSource",
    "YeastError",
    "TranslationError",
    "SourceReadError",
    "SnapshotReadError",
]
