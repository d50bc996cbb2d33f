"""Template compilation pipeline: bytes in, compiled artifact out."""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from yeast.compiler.codegen.cacher import CachingTranslator
from yeast.compiler.codegen.translator import NodeTranslator
from yeast.compiler.encoding import guess_char_encoding
from yeast.compiler.model_section import find_model_section_bounds
from yeast.compiler.parser import TemplateParser
from yeast.compiler.serializer import HtmlSerializer
from yeast.runtime.artifact import CompiledArtifact

logger = logging.getLogger(__name__)


class TranslationMode(enum.Enum):
    INLINE = "inline"
    CACHE_SPLIT = "cache-split"


@dataclass
class TranslationResult:
    artifact: CompiledArtifact
    encoding: str
    # Script holding the hoisted functions and the body, cache-split mode only
    cached_body: Optional[str] = None

    @property
    def cached_body_bytes(self) -> Optional[bytes]:
        if self.cached_body is None:
            return None
        return self.cached_body.encode(self.encoding, errors="xmlcharrefreplace")


class CodeGenerator:
    """Parses, translates and serializes one template."""

    def __init__(
        self,
        mode: TranslationMode = TranslationMode.INLINE,
        hide_directive_attributes: bool = True,
        body_url: str = "",
        default_encoding: Optional[str] = None,
    ) -> None:
        self.mode = mode
        self.hide_directive_attributes = hide_directive_attributes
        self.body_url = body_url
        self.default_encoding = default_encoding
        self.parser = TemplateParser()

    def generate(self, source: bytes, encoding: Optional[str] = None) -> TranslationResult:
        if encoding is None:
            encoding = guess_char_encoding(source, self.default_encoding)
        logger.debug("Translating template using %s encoding (%s)", encoding, self.mode.value)

        document = self.parser.parse(source, encoding)
        translator: NodeTranslator
        if self.mode is TranslationMode.CACHE_SPLIT:
            translator = CachingTranslator(
                encoding, self.hide_directive_attributes, body_url=self.body_url
            )
        else:
            translator = NodeTranslator(encoding, self.hide_directive_attributes)
        translator.translate(document)

        content = HtmlSerializer(encoding).serialize_bytes(document)
        model_init, model_end = find_model_section_bounds(content)
        return TranslationResult(
            artifact=CompiledArtifact(content, model_init, model_end),
            encoding=encoding,
            cached_body=getattr(translator, "cached_body", None),
        )


def translate(
    source: bytes,
    mode: TranslationMode = TranslationMode.INLINE,
    encoding: Optional[str] = None,
    hide_directive_attributes: bool = True,
    body_url: str = "",
) -> TranslationResult:
    """Compile template bytes.

    Raises:
        TranslationError: if the template uses an unknown directive.
    """
    generator = CodeGenerator(mode, hide_directive_attributes=hide_directive_attributes, body_url=body_url)
    return generator.generate(source, encoding)
