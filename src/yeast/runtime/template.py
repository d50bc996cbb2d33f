"""A compiled template ready to receive model data."""

import codecs
import logging
from typing import BinaryIO, Optional, Union

from yeast import __version__
from yeast.runtime.artifact import ModelSection
from yeast.runtime.cache import CachedTemplate

logger = logging.getLogger(__name__)

PROCESSING_STAMP = f"<!-- Processed with Yeast v {__version__} -->\n"

# Browsers decode these charsets as their Windows supersets
_MODEL_ENCODINGS = {
    "iso8859-1": "cp1252",
    "iso8859-9": "cp1254",
}

Model = Union[str, ModelSection, None]


def model_encoding(encoding: Optional[str]) -> str:
    name = codecs.lookup(encoding or "utf-8").name
    return _MODEL_ENCODINGS.get(name, name)


class Template:
    """Splices model data into the model section of a cached template."""

    def __init__(self, entry: CachedTemplate) -> None:
        self.entry = entry

    @property
    def template_id(self) -> str:
        return self.entry.template_id

    @property
    def encoding(self) -> str:
        return self.entry.charset_encoding or "utf-8"

    @property
    def content_type(self) -> str:
        return f"text/html; charset={self.encoding}"

    def render(self, model: Model = None) -> bytes:
        """Return the page with ``model`` in place of the model section.

        A :class:`ModelSection` is wrapped in its script element; a string is
        inserted as is.
        """
        artifact = self.entry.get_content()
        if not artifact.is_template:
            logger.warning("%s has no model section, serving it unchanged", self.template_id)
            return artifact.content

        if isinstance(model, ModelSection):
            text = model.script_data
        else:
            text = model or ""
        encoding = self.encoding
        return b"".join(
            [
                artifact.prefix,
                PROCESSING_STAMP.encode(encoding),
                text.encode(model_encoding(encoding), errors="xmlcharrefreplace"),
                artifact.suffix,
            ]
        )

    def write(self, model: Model, stream: BinaryIO) -> None:
        stream.write(self.render(model))

    def designer_content(self) -> bytes:
        """The compiled page with the designer's sample model."""
        return self.entry.get_content().content

    def designer_version(self) -> str:
        return self.designer_content().decode(self.encoding, errors="replace")

    def has_new_version(self) -> bool:
        return self.entry.has_new_version()
