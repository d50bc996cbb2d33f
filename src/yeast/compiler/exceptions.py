"""Exceptions raised while compiling Yeast templates."""

from typing import Optional


class YeastError(Exception):
    """Base class for every error raised by yeast."""

    pass


class TranslationError(YeastError):
    """Raised when a template can not be translated (e.g. unknown directive).

    ``markup`` holds the serialized offending node, when there is one, so that
    the failure can be reported with the element that caused it.
    """

    def __init__(
        self,
        message: str,
        markup: Optional[str] = None,
        template_id: Optional[str] = None,
    ):
        self.message = message
        self.markup = markup
        self.template_id = template_id
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.template_id:
            text = f"{self.template_id}: {text}"
        if self.markup:
            text += f" in node\n-------\n{self.markup}\n-------\n"
        return text

    def for_template(self, template_id: str) -> "TranslationError":
        """Return a copy of this error tagged with the template it came from."""
        return TranslationError(self.message, markup=self.markup, template_id=template_id)


class ConfigurationError(YeastError):
    """Raised on invalid configuration values."""

    pass
