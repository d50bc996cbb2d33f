"""Compiled template content and the model data spliced into it."""

from typing import List, Optional, Union


class CompiledArtifact:
    """The bytes of a compiled template with the bounds of its model section.

    ``model_init`` is the offset of ``<script yst="model"`` and ``model_end``
    the offset just past its ``</script>``; both are -1 for a plain HTML
    document.
    """

    __slots__ = ("content", "model_init", "model_end", "__weakref__")

    def __init__(self, content: bytes, model_init: int = -1, model_end: int = -1) -> None:
        self.content = content
        self.model_init = model_init
        self.model_end = model_end

    @property
    def is_template(self) -> bool:
        return self.model_init >= 0 and self.model_end >= 0

    @property
    def prefix(self) -> bytes:
        """Content before the model section."""
        return self.content[: self.model_init] if self.is_template else self.content

    @property
    def suffix(self) -> bytes:
        """Content after the model section."""
        return self.content[self.model_end :] if self.is_template else b""

    @property
    def model(self) -> bytes:
        """The designer's model section, with its sample data."""
        return self.content[self.model_init : self.model_end] if self.is_template else b""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompiledArtifact):
            return NotImplemented
        return (
            self.content == other.content
            and self.model_init == other.model_init
            and self.model_end == other.model_end
        )

    def __hash__(self) -> int:
        return hash((self.content, self.model_init, self.model_end))

    def __repr__(self) -> str:
        return (
            f"CompiledArtifact({len(self.content)} bytes, "
            f"model={self.model_init}-{self.model_end})"
        )


class ModelSection:
    """Text inserted, untransformed, in the model section of a template."""

    def __init__(self, data: Optional[str] = None) -> None:
        self._parts: List[str] = []
        if data:
            self._parts.append(data)

    def append(self, data: Union[str, "ModelSection", None]) -> "ModelSection":
        """Append text; another ModelSection is appended on a new line."""
        if isinstance(data, ModelSection):
            if not self.is_empty() and not data.is_empty():
                self._parts.append("\n")
            self._parts.append(data.data)
        elif data is not None:
            self._parts.append(data)
        return self

    def append_line(self, data: Optional[str]) -> "ModelSection":
        if data is not None:
            self._parts.append(data + "\n")
        return self

    @property
    def data(self) -> str:
        return "".join(self._parts)

    @property
    def script_data(self) -> str:
        """The data wrapped in the ``<script>`` element that replaces the model section."""
        return f'<script type="text/javascript">\n//<![CDATA[\n{self.data}//]]>\n</script>'

    def is_empty(self) -> bool:
        return not any(self._parts)

    def __str__(self) -> str:
        return self.script_data
