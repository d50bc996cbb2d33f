"""Prints AnnotatedNode trees back to markup."""

from typing import List, Optional

from yeast.compiler.ast_nodes import AnnotatedNode, NodeKind
from yeast.compiler.escape import encoding_family, print_attr_value, print_text
from yeast.compiler.parser import VOID_ELEMENTS

RAW_TEXT_ELEMENTS = {"script", "style"}


class HtmlSerializer:
    """Serializes a tree with the entity mapping of an output encoding."""

    def __init__(self, encoding: Optional[str] = None) -> None:
        self.encoding = encoding or "utf-8"
        self.family = encoding_family(self.encoding)

    def serialize(self, node: AnnotatedNode) -> str:
        parts: List[str] = []
        self._write(node, parts)
        return "".join(parts)

    def serialize_bytes(self, node: AnnotatedNode) -> bytes:
        return self.serialize(node).encode(self.encoding, errors="xmlcharrefreplace")

    def open_tag(self, node: AnnotatedNode, skip: frozenset = frozenset()) -> str:
        """Return the start tag of an element, leaving out attributes in ``skip``."""
        parts = ["<", node.name]
        for name, value in node.attributes:
            if name in skip:
                continue
            parts.append(" " + name)
            if value is not None:
                parts.append(print_attr_value(value, self.family))
        parts.append(">")
        return "".join(parts)

    def _write(self, node: AnnotatedNode, parts: List[str]) -> None:
        if node.kind is NodeKind.DOCUMENT:
            for child in node.children:
                self._write(child, parts)
        elif node.kind is NodeKind.DOCTYPE:
            parts.append(f"<!DOCTYPE {node.text}>")
        elif node.kind is NodeKind.MARKUP:
            parts.append(node.text)
        elif node.kind is NodeKind.COMMENT:
            parts.append(f"<!--{node.text}-->")
        elif node.kind is NodeKind.TEXT:
            parent = node.parent
            if parent is not None and parent.name in RAW_TEXT_ELEMENTS:
                parts.append(node.text)
            else:
                parts.append(print_text(node.text, self.family))
        else:
            parts.append(self.open_tag(node))
            if node.name in VOID_ELEMENTS:
                return
            for child in node.children:
                self._write(child, parts)
            parts.append(f"</{node.name}>")
