"""Node and directive types shared by the parser and the translators."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


class NodeKind(enum.Enum):
    DOCUMENT = "document"
    ELEMENT = "element"
    TEXT = "text"
    COMMENT = "comment"
    DOCTYPE = "doctype"
    MARKUP = "markup"


@dataclass(eq=False)
class AnnotatedNode:
    """A node of a parsed template.

    Attribute names are stored lower-cased, in document order. ``value`` is
    ``None`` for attributes written without a value (``<option selected>``).
    ``text`` carries the payload of text, comment and doctype nodes. Markup
    nodes (processing instructions, CDATA sections, other declarations) keep
    their source text verbatim.
    """

    kind: NodeKind
    name: str = ""
    attributes: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    children: List["AnnotatedNode"] = field(default_factory=list)
    text: str = ""
    parent: Optional["AnnotatedNode"] = field(default=None, repr=False)

    @classmethod
    def document(cls) -> "AnnotatedNode":
        return cls(NodeKind.DOCUMENT, name="#document")

    @classmethod
    def element(
        cls, name: str, attributes: Optional[List[Tuple[str, Optional[str]]]] = None
    ) -> "AnnotatedNode":
        return cls(NodeKind.ELEMENT, name=name.lower(), attributes=list(attributes or []))

    @classmethod
    def text_node(cls, text: str) -> "AnnotatedNode":
        return cls(NodeKind.TEXT, name="#text", text=text)

    @property
    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT

    # Attributes

    def get_attribute(self, name: str) -> Optional[str]:
        """Return the attribute value, ``""`` for a valueless one, ``None`` if absent."""
        name = name.lower()
        for attr_name, value in self.attributes:
            if attr_name == name:
                return value if value is not None else ""
        return None

    def has_attribute(self, name: str) -> bool:
        name = name.lower()
        return any(attr_name == name for attr_name, _ in self.attributes)

    def set_attribute(self, name: str, value: Optional[str]) -> None:
        name = name.lower()
        for i, (attr_name, _) in enumerate(self.attributes):
            if attr_name == name:
                self.attributes[i] = (name, value)
                return
        self.attributes.append((name, value))

    def remove_attribute(self, name: str) -> None:
        name = name.lower()
        self.attributes = [(n, v) for n, v in self.attributes if n != name]

    # Tree manipulation

    def append_child(self, child: "AnnotatedNode") -> "AnnotatedNode":
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def insert_before(self, child: "AnnotatedNode", reference: "AnnotatedNode") -> None:
        if child.parent is not None:
            child.parent.remove_child(child)
        index = self._index_of(reference)
        child.parent = self
        self.children.insert(index, child)

    def remove_child(self, child: "AnnotatedNode") -> "AnnotatedNode":
        del self.children[self._index_of(child)]
        child.parent = None
        return child

    def replace_child(self, new: "AnnotatedNode", old: "AnnotatedNode") -> None:
        self.insert_before(new, old)
        self.remove_child(old)

    def _index_of(self, child: "AnnotatedNode") -> int:
        for i, candidate in enumerate(self.children):
            if candidate is child:
                return i
        raise ValueError(f"<{child.name}> is not a child of <{self.name}>")

    # Queries

    def iter(self) -> Iterator["AnnotatedNode"]:
        """Yield this node and all of its descendants in document order."""
        yield self
        for child in self.children:
            yield from child.iter()

    def find_all(self, name: str) -> List["AnnotatedNode"]:
        name = name.lower()
        return [n for n in self.iter() if n.is_element and n.name == name and n is not self]

    def find_first(self, name: str) -> Optional["AnnotatedNode"]:
        name = name.lower()
        for node in self.iter():
            if node is not self and node.is_element and node.name == name:
                return node
        return None

    def document_element(self) -> Optional["AnnotatedNode"]:
        """Return the first element child of a document node (usually ``<html>``)."""
        for child in self.children:
            if child.is_element:
                return child
        return None


class DirectiveKind(enum.Enum):
    IGNORE = "ignore"
    VALUE = "value"
    IF = "if"
    APPLY = "apply"
    COMPAPPLY = "compapply"
    DECLARE = "declare"
    INCLUDE = "include"
    LIVE = "live"
    LITERAL = "literal"


# "ajax" is the older spelling of "live"
DIRECTIVE_NAMES = {kind.value: kind for kind in DirectiveKind}
DIRECTIVE_NAMES["ajax"] = DirectiveKind.LIVE

# Attributes that carry directive data and are hidden from emitted markup
DIRECTIVE_ATTRIBUTES = frozenset(
    {"yst", "ysttest", "ystset", "ystidref", "ystparams", "ystupto", "ystaux", "ystbool"}
)


@dataclass(frozen=True)
class Directive:
    """Read-only view over the directive attributes of a node."""

    kind: DirectiveKind
    name: str
    target_set: str = ""
    test: str = "true"
    aux: Optional[str] = None
    id_ref: str = ""
    params: str = ""
    element_id: str = ""

    @property
    def function_name(self) -> Optional[str]:
        """Name of the hoisted function for declare/live nodes, ``None`` without an id."""
        if not self.element_id:
            return None
        return self.element_id.replace(" ", "_")

    @property
    def hoists(self) -> bool:
        return self.kind in (DirectiveKind.DECLARE, DirectiveKind.LIVE)
