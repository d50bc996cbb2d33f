"""Builds AnnotatedNode trees from template markup."""

import logging
from html.parser import HTMLParser
from pathlib import Path
from typing import List, Optional, Tuple, Union

from yeast.compiler.ast_nodes import AnnotatedNode, NodeKind
from yeast.compiler.encoding import guess_char_encoding

logger = logging.getLogger(__name__)

# HTML void elements that don't have closing tags
VOID_ELEMENTS = {
    "area",
    "base",
    "br",
    "col",
    "embed",
    "hr",
    "img",
    "input",
    "link",
    "meta",
    "param",
    "source",
    "track",
    "wbr",
}


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document = AnnotatedNode.document()
        self._stack: List[AnnotatedNode] = [self.document]

    @property
    def _current(self) -> AnnotatedNode:
        return self._stack[-1]

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        node = AnnotatedNode.element(tag, attrs)
        self._current.append_child(node)
        if node.name not in VOID_ELEMENTS:
            self._stack.append(node)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._current.append_child(AnnotatedNode.element(tag, attrs))

    def handle_endtag(self, tag: str) -> None:
        tag = tag.lower()
        if tag in VOID_ELEMENTS:
            return
        # Close up to the nearest open element with that name; stray end tags are dropped
        for i in range(len(self._stack) - 1, 0, -1):
            if self._stack[i].name == tag:
                del self._stack[i:]
                return
        logger.debug("Ignoring unmatched end tag </%s>", tag)

    def handle_data(self, data: str) -> None:
        children = self._current.children
        if children and children[-1].kind is NodeKind.TEXT:
            children[-1].text += data
        else:
            self._current.append_child(AnnotatedNode.text_node(data))

    def handle_comment(self, data: str) -> None:
        self._current.append_child(AnnotatedNode(NodeKind.COMMENT, name="#comment", text=data))

    def handle_decl(self, decl: str) -> None:
        if decl.lower().startswith("doctype"):
            text = decl[len("doctype") :].strip()
            self._current.append_child(AnnotatedNode(NodeKind.DOCTYPE, name="#doctype", text=text))
        else:
            self._markup(f"<!{decl}>")

    def handle_pi(self, data: str) -> None:
        # data runs up to the closing ">", "?" included
        self._markup(f"<?{data}>")

    def unknown_decl(self, data: str) -> None:
        self._markup(f"<![{data}]]>")

    def _markup(self, text: str) -> None:
        self._current.append_child(AnnotatedNode(NodeKind.MARKUP, name="#markup", text=text))


class TemplateParser:
    """Parses template markup into an AnnotatedNode document."""

    def parse_file(self, file_path: Path, encoding: Optional[str] = None) -> AnnotatedNode:
        """Parse a template file, sniffing its encoding when none is given."""
        return self.parse(Path(file_path).read_bytes(), encoding)

    def parse(self, content: Union[bytes, str], encoding: Optional[str] = None) -> AnnotatedNode:
        if isinstance(content, bytes):
            if encoding is None:
                encoding = guess_char_encoding(content)
            text = content.decode(encoding, errors="replace")
        else:
            text = content

        builder = _TreeBuilder()
        builder.feed(text)
        builder.close()
        return builder.document


def ensure_head(document: AnnotatedNode) -> AnnotatedNode:
    """Return the ``<head>`` element, creating it when the template has none."""
    head = document.find_first("head")
    if head is not None:
        return head

    head = AnnotatedNode.element("head")
    html = document.find_first("html")
    parent = html if html is not None else document
    first_element = next((c for c in parent.children if c.is_element), None)
    if first_element is not None:
        parent.insert_before(head, first_element)
    else:
        parent.append_child(head)
    return head
