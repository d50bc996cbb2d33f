"""Cache-split translation: the page body moves into a separately cacheable script."""

import logging
from typing import List, Optional, Tuple

from yeast.compiler.ast_nodes import DIRECTIVE_ATTRIBUTES, AnnotatedNode, Directive, DirectiveKind
from yeast.compiler.codegen.translator import NodeTranslator, create_script_node, script_text
from yeast.compiler.directives import resolve_directive, set_directive
from yeast.compiler.exceptions import TranslationError

logger = logging.getLogger(__name__)

DEFAULT_BODY_ID = "__TemplateBody"
GENERATED_ID_PREFIX = "__TemplateDeclare"
BODY_STUB_TEXT = "// Move the .js file where it should be, and change src attribute "


class CachingTranslator(NodeTranslator):
    """Translator for browser-side cacheable templates.

    Every ``declare``/``live`` node is hoisted up front, the whole ``<body>``
    becomes one more hoisted function, and the hoisted functions are moved
    out of the document into :attr:`cached_body`. The document keeps a stub
    body that loads that script from ``body_url``.
    """

    def __init__(
        self,
        encoding: Optional[str] = None,
        hide_directive_attributes: bool = False,
        body_url: str = "",
    ) -> None:
        super().__init__(encoding, hide_directive_attributes)
        self.body_url = body_url
        self.cached_body: Optional[str] = None
        self.body_function: Optional[str] = None
        self._generated_ids = 0

    def translate(self, document: AnnotatedNode) -> AnnotatedNode:
        body = document.find_first("body")
        if body is None:
            raise TranslationError("Browser-side cacheable templates need a <body> element")

        self._start(document)
        self._generated_ids = 0
        self.extract_functions(body, body)

        body_directive = self.declare_body(body)
        body_attributes = self._stub_attributes(body)
        self.body_function = self.hoist(body, body_directive)

        self.translate_node(document)

        self.replace_body(document, body_attributes)
        self.cached_body = self.extract_cached_body(document)
        return document

    def extract_functions(self, element: AnnotatedNode, root: AnnotatedNode) -> None:
        """Hoist every declare/live node below ``root``, innermost first."""
        for child in list(element.children):
            if child.is_element and child.name != "script":
                self.extract_functions(child, root)

        if element is root:
            return
        directive = resolve_directive(element)
        if directive is None or not directive.hoists:
            return
        if directive.function_name is None:
            self._generated_ids += 1
            element.set_attribute("id", f"{GENERATED_ID_PREFIX}{self._generated_ids}")
            directive = resolve_directive(element)
            assert directive is not None
        self.hoist(element, directive)

    def declare_body(self, body: AnnotatedNode) -> Directive:
        """Turn ``<body>`` into a declare node, giving it the default id if needed."""
        set_directive(body, DirectiveKind.DECLARE.value)
        element_id = (body.get_attribute("id") or "").strip()
        if not element_id:
            body.set_attribute("id", DEFAULT_BODY_ID)
        directive = resolve_directive(body)
        assert directive is not None
        return directive

    # Functions were extracted before the walk; only reference them now

    def declare(self, node: AnnotatedNode, directive: Directive) -> None:
        return None

    def live_function(self, node: AnnotatedNode, directive: Directive) -> Optional[str]:
        return directive.function_name

    def _stub_attributes(self, body: AnnotatedNode) -> List[Tuple[str, Optional[str]]]:
        hidden = DIRECTIVE_ATTRIBUTES if self.hide_directive_attributes else {"yst"}
        return [(name, value) for name, value in body.attributes if name not in hidden]

    def replace_body(
        self, document: AnnotatedNode, attributes: List[Tuple[str, Optional[str]]]
    ) -> None:
        """Append the stub body that loads the cached body script."""
        html = document.find_first("html")
        parent = html if html is not None else document
        stub = AnnotatedNode.element("body", attributes)
        parent.append_child(stub)

        loader = create_script_node(BODY_STUB_TEXT)
        loader.set_attribute("src", self.body_url)
        stub.append_child(loader)
        self.put_processed_mark(document)

    def extract_cached_body(self, document: AnnotatedNode) -> str:
        """Remove the hoisted function scripts and return them as one script text."""
        scripts = [s for s in document.find_all("script") if s.get_attribute("yst") == "declare"]
        parts = []
        for script in reversed(scripts):
            parts.append("\n" + script_text(script).strip())
            assert script.parent is not None
            script.parent.remove_child(script)
        parts.append(f"\ndocument.write({self.body_function}([], 0, {{}}));")
        logger.debug("Extracted %d functions into the cached body", len(scripts))
        return "".join(parts)
