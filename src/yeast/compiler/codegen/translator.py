"""Translation of directive-annotated trees into ``YST.Txt`` script calls."""

import logging
from typing import Dict, List, Optional

from yeast.compiler.ast_nodes import (
    DIRECTIVE_ATTRIBUTES,
    AnnotatedNode,
    Directive,
    DirectiveKind,
    NodeKind,
)
from yeast.compiler.directives import (
    is_compapply,
    is_directive_node,
    resolve_directive,
    set_directive,
)
from yeast.compiler.escape import (
    encoding_family,
    escape_js,
    print_attr_value,
    print_text,
    to_javascript,
)
from yeast.compiler.parser import VOID_ELEMENTS, ensure_head

logger = logging.getLogger(__name__)

VALUE_F = "YST.Txt.value"
IF_F = "YST.Txt.iff"
APPLY_F = "YST.Txt.apply"
COMPAPPLY_F = "YST.Txt.select"
INCLUDE_F = "YST.Txt.include"
LITERAL_F = "YST.Txt.literal"
YSTBOOL_F = "YST.Txt.ystBool"
DW_F = "document.write"

# Leading arguments of a directive call made from plain markup, and from the
# body of a hoisted function where the iteration context is live
TOP_LEVEL_PARAMS = "([], 0, {},"
DECLARE_PARAMS = "(contextValues,contextI,params,"

PROCESSED_MARK = "if (typeof YST != 'undefined') {YST.txtProcessing=true;YST.finishProcessing();}"


def create_script_node(code: str, yst: Optional[str] = None) -> AnnotatedNode:
    script = AnnotatedNode.element("script", [("type", "text/javascript")])
    if yst is not None:
        script.set_attribute("yst", yst)
    script.append_child(AnnotatedNode.text_node(code))
    return script


def script_text(script: AnnotatedNode) -> str:
    return "".join(c.text for c in script.children if c.kind is NodeKind.TEXT)


def move_directive_elements_in_head(document: AnnotatedNode, name: str) -> None:
    """Move directive-bearing ``name`` elements of ``<head>`` to its end.

    Generated scripts are placed in the head, so a ``<title>`` or ``<meta>``
    that uses directives must come after them.
    """
    head = document.find_first("head")
    if head is None:
        return
    for element in [e for e in head.find_all(name) if is_directive_node(e)]:
        head.append_child(element)


class NodeTranslator:
    """Rewrites a template tree, replacing directive nodes by script calls.

    Every directive has two code forms: the *top-level* one, a complete call
    written with ``document.write`` where the node sits in plain markup, and
    the *nested* one, a ``function, [args]`` pair spliced into the literal of
    an enclosing directive.
    """

    def __init__(
        self, encoding: Optional[str] = None, hide_directive_attributes: bool = False
    ) -> None:
        self.encoding = encoding or "utf-8"
        self.family = encoding_family(self.encoding)
        self.hide_directive_attributes = hide_directive_attributes
        self.generated = 0
        self._groups: Dict[int, List[AnnotatedNode]] = {}
        self._document: Optional[AnnotatedNode] = None

    def translate(self, document: AnnotatedNode) -> AnnotatedNode:
        """Translate ``document`` in place and return it."""
        self._start(document)
        self.translate_node(document)
        if self.generated:
            self.put_processed_mark(document)
        return document

    def _start(self, document: AnnotatedNode) -> None:
        self._document = document
        self._groups = {}
        self.generated = 0
        move_directive_elements_in_head(document, "title")
        move_directive_elements_in_head(document, "meta")
        self.group_comp_applies(document)

    def group_comp_applies(self, node: AnnotatedNode) -> None:
        """Group sibling ``compapply`` nodes before any code is generated.

        A compapply node captures the compapply siblings that follow it
        (whitespace text and comments between them are skipped); the captured
        ones are marked ``ignore`` so they produce no code of their own.
        """
        children = node.children
        i = 0
        while i < len(children):
            child = children[i]
            i += 1
            if child.name == "script" or not is_compapply(child):
                continue
            group = [child]
            while i < len(children):
                sibling = children[i]
                if sibling.kind is NodeKind.COMMENT or (
                    sibling.kind is NodeKind.TEXT and not sibling.text.strip()
                ):
                    i += 1
                elif is_compapply(sibling):
                    set_directive(sibling, DirectiveKind.IGNORE.value)
                    group.append(sibling)
                    i += 1
                else:
                    break
            self._groups[id(child)] = group

        for child in children:
            if child.is_element and child.name != "script":
                self.group_comp_applies(child)

    def comp_apply_group(self, node: AnnotatedNode) -> List[AnnotatedNode]:
        return self._groups.get(id(node), [node])

    def translate_node(self, node: AnnotatedNode) -> None:
        if node.is_element and node.name != "script" and is_directive_node(node):
            parent = node.parent
            assert parent is not None
            translated = self.explode(node, nested=False, declare=False)
            if translated is not None:
                parent.insert_before(create_script_node(f"{DW_F}({translated})"), node)
                self.generated += 1
            parent.remove_child(node)
        else:
            for child in list(node.children):
                self.translate_node(child)

    def explode(self, node: AnnotatedNode, nested: bool, declare: bool) -> Optional[str]:
        """Return the code for a directive node.

        ``nested`` selects the nested form; ``declare`` threads the live
        iteration context through, for code emitted inside hoisted functions.
        Nodes producing no code return ``''`` in nested form and ``None``
        otherwise.
        """
        directive = resolve_directive(node)
        assert directive is not None
        logger.debug("Translating node %s (%s)", node.name, directive.name)

        params = DECLARE_PARAMS if declare else TOP_LEVEL_PARAMS
        aux = self.aux_argument(directive)
        kind = directive.kind

        if kind is DirectiveKind.IGNORE:
            return "''" if nested else None

        if kind is DirectiveKind.DECLARE:
            self.declare(node, directive)
            return "''" if nested else None

        if kind is DirectiveKind.COMPAPPLY:
            return self.comp_apply(node, directive, nested, params)

        if kind is DirectiveKind.INCLUDE:
            args = f"'{escape_js(directive.id_ref)}','{escape_js(directive.params)}'"
            if nested:
                return f"{INCLUDE_F},[{aux}{args}]"
            return f"{INCLUDE_F}{params}{aux}{args})"

        if kind is DirectiveKind.LIVE:
            function_name = self.live_function(node, directive)
            reference = f"{function_name},[]" if function_name else "''"
            items = f"['{self.node_to_str(node)}',{reference},'</{node.name}>']"
            if nested:
                return f"{VALUE_F},[{aux}{items}]"
            return f"{VALUE_F}{params}{aux}{items})"

        body = self.template_from_node(node)
        if kind is DirectiveKind.VALUE:
            head, function = "", VALUE_F
        elif kind is DirectiveKind.LITERAL:
            head, function = "", LITERAL_F
        elif kind is DirectiveKind.IF:
            head, function = f"'{escape_js(directive.test)}',", IF_F
        else:
            head, function = f"'{escape_js(directive.target_set)}',", APPLY_F

        if nested:
            return f"{function},[{aux}{head}['{body}']]"
        return f"{function}{params}{aux}{head}['{body}'])"

    def comp_apply(
        self, node: AnnotatedNode, directive: Directive, nested: bool, params: str
    ) -> str:
        target_set = escape_js(directive.target_set)
        code = f"{COMPAPPLY_F}, ['{target_set}'" if nested else f"{COMPAPPLY_F}{params}'{target_set}'"
        for member in self.comp_apply_group(node):
            branch = resolve_directive(member)
            assert branch is not None
            code += (
                f",'{escape_js(branch.test)}',{self.aux_argument(branch)}"
                f"['{self.template_from_node(member)}']"
            )
        return code + ("]" if nested else ")")

    def aux_argument(self, directive: Directive) -> str:
        if directive.aux is None:
            return "null,"
        return f"'{escape_js(directive.aux)}',"

    # Hoisting

    def declare(self, node: AnnotatedNode, directive: Directive) -> None:
        self.hoist(node, directive)

    def live_function(self, node: AnnotatedNode, directive: Directive) -> Optional[str]:
        return self.hoist(node, directive)

    def hoist(self, node: AnnotatedNode, directive: Directive) -> Optional[str]:
        """Compile the inside of ``node`` into a function appended to ``<head>``.

        Returns the function name, or ``None`` when the node has no id.
        """
        function_name = directive.function_name
        if function_name is None:
            logger.debug("Not hoisting <%s yst=%s>: no id", node.name, directive.name)
            return None

        body = self.template_from_node(node, declare=True, only_inner=True)
        code = (
            f"function {function_name}(contextValues, contextI, params) {{\n"
            f"var result = '{body}';\n"
            "return result;\n"
            "}\n"
        )
        ensure_head(self._root(node)).append_child(create_script_node(code, yst="declare"))
        self.generated += 1
        return function_name

    def _root(self, node: AnnotatedNode) -> AnnotatedNode:
        if self._document is not None:
            return self._document
        while node.parent is not None:
            node = node.parent
        return node

    # Literal bodies

    def template_from_node(
        self, node: AnnotatedNode, declare: bool = False, only_inner: bool = False
    ) -> str:
        """Return the escaped literal text of ``node`` with directive children spliced in."""
        if node.kind is NodeKind.COMMENT:
            return ""

        name = node.name
        parts: List[str] = []
        if not only_inner:
            parts.append(self.node_to_str(node))

        for child in node.children:
            if name != "script" and child.name != "script" and is_directive_node(child):
                if declare:
                    code = self.explode(child, nested=False, declare=True)
                    if code is not None and code != "''":
                        parts.append(f"';\nresult += {code};\nresult += '")
                else:
                    code = self.explode(child, nested=True, declare=False)
                    if code != "''":
                        parts.append(f"',{code},'")
            elif name == "script":
                parts.append(to_javascript(self.template_from_node(child, declare)))
            else:
                parts.append(self.template_from_node(child, declare))

        if not only_inner and node.is_element and name not in VOID_ELEMENTS:
            parts.append("</'+'script>" if name == "script" else f"</{name}>")
        return "".join(parts)

    def node_to_str(self, node: AnnotatedNode) -> str:
        """Return the escaped literal of one node: text, start tag, doctype or raw markup."""
        if node.kind is NodeKind.TEXT:
            return escape_js(print_text(node.text, self.family))

        if node.kind is NodeKind.DOCTYPE:
            return escape_js(f"<!DOCTYPE {node.text}>")

        if node.kind is NodeKind.MARKUP:
            return escape_js(node.text)

        if not node.is_element:
            return ""

        text = "<" + node.name
        ystbool = None
        for name, value in node.attributes:
            if name == "ystbool":
                ystbool = f" ',{YSTBOOL_F},['{escape_js(value)}'],'"
            if self.hide_directive_attributes and name in DIRECTIVE_ATTRIBUTES:
                continue
            text += " " + name
            if value is not None:
                text += print_attr_value(value, self.family)
        text = escape_js(text)
        if ystbool is not None:
            text += ystbool
        return text + ">"

    def put_processed_mark(self, document: AnnotatedNode) -> None:
        body = document.find_first("body")
        if body is not None:
            body.append_child(create_script_node(PROCESSED_MARK))
