import pytest

from yeast.compiler.ast_nodes import AnnotatedNode, DirectiveKind
from yeast.compiler.directives import (
    directive_name,
    is_compapply,
    is_directive_node,
    resolve_directive,
)
from yeast.compiler.exceptions import TranslationError


def element(**attrs: str) -> AnnotatedNode:
    return AnnotatedNode.element("div", list(attrs.items()))


def test_no_directive() -> None:
    assert resolve_directive(element(id="x")) is None
    assert resolve_directive(element(yst="  ")) is None
    assert resolve_directive(AnnotatedNode.text_node("yst")) is None
    assert directive_name(AnnotatedNode.text_node("x")) is None
    assert not is_directive_node(element())


def test_name_is_case_insensitive() -> None:
    directive = resolve_directive(element(yst=" IF ", ysttest="a > 1"))
    assert directive is not None
    assert directive.kind is DirectiveKind.IF
    assert directive.test == "a > 1"


def test_defaults() -> None:
    directive = resolve_directive(element(yst="if"))
    assert directive is not None
    assert directive.test == "true"
    assert directive.aux is None
    assert directive.target_set == ""


def test_upto_is_fallback_for_set() -> None:
    directive = resolve_directive(element(yst="apply", ystupto="rows"))
    assert directive is not None
    assert directive.target_set == "rows"

    directive = resolve_directive(element(yst="apply", ystset="items", ystupto="rows"))
    assert directive is not None
    assert directive.target_set == "items"


def test_ajax_is_live() -> None:
    directive = resolve_directive(element(yst="ajax", id="my clock"))
    assert directive is not None
    assert directive.kind is DirectiveKind.LIVE
    assert directive.function_name == "my_clock"
    assert directive.hoists


def test_include_reference() -> None:
    directive = resolve_directive(element(yst="include", ystidref=" page footer ", ystparams="a=1"))
    assert directive is not None
    assert directive.id_ref == "page_footer"
    assert directive.params == "a=1"


def test_declare_without_id_has_no_function() -> None:
    directive = resolve_directive(element(yst="declare"))
    assert directive is not None
    assert directive.function_name is None


def test_is_compapply() -> None:
    assert is_compapply(element(yst="CompApply"))
    assert not is_compapply(element(yst="apply"))
    assert not is_compapply(AnnotatedNode.text_node("compapply"))


def test_unknown_directive_raises_with_markup() -> None:
    node = element(yst="bogus")
    node.append_child(AnnotatedNode.text_node("x"))
    with pytest.raises(TranslationError) as exc_info:
        resolve_directive(node)
    assert "bogus" in exc_info.value.message
    assert exc_info.value.markup == '<div yst="bogus">x</div>'
    assert '<div yst="bogus">x</div>' in str(exc_info.value)
