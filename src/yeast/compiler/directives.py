"""Reading directive attributes from template nodes."""

from typing import Optional

from yeast.compiler.ast_nodes import DIRECTIVE_NAMES, AnnotatedNode, Directive, DirectiveKind
from yeast.compiler.exceptions import TranslationError


def directive_name(node: AnnotatedNode) -> Optional[str]:
    """Return the trimmed, lower-cased ``yst`` value of an element.

    Non-element nodes return ``None``; elements without the attribute return
    an empty string.
    """
    if not node.is_element:
        return None
    value = node.get_attribute("yst")
    return (value or "").strip().lower()


def is_directive_node(node: AnnotatedNode) -> bool:
    return bool(directive_name(node))


def set_directive(node: AnnotatedNode, name: str) -> None:
    node.set_attribute("yst", name)


def resolve_directive(node: AnnotatedNode) -> Optional[Directive]:
    """Return the directive carried by ``node`` or ``None``.

    Raises:
        TranslationError: if the ``yst`` value is not a known directive.
    """
    name = directive_name(node)
    if not name:
        return None

    kind = DIRECTIVE_NAMES.get(name)
    if kind is None:
        from yeast.compiler.serializer import HtmlSerializer

        raise TranslationError(
            f"Illegal yst attribute value: {name}",
            markup=HtmlSerializer().serialize(node),
        )

    target_set = _attr(node, "ystset")
    if not target_set.strip():
        target_set = _attr(node, "ystupto")
        if not target_set.strip():
            target_set = ""

    test = _attr(node, "ysttest")
    if not test.strip():
        test = "true"

    aux = _attr(node, "ystaux")

    return Directive(
        kind=kind,
        name=name,
        target_set=target_set,
        test=test,
        aux=aux if aux.strip() else None,
        id_ref=_attr(node, "ystidref").strip().replace(" ", "_"),
        params=_attr(node, "ystparams"),
        element_id=_attr(node, "id").strip(),
    )


def is_compapply(node: AnnotatedNode) -> bool:
    return DIRECTIVE_NAMES.get(directive_name(node) or "") is DirectiveKind.COMPAPPLY


def _attr(node: AnnotatedNode, name: str) -> str:
    return node.get_attribute(name) or ""
