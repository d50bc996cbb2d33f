"""Escaping of template text for markup and for single-quoted script literals.

Text that ends up inside a generated ``'...'`` string literal goes through two
steps: :func:`print_char` / :func:`print_attr_value` map characters to entities
for the target output encoding, then :func:`escape_js` makes the result safe
inside the literal. :func:`to_javascript` reverses the markup step for text
that belongs to a ``<script>`` element.
"""

import codecs
from html.entities import codepoint2name
from typing import Optional

# Output encoding families, driving how non-ASCII characters are printed
LATIN1 = "latin1"
UTF = "utf"
ASCII = "ascii"
RAW = "raw"  # other encodings (CJK multi-byte included), characters passed through

NBSP = 160


def encoding_family(encoding: Optional[str]) -> str:
    """Classify a Python codec name into one of the output families."""
    if not encoding:
        return UTF
    try:
        name = codecs.lookup(encoding).name
    except LookupError:
        return UTF
    name = name.replace("-", "_")
    if name in ("latin_1", "iso8859_1"):
        return LATIN1
    if name.startswith("utf"):
        return UTF
    if name == "ascii":
        return ASCII
    return RAW


def _named_entity(code: int) -> str:
    name = codepoint2name.get(code)
    if name is not None:
        return f"&{name};"
    return f"&#{code};"


def print_char(char: str, family: str) -> str:
    """Return the markup form of one character for an output encoding family."""
    code = ord(char)
    if char == "<":
        return "&lt;"
    if char == ">":
        return "&gt;"
    if char == "&":
        return "&amp;"
    if code == NBSP:
        return "&nbsp;"

    if family in (RAW, UTF):
        return char

    if family == LATIN1:
        if code > 255:
            return _named_entity(code)
        if 126 < code < 160:
            return f"&#{code};"
        return char

    # ASCII
    if code > 126 or (code < 32 and char not in "\t\r\n"):
        return _named_entity(code)
    return char


def print_text(text: str, family: str) -> str:
    return "".join(print_char(c, family) for c in text)


def print_attr_value(value: Optional[str], family: str, delim: str = '"') -> str:
    """Return ``="value"`` with the value escaped for a double-quoted attribute.

    New lines inside the value become spaces.
    """
    parts = ["=", delim]
    for char in value or "":
        if char == delim:
            parts.append("&quot;" if char == '"' else "&#39;")
        elif char == "\n":
            parts.append(" ")
        else:
            parts.append(print_char(char, family))
    parts.append(delim)
    return "".join(parts)


def escape_js(text: Optional[str]) -> str:
    """Escape text for use inside a single or double quoted script literal."""
    if text is None:
        return ""
    out = []
    for char in text:
        if char in "\"'\\":
            out.append("\\" + char)
        elif char == "/":
            out.append("\\/")
        elif char == "\b":
            out.append("\\b")
        elif char == "\t":
            out.append("\\t")
        elif char == "\n":
            out.append("\\n")
        elif char == "\f":
            out.append("\\f")
        elif char == "\r":
            out.append("\\r")
        elif char < " ":
            out.append("\\u%04x" % ord(char))
        else:
            out.append(char)
    return "".join(out)


def to_javascript(text: str) -> str:
    """Undo markup escaping on text that will run as embedded script code."""
    return (
        text.replace("&amp;", "&")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&#10;", "\\n")
        .replace("&#13;", "\\n")
    )
