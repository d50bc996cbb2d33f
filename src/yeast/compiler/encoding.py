"""Detection of the character encoding declared by a template.

The scan works on raw bytes: the ASCII bytes of ``<meta``, ``Content-Type``
and ``charset`` are the same in every single and multi-byte encoding the
templates are written in (Big5, EUC-JP and Shift_JIS included), so the
declaration can be found before the content is decoded.
"""

import codecs
import locale
import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

_BLANKS = b" \t\r\n"
_VALUE_END = b" \"'/>"
_XML_ENCODING = re.compile(rb"\sencoding\s*=\s*([\"'])([A-Za-z0-9._:-]+)\1")


def default_encoding() -> str:
    """Return the platform default encoding as a Python codec name."""
    return codecs.lookup(locale.getpreferredencoding(False) or "utf-8").name


def resolve_encoding(name: Optional[str], default: Optional[str] = None) -> str:
    """Map a charset name found in a template to a Python codec name.

    Unknown names fall back to ``default`` (or the platform default) with a
    warning; this never raises.
    """
    fallback = default or default_encoding()
    if not name or not name.strip():
        return fallback
    try:
        return codecs.lookup(name.strip()).name
    except LookupError:
        logger.warning("Not recognized encoding %r, using %s", name, fallback)
        return fallback


def find_declared_charset(content: bytes) -> Optional[str]:
    """Return the charset of the first ``<meta http-equiv="Content-Type">`` tag."""
    lowered = content.lower()
    i_meta = lowered.find(b"<meta")
    while i_meta != -1:
        f_meta = lowered.find(b">", i_meta)
        if f_meta == -1:
            f_meta = len(lowered)

        i_type = lowered.find(b"content-type", i_meta, f_meta)
        if i_type > 0 and lowered[i_type - 1 : i_type] in (b'"', b"'"):
            i_charset = lowered.find(b"charset", i_meta, f_meta)
            if i_charset != -1:
                i_eq = lowered.find(b"=", i_charset, f_meta)
                if i_eq != -1:
                    start = i_eq + 1
                    while start < f_meta and lowered[start] in _BLANKS:
                        start += 1
                    end = start
                    while end < f_meta and lowered[end] not in _VALUE_END:
                        end += 1
                    if start < end < f_meta:
                        return content[start:end].decode("ascii", "replace").strip()

        i_meta = lowered.find(b"<meta", i_meta + 5)
    return None


def find_xml_encoding(content: bytes) -> Optional[str]:
    """Return the ``encoding`` pseudo-attribute of a leading ``<?xml ...?>`` prolog."""
    head = content.lstrip(b"\xef\xbb\xbf" + _BLANKS)
    if not head.lower().startswith(b"<?xml"):
        return None
    end = head.find(b"?>")
    if end == -1:
        return None
    match = _XML_ENCODING.search(head, 0, end)
    return match.group(2).decode("ascii") if match else None


def guess_char_encoding(content: bytes, default: Optional[str] = None) -> str:
    """Return the Python codec to decode ``content`` with.

    A ``<meta>`` charset wins over the XML prolog.
    """
    declared = find_declared_charset(content) or find_xml_encoding(content)
    logger.debug("Detected template encoding: %s", declared)
    encoding = resolve_encoding(declared, default)
    logger.debug("Template encoding to be used: %s", encoding)
    return encoding
