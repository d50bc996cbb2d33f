"""Locates the ``<script yst="model">...</script>`` section of a template.

The scan is bytewise and ASCII case-insensitive so that it works before the
template encoding is known: the bytes of ``<script``, ``yst``, ``=``, quotes
and ``model`` are the same in every supported encoding.
"""

import logging
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

NOT_FOUND: Tuple[int, int] = (-1, -1)

_OPEN = b"<script"
_CLOSE = b"</script>"
_BLANKS = b" \t\r\n"


def _skip_blanks(data: bytes, pos: int, limit: int) -> int:
    while pos < limit and data[pos] in _BLANKS:
        pos += 1
    return pos


def _is_model_attribute(data: bytes, start: int, end: int) -> bool:
    """Check the ``yst = "model"`` attribute inside ``data[start:end]``."""
    pos = data.find(b"yst", start, end)
    while pos != -1:
        if data[pos - 1] in _BLANKS:
            i = _skip_blanks(data, pos + 3, end)
            if i < end and data[i : i + 1] == b"=":
                i = _skip_blanks(data, i + 1, end)
                quote: Optional[bytes] = None
                if i < end and data[i : i + 1] in (b'"', b"'"):
                    quote = data[i : i + 1]
                    i += 1
                if data[i : i + 5] == b"model":
                    i += 5
                    if quote is not None:
                        if data[i : i + 1] == quote:
                            return True
                    elif i >= end or data[i] in _BLANKS or data[i : i + 1] in (b">", b"/"):
                        return True
        pos = data.find(b"yst", pos + 3, end)
    return False


def find_model_section_bounds(content: bytes) -> Tuple[int, int]:
    """Return ``(start, end)`` of the model section, ``end`` being just past ``</script>``.

    An occurrence that contains another ``<script`` before its closing tag is
    ill-formed and skipped. Returns ``(-1, -1)`` when no model section exists.
    """
    data = content.lower()
    i_script = data.find(_OPEN)
    while i_script != -1:
        f_script = data.find(b">", i_script)
        if f_script == -1:
            break

        if _is_model_attribute(data, i_script + len(_OPEN), f_script):
            end = data.find(_CLOSE, f_script)
            nested = data.find(_OPEN, f_script)
            if end != -1 and (nested == -1 or nested > end):
                bounds = (i_script, end + len(_CLOSE))
                logger.debug("Computed model section position: %d - %d", *bounds)
                return bounds
            logger.debug("Ill-formed model section at %d, nested <script> before its end", i_script)

        i_script = data.find(_OPEN, i_script + len(_OPEN))

    logger.debug("No model section found")
    return NOT_FOUND
