import logging

import pytest

from yeast.compiler.encoding import (
    find_declared_charset,
    find_xml_encoding,
    guess_char_encoding,
    resolve_encoding,
)

META = b'<html><head><meta http-equiv="Content-Type" content="text/html; charset=%s"></head></html>'


def test_declared_charset() -> None:
    assert find_declared_charset(META % b"ISO-8859-1") == "ISO-8859-1"
    assert find_declared_charset(META % b"Shift_JIS") == "Shift_JIS"


def test_charset_case_insensitive_markup() -> None:
    content = b"<META HTTP-EQUIV='CONTENT-TYPE' CONTENT='text/html; CHARSET = utf-8'>"
    assert find_declared_charset(content) == "utf-8"


def test_only_content_type_meta_counts() -> None:
    content = b'<meta name="description" content="charset=latin-1"><meta http-equiv="Content-Type" content="text/html; charset=utf-8">'
    assert find_declared_charset(content) == "utf-8"
    assert find_declared_charset(b'<meta name="x" content="y">') is None


def test_guess_uses_python_codec_names() -> None:
    assert guess_char_encoding(META % b"ISO-8859-1") == "iso8859-1"
    assert guess_char_encoding(b"<html></html>", "utf-8") == "utf-8"


def test_unknown_charset_falls_back(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="yeast"):
        assert guess_char_encoding(META % b"x-bogus", "utf-8") == "utf-8"
    assert "x-bogus" in caplog.text


def test_resolve_encoding() -> None:
    assert resolve_encoding("UTF8") == "utf-8"
    assert resolve_encoding("", "latin-1") == "latin-1"
    assert resolve_encoding(None, "ascii") == "ascii"


def test_xml_prolog_encoding() -> None:
    prolog = b"<?xml version='1.0' encoding='ISO-8859-1'?>\n<html><body></body></html>"
    assert find_xml_encoding(prolog) == "ISO-8859-1"
    assert find_xml_encoding(b"\xef\xbb\xbf  <?xml version=\"1.0\" encoding=\"utf-8\"?><html/>") == "utf-8"
    assert find_xml_encoding(b'<?xml version="1.0"?><html/>') is None
    assert find_xml_encoding(b'<html><?xml encoding="utf-8"?></html>') is None
    assert guess_char_encoding(prolog, "utf-8") == "iso8859-1"


def test_meta_wins_over_xml_prolog() -> None:
    content = b'<?xml version="1.0" encoding="utf-8"?>' + META % b"ISO-8859-1"
    assert guess_char_encoding(content) == "iso8859-1"
