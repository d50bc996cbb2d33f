import io
from pathlib import Path

import pytest

from yeast import __version__
from yeast.config import YeastConfig
from yeast.runtime.artifact import CompiledArtifact, ModelSection
from yeast.runtime.context import YeastContext
from yeast.runtime.template import PROCESSING_STAMP, model_encoding

PAGE = (
    b'<html><head><meta http-equiv="Content-Type" content="text/html; charset=utf-8">'
    b'<script yst="model">var sample = 1;</script></head>'
    b'<body><p yst="value" ystaux="user">Sample</p></body></html>'
)


@pytest.fixture
def context(tmp_path: Path):
    context = YeastContext(YeastConfig(snapshot_dir=tmp_path / "snapshots"))
    yield context
    context.close()


def test_render_replaces_model_section(context: YeastContext, tmp_path: Path) -> None:
    (tmp_path / "page.html").write_bytes(PAGE)
    template = context.get_template("/page", tmp_path / "page.html")

    model = ModelSection().append_line("var user = 'Ann';")
    page = template.render(model)
    artifact = template.entry.get_content()

    assert page.startswith(artifact.prefix)
    assert page.endswith(artifact.suffix)
    assert b"var sample" not in page
    assert (
        PROCESSING_STAMP.encode()
        + b"<script type=\"text/javascript\">\n//<![CDATA[\nvar user = 'Ann';\n//]]>\n</script>"
        in page
    )
    assert __version__ in PROCESSING_STAMP


def test_render_with_plain_text_model(context: YeastContext, tmp_path: Path) -> None:
    (tmp_path / "page.html").write_bytes(PAGE)
    template = context.get_template("/page", tmp_path / "page.html")
    page = template.render("<script>var x;</script>")
    assert b"<script>var x;</script>" in page
    assert template.content_type == "text/html; charset=utf-8"


def test_designer_version_keeps_sample_model(context: YeastContext, tmp_path: Path) -> None:
    (tmp_path / "page.html").write_bytes(PAGE)
    template = context.get_template("/page", tmp_path / "page.html")
    assert "var sample = 1;" in template.designer_version()


def test_plain_page_is_served_unchanged(context: YeastContext, tmp_path: Path) -> None:
    (tmp_path / "plain.html").write_bytes(b"<html><body><p>x</p></body></html>")
    template = context.get_template("/plain", tmp_path / "plain.html")
    assert template.render(ModelSection("var x;")) == template.entry.get_content().content


def test_write_streams_render(context: YeastContext, tmp_path: Path) -> None:
    (tmp_path / "page.html").write_bytes(PAGE)
    template = context.get_template("/page", tmp_path / "page.html")
    stream = io.BytesIO()
    template.write("var y;", stream)
    assert stream.getvalue() == template.render("var y;")


def test_model_encoding() -> None:
    assert model_encoding("latin-1") == "cp1252"
    assert model_encoding("ISO-8859-1") == "cp1252"
    assert model_encoding("iso-8859-9") == "cp1254"
    assert model_encoding("utf-8") == "utf-8"
    assert model_encoding(None) == "utf-8"


def test_model_section() -> None:
    section = ModelSection("var a;")
    assert not section.is_empty()
    assert ModelSection().is_empty()
    section.append(ModelSection("var b;"))
    assert section.data == "var a;\nvar b;"
    assert str(section) == section.script_data
    assert ModelSection().append(ModelSection("x")).data == "x"


def test_artifact_parts() -> None:
    artifact = CompiledArtifact(b"abcMODELdef", 3, 8)
    assert artifact.is_template
    assert artifact.prefix == b"abc"
    assert artifact.model == b"MODEL"
    assert artifact.suffix == b"def"

    plain = CompiledArtifact(b"abc")
    assert not plain.is_template
    assert plain.prefix == b"abc"
    assert plain.suffix == b""
