from typing import Any, Dict

from jinja2 import Environment, PackageLoader, select_autoescape
from starlette.responses import HTMLResponse

from yeast.compiler.exceptions import TranslationError

# Initialize templating environment for internal error pages
_env = Environment(
    loader=PackageLoader("yeast", "templates"),
    autoescape=select_autoescape(["html", "xml"]),
)


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    """Render a Jinja2 template with the given context.

    Args:
        template_name: Name of the template relative to src/yeast/templates/
        context: Dictionary of variables to pass to the template

    Returns:
        Rendered HTML string
    """
    template = _env.get_template(template_name)
    return template.render(**context)


def render_translation_error(exc: TranslationError) -> HTMLResponse:
    html_content = render_template(
        "error/translation.html",
        {
            "title": "Template translation failed",
            "template_id": exc.template_id or "",
            "message": exc.message,
            "markup": exc.markup or "",
        },
    )
    return HTMLResponse(html_content, status_code=500)


def render_not_found(template_id: str) -> HTMLResponse:
    html_content = render_template(
        "error/404.html",
        {"title": "Not Found", "message": f"No template named {template_id}"},
    )
    return HTMLResponse(html_content, status_code=404)
