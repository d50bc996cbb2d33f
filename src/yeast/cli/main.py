"""Main CLI entry point."""

import logging
from pathlib import Path
from typing import Optional

import rich.panel
import rich_click as click
from rich.console import Console
from rich.logging import RichHandler

from yeast import __version__
from yeast.compiler.exceptions import TranslationError

console = Console()

# Astro-like styling configuration (Cyan Theme)
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_HELPTEXT_FIRST = True
click.rich_click.STYLE_COMMANDS_TABLE_SHOW_LINES = False
click.rich_click.STYLE_COMMANDS_TABLE_PAD_EDGE = False
click.rich_click.STYLE_COMMANDS_TABLE_BOX = None
click.rich_click.STYLE_COMMANDS_TABLE_EXPAND = False
click.rich_click.STYLE_OPTIONS_TABLE_EXPAND = False
click.rich_click.STYLE_COMMANDS_TABLE_HEADER = "bold magenta"
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running 'yeast --help' for more information."
click.rich_click.STYLE_OPTIONS_TABLE_BOX = None
click.rich_click.STYLE_COMMANDS_PANEL_BOX = None
click.rich_click.STYLE_OPTIONS_PANEL_BOX = None

# Cyan theme
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_OPTION = "cyan"
click.rich_click.STYLE_SWITCH = "cyan"
click.rich_click.STYLE_METAVAR = "dim white"
click.rich_click.STYLE_USAGE_COMMAND = "cyan"
click.rich_click.STYLE_USAGE = "dim"

click.rich_click.OPTION_GROUPS = {
    "yeast": [
        {
            "name": "Global Flags",
            "options": ["--help", "--version"],
        }
    ]
}

click.rich_click.COMMAND_GROUPS = {
    "yeast": [
        {
            "name": "Commands",
            "commands": ["translate", "build", "locate", "serve"],
        }
    ]
}


# Workaround: rich-click wraps tables in Panels which default to expand=True.
# We monkeypatch Panel to default expand=False to allow natural resizing.
original_panel_init = rich.panel.Panel.__init__


def panel_init(self, *args, **kwargs):
    kwargs.setdefault("expand", False)
    original_panel_init(self, *args, **kwargs)


rich.panel.Panel.__init__ = panel_init  # type: ignore[method-assign]


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _find_available_port(host: str, port: int, max_attempts: int = 100) -> int:
    """Find an available port starting from 'port'."""
    import socket

    try:
        addr_info = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
        family = addr_info[0][0]
    except OSError:
        family = socket.AF_INET

    for p in range(port, port + max_attempts):
        with socket.socket(family, socket.SOCK_STREAM) as s:
            try:
                s.bind((host, p))
                return p
            except OSError:
                continue

    raise click.UsageError(
        f"Could not find an available port starting from {port} after {max_attempts} attempts."
    )


def _report_translation_error(exc: TranslationError) -> None:
    console.print(f"[bold red]Translation failed:[/] {exc.message}")
    if exc.markup:
        console.print(exc.markup, markup=False, highlight=False)


@click.group(
    help=f"""
[bold white on cyan] yeast [/] [bold cyan]v{__version__}[/] Designer-friendly HTML templates.

Run [bold cyan]yeast translate FILE[/] to compile one template.
Run [bold cyan]yeast serve DIR[/] to serve a folder of templates.
"""
)
@click.version_option(__version__)
def cli() -> None:
    pass


@cli.command()
@click.argument("file")
@click.option(
    "-p",
    "--path",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder the template is read from and the result written to.",
)
@click.option("-o", "--output", "dest", default=None, help="Result file name (default: FILE with a '_t' suffix).")
@click.option("-v", "--verbose", is_flag=True, help="Show information about the translation process.")
@click.option("-c", "--cacheable", is_flag=True, help="Store the template body in a separate .js file.")
@click.option("--hide-directives", is_flag=True, help="Leave yst attributes out of the generated markup.")
def translate(
    file: str,
    path: Path,
    dest: Optional[str],
    verbose: bool,
    cacheable: bool,
    hide_directives: bool,
) -> None:
    """Translate one template into a script-driven page."""
    from yeast.compiler.build import translate_file

    setup_logging(verbose)
    try:
        translated = translate_file(
            file,
            path=path,
            dest=dest,
            cacheable=cacheable,
            hide_directive_attributes=hide_directives,
        )
    except TranslationError as e:
        _report_translation_error(e)
        raise SystemExit(1)
    except OSError as e:
        raise click.FileError(str(Path(path) / file), hint=str(e))

    console.print(f"✅ Generated [cyan]{translated.output}[/]")
    if translated.body is not None:
        console.print(f"✅ Generated [cyan]{translated.body}[/]")


@cli.command()
@click.argument("templates_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--out-dir",
    default=".yeast/build",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory for build artifacts.",
)
@click.option("-c", "--cacheable", is_flag=True, help="Split every page body into a .js file.")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
def build(templates_dir: Path, out_dir: Path, cacheable: bool, verbose: bool) -> None:
    """Translate every template of a folder."""
    from yeast.compiler.build import build_project

    setup_logging(verbose)
    console.print(f"🔨 Building [cyan]{templates_dir}[/]...")

    try:
        summary = build_project(templates_dir=templates_dir, out_dir=out_dir, cacheable=cacheable)
    except ValueError as e:
        raise click.UsageError(str(e))

    for error in summary.errors:
        _report_translation_error(error)

    console.print(
        "✅ Build complete "
        f"(templates={summary.templates}, plain={summary.plain_pages}, "
        f"bodies={summary.bodies}, out={summary.out_dir})"
    )
    if summary.errors:
        raise SystemExit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def locate(file: Path) -> None:
    """Print the model section bounds of a file."""
    from yeast.compiler.model_section import find_model_section_bounds

    start, end = find_model_section_bounds(file.read_bytes())
    if start < 0:
        console.print(f"No model section in [cyan]{file}[/]")
        raise SystemExit(1)
    console.print(f"{start} {end}")


@cli.command()
@click.argument("templates_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=3000, type=int, help="Port to bind to")
@click.option("--translate/--no-translate", "translate_templates", default=True, help="Translate templates before serving them.")
@click.option("--cacheable", is_flag=True, help="Serve page bodies as separately cacheable scripts.")
@click.option("--snapshot-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Where compiled snapshots are written.")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
def serve(
    templates_dir: Path,
    host: str,
    port: int,
    translate_templates: bool,
    cacheable: bool,
    snapshot_dir: Optional[Path],
    verbose: bool,
) -> None:
    """Serve a folder of templates using Uvicorn."""
    import uvicorn

    from yeast.config import YeastConfig
    from yeast.runtime.app import YeastApp

    setup_logging(verbose)

    config = YeastConfig.from_env()
    config.translate_templates = translate_templates
    config.browser_side_cacheable = cacheable
    if snapshot_dir is not None:
        config.snapshot_dir = snapshot_dir

    original_port = port
    port = _find_available_port(host, port)
    if port != original_port:
        console.print(f"⚠️  Port {original_port} is busy, using [bold cyan]{port}[/] instead.")

    app = YeastApp(templates_dir, config=config, debug=verbose)
    console.print(
        f"🚀 Serving [cyan]{templates_dir}[/] on [link=http://{host}:{port}]http://{host}:{port}[/link]"
    )
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    cli()
