"""Starlette application serving Yeast templates and their cached bodies."""

import contextlib
import inspect
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import FileResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from yeast.compiler.exceptions import TranslationError
from yeast.config import YeastConfig
from yeast.runtime.artifact import ModelSection
from yeast.runtime.cache import JS_SNAPSHOT_SUFFIX
from yeast.runtime.context import YeastContext
from yeast.runtime.error_renderer import render_not_found, render_translation_error
from yeast.runtime.sources import FileSource, SourceReadError

logger = logging.getLogger(__name__)

BODY_MEDIA_TYPE = "application/x-javascript"

# (request, template_id) -> model text, ModelSection or None; may be async
ModelProvider = Callable[[Request, str], Any]


class YeastApp:
    """Serves ``<templates_dir>/<id>.html`` through the template cache.

    Cache-split pages load their body script from ``body_url_prefix``; those
    requests are answered from the snapshot folder.
    """

    def __init__(
        self,
        templates_dir: Path,
        config: Optional[YeastConfig] = None,
        model_provider: Optional[ModelProvider] = None,
        context: Optional[YeastContext] = None,
        debug: bool = False,
    ) -> None:
        self.templates_dir = Path(templates_dir).resolve()
        self.context = context or YeastContext(config)
        self.config = self.context.config
        self.model_provider = model_provider

        routes = [
            Route(self.config.body_url_prefix + "{body_id:path}", self.serve_body),
            Route("/{template_id:path}", self.serve_template),
        ]
        self.app = Starlette(debug=debug, routes=routes, lifespan=self._lifespan)
        self.app.state.yeast = self

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.app(scope, receive, send)

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        yield
        self.context.close()

    async def serve_body(self, request: Request) -> Response:
        body_id = request.path_params["body_id"]
        folder = self.config.snapshot_dir.resolve()
        path = (folder / (body_id + ".tmp")).resolve()
        if path.parent != folder or not path.name.endswith(JS_SNAPSHOT_SUFFIX):
            logger.warning("Refusing body request outside the snapshot folder: %s", body_id)
            return render_not_found(body_id)
        if not path.is_file():
            return render_not_found(body_id)
        return FileResponse(path, media_type=BODY_MEDIA_TYPE)

    async def serve_template(self, request: Request) -> Response:
        template_id = request.path_params["template_id"].strip("/") or "index"
        if template_id.endswith(".html"):
            template_id = template_id[: -len(".html")]

        path = (self.templates_dir / f"{template_id}.html").resolve()
        if self.templates_dir not in path.parents or not path.is_file():
            return render_not_found(template_id)

        template = self.context.get_template("/" + template_id, FileSource(path))
        model = await self._get_model(request, template_id)
        try:
            if model is None:
                # No live data: keep the sample model the page was designed with
                content = await run_in_threadpool(template.designer_content)
            else:
                content = await run_in_threadpool(template.render, model)
        except TranslationError as exc:
            return render_translation_error(exc)
        except SourceReadError:
            return render_not_found(template_id)
        return Response(content, media_type=template.content_type)

    async def _get_model(self, request: Request, template_id: str) -> Any:
        if self.model_provider is None:
            return None
        model = self.model_provider(request, template_id)
        if inspect.isawaitable(model):
            model = await model
        if model is not None and not isinstance(model, (str, ModelSection)):
            raise TypeError(f"Model provider returned {type(model).__name__}")
        return model
