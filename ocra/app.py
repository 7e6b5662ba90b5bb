import contextlib
import functools
import logging
from typing import Any, Awaitable, Callable

from databases import Database
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import (
    HTMLResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from starlette.routing import Mount, Route
from starlette.staticfiles import StaticFiles

from ocra import config
from ocra.domain.llm_service import LLMService
from ocra.domain.models import UnitSystem
from ocra.domain.repository import LocalStorage, SavedRecipesRepository, StorageError
from ocra.domain.session import RecipeGenerator, SearchSession
from ocra.html.recipe_detail import RecipeDetail
from ocra.log import setup_logging


logger = logging.getLogger(__name__)


CONFIG = config.Config()


def aHTMLResponse(route: Callable[..., Awaitable[str | tuple[str, int]]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> HTMLResponse:
        resp = await route(*args, **kwargs)
        if not isinstance(resp, tuple):
            html, code = resp, 200
        else:
            html, code = resp
        return HTMLResponse(html, status_code=code)

    return wrapper


@contextlib.asynccontextmanager
async def lifespan(app: Starlette):
    await app.state.db.connect()
    try:
        await app.state.storage.create()
    except StorageError as e:
        # Saving will not work, searching still does.
        logger.warning("%s", e)
    yield
    await app.state.db.disconnect()


def _session(request: Request) -> SearchSession:
    return request.app.state.session


def _templates(request: Request) -> Environment:
    return request.app.state.templates


async def render_result(request: Request) -> str:
    """The area below the search bar: initial, loading, error or recipe."""
    session = _session(request)
    detail = None
    if session.recipe is not None:
        name = session.recipe.name
        detail = RecipeDetail(
            session.recipe,
            environment=_templates(request),
            view=session.view(name),
            saved=await session.is_saved(name),
            url=session.url,
        )
    return (
        _templates(request)
        .get_template("result.html")
        .render(session=session, detail=detail)
    )


@aHTMLResponse
async def homepage(request: Request) -> str:
    session = _session(request)
    pending = session.start(str(request.url))
    return (
        _templates(request)
        .get_template("index.html")
        .render(
            session=session,
            pending=pending,
            result=await render_result(request),
        )
    )


async def search(request: Request) -> Response:
    session = _session(request)
    async with request.form() as form:
        query = str(form.get(session.param) or "").strip()

    if not query:
        return Response(status_code=204)

    status = await session.submit(query)
    if status is None:
        # A newer search owns the page.
        return Response(status_code=204)

    return HTMLResponse(
        await render_result(request),
        headers={"HX-Push-Url": session.url},
    )


@aHTMLResponse
async def toggle_saved(request: Request) -> str:
    await _session(request).toggle_saved()
    return await render_result(request)


@aHTMLResponse
async def units(request: Request) -> str | tuple[str, int]:
    session = _session(request)
    async with request.form() as form:
        value = str(form.get("unit", ""))
    try:
        unit = UnitSystem(value)
    except ValueError:
        return f"Unknown unit system: {value}", 400
    if session.recipe is not None:
        session.set_unit(session.recipe.name, unit)
    return await render_result(request)


@aHTMLResponse
async def rating(request: Request) -> str | tuple[str, int]:
    session = _session(request)
    async with request.form() as form:
        value = str(form.get("stars", ""))
    if not value.isdigit():
        return f"Not a rating: {value}", 400
    if session.recipe is not None:
        session.rate(session.recipe.name, int(value))
    return await render_result(request)


async def theme(request: Request) -> PlainTextResponse:
    # The page applies the value itself; reloading would replay the search.
    return PlainTextResponse(_session(request).toggle_theme().value)


@aHTMLResponse
async def saved_list(request: Request) -> str:
    recipes = await request.app.state.saved.list()
    return (
        _templates(request)
        .get_template("saved.html")
        .render(session=_session(request), recipes=recipes)
    )


@aHTMLResponse
async def saved_detail(request: Request) -> str | tuple[str, int]:
    name = request.path_params["name"]
    recipe = await request.app.state.saved.get(name)
    if recipe is None:
        return f"No saved recipe called {name}.", 404
    session = _session(request)
    detail = RecipeDetail(
        recipe,
        environment=_templates(request),
        view=session.view(name),
        saved=True,
        url=str(request.url),
        persisted=True,
    )
    return (
        _templates(request)
        .get_template("saved-detail.html")
        .render(session=session, detail=detail)
    )


async def remove_saved(request: Request) -> RedirectResponse:
    await request.app.state.saved.remove(request.path_params["name"])
    return RedirectResponse("/saved", status_code=303)


def create_app(
    cfg: config.Config | None = None,
    *,
    llm: RecipeGenerator | None = None,
    db: Database | None = None,
) -> Starlette:
    cfg = CONFIG if cfg is None else cfg
    setup_logging(cfg.log_level)

    db = Database(cfg.db_url) if db is None else db
    storage = LocalStorage(db)
    saved = SavedRecipesRepository(storage)
    llm = (
        LLMService(
            model=cfg.core_model,
            timeout=cfg.llm_timeout,
            max_tokens=cfg.max_tokens,
        )
        if llm is None
        else llm
    )

    app = Starlette(
        debug=True if cfg.env == config.Env.local else False,
        routes=[
            Route("/", homepage),
            Route("/search", search, methods=["POST"]),
            Route("/units", units, methods=["POST"]),
            Route("/rating", rating, methods=["POST"]),
            Route("/theme", theme, methods=["POST"]),
            Route("/saved", saved_list),
            Route("/saved/toggle", toggle_saved, methods=["POST"]),
            Route("/saved/remove/{name:path}", remove_saved, methods=["POST"]),
            Route("/saved/{name:path}", saved_detail),
            Mount("/assets", StaticFiles(directory=cfg.assets_dir), name="assets"),
        ],
        lifespan=lifespan,
    )

    app.state.templates = Environment(
        loader=FileSystemLoader(cfg.html_dir),
        autoescape=select_autoescape(),
    )
    app.state.db = db
    app.state.storage = storage
    app.state.saved = saved
    app.state.session = SearchSession(llm, saved=saved, param=cfg.share_param)
    return app


app = create_app()
