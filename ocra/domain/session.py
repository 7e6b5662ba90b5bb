"""The search session; the one piece of state that matters.

A session goes idle -> loading -> success | failed, and keeps the `dish`
query parameter of the page URL in step with the last search:

- success pushes a new URL carrying the dish, so every search can be
  reached again with the back button or shared as a link
- failure pushes the URL without the dish, so a reload does not replay it

Only the most recent search may update the session. Each `submit` takes a
sequence number and a response that comes back for an older number is dropped;
`submit` then returns None.
A page load (`start`) takes one too, so it drops whatever was in flight.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Protocol
from urllib.parse import quote, urlencode

from starlette.datastructures import URL, QueryParams

from ocra.domain.models import Recipe, UnitSystem
from ocra.domain.repository import SavedRecipesRepository


logger = logging.getLogger(__name__)


FALLBACK_ERROR = "An unexpected error occurred."

MAX_RATING = 5


class RecipeGenerator(Protocol):
    async def generate_recipe(self, dish_name: str) -> Recipe:
        ...


class Status(Enum):
    idle = "idle"
    loading = "loading"
    success = "success"
    failed = "failed"


class Theme(Enum):
    light = "light"
    dark = "dark"


@dataclass
class ViewState:
    unit: UnitSystem = UnitSystem.metric
    rating: int = 0


def with_query_param(url: URL, key: str, value: str) -> URL:
    params = [(k, v) for k, v in QueryParams(url.query).multi_items() if k != key]
    params.append((key, value))
    # quote rather than quote_plus: spaces travel as %20.
    return url.replace(query=urlencode(params, quote_via=quote))


class SearchSession:
    def __init__(
        self,
        llm: RecipeGenerator,
        *,
        saved: SavedRecipesRepository | None = None,
        url: str = "/",
        param: str = "dish",
    ) -> None:
        self.llm = llm
        self.saved = saved
        self.param = param
        self.status = Status.idle
        self.query = ""
        self.recipe: Recipe | None = None
        self.error: str | None = None
        self.theme = Theme.light
        self._views: dict[str, ViewState] = {}
        self._url = URL(url)
        self.history: list[str] = [str(self._url)]
        self._seq = 0

    def __repr__(self) -> str:
        return f"<SearchSession(status={self.status.value}, query={self.query!r})>"

    @property
    def url(self) -> str:
        return str(self._url)

    @property
    def is_loading(self) -> bool:
        return self.status is Status.loading

    def _push(self, url: URL) -> None:
        self._url = url
        self.history.append(str(url))

    def start(self, url: str) -> str | None:
        """A fresh page load. Returns the dish to search for, if any.

        Anything still in flight belongs to the previous page and is dropped.
        """
        self._seq += 1
        self._url = URL(url)
        self.history = [str(self._url)]
        query = QueryParams(self._url.query).get(self.param) or ""
        self.status = Status.loading if query else Status.idle
        self.query = query
        self.recipe = None
        self.error = None
        return query or None

    async def startup(self, url: str) -> Status | None:
        query = self.start(url)
        if query:
            return await self.submit(query)
        return self.status

    async def submit(self, query: str) -> Status | None:
        """Run one search. Returns None when a newer search overtook this one."""
        if not query:
            return self.status

        self._seq += 1
        seq = self._seq
        self.status = Status.loading
        self.query = query
        self.recipe = None
        self.error = None
        await self._forget_unsaved_views()

        try:
            recipe = await self.llm.generate_recipe(query)
        except Exception as e:
            if seq != self._seq:
                logger.info("Dropping stale failure for %r", query)
                return None
            self.error = str(e) or FALLBACK_ERROR
            self.status = Status.failed
            self._push(self._url.remove_query_params(self.param))
        else:
            if seq != self._seq:
                logger.info("Dropping stale recipe for %r", query)
                return None
            self.recipe = recipe
            self.status = Status.success
            self._push(with_query_param(self._url, self.param, query))

        return self.status

    async def _forget_unsaved_views(self) -> None:
        # Units and rating outlive the search only for saved recipes.
        keep: set[str] = set()
        if self.saved is not None:
            keep = {r.name for r in await self.saved.list()}
        self._views = {n: v for n, v in self._views.items() if n in keep}

    def view(self, name: str) -> ViewState:
        if name not in self._views:
            self._views[name] = ViewState()
        return self._views[name]

    def set_unit(self, name: str, unit: UnitSystem) -> ViewState:
        view = self.view(name)
        view.unit = unit
        return view

    def rate(self, name: str, stars: int) -> ViewState:
        view = self.view(name)
        view.rating = max(0, min(MAX_RATING, stars))
        return view

    def toggle_theme(self) -> Theme:
        self.theme = Theme.dark if self.theme is Theme.light else Theme.light
        return self.theme

    async def is_saved(self, name: str) -> bool:
        if self.saved is None:
            return False
        return await self.saved.is_saved(name)

    async def toggle_saved(self) -> bool:
        if self.recipe is None or self.saved is None:
            return False
        return await self.saved.toggle(self.recipe)
