from jinja2 import Environment
from markdown2 import (  # pyright: ignore[reportMissingTypeStubs]
    markdown,  # pyright: ignore[reportUnknownVariableType]
)
from markupsafe import Markup

from ocra.domain.models import Recipe, UnitSystem
from ocra.domain.services import recipe_text, share_payload
from ocra.domain.session import MAX_RATING, ViewState


def md(text: str) -> Markup:
    return Markup(markdown(text, safe_mode="escape"))  # pyright: ignore[reportUnknownArgumentType]


class RecipeDetail:
    """Everything the recipe template needs. Sections the recipe lacks are skipped."""

    def __init__(
        self,
        recipe: Recipe,
        *,
        environment: Environment,
        view: ViewState | None = None,
        saved: bool = False,
        url: str = "",
        persisted: bool = False,
        template_name: str = "recipe-detail.html",
    ) -> None:
        self.recipe = recipe
        self.view = ViewState() if view is None else view
        self.saved = saved
        self.url = url
        self.persisted = persisted
        self.env = environment
        self.name = template_name

    @property
    def title(self) -> str:
        return self.recipe.name

    @property
    def description(self) -> Markup:
        return md(self.recipe.description)

    @property
    def timings(self) -> list[tuple[str, str]]:
        pairs = [
            ("Prep", self.recipe.prep_time),
            ("Cook", self.recipe.cook_time),
            ("Serves", self.recipe.servings),
        ]
        return [(label, value) for label, value in pairs if value]

    @property
    def unit(self) -> UnitSystem:
        return self.view.unit

    @property
    def units(self) -> list[UnitSystem]:
        return list(UnitSystem)

    @property
    def ingredients(self) -> list[tuple[str, str]]:
        return [(i.quantity(self.unit), i.name) for i in self.recipe.ingredients]

    @property
    def instructions(self) -> list[Markup]:
        return [md(step) for step in self.recipe.instructions]

    @property
    def tips(self) -> list[Markup]:
        return [md(tip) for tip in self.recipe.tips]

    @property
    def nutrition(self) -> list[tuple[str, str]]:
        if self.recipe.nutritional_info is None:
            return []
        return self.recipe.nutritional_info.items()

    @property
    def image_url(self) -> str | None:
        return self.recipe.image_url

    @property
    def stars(self) -> list[tuple[int, bool]]:
        return [(n, n <= self.view.rating) for n in range(1, MAX_RATING + 1)]

    @property
    def text(self) -> str:
        return recipe_text(self.recipe, self.unit)

    @property
    def share(self) -> dict[str, str]:
        return share_payload(self.recipe, self.url)

    def render(self) -> str:
        return self.env.get_template(self.name).render(recipe=self)
