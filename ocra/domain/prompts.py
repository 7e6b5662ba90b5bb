from typing import Any

from ocra.domain.models import Recipe


SYSTEM_PROMPT = """
You are a world-class chef creating a recipe book.
Every recipe you create is another opportunity to delight and amaze your users.

Your users are competent cooks but are not professionals.
They do not necessarily have access to all the equipment a recipe may call for,
so suggest more commonly owned alternatives where a non-standard implement is needed.

Give every ingredient quantity twice; once in imperial units and once in metric units.
Keep each instruction to a single clear step.
Where they genuinely help, add tips on how to know when something is done,
potential pitfalls, variations, or storage.
""".strip()


CREATE_RECIPE_PROMPT = (
    'Generate a clear, concise, and easy-to-follow recipe for "{dish_name}". '
    "Include the dish name, a brief enticing description, preparation time, "
    "cooking time, servings, the ingredients with imperial and metric quantities, "
    "step-by-step instructions, optional chef's tips and optional per-serving "
    "nutritional information. "
    "Ensure the response strictly follows the provided JSON schema."
)


RECIPE_SCHEMA: dict[str, Any] = Recipe.model_json_schema(by_alias=True)


class CreateRecipePrompt:
    def __init__(
        self,
        dish_name: str,
        content: str | None = None,
    ) -> None:
        self.dish_name = dish_name
        self.content = CREATE_RECIPE_PROMPT if content is None else content

    def __str__(self) -> str:
        return self.content.format(dish_name=self.dish_name)
