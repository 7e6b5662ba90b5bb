"""Functionality behind the recipe actions; copy and share."""

from ocra.domain.models import Ingredient, Recipe, UnitSystem


def ingredient_line(ingredient: Ingredient, unit: UnitSystem) -> str:
    quantity = ingredient.quantity(unit)
    return f"{quantity} {ingredient.name}".strip()


def recipe_text(recipe: Recipe, unit: UnitSystem = UnitSystem.metric) -> str:
    """The recipe as plain text, ready for the clipboard."""
    sections = [f"Recipe: {recipe.name}\n{recipe.description}".strip()]

    timings = [
        ("Prep Time", recipe.prep_time),
        ("Cook Time", recipe.cook_time),
        ("Servings", recipe.servings),
    ]
    lines = [f"{label}: {value}" for label, value in timings if value]
    if lines:
        sections.append("\n".join(lines))

    sections.append(
        "Ingredients:\n"
        + "\n".join(f"- {ingredient_line(i, unit)}" for i in recipe.ingredients)
    )
    sections.append(
        "Instructions:\n"
        + "\n".join(f"{n}. {step}" for n, step in enumerate(recipe.instructions, 1))
    )

    if recipe.tips:
        sections.append("Tips:\n" + "\n".join(f"- {tip}" for tip in recipe.tips))

    if recipe.nutritional_info is not None and recipe.nutritional_info.items():
        sections.append(
            "Nutrition (per serving):\n"
            + "\n".join(
                f"{label}: {value}" for label, value in recipe.nutritional_info.items()
            )
        )

    return "\n\n".join(s.strip() for s in sections)


def share_payload(recipe: Recipe, url: str) -> dict[str, str]:
    return {
        "title": recipe.name,
        "text": f"Check out this recipe for {recipe.name}!",
        "url": url,
    }
