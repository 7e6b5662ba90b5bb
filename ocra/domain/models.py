from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class UnitSystem(Enum):
    imperial = "imperial"
    metric = "metric"


class _Model(BaseModel):
    # Wire and storage form is camelCase; numbers the model sends for
    # free-form fields ("servings": 4) are kept as text.
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )


def _without_nulls(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class Ingredient(_Model):
    name: str = Field(description="e.g. 'Plain flour'.")
    imperial: str = Field(description="e.g. '1 cup'.")
    metric: str = Field(description="e.g. '125 g'.")

    @model_validator(mode="before")
    @classmethod
    def accept_older_shapes(cls, data: Any) -> Any:
        # Older payloads send "2 eggs" or {"name": ..., "quantity": ...}.
        if isinstance(data, str):
            return {"name": data, "imperial": "", "metric": ""}
        if not isinstance(data, dict):
            return data
        data = _without_nulls(data)
        quantity = data.pop("quantity", "")
        data.setdefault("imperial", quantity)
        data.setdefault("metric", quantity)
        return data

    def quantity(self, unit: UnitSystem = UnitSystem.metric) -> str:
        if unit is UnitSystem.imperial:
            return self.imperial or self.metric
        return self.metric or self.imperial


class NutritionalInfo(_Model):
    calories: str = ""
    protein: str = ""
    fat: str = ""
    carbs: str = ""

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        return _without_nulls(data) if isinstance(data, dict) else data

    def items(self) -> list[tuple[str, str]]:
        pairs = [
            ("Calories", self.calories),
            ("Protein", self.protein),
            ("Fat", self.fat),
            ("Carbs", self.carbs),
        ]
        return [(label, value) for label, value in pairs if value]


_MISSING = {
    "description": "",
    "prepTime": "",
    "cookTime": "",
    "servings": "",
    "ingredients": [],
    "instructions": [],
}


class Recipe(_Model):
    name: str = Field(description="The name of the dish.")
    description: str = Field(description="A brief, enticing description of the dish.")
    prep_time: str = Field(description="Preparation time, e.g. '15 minutes'.")
    cook_time: str = Field(description="Cooking time, e.g. '30 minutes'.")
    servings: str = Field(description="Number of servings, e.g. '4 servings'.")
    ingredients: tuple[Ingredient, ...] = Field(
        description="All ingredients with quantities in both unit systems."
    )
    instructions: tuple[str, ...] = Field(
        description="Step-by-step instructions, one step per item."
    )
    tips: tuple[str, ...] = Field(
        (), description="Optional tips, variations, or storage instructions."
    )
    nutritional_info: NutritionalInfo | None = Field(
        None, description="Optional approximate nutrition per serving."
    )
    image_url: str | None = None

    def __str__(self) -> str:
        return self.name

    @model_validator(mode="before")
    @classmethod
    def accept_older_shapes(cls, data: Any) -> Any:
        """Accept the payload shapes earlier backend versions produced."""
        if not isinstance(data, dict):
            return data
        data = _without_nulls(data)

        if not data.get("name") and "dishName" in data:
            data["name"] = data["dishName"]
        if "tips" not in data and "notes" in data:
            data["tips"] = data["notes"]
        for key in ("instructions", "tips"):
            if isinstance(data.get(key), str):
                data[key] = [data[key]] if data[key].strip() else []
        if not isinstance(data.get("nutritionalInfo"), dict):
            data.pop("nutritionalInfo", None)
        if not data.get("imageUrl"):
            data.pop("imageUrl", None)

        return {**_MISSING, **data}
