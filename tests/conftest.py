import asyncio
import copy
import json
from types import SimpleNamespace
from typing import Any

import pytest

from ocra.domain.models import Recipe
from ocra.domain.repository import StorageError


TOAST: dict[str, Any] = {
    "name": "Toast",
    "description": "Warm, crisp and golden.",
    "prepTime": "2 min",
    "cookTime": "1 min",
    "servings": "1",
    "ingredients": [{"name": "Bread", "imperial": "1 slice", "metric": "1 slice"}],
    "instructions": ["Toast it."],
}


def make_recipe(name: str, **overrides: Any) -> Recipe:
    data = copy.deepcopy(TOAST)
    data["name"] = name
    data.update(overrides)
    return Recipe.model_validate(data)


class FakeLLM:
    """Stands in for the request service."""

    def __init__(
        self,
        recipe: Recipe | None = None,
        error: Exception | None = None,
    ) -> None:
        self.recipe = recipe
        self.error = error
        self.calls: list[str] = []

    async def generate_recipe(self, dish_name: str) -> Recipe:
        self.calls.append(dish_name)
        if self.error is not None:
            raise self.error
        return make_recipe(dish_name) if self.recipe is None else self.recipe


class GatedLLM:
    """Each dish waits until its gate is opened, so tests pick the finishing order."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}
        self.errors: dict[str, Exception] = {}

    def gate(self, dish_name: str) -> asyncio.Event:
        return self.gates.setdefault(dish_name, asyncio.Event())

    async def generate_recipe(self, dish_name: str) -> Recipe:
        await self.gate(dish_name).wait()
        if dish_name in self.errors:
            raise self.errors[dish_name]
        return make_recipe(dish_name)


class FakeCompletions:
    def __init__(self, content: str | None, error: Exception | None) -> None:
        self.content = content
        self.error = error
        self.kwargs: dict[str, Any] = {}

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai_client(
    content: str | None = None,
    error: Exception | None = None,
) -> Any:
    completions = FakeCompletions(content, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class MemoryStorage:
    """In-memory LocalStorage with switchable failures."""

    def __init__(self) -> None:
        self.items: dict[str, str] = {}
        self.fail_reads = False
        self.fail_writes = False

    async def get_item(self, key: str) -> str | None:
        if self.fail_reads:
            raise StorageError("store unavailable")
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageError("store is full")
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    def names(self, key: str) -> list[str]:
        return [r["name"] for r in json.loads(self.items.get(key, "[]"))]


@pytest.fixture
def toast_json() -> str:
    return json.dumps(TOAST)


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()
