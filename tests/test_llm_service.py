import json

from pydantic import ValidationError
import pytest

from ocra.domain.llm_service import (
    UNKNOWN_ERROR,
    GenerationError,
    LLMService,
    strip_code_fences,
)
from ocra.domain.prompts import RECIPE_SCHEMA

from conftest import TOAST, fake_openai_client


@pytest.mark.asyncio
async def test_generate_recipe(toast_json: str) -> None:
    llm = LLMService(fake_openai_client(toast_json))
    got = await llm.generate_recipe("Toast")
    assert got.name == "Toast"
    assert len(got.ingredients) == 1
    assert got.ingredients[0].metric == "1 slice"
    assert got.instructions[0] == "Toast it."
    assert got.tips == ()
    assert got.nutritional_info is None


@pytest.mark.asyncio
async def test_generate_recipe_sends_prompt_and_schema(toast_json: str) -> None:
    client = fake_openai_client(toast_json)
    llm = LLMService(client, model="test-model", timeout=12.5)
    await llm.generate_recipe("Toast")

    kwargs = client.chat.completions.kwargs
    assert kwargs["model"] == "test-model"
    assert kwargs["timeout"] == 12.5
    assert kwargs["response_format"]["type"] == "json_schema"
    assert kwargs["response_format"]["json_schema"]["schema"] is RECIPE_SCHEMA
    assert '"Toast"' in kwargs["messages"][-1]["content"]


@pytest.mark.parametrize(
    "wrapped",
    (
        "```json\n{body}\n```",
        "```\n{body}\n```",
        "  ```json {body} ```  ",
        "{body}",
    ),
)
@pytest.mark.asyncio
async def test_generate_recipe_code_fences(wrapped: str, toast_json: str) -> None:
    plain = await LLMService(fake_openai_client(toast_json)).generate_recipe("Toast")
    fenced = wrapped.replace("{body}", toast_json)
    got = await LLMService(fake_openai_client(fenced)).generate_recipe("Toast")
    assert got == plain


def test_strip_code_fences_leaves_inner_text() -> None:
    assert strip_code_fences('```json\n{"a": "```"}\n```') == '{"a": "```"}'


@pytest.mark.asyncio
async def test_generate_recipe_backend_error() -> None:
    llm = LLMService(fake_openai_client(error=ConnectionError("network down")))
    with pytest.raises(GenerationError) as exc:
        await llm.generate_recipe("Toast")
    assert str(exc.value) == "Failed to generate recipe from AI: network down"
    assert isinstance(exc.value.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_generate_recipe_malformed_json() -> None:
    llm = LLMService(fake_openai_client('{"name": "Toast",'))
    with pytest.raises(GenerationError) as exc:
        await llm.generate_recipe("Toast")
    assert str(exc.value).startswith("Failed to generate recipe from AI: ")
    assert isinstance(exc.value.__cause__, ValidationError)


@pytest.mark.parametrize("content", ("[]", '"Toast"', "", None))
@pytest.mark.asyncio
async def test_generate_recipe_not_an_object(content: str | None) -> None:
    llm = LLMService(fake_openai_client(content))
    with pytest.raises(GenerationError):
        await llm.generate_recipe("Toast")


@pytest.mark.asyncio
async def test_generate_recipe_unknown_error() -> None:
    llm = LLMService(fake_openai_client(error=RuntimeError()))
    with pytest.raises(GenerationError) as exc:
        await llm.generate_recipe("Toast")
    assert str(exc.value) == UNKNOWN_ERROR


@pytest.mark.asyncio
async def test_generate_recipe_older_payload() -> None:
    payload = {
        "dishName": "Pancakes",
        "description": "Fluffy.",
        "ingredients": ["2 eggs", {"name": "Milk", "quantity": "1 cup"}],
        "instructions": ["Whisk.", "Fry."],
        "notes": "Rest the batter for ten minutes.",
    }
    llm = LLMService(fake_openai_client(json.dumps(payload)))
    got = await llm.generate_recipe("Pancakes")
    assert got.name == "Pancakes"
    assert got.prep_time == ""
    assert got.ingredients[0].name == "2 eggs"
    assert got.ingredients[1].imperial == got.ingredients[1].metric == "1 cup"
    assert got.tips == ("Rest the batter for ten minutes.",)


@pytest.mark.asyncio
async def test_generate_recipe_full_payload() -> None:
    payload = {
        **TOAST,
        "tips": ["Butter while hot."],
        "nutritionalInfo": {"calories": "80 kcal", "protein": "3 g"},
        "imageUrl": "https://example.com/toast.jpg",
    }
    got = await LLMService(fake_openai_client(json.dumps(payload))).generate_recipe(
        "Toast"
    )
    assert got.tips == ("Butter while hot.",)
    assert got.nutritional_info is not None
    assert got.nutritional_info.items() == [("Calories", "80 kcal"), ("Protein", "3 g")]
    assert got.image_url == "https://example.com/toast.jpg"


def test_recipe_schema_uses_wire_names() -> None:
    assert set(RECIPE_SCHEMA["required"]) == {
        "name",
        "description",
        "prepTime",
        "cookTime",
        "servings",
        "ingredients",
        "instructions",
    }
    assert {"tips", "nutritionalInfo", "imageUrl"} <= set(RECIPE_SCHEMA["properties"])
