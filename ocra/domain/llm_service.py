import logging
import re

import openai
from openai.types.chat import (
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam,
)

from ocra.config import Config
from ocra.domain.aopenai import openai_client_factory
from ocra.domain.models import Recipe
from ocra.domain.prompts import RECIPE_SCHEMA, SYSTEM_PROMPT, CreateRecipePrompt


logger = logging.getLogger(__name__)


CONFIG = Config()

UNKNOWN_ERROR = "An unknown error occurred while generating the recipe."

FENCE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


class GenerationError(Exception):
    """A recipe could not be generated. The message is safe to show users."""


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    text = text.strip()
    match = FENCE.match(text)
    if match is None:
        return text
    return match.group(1).strip()


class LLMService:
    def __init__(
        self,
        openai_client: openai.AsyncClient | None = None,
        *,
        model: str | None = None,
        timeout: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._openai_client = openai_client
        self.model = CONFIG.core_model if model is None else model
        self.timeout = CONFIG.llm_timeout if timeout is None else timeout
        self.max_tokens = CONFIG.max_tokens if max_tokens is None else max_tokens

    @property
    def openai_client(self) -> openai.AsyncClient:
        # Built on first use so the page can load before a key is configured.
        if self._openai_client is None:
            self._openai_client = openai_client_factory(timeout=self.timeout)
        return self._openai_client

    async def complete(self, dish_name: str) -> str:
        system_message: ChatCompletionSystemMessageParam = {
            "role": "system",
            "content": SYSTEM_PROMPT,
        }
        user_message: ChatCompletionUserMessageParam = {
            "role": "user",
            "content": str(CreateRecipePrompt(dish_name)),
        }
        messages: list[ChatCompletionMessageParam] = [system_message, user_message]

        resp = await self.openai_client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "recipe", "schema": RECIPE_SCHEMA},
            },
            timeout=self.timeout,
        )
        return resp.choices[0].message.content or ""

    async def generate_recipe(self, dish_name: str) -> Recipe:
        """One request, no retries. The same dish can come back different."""
        try:
            text = await self.complete(dish_name)
            recipe = Recipe.model_validate_json(strip_code_fences(text))
        except Exception as e:
            logger.exception("Error generating recipe for %r", dish_name)
            if str(e):
                raise GenerationError(f"Failed to generate recipe from AI: {e}") from e
            raise GenerationError(UNKNOWN_ERROR) from e

        logger.info("Generated recipe %r for %r", recipe.name, dish_name)
        return recipe
