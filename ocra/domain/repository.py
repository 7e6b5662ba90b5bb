"""Local, single-user persistence.

`LocalStorage` is a plain key-value table holding whole JSON blobs.
`SavedRecipesRepository` keeps the user's saved recipes in one of those blobs.
"""

import logging
from typing import Iterable

from databases import Database
from pydantic import TypeAdapter, ValidationError

from ocra.domain.models import Recipe


logger = logging.getLogger(__name__)


SAVED_RECIPES_KEY = "ocra_saved_recipes"


RECIPES = TypeAdapter(list[Recipe])


CREATE_LOCAL_STORAGE_TABLE = """
CREATE TABLE IF NOT EXISTS LocalStorage (key VARCHAR(256) PRIMARY KEY, value TEXT)
"""


GET_ITEM = "SELECT value FROM LocalStorage WHERE key = :key"


SET_ITEM = "INSERT OR REPLACE INTO LocalStorage(key, value) VALUES (:key, :value)"


REMOVE_ITEM = "DELETE FROM LocalStorage WHERE key = :key"


class StorageError(Exception):
    pass


class LocalStorage:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def create(self) -> None:
        try:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                query=CREATE_LOCAL_STORAGE_TABLE
            )
        except Exception as e:
            raise StorageError(f"Could not create local storage: {e}") from e

    async def get_item(self, key: str) -> str | None:
        try:
            result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                GET_ITEM, values={"key": key}
            )
        except Exception as e:
            raise StorageError(f"Could not read {key}: {e}") from e
        return None if result is None else result["value"]

    async def set_item(self, key: str, value: str) -> None:
        try:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                SET_ITEM, values={"key": key, "value": value}
            )
        except Exception as e:
            raise StorageError(f"Could not write {key}: {e}") from e

    async def remove_item(self, key: str) -> None:
        try:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                REMOVE_ITEM, values={"key": key}
            )
        except Exception as e:
            raise StorageError(f"Could not remove {key}: {e}") from e


def dedupe(recipes: Iterable[Recipe]) -> list[Recipe]:
    """Keep the first recipe for each name."""
    seen: set[str] = set()
    out: list[Recipe] = []
    for recipe in recipes:
        if recipe.name in seen:
            continue
        seen.add(recipe.name)
        out.append(recipe)
    return out


class SavedRecipesRepository:
    """Saved recipes, keyed by name.

    Failures to read or write are logged and swallowed. A broken store must
    never break a search; the worst case is a stale saved flag.
    """

    def __init__(self, storage: LocalStorage, *, key: str = SAVED_RECIPES_KEY) -> None:
        self.storage = storage
        self.key = key

    async def _read(self) -> list[Recipe]:
        raw = await self.storage.get_item(self.key)
        if not raw:
            return []
        return dedupe(RECIPES.validate_json(raw))

    async def _write(self, recipes: list[Recipe]) -> None:
        blob = RECIPES.dump_json(dedupe(recipes), by_alias=True, exclude_none=True)
        await self.storage.set_item(self.key, blob.decode())

    async def list(self) -> list[Recipe]:
        try:
            return await self._read()
        except (StorageError, ValidationError) as e:
            logger.warning("Could not load saved recipes: %s", e)
            return []

    async def get(self, name: str) -> Recipe | None:
        for recipe in await self.list():
            if recipe.name == name:
                return recipe
        return None

    async def is_saved(self, name: str) -> bool:
        return await self.get(name) is not None

    async def toggle(self, recipe: Recipe) -> bool:
        """Save the recipe, or un-save it if already saved. Returns the new flag."""
        try:
            recipes = await self._read()
        except (StorageError, ValidationError) as e:
            logger.warning("Could not toggle %r: %s", recipe.name, e)
            return False

        saved = any(r.name == recipe.name for r in recipes)
        if saved:
            updated = [r for r in recipes if r.name != recipe.name]
        else:
            updated = recipes + [recipe]

        try:
            await self._write(updated)
        except StorageError as e:
            logger.warning("Could not toggle %r: %s", recipe.name, e)
            return saved
        return not saved

    async def remove(self, name: str) -> None:
        try:
            recipes = await self._read()
            if any(r.name == name for r in recipes):
                await self._write([r for r in recipes if r.name != name])
        except (StorageError, ValidationError) as e:
            logger.warning("Could not remove %r: %s", name, e)
