"""Favorites store.

In-memory list of saved recipes, synced best effort to a persistent slot
after every mutation. The in-memory list is authoritative for the session.
A failed write is logged and never reverts it.

Identity modes:
- "id_or_title": a saved entry matches when its id OR its exact title matches
- "id": only the id identifies an entry

save_all() always de-duplicates on normalized (case-insensitive) title.
"""

import json
from typing import Iterable, List, Optional

from pydantic import ValidationError

from chefs_eye.models.models import Recipe, normalize_title
from chefs_eye.store.storage import StorageQuotaExceeded, StorageSlot
from chefs_eye.utils.config import config
from chefs_eye.utils.logger import logger


MATCH_MODES = ("id_or_title", "id")


class FavoritesStore:
    """Saved recipes backed by a key-value storage slot.

    Args:
        storage: Slot implementing get(key) / set(key, value).
        key: Slot key, defaults to FAVORITES_KEY ("savedRecipes").
        match_mode: "id_or_title" or "id", defaults to FAVORITES_MATCH_MODE.
    """

    def __init__(self, storage: StorageSlot, key: Optional[str] = None, match_mode: Optional[str] = None) -> None:
        match_mode = match_mode or config.FAVORITES_MATCH_MODE
        if match_mode not in MATCH_MODES:
            raise ValueError(f"match_mode must be one of {MATCH_MODES}, got: {match_mode}")
        self.storage = storage
        self.key = key or config.FAVORITES_KEY
        self.match_mode = match_mode
        self._recipes: List[Recipe] = []

    @property
    def recipes(self) -> List[Recipe]:
        return list(self._recipes)

    def __len__(self) -> int:
        return len(self._recipes)

    def _matches(self, saved: Recipe, recipe: Recipe) -> bool:
        if saved.id == recipe.id:
            return True
        return self.match_mode == "id_or_title" and saved.title == recipe.title

    def is_saved(self, recipe: Recipe) -> bool:
        return any(self._matches(saved, recipe) for saved in self._recipes)

    def load(self) -> List[Recipe]:
        """Replace the in-memory list with the slot contents.

        A missing slot, unreadable slot or malformed payload yields an empty
        store. Never raises.
        """
        try:
            raw = self.storage.get(self.key)
        except Exception as e:
            logger.warning(f"Failed to read saved recipes: {e}")
            raw = None

        if not raw:
            self._recipes = []
            return self.recipes

        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError(f"expected a list, got {type(items).__name__}")
            self._recipes = [Recipe.model_validate(item) for item in items]
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to load saved recipes: {e}")
            self._recipes = []

        logger.debug(f"Loaded {len(self._recipes)} saved recipe(s)")
        return self.recipes

    def persist(self) -> bool:
        """Write the full list to the slot.

        Returns:
            True if the write succeeded. Failures (quota, I/O) are logged as
            warnings and reported as False.
        """
        payload = json.dumps(
            [recipe.model_dump(mode="json", by_alias=True) for recipe in self._recipes],
            ensure_ascii=False,
        )
        try:
            self.storage.set(self.key, payload)
        except StorageQuotaExceeded as e:
            logger.warning(f"Storage quota exceeded, keeping {len(self._recipes)} recipe(s) in memory: {e}")
            return False
        except Exception as e:
            logger.warning(f"Storage write failed, keeping {len(self._recipes)} recipe(s) in memory: {e}")
            return False
        return True

    def toggle_save(self, recipe: Recipe) -> bool:
        """Save the recipe, or remove every matching entry if already saved.

        Returns:
            True if the recipe is saved after the call.
        """
        if self.is_saved(recipe):
            self._recipes = [saved for saved in self._recipes if not self._matches(saved, recipe)]
            saved_now = False
            logger.info(f"Removed from favorites: {recipe.title}")
        else:
            self._recipes.append(recipe.model_copy(update={"is_saved": True}))
            saved_now = True
            logger.info(f"Added to favorites: {recipe.title}")
        self.persist()
        return saved_now

    def save_all(self, recipes: Iterable[Recipe]) -> List[Recipe]:
        """Append recipes whose normalized title is not already saved.

        The incoming batch is only checked against existing entries, not
        against itself.

        Returns:
            The merged list.
        """
        existing_titles = {normalize_title(saved.title) for saved in self._recipes}
        new_only = [
            recipe.model_copy(update={"is_saved": True})
            for recipe in recipes
            if normalize_title(recipe.title) not in existing_titles
        ]
        self._recipes.extend(new_only)
        logger.info(f"Saved {len(new_only)} new recipe(s), {len(self._recipes)} total")
        self.persist()
        return self.recipes
