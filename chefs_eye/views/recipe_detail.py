"""Recipe detail overlay: variations, magic photo, ingredient checklist, save toggle."""

from typing import List, Set

from chefs_eye.gateway.base import AIGateway
from chefs_eye.gateway.images import safe_execute_async
from chefs_eye.models.models import Recipe, Variation
from chefs_eye.store.favorites import FavoritesStore
from chefs_eye.utils.logger import logger


class RecipeDetail:
    """State behind the detail view of a single recipe.

    The recipe itself is never mutated. A regenerated photo only replaces
    `current_image`, and saving stores the recipe as it was selected.
    """

    def __init__(self, recipe: Recipe, gateway: AIGateway, store: FavoritesStore) -> None:
        self.recipe = recipe
        self.gateway = gateway
        self.store = store
        self.current_image = recipe.image
        self.variations: List[Variation] = []
        self.checked_ingredients: Set[int] = set()

    @property
    def is_saved(self) -> bool:
        return self.store.is_saved(self.recipe)

    async def load_variations(self) -> List[Variation]:
        """Fetch variation ideas. Any failure yields []."""
        self.variations = await safe_execute_async(
            self.gateway.suggest_variations(self.recipe.title),
            f"Suggest variations for {self.recipe.title}",
            log_level="error",
            default_return=[],
        )
        return self.variations

    async def regenerate_photo(self) -> str:
        """Replace the displayed photo with a freshly generated one.

        Returns:
            The image now displayed (the previous one if generation failed).
        """
        new_image = await safe_execute_async(
            self.gateway.generate_meal_image(self.recipe.title, self.recipe.ingredients),
            "Image gen failed",
            log_level="error",
        )
        if new_image:
            self.current_image = new_image
            logger.info(f"Regenerated photo for {self.recipe.title}")
        return self.current_image

    def toggle_ingredient(self, index: int) -> bool:
        """Check or uncheck an ingredient. Returns True if it is now checked.

        Raises:
            IndexError: If index is not an ingredient position.
        """
        if not 0 <= index < len(self.recipe.ingredients):
            raise IndexError(f"Ingredient index out of range: {index}")
        if index in self.checked_ingredients:
            self.checked_ingredients.remove(index)
            return False
        self.checked_ingredients.add(index)
        return True

    def toggle_save(self) -> bool:
        return self.store.toggle_save(self.recipe)
