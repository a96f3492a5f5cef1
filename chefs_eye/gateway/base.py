"""AI gateway contract shared by the workflow, the views and the Gemini adapter."""

from typing import Protocol

from chefs_eye.models.models import MealPreferences, RecipeDraft, Variation


class GatewayError(Exception):
    """An AI gateway call failed. The original exception is chained."""


class AIGateway(Protocol):
    """Request/response operations offered by the generative AI provider."""

    async def identify_ingredients(self, image: str) -> list[str]:
        """Return emoji-prefixed ingredient labels found in the image, in order."""
        ...

    async def generate_recipes(self, ingredients: list[str], prefs: MealPreferences) -> list[RecipeDraft]:
        """Return recipe drafts; an unparseable payload yields []."""
        ...

    async def suggest_variations(self, title: str) -> list[Variation]:
        ...

    async def generate_meal_image(self, title: str, ingredients: list[str]) -> str:
        """Return a data URL of a generated photo of the finished dish."""
        ...

    async def caption_post(self, image: str) -> str:
        ...
