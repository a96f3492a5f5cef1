"""Application shell.

Wires the scan workflow, the favorites store and the profile feed together
and tracks which view is showing:
- HOME: seed recipes
- SCAN: the scan workflow
- FAVORITES: saved recipes
- PROFILE: the profile feed
- RECIPE_DETAIL: overlay shown whenever a recipe is selected
"""

from typing import List, Optional

from chefs_eye.data.seed import SEED_RECIPES
from chefs_eye.gateway.base import AIGateway
from chefs_eye.models.models import Recipe, ViewType
from chefs_eye.store.favorites import FavoritesStore
from chefs_eye.store.storage import InMemoryStorage, StorageSlot
from chefs_eye.utils.logger import logger
from chefs_eye.views.profile import ProfileFeed
from chefs_eye.views.recipe_detail import RecipeDetail
from chefs_eye.workflow.scanner import ScanController, ScanTimings


class ChefApp:
    """Top-level application state.

    Args:
        gateway: AI gateway shared by the scanner, detail view and profile feed.
        storage: Persistent slot for favorites; defaults to in-memory storage.
        timings: Scan workflow pacing override.
    """

    def __init__(
        self,
        gateway: AIGateway,
        storage: Optional[StorageSlot] = None,
        timings: Optional[ScanTimings] = None,
    ) -> None:
        self.gateway = gateway
        self.store = FavoritesStore(storage if storage is not None else InMemoryStorage())
        self.store.load()
        self.view = ViewType.HOME
        self.detail: Optional[RecipeDetail] = None
        self.scanner = ScanController(
            gateway,
            on_select=self.select_recipe,
            on_save_all=self.save_all_from_scanner,
            timings=timings,
        )
        self.profile = ProfileFeed(gateway)

    @property
    def selected_recipe(self) -> Optional[Recipe]:
        return self.detail.recipe if self.detail else None

    @property
    def current_view(self) -> ViewType:
        """The view on screen; the detail overlay wins while a recipe is selected."""
        return ViewType.RECIPE_DETAIL if self.detail else self.view

    def set_view(self, view: ViewType) -> None:
        """Switch views. Clears the selected recipe; leaving SCAN abandons the scan."""
        if self.view == ViewType.SCAN and view != ViewType.SCAN:
            self.scanner.reset()
        self.view = view
        self.detail = None
        logger.debug(f"View -> {view.value}")

    def select_recipe(self, recipe: Recipe) -> RecipeDetail:
        self.detail = RecipeDetail(recipe, self.gateway, self.store)
        return self.detail

    def close_detail(self) -> None:
        self.detail = None

    def save_all_from_scanner(self, recipes: List[Recipe]) -> List[Recipe]:
        merged = self.store.save_all(recipes)
        self.set_view(ViewType.FAVORITES)
        return merged

    def home_recipes(self) -> List[Recipe]:
        return [recipe.model_copy(deep=True) for recipe in SEED_RECIPES]

    def favorites(self) -> List[Recipe]:
        return self.store.recipes

    def close(self) -> None:
        self.scanner.close()
