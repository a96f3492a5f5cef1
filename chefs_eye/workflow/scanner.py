"""Scan workflow controller.

Linear state machine driving one scan from photo to recipes:

    idle -> identifying -> detected -> preferences -> generating -> results

with reset() available from every state back to idle.

Each state owns its background tasks (staged ingredient reveal, status
phrase rotation, progress ticks). They are started on entry and cancelled
on every transition out of the state, on reset() and on close().

Gateway calls cannot be cancelled once issued. Every scan runs under an
epoch counter instead: after each await the controller checks that its
epoch is still current and drops the response otherwise. A reset() or a
newer start_scan() mid-flight therefore never sees stale data written back.

Observers registered with subscribe() receive a deep copy of the session
after every change.
"""

import asyncio
import random
import uuid
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from chefs_eye.gateway.base import AIGateway
from chefs_eye.models.models import (
    DEFAULT_CATEGORY,
    MealPreferences,
    Recipe,
    RecipeDraft,
    ScanSession,
    ScanState,
    calorie_range_for,
)
from chefs_eye.utils.config import config
from chefs_eye.utils.logger import logger


LOADING_PHRASES = (
    "Chef Gemini is sharpening the knives... 🔪",
    "Analyzing textures and flavors... 👅",
    "Whipping up something special... 🥣",
    "Plating the perfect gourmet meal... ✨",
    "Generating realistic meal previews... 🖼️",
    "Finalizing nutritional balance... ⚖️",
)

LOADING_ICONS = ("👩‍🍳", "🍳", "🍲", "🥗", "🔪", "🍕", "🍤", "🥐", "🍰")

TIME_ESTIMATES = ("20min", "45min")

# States with the rotating status phrase / icon
STATUS_STATES = (ScanState.IDENTIFYING, ScanState.DETECTED, ScanState.GENERATING)
# States with outstanding gateway work and a ticking progress bar
PROGRESS_STATES = (ScanState.IDENTIFYING, ScanState.GENERATING)

SessionListener = Callable[[ScanSession], None]


class WorkflowError(ValueError):
    """An action was requested in a state that does not offer it."""


class ScanTimings(BaseModel):
    """Workflow pacing, in seconds. A non-positive ticker interval disables that ticker."""

    model_config = ConfigDict(frozen=True)

    reveal_interval: float = 0.5
    settle_delay: float = 2.5
    status_interval: float = 3.0
    progress_interval: float = 0.15
    progress_cap: float = 95.0

    @classmethod
    def from_config(cls) -> "ScanTimings":
        return cls(
            reveal_interval=config.REVEAL_INTERVAL_MS / 1000,
            settle_delay=config.SETTLE_DELAY_MS / 1000,
            status_interval=config.STATUS_INTERVAL_MS / 1000,
            progress_interval=config.PROGRESS_INTERVAL_MS / 1000,
            progress_cap=config.PROGRESS_CAP,
        )


class ScanController:
    """Owns the transient state of one scan and drives it through the workflow.

    Args:
        gateway: AI gateway used for identification, recipes and meal photos.
        on_select: Called with the recipe chosen by select().
        on_save_all: Called with the full result list by save_all().
        timings: Pacing override; defaults to values from config.
        rng: Random source for progress ticks and recipe enrichment.
    """

    def __init__(
        self,
        gateway: AIGateway,
        on_select: Optional[Callable[[Recipe], None]] = None,
        on_save_all: Optional[Callable[[List[Recipe]], None]] = None,
        timings: Optional[ScanTimings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.gateway = gateway
        self.on_select = on_select
        self.on_save_all = on_save_all
        self.timings = timings or ScanTimings.from_config()
        self.rng = rng or random.Random()
        self.session = ScanSession()
        self._epoch = 0
        self._tasks: List[asyncio.Task] = []
        self._listeners: List[SessionListener] = []
        self._waiters: List[tuple[ScanState, asyncio.Future]] = []

    @property
    def state(self) -> ScanState:
        return self.session.state

    @property
    def status_phrase(self) -> str:
        return LOADING_PHRASES[self.session.status_index % len(LOADING_PHRASES)]

    @property
    def status_icon(self) -> str:
        return LOADING_ICONS[self.session.icon_index % len(LOADING_ICONS)]

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.session.model_copy(deep=True)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"Scan listener failed: {e}")

    async def wait_for_state(self, state: ScanState, timeout: Optional[float] = None) -> ScanSession:
        """Wait until the workflow enters `state`.

        Raises:
            asyncio.TimeoutError: If the state is not reached within timeout seconds.
        """
        if self.session.state == state:
            return self.session.model_copy(deep=True)
        future = asyncio.get_running_loop().create_future()
        entry = (state, future)
        self._waiters.append(entry)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            if entry in self._waiters:
                self._waiters.remove(entry)

    def _resolve_waiters(self) -> None:
        for state, future in list(self._waiters):
            if state == self.session.state and not future.done():
                future.set_result(self.session.model_copy(deep=True))

    # ------------------------------------------------------------------
    # State transitions and tickers
    # ------------------------------------------------------------------

    def _log_extra(self) -> dict:
        return {"scan_epoch": self._epoch, "scan_state": self.session.state.value}

    def _is_current(self, epoch: int, state: ScanState) -> bool:
        if epoch == self._epoch and self.session.state == state:
            return True
        logger.debug(f"Dropping stale response for scan #{epoch} (expected {state.value})", extra=self._log_extra())
        return False

    def _cancel_tasks(self) -> None:
        current = asyncio.current_task() if self._has_running_loop() else None
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()
        self._tasks = []

    @staticmethod
    def _has_running_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    def _spawn(self, coro) -> None:
        self._tasks.append(asyncio.create_task(coro))

    def _set_state(self, state: ScanState) -> None:
        self._cancel_tasks()
        self.session.state = state
        logger.debug(f"Scan state -> {state.value}", extra=self._log_extra())

        if state in PROGRESS_STATES:
            self.session.progress = 0.0
            if self.timings.progress_interval > 0:
                self._spawn(self._tick_progress())
        elif state in (ScanState.DETECTED, ScanState.RESULTS):
            self.session.progress = 100.0

        if state in STATUS_STATES and self.timings.status_interval > 0:
            self._spawn(self._rotate_status())

        if state == ScanState.DETECTED:
            self.session.visible = []
            self._spawn(self._reveal(self._epoch))

        self._notify()
        self._resolve_waiters()

    async def _tick_progress(self) -> None:
        cap = self.timings.progress_cap
        while True:
            await asyncio.sleep(self.timings.progress_interval)
            if self.session.progress < cap:
                self.session.progress = min(cap, self.session.progress + self.rng.random() * 4)
                self._notify()

    async def _rotate_status(self) -> None:
        while True:
            await asyncio.sleep(self.timings.status_interval)
            self.session.status_index = (self.session.status_index + 1) % len(LOADING_PHRASES)
            self.session.icon_index = (self.session.icon_index + 1) % len(LOADING_ICONS)
            self._notify()

    async def _reveal(self, epoch: int) -> None:
        """Append one detected label per interval, settle, then ask for preferences."""
        for label in list(self.session.detected):
            await asyncio.sleep(self.timings.reveal_interval)
            self.session.visible.append(label)
            self._notify()
        # one more tick passes before the settle delay starts
        await asyncio.sleep(self.timings.reveal_interval)
        await asyncio.sleep(self.timings.settle_delay)
        if self._is_current(epoch, ScanState.DETECTED):
            self._set_state(ScanState.PREFERENCES)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to idle from any state.

        Clears image, labels, revealed labels, recipes and progress and stops
        every timer. Preferences and the calorie level are kept. In-flight
        gateway responses for the abandoned scan are dropped when they arrive.
        """
        self._epoch += 1
        self._cancel_tasks()
        self.session.image = None
        self.session.detected = []
        self.session.visible = []
        self.session.recipes = []
        self.session.progress = 0.0
        self.session.state = ScanState.IDLE
        logger.debug("Scan reset", extra=self._log_extra())
        self._notify()
        self._resolve_waiters()

    def close(self) -> None:
        """Tear down: stop every timer and drop in-flight responses."""
        self._epoch += 1
        self._cancel_tasks()
        for _, future in self._waiters:
            if not future.done():
                future.cancel()
        self._waiters = []

    async def start_scan(self, image: str) -> bool:
        """Identify ingredients in a photo.

        Starting a scan abandons any scan already in progress.

        Args:
            image: Data URL (or any source the gateway accepts) of the photo.

        Returns:
            True if ingredients were detected and the reveal has started.
        """
        self._epoch += 1
        epoch = self._epoch
        self.session.image = image
        self.session.detected = []
        self.session.visible = []
        self.session.recipes = []
        self._set_state(ScanState.IDENTIFYING)
        logger.info("Scan started", extra=self._log_extra())

        try:
            labels = await self.gateway.identify_ingredients(image)
        except Exception as e:
            if epoch == self._epoch:
                logger.error(f"Ingredient identification failed: {e}", extra=self._log_extra())
                self.reset()
            return False

        if not self._is_current(epoch, ScanState.IDENTIFYING):
            return False
        if not labels:
            logger.warning("No ingredients detected", extra=self._log_extra())
            self.reset()
            return False

        self.session.detected = list(labels)
        logger.info(f"Detected {len(labels)} ingredient(s)", extra=self._log_extra())
        self._set_state(ScanState.DETECTED)
        return True

    def update_preferences(self, **fields) -> MealPreferences:
        """Update meal preferences (field names or their camelCase aliases). No gateway call."""
        merged = {**self.session.preferences.model_dump(), **fields}
        self.session.preferences = MealPreferences.model_validate(merged)
        self._notify()
        return self.session.preferences

    def set_calorie_level(self, level: int) -> str:
        """Select a point on the calorie scale. Returns the resolved range.

        Raises:
            ValueError: If level is outside the scale.
        """
        calorie_range = calorie_range_for(level)
        self.session.calorie_level = level
        self._notify()
        return calorie_range

    async def generate(self) -> List[Recipe]:
        """Generate recipes for the detected ingredients and current preferences.

        Meal photos are generated concurrently, one per draft. A failed photo
        falls back to the scan image. A failed recipe call resets the workflow.

        Returns:
            The enriched recipes, in draft order ([] if the scan was reset or abandoned).

        Raises:
            WorkflowError: If not in the preferences state.
        """
        if self.session.state != ScanState.PREFERENCES:
            raise WorkflowError(f"Cannot generate recipes in state '{self.session.state.value}'")

        epoch = self._epoch
        prefs = self.session.preferences.model_copy(
            update={"calorie_range": calorie_range_for(self.session.calorie_level)}
        )
        ingredients = list(self.session.detected)
        fallback_image = self.session.image or ""
        self._set_state(ScanState.GENERATING)

        try:
            drafts = await self.gateway.generate_recipes(ingredients, prefs)
        except Exception as e:
            if epoch == self._epoch:
                logger.error(f"Recipe generation failed: {e}", extra=self._log_extra())
                self.reset()
            return []

        if not self._is_current(epoch, ScanState.GENERATING):
            return []

        photos = await asyncio.gather(
            *(self.gateway.generate_meal_image(draft.title, draft.ingredients) for draft in drafts),
            return_exceptions=True,
        )

        if not self._is_current(epoch, ScanState.GENERATING):
            return []

        recipes = []
        for draft, photo in zip(drafts, photos):
            if isinstance(photo, BaseException):
                logger.warning(f"Meal image generation failed for {draft.title}: {photo}", extra=self._log_extra())
                photo = fallback_image
            try:
                recipes.append(self._enrich(draft, photo))
            except ValidationError as e:
                logger.warning(f"Skipping recipe {draft.title!r}: {e.error_count()} validation error(s)", extra=self._log_extra())

        self.session.recipes = recipes
        logger.info(f"Generated {len(recipes)} recipe(s)", extra=self._log_extra())
        self._set_state(ScanState.RESULTS)
        return list(recipes)

    def _enrich(self, draft: RecipeDraft, image: str) -> Recipe:
        return Recipe(
            id=uuid.uuid4().hex,
            title=draft.title,
            image=image,
            time=self.rng.choice(TIME_ESTIMATES),
            calories=draft.calories,
            fat=draft.fat,
            carbs=draft.carbs,
            protein=draft.protein,
            rating=4.5 + self.rng.random() * 0.5,
            reviews=self.rng.randrange(100),
            ingredients=list(draft.ingredients),
            directions=list(draft.directions),
            category=draft.category or DEFAULT_CATEGORY,
            is_saved=False,
        )

    def select(self, index: int) -> Recipe:
        """Hand one result to the caller (and on_select, if set).

        Raises:
            WorkflowError: If not in the results state.
            IndexError: If index is out of range.
        """
        if self.session.state != ScanState.RESULTS:
            raise WorkflowError(f"Cannot select a recipe in state '{self.session.state.value}'")
        if not 0 <= index < len(self.session.recipes):
            raise IndexError(f"Recipe index {index} out of range ({len(self.session.recipes)} result(s))")
        recipe = self.session.recipes[index]
        if self.on_select:
            self.on_select(recipe)
        return recipe

    def save_all(self) -> List[Recipe]:
        """Hand every result to on_save_all.

        Raises:
            WorkflowError: If not in the results state.
        """
        if self.session.state != ScanState.RESULTS:
            raise WorkflowError(f"Cannot save recipes in state '{self.session.state.value}'")
        recipes = list(self.session.recipes)
        if self.on_save_all:
            self.on_save_all(recipes)
        return recipes
