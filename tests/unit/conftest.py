"""Shared fixtures for unit tests: a scriptable fake gateway, storage slots and fast timings."""

import asyncio
import base64
from io import BytesIO
from typing import List, Optional

import pytest
from PIL import Image

from chefs_eye.gateway.base import GatewayError
from chefs_eye.models.models import MealPreferences, Recipe, RecipeDraft, Variation
from chefs_eye.store.storage import InMemoryStorage, StorageQuotaExceeded
from chefs_eye.workflow.scanner import ScanTimings


SCAN_IMAGE = "data:image/jpeg;base64,c2Nhbg=="


class FakeGateway:
    """In-process AIGateway with scripted responses and call recording.

    Set an attribute to an Exception instance to make that operation fail.
    `identify_gate` / `recipes_gate` hold the call open until set.
    """

    def __init__(self) -> None:
        self.labels: List[str] | Exception = ["🥬 Spinach", "🥚 Eggs"]
        self.drafts: List[RecipeDraft] | Exception = [
            RecipeDraft(title="Spinach Omelette 🍳", calories=350, protein="20g", carbs="5g", fat="25g",
                        ingredients=["🥬 Spinach", "🥚 3 eggs"], directions=["🔪 Chop", "🍳 Cook"],
                        category="🔥 Quick & Easy"),
            RecipeDraft(title="Green Shakshuka 🥘", calories=420, protein="22g", carbs="12g", fat="28g",
                        ingredients=["🥬 Spinach", "🥚 4 eggs"], directions=["🔥 Simmer"]),
        ]
        self.images: dict = {}
        self.variations: List[Variation] | Exception = [Variation(name="🌶️ Spicy", highlight="Adds chili.")]
        self.caption: str | Exception = "🍝 Pasta Night"
        self.identify_gate: Optional[asyncio.Event] = None
        self.recipes_gate: Optional[asyncio.Event] = None
        self.calls: list = []

    async def identify_ingredients(self, image: str) -> List[str]:
        self.calls.append(("identify_ingredients", image))
        if self.identify_gate is not None:
            await self.identify_gate.wait()
        if isinstance(self.labels, Exception):
            raise self.labels
        return list(self.labels)

    async def generate_recipes(self, ingredients: List[str], prefs: MealPreferences) -> List[RecipeDraft]:
        self.calls.append(("generate_recipes", list(ingredients), prefs))
        if self.recipes_gate is not None:
            await self.recipes_gate.wait()
        if isinstance(self.drafts, Exception):
            raise self.drafts
        return list(self.drafts)

    async def suggest_variations(self, title: str) -> List[Variation]:
        self.calls.append(("suggest_variations", title))
        if isinstance(self.variations, Exception):
            raise self.variations
        return list(self.variations)

    async def generate_meal_image(self, title: str, ingredients: List[str]) -> str:
        self.calls.append(("generate_meal_image", title))
        result = self.images.get(title, f"data:image/png;base64,{title.encode('utf-8').hex()}")
        if isinstance(result, Exception):
            raise result
        return result

    async def caption_post(self, image: str) -> str:
        self.calls.append(("caption_post", image))
        if isinstance(self.caption, Exception):
            raise self.caption
        return self.caption


class FailingStorage(InMemoryStorage):
    """Storage slot whose writes can be switched to fail on quota."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False
        self.writes = 0

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageQuotaExceeded("quota exceeded")
        self.writes += 1
        super().set(key, value)


def make_recipe(id: str = "7", title: str = "Tomato Soup 🍅", **kwargs) -> Recipe:
    return Recipe(id=id, title=title, **kwargs)


def make_image_bytes(fmt: str = "PNG", size=(8, 8), mode: str = "RGB") -> bytes:
    buf = BytesIO()
    Image.new(mode, size, (200, 100, 50) if mode == "RGB" else (200, 100, 50, 128)).save(buf, format=fmt)
    return buf.getvalue()


def make_data_url(fmt: str = "PNG") -> str:
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(make_image_bytes(fmt)).decode('utf-8')}"


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def storage() -> FailingStorage:
    return FailingStorage()


@pytest.fixture
def fast_timings() -> ScanTimings:
    """Near-instant pacing; status rotation disabled so it never races assertions."""
    return ScanTimings(
        reveal_interval=0.001,
        settle_delay=0.001,
        status_interval=0,
        progress_interval=0.001,
        progress_cap=95.0,
    )


@pytest.fixture
def gateway_error() -> GatewayError:
    return GatewayError("boom")
