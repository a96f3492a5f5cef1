"""Gemini-backed AI gateway.

Implements the AIGateway operations on top of the google-genai SDK:
- identify_ingredients(): vision call returning a comma-separated, emoji-prefixed list
- generate_recipes(): JSON-schema constrained generation of recipe drafts
- suggest_variations(): JSON-schema constrained list of (name, highlight) pairs
- generate_meal_image(): image model call returning a data URL
- caption_post(): short catchy title for a profile post photo

The SDK client is synchronous; calls run in a worker thread via
asyncio.to_thread so the event loop (timers, other requests) keeps going.
Transient failures (timeouts, connection resets, 429/5xx) are retried with
exponential backoff. Everything else is raised immediately as GatewayError.
"""

import asyncio
import base64
import json
import re
from typing import Any, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from chefs_eye.gateway.base import GatewayError
from chefs_eye.gateway.images import prepare_image, safe_execute_sync
from chefs_eye.models.models import MealPreferences, RecipeDraft, Variation
from chefs_eye.prompts.prompts import (
    IDENTIFY_INGREDIENTS_PROMPT,
    POST_CAPTION_PROMPT,
    get_meal_image_prompt,
    get_recipe_prompt,
    get_variations_prompt,
)
from chefs_eye.utils.config import config
from chefs_eye.utils.logger import logger


DEFAULT_CAPTION = "🥘 Delicious Creation"

TRANSIENT_ERROR_KEYWORDS = ("timeout", "timed out", "connection", "429", "500", "502", "503", "504", "unavailable", "retryable")

RECIPE_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "title": types.Schema(type=types.Type.STRING),
            "calories": types.Schema(type=types.Type.NUMBER),
            "protein": types.Schema(type=types.Type.STRING),
            "carbs": types.Schema(type=types.Type.STRING),
            "fat": types.Schema(type=types.Type.STRING),
            "ingredients": types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)),
            "directions": types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)),
            "category": types.Schema(type=types.Type.STRING),
        },
        required=["title", "calories", "protein", "carbs", "fat", "ingredients", "directions", "category"],
    ),
)

VARIATION_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "variationName": types.Schema(type=types.Type.STRING),
            "highlight": types.Schema(type=types.Type.STRING),
        },
        required=["variationName", "highlight"],
    ),
)


# ============================================================================
# Response Parsing
# ============================================================================


def clean_json_response(text: str) -> str:
    """Strip markdown code fences that models sometimes wrap around JSON."""
    return text.replace("```json", "").replace("```", "").strip()


def parse_ingredient_list(text: Optional[str]) -> list[str]:
    """Split a comma-separated label list into trimmed, non-empty labels."""
    if not text:
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def parse_json_array(text: Optional[str]) -> list[Any]:
    """Leniently parse a JSON array from model output.

    Tries the cleaned text first, then the first [...] block found in it.
    Returns [] if neither yields a list.
    """
    cleaned = clean_json_response(text or "")
    if not cleaned:
        return []

    def _parse_regex():
        match = re.search(r"\[.*\]", cleaned, re.DOTALL)
        return json.loads(match.group()) if match else None

    parsed = safe_execute_sync(lambda: json.loads(cleaned), "Direct JSON parse", log_level="debug")
    if not isinstance(parsed, list):
        parsed = safe_execute_sync(_parse_regex, "Regex JSON extraction", log_level="debug")

    if not isinstance(parsed, list):
        logger.warning("Failed to parse JSON array from Gemini response")
        return []
    return parsed


def parse_recipe_drafts(text: Optional[str]) -> list[RecipeDraft]:
    """Parse and validate recipe drafts, skipping items that fail validation."""
    drafts = []
    for idx, item in enumerate(parse_json_array(text)):
        try:
            drafts.append(RecipeDraft.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed recipe draft #{idx + 1}: {e.error_count()} validation error(s)")
    return drafts


def parse_variations(text: Optional[str]) -> list[Variation]:
    variations = []
    for item in parse_json_array(text):
        try:
            variations.append(Variation.model_validate(item))
        except ValidationError:
            logger.debug(f"Skipping malformed variation: {item!r}")
    return variations


def extract_image_data_url(response) -> str:
    """Return the first inline image of a generate_content response as a data URL.

    Raises:
        GatewayError: If the response carries no inline image.
    """
    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is None or not inline.data:
                continue
            data = inline.data
            if isinstance(data, bytes):
                data = base64.b64encode(data).decode("utf-8")
            mime_type = inline.mime_type or "image/png"
            return f"data:{mime_type};base64,{data}"
    raise GatewayError("No image generated")


def is_transient_error(error: Exception) -> bool:
    """Heuristic: network/timeout/rate-limit/server errors are worth retrying."""
    if isinstance(error, (asyncio.TimeoutError, ConnectionError)):
        return True
    error_str = str(error).lower()
    return any(keyword in error_str for keyword in TRANSIENT_ERROR_KEYWORDS)


# ============================================================================
# Gateway
# ============================================================================


class GeminiGateway:
    """AIGateway implementation backed by Gemini.

    Args:
        client: Optional pre-built genai.Client (tests inject a mock).
        api_key: Gemini API key; defaults to GEMINI_API_KEY from config.
        model: Text/vision model id; defaults to GEMINI_MODEL.
        image_model: Image generation model id; defaults to IMAGE_MODEL.
        max_retries: Attempts for transient failures; defaults to MAX_RETRIES.
        retry_delay: Initial backoff in seconds (doubled per retry); defaults to DELAY_BETWEEN_RETRIES.
        recipe_count: Recipes requested per generation; defaults to RECIPE_COUNT.

    Raises:
        ValueError: If no client is given and GEMINI_API_KEY is missing.
    """

    def __init__(
        self,
        client: Optional[genai.Client] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        image_model: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        recipe_count: Optional[int] = None,
    ) -> None:
        if client is None:
            client = genai.Client(api_key=api_key or config.require_api_key())
        self.client = client
        self.model = model or config.GEMINI_MODEL
        self.image_model = image_model or config.IMAGE_MODEL
        self.max_retries = max_retries or config.MAX_RETRIES
        self.retry_delay = config.DELAY_BETWEEN_RETRIES if retry_delay is None else retry_delay
        self.recipe_count = recipe_count or config.RECIPE_COUNT

    async def _generate(self, operation_name: str, **kwargs):
        """Run client.models.generate_content in a thread with retry on transient errors."""
        delay = self.retry_delay
        for attempt in range(1, self.max_retries + 1):
            try:
                return await asyncio.to_thread(self.client.models.generate_content, **kwargs)
            except Exception as e:
                if is_transient_error(e) and attempt < self.max_retries:
                    logger.debug(
                        f"{operation_name}: transient error, retrying (attempt {attempt + 1}/{self.max_retries}) "
                        f"after {delay}s: {e}"
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue
                logger.warning(f"{operation_name} failed after {attempt} attempt(s): {e}")
                raise GatewayError(f"{operation_name} failed: {e}") from e
        # max_retries >= 1, the loop always returns or raises
        raise GatewayError(f"{operation_name} failed")

    async def identify_ingredients(self, image: str) -> list[str]:
        """Identify food ingredients in a scan photo.

        Args:
            image: Data URL, plain base64, URL or file path of a JPEG/PNG photo.

        Returns:
            Ordered emoji-prefixed labels, e.g. ["🥬 Spinach", "🥚 Eggs"]. May be empty.

        Raises:
            GatewayError: If the image is unusable or the API call fails.
        """
        try:
            image_bytes, mime_type = await prepare_image(image)
        except ValueError as e:
            raise GatewayError(str(e)) from e

        response = await self._generate(
            "Identify ingredients",
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                IDENTIFY_INGREDIENTS_PROMPT,
            ],
        )
        labels = parse_ingredient_list(response.text)
        logger.info(f"Identified {len(labels)} ingredient(s)")
        return labels

    async def generate_recipes(self, ingredients: list[str], prefs: MealPreferences) -> list[RecipeDraft]:
        """Generate recipe drafts for the detected ingredients and preferences.

        Raises:
            GatewayError: If the API call fails. A malformed payload returns [] instead.
        """
        response = await self._generate(
            "Generate recipes",
            model=self.model,
            contents=get_recipe_prompt(ingredients, prefs, count=self.recipe_count),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=RECIPE_SCHEMA,
            ),
        )
        drafts = parse_recipe_drafts(response.text)
        logger.info(f"Generated {len(drafts)} recipe draft(s)")
        return drafts

    async def suggest_variations(self, title: str) -> list[Variation]:
        response = await self._generate(
            "Suggest variations",
            model=self.model,
            contents=get_variations_prompt(title),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_schema=VARIATION_SCHEMA,
            ),
        )
        return parse_variations(response.text)

    async def generate_meal_image(self, title: str, ingredients: list[str]) -> str:
        """Generate a square photo of the finished dish.

        Raises:
            GatewayError: If the call fails or the response holds no image.
        """
        response = await self._generate(
            f"Generate meal image for {title!r}",
            model=self.image_model,
            contents=get_meal_image_prompt(title, ingredients),
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE"],
                image_config=types.ImageConfig(aspect_ratio="1:1"),
            ),
        )
        return extract_image_data_url(response)

    async def caption_post(self, image: str) -> str:
        try:
            image_bytes, mime_type = await prepare_image(image)
        except ValueError as e:
            raise GatewayError(str(e)) from e

        response = await self._generate(
            "Caption post",
            model=self.model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                POST_CAPTION_PROMPT,
            ],
        )
        return (response.text or "").strip() or DEFAULT_CAPTION


def create_gateway(**kwargs) -> GeminiGateway:
    """Build the default gateway from configuration."""
    return GeminiGateway(**kwargs)
