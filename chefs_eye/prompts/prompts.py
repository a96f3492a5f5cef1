"""Prompts for the Gemini gateway.

Each factory renders the instruction text for one gateway operation. Emoji
rules are part of the contract: the UI shows ingredient labels, steps, titles
and categories verbatim, and relies on the leading/trailing emoji for its look.
"""

from chefs_eye.models.models import MealPreferences


IDENTIFY_INGREDIENTS_PROMPT = (
    "Analyze this image and identify all food ingredients. Return a comma-separated list. "
    "MANDATORY: Prefix EVERY single item with a unique relevant emoji "
    "(e.g. '🥬 Spinach, 🥚 Eggs, 🥓 Bacon'). Return ONLY the list."
)

POST_CAPTION_PROMPT = (
    "What is this dish? Give it a short, catchy, trending title. "
    "MANDATORY: Start with an emoji. Max 5 words."
)


def get_recipe_prompt(ingredients: list[str], prefs: MealPreferences, count: int = 3) -> str:
    """Build the recipe generation prompt.

    Args:
        ingredients: Detected ingredient labels, in detection order.
        prefs: Preferences snapshot with the calorie range already resolved.
        count: Number of recipes to request.

    Returns:
        str: Prompt text for a JSON-schema constrained generation call.
    """
    return f"""Based on: {', '.join(ingredients)}. Generate {count} {prefs.meal_type} recipes ({prefs.diet}, {prefs.difficulty}).
Target calories: {prefs.calorie_range}.
MANDATORY RULES:
1. EVERY ingredient in the array MUST have an emoji (e.g., '🍅 1 cup tomato sauce').
2. EVERY direction step MUST start with a relevant action emoji (e.g., '🔪 Chop the onions').
3. The title MUST include an emoji at the end (e.g., 'Spicy Tuna Roll 🍣').
4. The category MUST have an emoji (e.g., '🔥 Quick & Easy').
Include: title, calories (number), protein, carbs, fat, ingredients (array), directions (array), and category."""


def get_variations_prompt(title: str, count: int = 3) -> str:
    return (
        f'Suggest {count} creative variations for "{title}". '
        "MANDATORY: Prefix variation names with an emoji. Highlight must be one sentence."
    )


def get_meal_image_prompt(title: str, ingredients: list[str]) -> str:
    """Build the meal photo prompt.

    The photo must show the finished, plated dish. Raw ingredients and
    packaging are excluded because scan photos usually contain exactly those.
    Ingredients are only used as a light hint for plating.
    """
    hint = f" Key components: {', '.join(ingredients[:5])}." if ingredients else ""
    return (
        f"High-end professional food photography of the FINISHED, plated gourmet meal: {title}.{hint} "
        "The dish is ready to be served, presented elegantly on a clean restaurant table. "
        "ABSOLUTELY NO raw ingredients, NO tin cans, NO open food packaging, NO supermarket plastic, "
        "and NO raw meat or raw fish should be visible. Focus solely on the appetizing, fully cooked result. "
        "8k resolution, cinematic soft lighting, shallow depth of field."
    )
