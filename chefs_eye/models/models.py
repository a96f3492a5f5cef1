"""Data models for Chef's Eye.

Defines Pydantic models for recipes, scan sessions, preferences and the
profile feed. Field aliases keep the camelCase names used by the stored
`savedRecipes` payload, so saved favorites remain readable across versions.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MEAL_TYPES = ("Breakfast", "Lunch", "Dinner", "Snack")
DIETS = ("Everything", "Vegetarian", "Vegan", "Keto", "Paleo")
DIFFICULTIES = ("Simple", "Intermediate", "Chef")

# Ordinal calorie scale: level -> descriptive range sent to the gateway
CALORIE_RANGES = ("< 400", "400-700", "700 +")
DEFAULT_CALORIE_LEVEL = 1

DEFAULT_CATEGORY = "AI Select"


def normalize_title(title: str) -> str:
    """Case-insensitive comparison key for recipe titles."""
    return title.strip().lower()


def calorie_range_for(level: int) -> str:
    """Resolve an ordinal calorie level (0, 1, 2) into its descriptive range.

    Raises:
        ValueError: If level is outside the scale.
    """
    if not 0 <= level < len(CALORIE_RANGES):
        raise ValueError(f"Calorie level must be between 0 and {len(CALORIE_RANGES) - 1}, got: {level}")
    return CALORIE_RANGES[level]


class Recipe(BaseModel):
    """A displayable recipe, either from the seed set or enriched from gateway output.

    `is_saved` is a display flag only. Membership in the favorites store is
    the authoritative saved state.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Annotated[str, Field(description="Opaque recipe identifier")]
    title: Annotated[str, Field(description="Recipe title")]
    image: Annotated[str, Field(description="Image URL or data URL")] = ""
    time: Annotated[str, Field(description="Coarse time estimate, e.g. '45min'")] = ""
    calories: Annotated[float, Field(ge=0, description="Calories per serving")] = 0
    fat: str = ""
    carbs: str = ""
    protein: str = ""
    rating: Annotated[float, Field(ge=0.0, le=5.0)] = 0.0
    reviews: Annotated[int, Field(ge=0)] = 0
    ingredients: List[str] = Field(default_factory=list)
    directions: List[str] = Field(default_factory=list)
    category: str = DEFAULT_CATEGORY
    is_saved: Annotated[bool, Field(alias="isSaved")] = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """Accept numeric ids from older payloads."""
        if isinstance(v, (int, float)):
            return str(v)
        return v


class RecipeDraft(BaseModel):
    """Gateway-produced recipe before photo enrichment and id assignment."""

    title: str
    calories: Annotated[float, Field(ge=0)] = 0
    protein: str = ""
    carbs: str = ""
    fat: str = ""
    ingredients: List[str] = Field(default_factory=list)
    directions: List[str] = Field(default_factory=list)
    category: Optional[str] = None

    @field_validator("protein", "carbs", "fat", mode="before")
    @classmethod
    def coerce_macro(cls, v):
        """Models sometimes return macros as numbers."""
        if isinstance(v, (int, float)):
            return f"{v:g}g"
        return v


class Variation(BaseModel):
    """A suggested twist on an existing recipe."""

    model_config = ConfigDict(populate_by_name=True)

    name: Annotated[str, Field(alias="variationName")]
    highlight: str


class MealPreferences(BaseModel):
    """User choices collected before recipe generation.

    Any string is structurally valid; the choice sets above are what the UI offers.
    """

    model_config = ConfigDict(populate_by_name=True)

    meal_type: Annotated[str, Field(alias="mealType")] = "Lunch"
    diet: str = "Everything"
    difficulty: str = "Simple"
    calorie_range: Annotated[str, Field(alias="calorieRange")] = CALORIE_RANGES[DEFAULT_CALORIE_LEVEL]


class ScanState(str, Enum):
    """Scan workflow states, in order."""

    IDLE = "idle"
    IDENTIFYING = "identifying"
    DETECTED = "detected"
    PREFERENCES = "preferences"
    GENERATING = "generating"
    RESULTS = "results"


class ScanSession(BaseModel):
    """Transient state of one pass through the scan workflow. Never persisted."""

    state: ScanState = ScanState.IDLE
    image: Optional[str] = None
    detected: List[str] = Field(default_factory=list)
    visible: List[str] = Field(default_factory=list)
    recipes: List[Recipe] = Field(default_factory=list)
    preferences: MealPreferences = Field(default_factory=MealPreferences)
    calorie_level: int = DEFAULT_CALORIE_LEVEL
    progress: float = 0.0
    status_index: int = 0
    icon_index: int = 0


class ViewType(str, Enum):
    """Top-level application views."""

    HOME = "HOME"
    SCAN = "SCAN"
    FAVORITES = "FAVORITES"
    PROFILE = "PROFILE"
    RECIPE_DETAIL = "RECIPE_DETAIL"


class UserPost(BaseModel):
    """A post in the profile feed."""

    id: str
    image: str
    title: str
    likes: int = 0
    comments: int = 0


class UserProfile(BaseModel):
    """The user's social profile."""

    name: str
    level: int = 1
    points: int = 0
    avatar: str = ""
    posts: List[UserPost] = Field(default_factory=list)
