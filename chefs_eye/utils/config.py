"""Configuration management for Chef's Eye.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API key: only required when the real gateway is constructed
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Text/vision model used for ingredient detection, recipes, variations and captions
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
        # Image generation model used for meal photos
        self.IMAGE_MODEL: str = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")
        # Maximum image size (in MB) that can be sent for detection. Default: 5 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        # Image Compression: Enable/disable compression of scan photos before upload
        self.COMPRESS_IMG: bool = _env_bool("COMPRESS_IMG", "true")
        # Only compress if the image is at least this big (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))
        # Retry policy for transient gateway failures (exponential backoff)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        self.DELAY_BETWEEN_RETRIES: int = int(os.getenv("DELAY_BETWEEN_RETRIES", "1"))
        # Number of recipe drafts requested per scan
        self.RECIPE_COUNT: int = int(os.getenv("RECIPE_COUNT", "3"))

        # Scan workflow pacing (milliseconds)
        self.REVEAL_INTERVAL_MS: int = int(os.getenv("REVEAL_INTERVAL_MS", "500"))
        self.SETTLE_DELAY_MS: int = int(os.getenv("SETTLE_DELAY_MS", "2500"))
        self.STATUS_INTERVAL_MS: int = int(os.getenv("STATUS_INTERVAL_MS", "3000"))
        self.PROGRESS_INTERVAL_MS: int = int(os.getenv("PROGRESS_INTERVAL_MS", "150"))
        self.PROGRESS_CAP: float = float(os.getenv("PROGRESS_CAP", "95"))

        # Favorites persistence
        self.STORAGE_DIR: str = os.getenv("STORAGE_DIR", "tmp/storage")
        # Quota for the persistent slot, mirrors browser localStorage limits. 0 disables the check.
        self.STORAGE_QUOTA_KB: int = int(os.getenv("STORAGE_QUOTA_KB", "5120"))
        self.FAVORITES_KEY: str = os.getenv("FAVORITES_KEY", "savedRecipes")
        # "id_or_title": either field identifies a saved recipe; "id": only the id does
        self.FAVORITES_MATCH_MODE: str = os.getenv("FAVORITES_MATCH_MODE", "id_or_title")

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any value is out of range or not one of the allowed choices.
        """
        if self.MAX_IMAGE_SIZE_MB < 1:
            raise ValueError(f"MAX_IMAGE_SIZE_MB must be at least 1, got: {self.MAX_IMAGE_SIZE_MB}")
        if self.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}")
        if self.DELAY_BETWEEN_RETRIES < 0:
            raise ValueError(
                f"DELAY_BETWEEN_RETRIES must not be negative, got: {self.DELAY_BETWEEN_RETRIES}"
            )
        if self.RECIPE_COUNT < 1:
            raise ValueError(f"RECIPE_COUNT must be at least 1, got: {self.RECIPE_COUNT}")
        for name in ("REVEAL_INTERVAL_MS", "SETTLE_DELAY_MS", "STATUS_INTERVAL_MS", "PROGRESS_INTERVAL_MS"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got: {getattr(self, name)}")
        if not (0.0 < self.PROGRESS_CAP <= 100.0):
            raise ValueError(f"PROGRESS_CAP must be between 0 and 100, got: {self.PROGRESS_CAP}")
        if self.STORAGE_QUOTA_KB < 0:
            raise ValueError(f"STORAGE_QUOTA_KB must not be negative, got: {self.STORAGE_QUOTA_KB}")
        if self.FAVORITES_MATCH_MODE not in ("id_or_title", "id"):
            raise ValueError(
                f"FAVORITES_MATCH_MODE must be 'id_or_title' or 'id', got: {self.FAVORITES_MATCH_MODE}"
            )

    def require_api_key(self) -> str:
        """Return the Gemini API key.

        Raises:
            ValueError: If GEMINI_API_KEY is not set.
        """
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable is required")
        return self.GEMINI_API_KEY


# Create module-level config instance and validate immediately
config = Config()
config.validate()
