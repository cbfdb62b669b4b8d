"""
Centralized configuration for the Rescan backend.

All constants are defined here to avoid scattered magic numbers
and enable easy configuration management.
"""

import os
from pathlib import Path
from typing import List, Optional


class Config:
    """Application configuration constants."""

    # === Classification ===
    DEFAULT_CONFIDENCE = 50               # Used when the vision response has no confidence
    UNCERTAIN_CONFIDENCE_THRESHOLD = 20   # Below this a scan is inconclusive
    MAX_DESCRIPTION_LENGTH = 500

    # === Points ===
    MIN_CONFIDENCE_MULTIPLIER = 0.3       # Floor on the confidence factor
    MIN_POINTS_RECOGNIZED = 1             # Any recognized material earns at least this

    # === Locations ===
    MAX_LOCATION_KEY_LENGTH = 255
    DEFAULT_HISTORY_LIMIT = 20
    MAX_HISTORY_LIMIT = 100

    # === Vision Service ===
    VISION_MAX_TOKENS = 1000
    VISION_MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # Compress to this before sending

    # === Environment ===
    @staticmethod
    def use_mocks() -> bool:
        """Check if mock mode is enabled."""
        return os.getenv("USE_MOCKS", "false").lower() == "true"

    @staticmethod
    def anthropic_api_key() -> Optional[str]:
        """Get Anthropic API key from environment."""
        return os.getenv("ANTHROPIC_API_KEY")

    @staticmethod
    def gemini_api_key() -> Optional[str]:
        """Get Google Gemini API key from environment."""
        return os.getenv("GOOGLE_API_KEY")

    @staticmethod
    def vision_provider() -> str:
        """Vision provider (claude, gemini or mock). Default: claude."""
        if Config.use_mocks():
            return "mock"
        return os.getenv("VISION_PROVIDER", "claude").lower()

    @staticmethod
    def vision_model() -> Optional[str]:
        """Override the provider's default vision model."""
        return os.getenv("VISION_MODEL") or None

    @staticmethod
    def vision_timeout() -> float:
        """Deadline in seconds for one vision call. Default: 30.0."""
        try:
            return float(os.getenv("VISION_TIMEOUT", "30.0"))
        except ValueError:
            return 30.0

    @staticmethod
    def log_level() -> str:
        """Log level (DEBUG, INFO, WARNING, ERROR)."""
        return os.getenv("LOG_LEVEL", "INFO").upper()

    @staticmethod
    def cors_origins() -> List[str]:
        """Comma-separated CORS_ORIGINS. Default: local web dev server."""
        raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    # === Database Persistence ===
    @staticmethod
    def database_path() -> str:
        """Path to SQLite database file.
        Default: backend/rescan/data/rescan.db (relative to the package).
        Override with DATABASE_PATH env var for container deployments.
        """
        default = str(Path(__file__).parent / "data" / "rescan.db")
        return os.getenv("DATABASE_PATH", default)

    @staticmethod
    def db_busy_timeout() -> float:
        """Seconds a writer waits for the SQLite lock before failing."""
        try:
            return float(os.getenv("DB_BUSY_TIMEOUT", "30.0"))
        except ValueError:
            return 30.0

    # === Security ===
    MAX_IMAGE_SIZE_MB = 10
    MAX_IMAGE_SIZE_BYTES = MAX_IMAGE_SIZE_MB * 1024 * 1024
    ALLOWED_CONTENT_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/heic",
        "image/heif",
    ]
