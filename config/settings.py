import os
from functools import lru_cache
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables with defaults.

    Settings are read once when the instance is constructed and then passed
    explicitly to every component that needs them. Keyword arguments override
    the environment, which is how tests build isolated configurations:

        Settings(DATABASE_URL="sqlite:///tmp.db", GEMINI_API_KEY="")
    """

    # Project metadata
    PROJECT_NAME = "Price Comparison Tracker"
    PROJECT_VERSION = "0.1.0"

    def __init__(self, **overrides):
        # Database Settings
        self.DB_HOST = os.getenv("DB_HOST", "localhost")
        self.DB_PORT = os.getenv("DB_PORT", "3306")
        self.DB_NAME = os.getenv("DB_NAME", "price_compare")
        self.DB_USER = os.getenv("DB_USER", "user")
        self.DB_PASS = os.getenv("DB_PASSWORD", "password")
        self.DATABASE_URL_OVERRIDE: Optional[str] = os.getenv("DATABASE_URL")

        # Gemini
        self.GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
        self.GEMINI_API_URL = os.getenv(
            "GEMINI_API_URL",
            "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent",
        )
        self.AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))
        self.AI_MAX_ATTEMPTS = int(os.getenv("AI_MAX_ATTEMPTS", "2"))
        self.AI_RETRY_DELAY_SECONDS = float(os.getenv("AI_RETRY_DELAY_SECONDS", "2"))

        # Provider chain
        self.USE_GEMINI = _env_bool("USE_GEMINI", True)
        self.USE_SYNTHETIC_FALLBACK = _env_bool("USE_SYNTHETIC_FALLBACK", True)
        self.SCRAPE_ENGINES = os.getenv("SCRAPE_ENGINES", "http,browser")
        self.SCRAPE_DELAY_SECONDS = float(os.getenv("SCRAPE_DELAY_SECONDS", "3"))

        # Refresh scheduler
        self.AUTO_REFRESH_ENABLED = _env_bool("AUTO_REFRESH_ENABLED", False)
        self.AUTO_REFRESH_INTERVAL_MINUTES = int(
            os.getenv("AUTO_REFRESH_INTERVAL_MINUTES", "60")
        )
        self.REFRESH_PRODUCT_DELAY_SECONDS = float(
            os.getenv("REFRESH_PRODUCT_DELAY_SECONDS", "2")
        )
        self.REFRESH_STOP_GRACE_SECONDS = float(
            os.getenv("REFRESH_STOP_GRACE_SECONDS", "5")
        )
        self.HISTORY_RETENTION_DAYS = int(os.getenv("HISTORY_RETENTION_DAYS", "365"))

        # Presentation
        self.APP_THEME = os.getenv("APP_THEME", "dark")

        for key, value in overrides.items():
            if key == "DATABASE_URL":
                key = "DATABASE_URL_OVERRIDE"
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def DATABASE_URL(self) -> str:
        """Constructs a SQLAlchemy connection string, MySQL unless overridden."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def gemini_configured(self) -> bool:
        """False for a missing key or the placeholder shipped in sample configs."""
        key = (self.GEMINI_API_KEY or "").strip()
        return bool(key) and "YOUR" not in key

    @property
    def scrape_engines(self) -> List[str]:
        return [e.strip().lower() for e in self.SCRAPE_ENGINES.split(",") if e.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return the settings read from the environment at startup."""
    return Settings()
