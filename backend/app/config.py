"""
Configuration settings for the Meal Planner API.

Loads environment variables from .env file and provides typed configuration.
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    # Security Configuration
    SECRET_KEY: str = Field(
        default="change-me-in-production-3f9a1c7e5b2d4086a1e8c3f7b9d2e4a6",
        description="Secret key for signing session tokens",
    )
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=60 * 24 * 7, description="Session token lifetime in minutes"
    )
    SESSION_COOKIE_NAME: str = Field(
        default="session", description="Name of the session cookie"
    )
    SESSION_COOKIE_SECURE: bool = Field(
        default=False, description="Send the session cookie over HTTPS only"
    )
    RATE_LIMIT_ENABLED: bool = Field(
        default=True, description="Enable rate limiting on auth endpoints"
    )
    LOGIN_RATE_LIMIT: str = Field(
        default="10/minute", description="Rate limit for login/register"
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./data/mealplanner.db", description="Database URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False, description="Echo SQL queries (for debugging)"
    )

    # LLM Configuration (Ollama)
    AI_ENABLED: bool = Field(default=True, description="Enable AI features")
    OLLAMA_HOST: str = Field(
        default="http://localhost:11434", description="Ollama server URL"
    )
    OLLAMA_TIMEOUT: int = Field(
        default=120, description="Ollama request timeout in seconds"
    )
    TEXT_MODEL: str = Field(
        default="llama3.1:8b", description="Ollama text model"
    )

    # Domain Configuration
    STAPLE_DUE_SOON_DAYS: int = Field(
        default=3, description="Staples due within this many days count as due soon"
    )
    EXPIRING_SOON_DAYS: int = Field(
        default=3, description="Dashboard window for expiring inventory"
    )
    DEFAULT_RECIPE_SERVINGS: int = Field(
        default=4, description="Servings assumed when a recipe has none"
    )
    BATCH_MAX_ITEMS: int = Field(
        default=200, description="Maximum number of items in a batch request"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    ENABLE_FILE_LOGGING: bool = Field(
        default=False, description="Enable logging to file"
    )
    LOG_DIR: str = Field(default="./logs", description="Directory for log files")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
