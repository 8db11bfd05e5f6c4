"""
Centralized configuration for the cMindX agent service
All environment variables and settings are defined here
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Provides centralized configuration with validation and defaults.
    """

    # ======================
    # Service Configuration
    # ======================
    PROJECT_NAME: str = Field(default="cMindX Agent Service", description="API title")
    VERSION: str = Field(default="1.0.0", description="API version")
    PRODUCT_NAME: str = Field(
        default="cMindX",
        description="Product name used in prompts and fallback copy"
    )

    # ======================
    # AI Configuration
    # ======================
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic API key")
    ANTHROPIC_MODEL: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used for copy generation"
    )
    MAX_TOKENS: int = Field(default=2000, description="Max tokens for Claude response")
    AI_TIMEOUT: float = Field(
        default=60.0,
        description="Timeout in seconds for a single generation call"
    )
    AI_MAX_RETRIES: int = Field(
        default=3,
        description="Attempts for transient AI failures (connection, rate limit)"
    )

    # ======================
    # Redis Configuration
    # ======================
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    REDIS_KEY_PREFIX: str = Field(
        default="cmindx",
        description="Namespace for all document keys"
    )
    REDIS_MAX_CONNECTIONS: int = Field(default=20, description="Connection pool size")

    # ======================
    # Analytics Configuration
    # ======================
    EVENT_WINDOW_LIMIT: int = Field(
        default=500,
        description="Number of most recent events read for every aggregation"
    )
    DASHBOARD_DISPLAY_LIMIT: int = Field(
        default=200,
        description="Events shown in the recent-events view"
    )
    DASHBOARD_PAGE_SIZE: int = Field(default=50, description="Recent-events page size")
    SCORE_CLICK_WEIGHT: float = Field(
        default=2.0,
        description="Weight W in score = avgScroll + W * clicks"
    )

    # ======================
    # Logging Configuration
    # ======================
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Logging format string"
    )

    # ======================
    # CORS Configuration
    # ======================
    CORS_ORIGINS: List[str] = Field(default=["*"], description="Allowed origins")

    @property
    def ai_configured(self) -> bool:
        """True when an Anthropic key is present"""
        return bool(self.ANTHROPIC_API_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Allow extra env vars in .env file


# Global settings instance
settings = Settings()


# ======================
# Convenience Functions
# ======================

def get_settings() -> Settings:
    """Get the global settings instance"""
    return settings


