"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    OPENAI_API_KEY: str = ""

    # Logging
    DEBUG: bool = False
    LOG_LEVEL: str = "info"

    # External generator / classifier
    GENERATOR_MODEL: str = "gpt-4.1"
    CLASSIFIER_MODEL: str = "gpt-4.1-nano"
    GENERATOR_TEMPERATURE: float = 0.4
    CLASSIFIER_TEMPERATURE: float = 0.0
    LLM_MAX_OUTPUT_TOKENS: int = 4096
    LLM_RETRY_ATTEMPTS: int = 3

    # Repair loop
    MAX_REPAIR_ITERATIONS: int = 3

    # Unit conversion
    DRY_INGREDIENT_DENSITY: float = 0.7  # g/ml, applied to dry and unclassified volumes

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
