"""
Environment configuration for the fleet maintenance tracker.
Values come from environment variables (or a local .env file) with
type validation and sensible defaults.
"""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load environment variables from .env file if it exists
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    APP_NAME: str = Field(default="Fleet Maintenance Tracker", alias="PROJECT_NAME")
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Database (dipakai oleh aplikasi host, bukan oleh core)
    DATABASE_URL: str = "sqlite:///./fleet_tracker.db"
    DATABASE_ECHO: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    # lenient: unknown-but-well-formed task names pass with a warning
    # strict: unknown task names are rejected
    TASK_NAME_POLICY: str = "lenient"

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid LOG_LEVEL: {v}")
        return level

    @field_validator("TASK_NAME_POLICY")
    @classmethod
    def validate_task_name_policy(cls, v: str) -> str:
        policy = v.strip().lower()
        if policy not in {"lenient", "strict"}:
            raise ValueError(f"TASK_NAME_POLICY must be 'lenient' or 'strict', got {v!r}")
        return policy

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in {"development", "dev", "local"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
