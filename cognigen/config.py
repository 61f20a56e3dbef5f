"""Configuration management for the assessment orchestrator."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # LLM API Keys
    google_api_key: Optional[str] = None

    # Question Generation Settings
    google_model: str = "gemini-2.5-flash"
    generation_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    generation_max_tokens: int = Field(default=8192, gt=0)
    analysis_max_tokens: int = Field(default=4096, gt=0)
    analysis_temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    request_timeout_seconds: float = Field(default=120.0, gt=0.0)
    analysis_timeout_seconds: float = Field(default=60.0, gt=0.0)

    # Assessment Settings
    questions_per_category: int = Field(default=40, gt=0)
    time_limit_seconds: int = Field(default=5, gt=0)  # Same limit for every category
    tick_interval_seconds: float = Field(default=1.0, gt=0.0)
    timeout_flash_ms: int = Field(default=600, ge=0)
    audio_enabled: bool = True

    # History Settings
    history_file: str = "./data/gia_history.json"
    analysis_summary_length: int = Field(default=100, gt=0)


# Global settings instance
settings = Settings()
