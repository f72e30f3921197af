"""
Configuration management for KiaOra Oracle backend.
Handles environment variables and application settings.
"""

from functools import lru_cache
from typing import List
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


LEDGER_BACKENDS = ("memory", "file", "sqlite", "supabase")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )

    # Application Configuration
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:3001",
        validation_alias="CORS_ORIGINS",
        exclude=True  # Don't include in model output
    )

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "")

    # OpenAI/OpenRouter Configuration
    # If using OpenRouter, set USE_OPENROUTER=true and provide OPENROUTER_API_KEY
    # If using OpenAI directly, provide OPENAI_API_KEY
    openai_api_key: str = ""
    openrouter_api_key: str = ""
    use_openrouter: bool = False
    # Set to false to save costs: readings come from the offline template
    use_openai_api: bool = False
    oracle_model: str = "gpt-4o"
    oracle_temperature: float = 0.7
    oracle_max_tokens: int = 200
    generation_timeout_seconds: float = 30.0
    fallback_reading: str = "The oracle is silent at this moment. Please try again later."

    @property
    def oracle_chat_model(self) -> str:
        """Get chat model name based on provider."""
        if self.use_openrouter and "/" not in self.oracle_model:
            return f"openai/{self.oracle_model}"
        return self.oracle_model

    # Ledger Configuration
    ledger_backend: str = "sqlite"
    ledger_file_path: str = "consultations.csv"
    ledger_sqlite_path: str = "consultations.sqlite3"
    ledger_table: str = "consultations"

    # Supabase Configuration (only needed when LEDGER_BACKEND=supabase)
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Calendar day boundaries for the once-per-day rule
    consultation_timezone: str = "UTC"

    # Email (Resend)
    resend_api_key: str = ""
    sender_email: str = "onboarding@resend.dev"
    sender_name: str = "KiaOra Oracle"
    # In development every email is redirected here
    developer_email: str = "dev@example.com"
    email_timeout_seconds: float = 30.0

    @field_validator("ledger_backend")
    @classmethod
    def _check_ledger_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in LEDGER_BACKENDS:
            raise ValueError(f"LEDGER_BACKEND must be one of {', '.join(LEDGER_BACKENDS)}, got '{value}'")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
