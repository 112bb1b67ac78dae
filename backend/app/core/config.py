"""Process-level settings read from the environment and `.env`.

Business settings that staff change at runtime (auto-reorder, thresholds)
live in the system_configuration row. The values here only seed that row
the first time it is read.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database - SQLite file for local dev, override via env for PostgreSQL
    database_url: str = "sqlite:///./clinic_inventory.db"

    # Comma-separated origins, or "*"
    cors_origins: str = "http://localhost:5173,http://localhost:8080"

    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    api_v1_prefix: str = "/api/v1"

    rate_limit_enabled: bool = True  # tests switch this off

    # Seed values for the system_configuration row
    default_clinic_name: str = "Clinic"
    default_currency: str = "USD"
    auto_reorder_default: bool = False
    low_stock_threshold_default: int = 10
    expiry_warning_days_default: int = 30

    # Editing a receipt does not re-adjust on-hand stock unless this is set
    receipt_edit_adjusts_stock: bool = False

    @field_validator("low_stock_threshold_default", "expiry_warning_days_default")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be zero or greater")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()


settings = get_settings()
