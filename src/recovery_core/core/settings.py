from functools import lru_cache
from typing import Literal

from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    version: str = "0.1.0"
    log_service_name: str = "recovery-core"

    # Roster document store
    redis_url: str = "redis://localhost:6379/0"
    roster_document_key_template: str = "recovery_circle:{owner_id}"
    document_store_timeout_seconds: float = 5.0

    # Circle member validation
    circle_name_min_length: int = 2
    circle_name_max_length: int = 80

    # Calendar math
    calendar_timezone: str = "UTC"

    @field_validator("roster_document_key_template")
    @classmethod
    def _require_owner_placeholder(cls, value: str) -> str:
        if "{owner_id}" not in value:
            raise ValueError("roster_document_key_template must contain '{owner_id}'")
        return value

    @field_validator("circle_name_max_length")
    @classmethod
    def _check_name_bounds(cls, value: int, info: ValidationInfo) -> int:
        minimum = info.data.get("circle_name_min_length", 1)
        if value < minimum:
            raise ValueError("circle_name_max_length must be >= circle_name_min_length")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
