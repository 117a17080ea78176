from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./berkomunitas.db"
    database_echo: bool = False
    secret_key: str = "change-me"

    # Application URLs
    frontend_url: str = "http://localhost:3000"
    api_base_url: str = "http://localhost:8000"

    # Operator API security
    admin_api_key: str = ""

    # Privilege hierarchy, lowest authority first
    privilege_hierarchy: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["user", "plus", "partner", "admin"]
    )
    default_privilege: str = "user"

    @field_validator("privilege_hierarchy", mode="before")
    @classmethod
    def _parse_label_list(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip().lower() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple)):
            return [str(item).strip().lower() for item in value if str(item).strip()]
        return []

    # Reward redemption guardrails
    redemption_max_quantity: int = 10
    redemption_note_max_length: int = 500
    shipping_notes_max_length: int = 500
    redemption_history_page_size: int = 50

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Tracing
    tracing_enabled: bool = False
    otel_exporter_endpoint: str | None = None
    otel_exporter_headers: str | None = None

    # In-app notifications
    notifications_enabled: bool = True
    notification_link_url: str = "/rewards-app/status"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
