from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SERVICE_NAME = "Mail Relay Service"
SERVICE_VERSION = "1.0.0"


class Settings(BaseSettings):
    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    api_version: str = "v1"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "node_env"),
    )
    log_level: str = "INFO"
    cors_allow_origins: str = "*"
    max_body_bytes: int = 10 * 1024 * 1024
    # SMTP transport
    email_provider: Literal["smtp", "logging"] = "smtp"
    email_host: str | None = "smtp.gmail.com"
    email_port: int = 587
    email_secure: bool = False  # implicit TLS (port 465 style)
    email_user: str | None = None
    email_pass: SecretStr | None = None
    email_tls_verify: bool = True
    email_send_timeout: float = 30.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("environment")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("api_version")
    @classmethod
    def strip_slashes(cls, value: str) -> str:
        value = value.strip().strip("/")
        if not value:
            raise ValueError("api_version cannot be empty")
        return value

    @field_validator("email_send_timeout")
    @classmethod
    def positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("email_send_timeout must be positive")
        return value

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def api_prefix(self) -> str:
        return f"/api/{self.api_version}"

    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Convert cors_allow_origins string to list"""
        return [v.strip() for v in self.cors_allow_origins.split(",") if v.strip()]

    @property
    def email_password(self) -> str | None:
        return self.email_pass.get_secret_value() if self.email_pass else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
