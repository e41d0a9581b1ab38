"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


@dataclass(frozen=True)
class SessionCredentials:
    """Backend address and the user credentials exchanged for tokens."""

    base_url: str
    username: str
    password: str


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_base_url: str
    username: str
    password: str
    poll_interval_seconds: float = 1.0
    failure_backoff_seconds: float = 1.5
    request_timeout_seconds: float = 10.0
    token_safety_margin_seconds: int = 20
    log_file: str | None = None
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="FRAME_VIEWER_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def credentials(self) -> SessionCredentials:
        """Return the login credentials for the configured backend."""
        return SessionCredentials(
            base_url=self.api_base_url.rstrip("/"),
            username=self.username,
            password=self.password,
        )
