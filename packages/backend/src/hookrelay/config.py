"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with HOOKRELAY_ prefix.
No config files — the relay keeps no state worth configuring beyond the
server itself.

Learn: pydantic-settings auto-loads from environment, validates types,
provides defaults. List fields (cors_origins) are read as JSON, e.g.
HOOKRELAY_CORS_ORIGINS='["https://app.example.com"]'.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via HOOKRELAY_* env vars."""

    service_name: str = "AnyQuest Webhook Relay"

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3001

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # JSON lines instead of the console renderer

    # Relay: a subscriber whose frame isn't written in this long is dropped
    send_timeout_seconds: float = 5.0

    # CORS: browser clients connect from anywhere, so allow all origins
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "HOOKRELAY_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Debug mode is a development-only switch."""
        if self.environment != "development" and self.debug:
            raise ValueError(
                "HOOKRELAY_DEBUG must not be enabled outside the development "
                "environment."
            )
        return self


# Singleton, import this everywhere
settings = Settings()
