from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    UPSTREAM_API_URL: str = "http://localhost:5000"  # restaurant platform REST API
    UPSTREAM_API_TOKEN: str | None = None
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    API_PREFIX: str = "/api/v1"

    DEFAULT_TIMEZONE: str = "Europe/Belgrade"
    DEFAULT_RESERVATION_MINUTES: int = 120

    # per_slot: one availability request per time slot; aggregate: one schedule call
    SCHEDULE_FETCH_MODE: Literal["per_slot", "aggregate"] = "per_slot"
    SCHEDULE_STALE_SECONDS: float = 30.0
    PROFILE_STALE_SECONDS: float = 60.0
    SCHEDULE_REFRESH_SECONDS: float = 120.0
    SCHEDULE_LOAD_RETRIES: int = 2
    OVERNIGHT_LOAD_RETRIES: int = 1

    NOTIFICATION_BACKLOG: int = 50
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
