"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]
PortInt = Annotated[int, Field(gt=0, le=65535)]


class Settings(BaseSettings):
    """Environment-driven relay settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    webserver_enabled: bool = Field(default=True, validation_alias="RELAY_WEBSERVER_ENABLED")
    host: NonEmptyStr = Field(default="127.0.0.1", validation_alias="RELAY_HOST")
    port: PortInt = Field(default=8020, validation_alias="RELAY_PORT")
    allowed_uuids: list[NonEmptyStr] = Field(
        default_factory=lambda: ["*"],
        validation_alias="RELAY_ALLOWED_UUIDS",
    )
    allowed_endpoints: list[NonEmptyStr] = Field(
        default_factory=lambda: ["*"],
        validation_alias="RELAY_ALLOWED_ENDPOINTS",
    )
    probe_timeout_seconds: NonNegativeFloat = Field(
        default=5.0,
        validation_alias="RELAY_PROBE_TIMEOUT_SECONDS",
    )
    refresh_updates_last_registration: bool = Field(
        default=False,
        validation_alias="RELAY_REFRESH_UPDATES_LAST_REGISTRATION",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache relay settings."""

    return Settings()  # type: ignore[call-arg]
