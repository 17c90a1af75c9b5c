"""
Configuration settings using Pydantic Settings.

All sensitive configuration must be loaded from environment variables.
Never hardcode API keys or credentials in the code.
"""

from functools import lru_cache
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    NoDecode,
    SettingsConfigDict,
)


class ConfigurationError(Exception):
    """Raised when a required credential or identifier is missing."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Ensure .env values take precedence over system environment variables.
    # Order: init kwargs > .env (dotenv) > env vars > file secrets
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        return (
            init_settings,
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    # Riot API Configuration
    riot_api_key: str = Field("", validation_alias=AliasChoices("RIOT_API_KEY", "riot_api_key"))
    riot_platform: str = Field("eun1", alias="RIOT_PLATFORM")
    riot_game_name: str = Field("", alias="RIOT_GAME_NAME")
    riot_tag_line: str = Field("", alias="RIOT_TAG_LINE")
    riot_request_timeout_seconds: float = Field(10.0, alias="RIOT_REQUEST_TIMEOUT_SECONDS")
    riot_api_rate_limit_per_second: int = Field(20, alias="RIOT_API_RATE_LIMIT_PER_SECOND")
    riot_api_rate_limit_per_two_minutes: int = Field(
        100, alias="RIOT_API_RATE_LIMIT_PER_TWO_MINUTES"
    )
    match_batch_size: int = Field(5, alias="MATCH_BATCH_SIZE", ge=1)
    match_batch_delay_seconds: float = Field(0.1, alias="MATCH_BATCH_DELAY_SECONDS", ge=0)

    # Cache TTLs (seconds)
    cache_ttl_summoner: int = Field(3600, alias="CACHE_TTL_SUMMONER")
    cache_ttl_match: int = Field(1800, alias="CACHE_TTL_MATCH")
    cache_ttl_match_history: int = Field(300, alias="CACHE_TTL_MATCH_HISTORY")
    cache_ttl_rank: int = Field(600, alias="CACHE_TTL_RANK")
    cache_ttl_health: int = Field(60, alias="CACHE_TTL_HEALTH")

    # Redis Configuration (optional; in-process cache when absent)
    redis_url: str | None = Field(None, alias="REDIS_URL")

    # Notion Configuration
    notion_token: str = Field("", alias="NOTION_TOKEN")
    notion_games_db: str = Field("", alias="NOTION_GAMES_DB")
    notion_sessions_db: str = Field("", alias="NOTION_SESSIONS_DB")
    notion_api_base_url: str = Field("https://api.notion.com/v1", alias="NOTION_API_BASE_URL")
    notion_version: str = Field("2022-06-28", alias="NOTION_VERSION")

    # Webhooks
    webhook_secret: str | None = Field(None, alias="WEBHOOK_SECRET")
    alert_webhook_url: str | None = Field(
        None, validation_alias=AliasChoices("ALERT_WEBHOOK_URL", "DISCORD_WEBHOOK_URL")
    )
    experimental_champions: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["Karthus", "Nocturne"], alias="EXPERIMENTAL_CHAMPIONS"
    )

    # Application Configuration
    app_name: str = Field("jungle-coach", alias="APP_NAME")
    app_env: str = Field("development", alias="APP_ENV")
    app_log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    app_host: str = Field("0.0.0.0", alias="APP_HOST")
    app_port: int = Field(8080, alias="APP_PORT")
    default_game_limit: int = Field(20, alias="DEFAULT_GAME_LIMIT", ge=1, le=50)

    @field_validator("experimental_champions", mode="before")
    @classmethod
    def _split_champions(cls, value: object) -> object:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("redis_url", "webhook_secret", "alert_webhook_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def require_riot(self) -> None:
        """Fail fast when the Riot side of the pipeline cannot run."""
        missing = []
        if not self.riot_api_key:
            missing.append("RIOT_API_KEY")
        if not self.riot_game_name:
            missing.append("RIOT_GAME_NAME")
        if not self.riot_tag_line:
            missing.append("RIOT_TAG_LINE")
        if missing:
            raise ConfigurationError(missing)

    def require_store(self) -> None:
        """Fail fast when the Notion store cannot be reached."""
        missing = []
        if not self.notion_token:
            missing.append("NOTION_TOKEN")
        if not self.notion_games_db:
            missing.append("NOTION_GAMES_DB")
        if not self.notion_sessions_db:
            missing.append("NOTION_SESSIONS_DB")
        if missing:
            raise ConfigurationError(missing)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the global settings instance.

    This function provides dependency injection support for settings.
    """
    return Settings()
