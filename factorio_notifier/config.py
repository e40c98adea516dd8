import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .errors import ConfigurationError

_CONFIG_PATH = os.getenv("FACTORIO_NOTIFIER_CONFIG", "config.toml")
_ENV_PATH = os.getenv("FACTORIO_NOTIFIER_ENV", ".env")


class LogParserSettings(BaseModel):
    session_marker: str = "Server Session Started"
    field_separator: str = "|"


class TailerSettings(BaseModel):
    poll_interval_seconds: float = Field(default=2.0, gt=0)
    watch_debounce_ms: int = Field(default=200, ge=0)
    rescan_interval_ms: int = Field(default=1000, gt=0)
    force_polling: bool = False


class NotificationSettings(BaseModel):
    bus_capacity: int = Field(default=100, gt=0)
    api_base_url: str = "https://api.telegram.org"
    request_timeout_seconds: float = Field(default=10.0, gt=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
        extra="ignore",
        # Telegram chat ids are numeric; TOML hands them over as ints
        coerce_numbers_to_str=True,
    )

    factorio_log_path: Path
    telegram_token: str = Field(min_length=1)
    telegram_chat_id: str = Field(min_length=1)

    log_parser: LogParserSettings = Field(default_factory=LogParserSettings)
    tailer: TailerSettings = Field(default_factory=TailerSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    logs_dir: Optional[Path] = None
    exit_on_tail_failure: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_settings(**overrides) -> Settings:
    """Load settings from all sources.

    Raises:
        ConfigurationError: if a required value is missing or invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"]) for error in e.errors()
        )
        raise ConfigurationError(f"Invalid or missing configuration: {fields}") from e
