from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from flashdeck.application.practice.service import PracticeSettings
from flashdeck.consts import ENV_PREFIX
from flashdeck.domain.constants import (
    DEFAULT_RANDOM_ORDER,
    DEFAULT_SESSION_SIZE,
    SESSION_IDLE_TTL_SECONDS,
)
from flashdeck.domain.models import CardFilter, PracticeDirection


def config_file_candidates() -> list[Path]:
    return [
        Path.home() / ".config/flashdeck/config.toml",
        Path.home() / ".flashdeck.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for flashdeck.
    Supports loading from:
    1. Config file (~/.config/flashdeck/config.toml or ~/.flashdeck.toml)
    2. Environment variables (FLASHDECK_*)
    3. Manual overrides (CLI / API)
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
    )

    # Storage
    backend: Literal["memory", "sqlite"] = "sqlite"
    db_path: Path = Field(default_factory=lambda: Path.home() / ".config/flashdeck/stats.db")
    cards_file: Path | None = None
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/flashdeck/logs")

    # Practice defaults
    default_count: int = Field(default=DEFAULT_SESSION_SIZE, ge=1)
    default_random_order: bool = DEFAULT_RANDOM_ORDER
    default_direction: PracticeDirection = PracticeDirection.FRONT_TO_BACK
    default_filter: CardFilter = CardFilter.UNKNOWN_ONLY

    # HTTP server
    session_ttl_seconds: int = Field(default=SESSION_IDLE_TTL_SECONDS, ge=1)

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing config file wins; explicit overrides beat env, env beats file.
        toml_file = next((f for f in config_file_candidates() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("db_path", "log_dir", mode="before")
    @classmethod
    def resolve_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("cards_file", mode="before")
    @classmethod
    def resolve_cards_file(cls, v: Any) -> Path | None:
        if v:
            return Path(v).expanduser().resolve()
        return None

    def practice_settings(self) -> PracticeSettings:
        return PracticeSettings(
            default_count=self.default_count,
            random_order=self.default_random_order,
            direction=self.default_direction,
            card_filter=self.default_filter,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/flashdeck/config.toml (if exists)
    3. Environment variables (FLASHDECK_*)
    4. cli_overrides (passed from Typer or the HTTP layer); None values are ignored
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
