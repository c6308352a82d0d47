from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from retain.domain.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_USER_ID,
    WEAK_AREA_THRESHOLD,
)

CONFIG_FILES = [
    Path(".config/retain/config.toml"),
    Path(".retain.toml"),
]


def _config_candidates() -> list[Path]:
    return [Path.home() / f for f in CONFIG_FILES]


class AppConfig(BaseSettings):
    """
    Configuration model for retain.
    Supports loading from:
    1. Config file (~/.config/retain/config.toml or ~/.retain.toml)
    2. Environment variables (RETAIN_*)
    3. Manual overrides (CLI / HTTP)
    """

    model_config = SettingsConfigDict(
        env_prefix="RETAIN_",
        extra="ignore",
    )

    # Paths
    data_path: Path = Field(
        default_factory=lambda: Path.home() / ".config/retain/progress.json"
    )
    catalog_path: Path | None = None

    # Study policy
    default_user_id: str = DEFAULT_USER_ID
    weak_area_threshold: float = WEAK_AREA_THRESHOLD

    # Server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

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

        # First existing file wins
        toml_file = next((f for f in _config_candidates() if f.exists()), None)

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

    @field_validator("data_path", mode="before")
    @classmethod
    def resolve_required_path(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("catalog_path", mode="before")
    @classmethod
    def resolve_catalog_path(cls, v: Any) -> Path | None:
        if v:
            return Path(v).expanduser().resolve()
        return None


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/retain/config.toml (if exists)
    3. Environment variables (RETAIN_*)
    4. overrides (passed from Typer or the HTTP layer); None values are ignored
    """
    cleaned = {k: v for k, v in (overrides or {}).items() if v is not None}
    return AppConfig(**cleaned)
