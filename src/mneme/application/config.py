from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mneme.domain import constants as c
from mneme.domain.optimization.models import OptimizerConfig


def config_path() -> Path:
    return Path.home() / ".config/mneme/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for mneme.
    Supports loading from:
    1. Environment variables (MNEME_*)
    2. Config file (~/.config/mneme/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEME_",
        extra="ignore",
    )

    # Paths
    parameters_file: Path | None = None

    # Optimizer
    learning_rate: float = Field(default=c.LEARNING_RATE, gt=0.0)
    max_iterations: int = Field(default=c.MAX_ITERATIONS, ge=0)
    convergence_threshold: float = Field(default=c.CONVERGENCE_THRESHOLD, ge=0.0)
    min_reviews: int = Field(default=c.MIN_REVIEWS, ge=0)
    min_mature_reviews: int = Field(default=c.MIN_MATURE_REVIEWS, ge=0)
    regularization: float = Field(default=c.REGULARIZATION, ge=0.0)
    enable_short_term: bool = c.ENABLE_SHORT_TERM

    verbose: int = 0

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

        toml_file = config_path()
        if toml_file.exists():
            # First source wins: CLI overrides, then env, then the file.
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("parameters_file", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    def optimizer_config(self) -> OptimizerConfig:
        return OptimizerConfig(
            learning_rate=self.learning_rate,
            max_iterations=self.max_iterations,
            convergence_threshold=self.convergence_threshold,
            min_reviews=self.min_reviews,
            min_mature_reviews=self.min_mature_reviews,
            regularization=self.regularization,
            enable_short_term=self.enable_short_term,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mneme/config.toml (if exists)
    3. Environment variables (MNEME_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes every option; unset ones arrive as None and must not mask lower layers.
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
