"""Typed configuration models for Chronicle runtime settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from packages.chronicle.constants import (
    DEFAULT_MAX_ACTIVE_CORRELATIONS,
    DEFAULT_MAX_CONTEXT_KEYS,
    DEFAULT_MAX_FORK_DEPTH,
    LogLevel,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "chronicle" / "chronicle.yaml"

MetadataValue = str | int | float | bool | None


class LoggingSettings(BaseModel):
    """Stdout logging configuration for Chronicle's own records."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = True
    service: str = "chronicle"
    environment: str = "dev"


class LimitsSettings(BaseModel):
    """Resource limits enforced by every handle in one chronicle tree."""

    max_context_keys: int = Field(default=DEFAULT_MAX_CONTEXT_KEYS, gt=0)
    max_fork_depth: int = Field(default=DEFAULT_MAX_FORK_DEPTH, ge=0)
    max_active_correlations: int = Field(default=DEFAULT_MAX_ACTIVE_CORRELATIONS, gt=0)


class MonitoringSettings(BaseModel):
    """Opt-in process sampling attached to payloads as ``_perf``."""

    memory: bool = False
    cpu: bool = False

    @property
    def enabled(self) -> bool:
        """Return ``True`` when any sampling is requested."""
        return self.memory or self.cpu


class ChronicleSettings(BaseSettings):
    """Root settings resolved from init/env/yaml/defaults sources."""

    model_config = SettingsConfigDict(
        env_prefix="CHRONICLE_",
        env_nested_delimiter="__",
        extra="ignore",
        nested_model_default_partial_update=True,
        yaml_file=DEFAULT_CONFIG_PATH,
        yaml_file_encoding="utf-8",
    )

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    metadata: dict[str, MetadataValue] = Field(default_factory=dict)
    sanitize_strings: bool = False
    strict: bool = False
    min_level: LogLevel = "trace"

    @field_validator("min_level", mode="before")
    @classmethod
    def _normalize_min_level(cls, value: object) -> object:
        """Accept upper-case level names from env and YAML sources."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Apply Chronicle precedence: init > env > yaml > model defaults."""
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )
