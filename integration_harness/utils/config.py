"""Configuration loader and settings helpers for the integration harness."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CATEGORIES: tuple[str, ...] = ("storage", "database", "api")


def load_yaml_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If file not found or invalid YAML
    """
    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
            return config if config else {}
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")


def validate_config(config: dict[str, Any], model: type[BaseModel]) -> BaseModel:
    """
    Validate configuration against Pydantic model.

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        return model.model_validate(config)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}")


class RunOptions(BaseModel):
    """Immutable category and behaviour switches for one suite run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    storage: bool = False
    database: bool = False
    api: bool = False
    simulate_failures: bool = False
    verbose: bool = False

    @property
    def any_category(self) -> bool:
        return self.storage or self.database or self.api

    def resolve(self) -> RunOptions:
        """Return options with every category enabled when none was selected."""

        if self.any_category:
            return self
        return self.model_copy(update={category: True for category in CATEGORIES})

    def selected_categories(self) -> list[str]:
        """Return enabled category names in canonical order."""

        return [category for category in CATEGORIES if getattr(self, category)]


def _label_field(*env_names: str) -> Any:
    return Field(default="mock", validation_alias=AliasChoices(*env_names))


class HarnessSettings(BaseSettings):
    """Global harness settings sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HARNESS_",
        env_file=(".env", ".env.test"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = "INFO"
    storage_type: str = _label_field("HARNESS_STORAGE_TYPE", "STORAGE_TYPE")
    db_type: str = _label_field("HARNESS_DB_TYPE", "DB_TYPE")
    api_type: str = _label_field("HARNESS_API_TYPE", "API_TYPE")
    service_kind: str = "mock"
    max_retries: int = Field(default=3, ge=1)
    catalog_path: Path | None = None
    max_workers: int = Field(default=1, ge=1)
    suite_timeout_seconds: float | None = Field(default=None, gt=0)
    random_seed: int | None = None

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        """Ensure log level values are uppercase for logging config."""

        return value.upper()

    @field_validator("storage_type", "db_type", "api_type", mode="before")
    @classmethod
    def _default_label(cls, value: Any) -> Any:
        """Blank type labels fall back to the mock label."""

        if value is None:
            return "mock"
        if isinstance(value, str) and not value.strip():
            return "mock"
        return value

    @field_validator("catalog_path", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not value.strip():
                return None
            return Path(value).expanduser()
        return value

    def type_label(self, category: str) -> str:
        """Return the descriptive service type label for a category."""

        labels = {
            "storage": self.storage_type,
            "database": self.db_type,
            "api": self.api_type,
        }
        try:
            return labels[category]
        except KeyError:
            raise ConfigurationError(f"Unknown category '{category}'") from None


@lru_cache(maxsize=1)
def _get_settings_cached() -> HarnessSettings:
    return HarnessSettings()


def get_settings(*, reload: bool = False) -> HarnessSettings:
    """Return cached settings, optionally forcing a reload."""

    if reload:
        _get_settings_cached.cache_clear()
    return _get_settings_cached()
