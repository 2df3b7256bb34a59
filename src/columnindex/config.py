"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (COLUMNINDEX__REMOTE__PAGE_SIZE=50)
  2. columnindex.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("columnindex")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")

DEFAULT_LISTING_URL = "https://blog.csdn.net/phoenix/web/v1/column/article/list"


def _find_config_file() -> str | None:
    """Return the path of the first columnindex.yaml found, or None."""
    candidates = [
        Path("columnindex.yaml"),
        Path(platformdirs.user_config_dir("columnindex")) / "columnindex.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class RemoteSettings(BaseModel):
    listing_url: str = DEFAULT_LISTING_URL
    page_size: int = Field(default=100, ge=1)
    timeout_seconds: float = 30.0
    user_agent: str = "columnindex/1.0"


class CacheSettings(BaseModel):
    ttl_hours: int = 24
    db_path: str = _DEFAULT_DB_PATH


class SpySettings(BaseModel):
    # Fractions of the viewport height measured from the top.
    band_top: float = Field(default=0.0, ge=0.0, le=1.0)
    band_bottom: float = Field(default=0.2, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_band(self) -> SpySettings:
        if self.band_top > self.band_bottom:
            raise ValueError("spy.band_top must not exceed spy.band_bottom")
        return self


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: COLUMNINDEX__CACHE__TTL_HOURS=12
        env_prefix="COLUMNINDEX__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    remote: RemoteSettings = RemoteSettings()
    cache: CacheSettings = CacheSettings()
    spy: SpySettings = SpySettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
