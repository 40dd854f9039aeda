"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments  (CLI flags such as --full)
  2. Environment variables  (SITESYNC__SITE_URL=https://example.com)
  3. sitesync.yaml          (searched in cwd, then platform config dir)
  4. Hardcoded defaults

The config file is optional. Only ``site_url`` has no usable default.

The working directory is the project root: a relative ``output.dir`` and the
first sitesync.yaml candidate are both taken from it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from sitesync import __version__


def _find_config_file() -> str | None:
    """Return the path of the first sitesync.yaml found, or None."""
    candidates = [
        Path("sitesync.yaml"),
        Path(platformdirs.user_config_dir("sitesync")) / "sitesync.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class OutputSettings(BaseModel):
    dir: str = "output"

    @property
    def path(self) -> Path:
        """Absolute output root. Relative ``dir`` values resolve against the cwd."""
        return Path(self.dir).expanduser().resolve()


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    max_redirects: int = 10
    user_agent: str = f"sitesync/{__version__}"
    asset_concurrency: int = 5


class CacheSettings(BaseModel):
    max_age_hours: int = 24
    history_max: int = 100


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: SITESYNC__FETCHER__TIMEOUT_SECONDS=10
        env_prefix="SITESYNC__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    site_url: str = ""
    full_scrape: bool = False

    output: OutputSettings = OutputSettings()
    fetcher: FetcherSettings = FetcherSettings()
    cache: CacheSettings = CacheSettings()
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
        )
