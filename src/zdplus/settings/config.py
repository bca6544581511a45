"""Configuration loader for zdplus using Pydantic settings.

Config precedence (highest wins):
  1. Explicit values / CLI flags (where applicable)
  2. Environment variables (ZDPLUS_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("ZDPLUS_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "ZDPLUS_ENV"
DEFAULT_ENV = "local"

LogType = Literal["browser", "exceptions"]


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ThrottleSettings(BaseSettings):
    """Concurrency cap for calls into the remote browser."""

    model_config = SettingsConfigDict(env_prefix="ZDPLUS_THROTTLE__")

    max_pending_calls: int = Field(default=5, ge=1)


class BrowserSettings(BaseSettings):
    """zendriver launch and lookup settings."""

    model_config = SettingsConfigDict(env_prefix="ZDPLUS_BROWSER__")

    headless: bool = True
    chrome_binary: str = ""
    sandbox: bool = True
    window_width: int = 1920
    window_height: int = 1080
    find_timeout: float = 10.0
    poll_interval: float = 0.1


class LogSettings(BaseSettings):
    """Browser log capture settings."""

    model_config = SettingsConfigDict(env_prefix="ZDPLUS_LOGS__")

    enabled_types: list[LogType] = Field(default_factory=lambda: ["browser", "exceptions"])


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root zdplus settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="ZDPLUS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    log_level: str = "INFO"

    # Directory for screenshots and saved logs. Empty disables capture.
    logdir: str = ""

    throttle: ThrottleSettings = Field(default_factory=ThrottleSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    logs: LogSettings = Field(default_factory=LogSettings)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize a relative logdir against project_root."""
        if self.logdir and not Path(self.logdir).is_absolute():
            self.logdir = str(self.project_root / self.logdir)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
