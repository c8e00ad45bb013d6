"""配置加载：从环境变量与 .env 文件读取客户端设置。

Configuration management for youwen-enhance.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from youwen_enhance.telemetry import parse_level

DEFAULT_API_URL = "https://b.aigy.de"
DEFAULT_TIMEOUT_SECS = 300.0
ENHANCE_ENDPOINT = "/api/skill/enhance"
VERSION_ENDPOINT = "/api/skill/version"


class Settings(BaseSettings):
    """Client settings, read from ``YOUWEN_*`` variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="YOUWEN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_url: str = Field(default=DEFAULT_API_URL, description="Enhance API base URL")
    token: str | None = Field(default=None, description="Redeem code sent as bearer token")
    mgrep_api_key: str | None = Field(
        default=None, description="Mixedbread key for semantic retrieval"
    )
    timeout_secs: float = Field(
        default=DEFAULT_TIMEOUT_SECS, gt=0, description="Budget for one enhance stream"
    )

    # Pipeline Configuration
    enhance_mode: str = Field(default="agent", description="'agent' or 'disabled'")
    enable_search: bool = Field(default=True, description="Run the search stage")

    # Update check: directory of the installed skill (holds SKILL.md)
    skill_home: Path | None = Field(
        default=None, description="Installed skill directory used for update checks"
    )

    # Logging Configuration
    log_level: str = Field(default="WARNING", description="Log level")
    log_format: str = Field(default="text", description="Log format ('text' or 'json')")

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slashes(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("token", "mgrep_api_key")
    @classmethod
    def _blank_is_unset(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        parse_level(value)
        return value.strip().upper()

    @field_validator("enhance_mode")
    @classmethod
    def _normalize_mode(cls, value: str) -> str:
        return value.strip().lower() or "agent"

    @property
    def enhance_disabled(self) -> bool:
        return self.enhance_mode == "disabled"

    @property
    def version_cache_path(self) -> Path | None:
        if self.skill_home is None:
            return None
        return self.skill_home / ".version-cache.json"


def get_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings.

    Args:
        env_file: Optional .env file overriding the default ``./.env``

    Returns:
        Settings instance
    """
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()
