"""
Global settings from environment variables.
"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CogworkSettings(BaseSettings):
    """
    Global configuration loaded from environment variables.

    Environment variables should be prefixed with COGWORK_
    Example: COGWORK_LOG_LEVEL=DEBUG, COGWORK_COMMAND_TIMEOUT=300
    """

    model_config = SettingsConfigDict(
        env_prefix="COGWORK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    # Command runner
    command_timeout: float | None = Field(default=None, gt=0)

    # Chat cog (OpenAI compatible)
    openai_api_key: SecretStr | None = None
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"

    # Agent cog
    agent_command: str = "claude"


# Global settings instance (singleton)
settings = CogworkSettings()


__all__ = ["CogworkSettings", "settings"]
