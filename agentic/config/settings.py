"""
Settings Management

Typed configuration for the guard, the sandbox and logging.

Design decisions:
- ToolSecurityConfig is a plain pydantic model passed explicitly to
  constructors; library code never reads the environment on its own
- pydantic-settings classes load overrides from the environment or a .env
  file only when the application calls get_settings()
- Components copy configuration on the way in and on the way out
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_EXECUTION_TIME_MS = 30_000
DEFAULT_MAX_CONCURRENT_CALLS = 10
DEFAULT_MAX_OUTPUT_SIZE = 1024 * 1024  # 1 MiB


class ToolSecurityConfig(BaseModel):
    """Configuration shared by ToolGuard and ToolSandbox."""

    enabled: bool = Field(default=True, description="Master switch for every check")
    validate_params: bool = Field(default=True)
    sandbox_execution: bool = Field(default=False)
    max_execution_time: int = Field(default=DEFAULT_MAX_EXECUTION_TIME_MS, gt=0, description="ms")
    max_concurrent_calls: int = Field(default=DEFAULT_MAX_CONCURRENT_CALLS, ge=1)
    max_output_size: int = Field(default=DEFAULT_MAX_OUTPUT_SIZE, gt=0, description="bytes")
    denied_tools: list[str] = Field(default_factory=list)
    allowed_tools: list[str] | None = Field(
        default=None,
        description="Whitelist; None allows every tool that is not denied",
    )

    def merged(self, **changes: Any) -> "ToolSecurityConfig":
        """Return a validated copy with the given fields replaced."""
        return ToolSecurityConfig.model_validate({**self.model_dump(), **changes})


class ToolSecuritySettings(BaseSettings):
    """Environment overrides for tool security (AGENTIC_TOOLS_*)."""

    model_config = SettingsConfigDict(env_prefix="AGENTIC_TOOLS_")

    enabled: bool = Field(default=True)
    validate_params: bool = Field(default=True)
    sandbox_execution: bool = Field(default=True)
    max_execution_time: int = Field(default=DEFAULT_MAX_EXECUTION_TIME_MS, gt=0)
    max_concurrent_calls: int = Field(default=DEFAULT_MAX_CONCURRENT_CALLS, ge=1)
    max_output_size: int = Field(default=DEFAULT_MAX_OUTPUT_SIZE, gt=0)
    denied_tools: list[str] = Field(default_factory=list)
    allowed_tools: list[str] | None = Field(default=None)

    def to_config(self) -> ToolSecurityConfig:
        return ToolSecurityConfig.model_validate(self.model_dump())


class LoggingSettings(BaseSettings):
    """Logging configuration (AGENTIC_LOG_*)."""

    model_config = SettingsConfigDict(env_prefix="AGENTIC_LOG_")

    enabled: bool = Field(default=False, description="Library logging is silent unless enabled")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    """
    Settings aggregator.

    Applications that want environment-driven configuration load it here
    and pass the resulting objects to the components they build.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    tools: ToolSecuritySettings = Field(default_factory=ToolSecuritySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Safe to cache because settings are frozen.
    """
    return Settings()
