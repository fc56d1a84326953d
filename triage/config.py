"""
Application configuration using Pydantic settings.

Usage:
    from triage.config import get_settings
    settings = get_settings()

These are process settings (where configuration documents live, cache
backends, logging). The classification rules themselves are loaded by
triage.configuration.ConfigurationStore.

For built-in defaults, import from triage.constants:
    from triage.constants import CATEGORY_WEIGHTS, DEFAULT_RULES
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_PATHS = (
    "config/enhanced-classification.json,"
    "config/classification-rules.json,"
    "classification-config.json"
)


class Settings(BaseSettings):
    """
    Unified engine settings loaded from environment variables and .env file.

    Every variable is prefixed with TRIAGE_, e.g. TRIAGE_CONFIG_PATHS.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRIAGE_",
        extra="ignore",
    )

    # App settings
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Configuration documents
    config_paths: str = Field(default=DEFAULT_CONFIG_PATHS)
    profiles_dir: str = Field(default="config/profiles")
    config_cache_ttl: float = Field(default=300.0, ge=0)

    # Result cache
    result_cache_backend: str = Field(default="memory")
    result_cache_prefix: str = Field(default="triage")

    # Redis
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_password: Optional[str] = Field(default=None)

    @field_validator("result_cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        """Only the in-memory and Redis result stores exist."""
        backend = v.strip().lower()
        if backend not in ("memory", "redis"):
            raise ValueError(f"result_cache_backend must be 'memory' or 'redis' (got '{v}')")
        return backend

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def config_path_list(self) -> List[str]:
        """Parse the configuration search list from a comma-separated string."""
        return [path.strip() for path in self.config_paths.split(",") if path.strip()]

    def validate_runtime_config(self) -> tuple[List[str], List[str]]:
        """
        Validate settings before running a long-lived process.

        Returns:
            Tuple of (errors, warnings) - errors are fatal, warnings are advisory
        """
        errors = []
        warnings = []

        if not self.config_path_list:
            errors.append("TRIAGE_CONFIG_PATHS must name at least one configuration file")

        if self.config_cache_ttl == 0:
            warnings.append(
                "TRIAGE_CONFIG_CACHE_TTL is 0 - configuration is re-read on every load"
            )

        if self.result_cache_backend == "redis" and not self.redis_password:
            warnings.append("Redis result cache is configured without a password")

        return errors, warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
