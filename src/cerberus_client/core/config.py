"""Configuration management for the Cerberus client."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from cerberus_client.core.exceptions import ConfigurationError

CERBERUS_ADDR_ENV = "CERBERUS_ADDR"
CERBERUS_REGION_ENV = "CERBERUS_REGION"
AWS_REGION_ENVS = ("AWS_REGION", "AWS_DEFAULT_REGION")


class RetryConfig(BaseModel):
    """Retry configuration for requests to Cerberus."""

    max_attempts: int = Field(default=3, ge=1)
    base_interval: float = Field(default=0.25, ge=0)  # seconds, doubled per attempt


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"
    output: str = "stderr"


class CerberusConfig(BaseModel):
    """Main Cerberus client configuration."""

    url: str | None = None
    region: str | None = None
    timeout: float = Field(default=30.0, gt=0)  # seconds, applied per attempt
    max_connections: int = 200
    max_keepalive_connections: int = 20
    default_headers: dict[str, str] = Field(default_factory=dict)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: str | Path) -> "CerberusConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            CerberusConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, **overrides: Any) -> "CerberusConfig":
        """Build configuration from environment variables.

        ``CERBERUS_ADDR`` sets the URL; the region comes from
        ``CERBERUS_REGION``, then ``AWS_REGION`` / ``AWS_DEFAULT_REGION``.

        Args:
            **overrides: Explicit values that win over the environment

        Returns:
            CerberusConfig instance
        """
        data: dict[str, Any] = {}

        url = os.environ.get(CERBERUS_ADDR_ENV, "").strip()
        if url:
            data["url"] = url

        for name in (CERBERUS_REGION_ENV, *AWS_REGION_ENVS):
            region = os.environ.get(name, "").strip()
            if region:
                data["region"] = region
                break

        data.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
