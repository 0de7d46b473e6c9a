"""
Configuration system using Pydantic for type-safe settings management.

This module provides configuration classes for the task store backend, the
retry policy of store writes, and logging.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from task_relay.exceptions import ConfigurationError


class StoreConfig(BaseModel):
    """Task store backend configuration."""

    backend: Literal["memory", "file"] = Field(default="memory", description="Task store backend")
    state_directory: str = Field(
        default=".task_relay/tasks", description="Directory for record files (file backend only)"
    )


class RetryConfig(BaseModel):
    """Retry policy for retried store writes."""

    attempts: int = Field(default=3, ge=1, le=10, description="Maximum write attempts")
    base_delay: float = Field(default=1.0, ge=0.0, description="Backoff delay in seconds after the first failure")


class RelaySettings(BaseSettings):
    """Main task-relay settings.

    Values come from keyword arguments, ``TASK_RELAY_`` environment
    variables (``TASK_RELAY_STORE__BACKEND=file``) or a YAML file loaded
    with :meth:`from_yaml`.
    """

    model_config = SettingsConfigDict(
        env_prefix="TASK_RELAY_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    store: StoreConfig = Field(default_factory=StoreConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Minimum log level"
    )

    @property
    def state_dir(self) -> Path:
        """Get the record directory as a Path object."""
        return Path(self.store.state_directory)

    @classmethod
    def from_yaml(cls, config_path: str) -> RelaySettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} syntax for environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            RelaySettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file) as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except Exception as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        Supports two syntaxes:
        - ${VAR_NAME} - Required environment variable (raises if not set)
        - ${VAR_NAME:-default} - Optional with default value

        YAML comment lines are left unchanged.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
