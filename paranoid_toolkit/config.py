"""
Configuration module for Paranoid Toolkit.

Provides centralized configuration for soft delete behaviour, logging and
the command-line tools.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Union, get_args, get_origin

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Log levels accepted by the toolkit."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ParanoidConfig(BaseModel):
    """Central configuration for the soft delete toolkit.

    Configuration Sources (in order of precedence):
        1. Programmatic settings (highest priority)
        2. Environment variables (PARANOID_ prefix)
        3. Default values (lowest priority)

    Example:
        >>> config = ParanoidConfig(cascade_destroy_enabled=False)

        Loading from environment:

        >>> import os
        >>> os.environ['PARANOID_DATABASE_URL'] = 'sqlite:///app.db'
        >>> config = ParanoidConfig.from_env()

    Note:
        The mixins read the global configuration on every call, so changes
        made with ``configure()`` apply to the next destroy or restore.
    """

    environment: str = Field(
        "production", description="Environment (development, staging, production)"
    )

    # Soft delete settings
    timezone_aware: bool = Field(
        True, description="Stamp deleted_at with a UTC-aware timestamp"
    )
    cascade_destroy_enabled: bool = Field(
        True, description="Destroy dependent associations with their owner"
    )
    validate_on_destroy: bool = Field(
        True, description="Run record validation when destroying or restoring"
    )

    # Database settings used by the CLI
    database_url: Optional[str] = Field(
        None, description="SQLAlchemy database URL for the command-line tools"
    )
    echo_sql: bool = Field(False, description="Echo SQL statements")

    # Logging
    log_level: LogLevel = Field(LogLevel.WARNING, description="Toolkit log level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is valid."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Environment must be one of: {', '.join(sorted(valid_environments))}"
            )
        return v.lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_env(cls, prefix: str = "PARANOID_") -> "ParanoidConfig":
        """
        Load configuration from environment variables.

        Args:
            prefix: Prefix for environment variables

        Returns:
            Configuration instance
        """
        import os

        config_dict: Dict[str, Any] = {}

        for field_name, field_info in cls.model_fields.items():
            env_var = f"{prefix}{field_name.upper()}"
            if env_var in os.environ:
                value = os.environ[env_var]

                field_type = field_info.annotation

                # Handle Optional types
                if get_origin(field_type) is Union:
                    args = get_args(field_type)
                    field_type = next(
                        (arg for arg in args if arg is not type(None)), str
                    )

                try:
                    if field_type == bool:
                        config_dict[field_name] = value.lower() in (
                            "true",
                            "1",
                            "yes",
                            "on",
                        )
                    elif isinstance(field_type, type) and issubclass(field_type, Enum):
                        config_dict[field_name] = field_type(value.upper())
                    else:
                        config_dict[field_name] = value
                except (ValueError, TypeError):
                    # Leave the raw value for pydantic to report
                    config_dict[field_name] = value

        return cls.model_validate(config_dict)

    def configure_logging(self) -> None:
        """Apply ``log_level`` to the toolkit loggers."""
        logging.getLogger("paranoid_toolkit").setLevel(self.log_level.value)


# Global configuration instance
_config: Optional[ParanoidConfig] = None


def get_config() -> ParanoidConfig:
    """
    Get the global configuration instance.

    Returns:
        Global configuration
    """
    global _config

    if _config is None:
        _config = ParanoidConfig.from_env()

    return _config


def set_config(config: Optional[ParanoidConfig]) -> None:
    """
    Set the global configuration instance.

    Args:
        config: Configuration to set, or None to reload from the environment
    """
    global _config
    _config = config


def configure(**kwargs: Any) -> ParanoidConfig:
    """
    Configure the toolkit with keyword arguments.

    Args:
        **kwargs: Configuration parameters

    Returns:
        Updated configuration
    """
    global _config

    if _config is None:
        _config = ParanoidConfig(**kwargs)
    else:
        config_dict = _config.to_dict()
        config_dict.update(kwargs)
        _config = ParanoidConfig(**config_dict)

    return _config
