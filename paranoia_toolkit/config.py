"""
Configuration module for Paranoia Toolkit.

Provides centralized configuration management for soft delete behaviour.
"""

from typing import Any, Dict, Optional

import pytz
from pydantic import BaseModel, Field, field_validator


class ParanoiaConfig(BaseModel):
    """Central configuration for soft delete behaviour.

    Configuration can be set programmatically or loaded from environment
    variables carrying the ``PARANOIA_`` prefix.

    Example:
        >>> config = ParanoiaConfig(timezone="Europe/Berlin", purge_after_days=30)

        Loading from environment:

        >>> import os
        >>> os.environ['PARANOIA_SOFT_DELETE_ENABLED'] = 'false'
        >>> config = ParanoiaConfig.from_env()

    Environment Variables:
        - PARANOIA_SOFT_DELETE_ENABLED
        - PARANOIA_TIMEZONE
        - PARANOIA_PURGE_AFTER_DAYS

    Note:
        Disabling soft delete turns off the default ``deleted_at IS NULL``
        filter for every session. Destroy and restore keep working.
    """

    soft_delete_enabled: bool = Field(
        True, description="Filter soft-deleted rows out of queries by default"
    )
    timezone: str = Field("UTC", description="Timezone for deleted_at timestamps")
    purge_after_days: int = Field(
        90, description="Days a destroyed row is kept before it may be purged", gt=0
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the timezone is known to pytz."""
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    @classmethod
    def from_env(cls, prefix: str = "PARANOIA_") -> "ParanoiaConfig":
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

                try:
                    if field_type == bool:
                        config_dict[field_name] = value.lower() in (
                            "true",
                            "1",
                            "yes",
                            "on",
                        )
                    elif field_type == int:
                        config_dict[field_name] = int(value)
                    else:
                        config_dict[field_name] = value
                except (ValueError, TypeError):
                    # Leave the raw string for pydantic to report
                    config_dict[field_name] = value

        return cls.model_validate(config_dict)


# Global configuration instance
_config: Optional[ParanoiaConfig] = None


def get_config() -> ParanoiaConfig:
    """
    Get the global configuration instance.

    Returns:
        Global configuration
    """
    global _config

    if _config is None:
        _config = ParanoiaConfig.from_env()

    return _config


def set_config(config: Optional[ParanoiaConfig]) -> None:
    """
    Set the global configuration instance.

    Args:
        config: Configuration to set, or None to reload from the environment
    """
    global _config
    _config = config


def configure(**kwargs: Any) -> ParanoiaConfig:
    """
    Configure the toolkit with keyword arguments.

    Args:
        **kwargs: Configuration parameters

    Returns:
        Updated configuration
    """
    global _config

    if _config is None:
        _config = ParanoiaConfig(**kwargs)
    else:
        config_dict = _config.to_dict()
        config_dict.update(kwargs)
        _config = ParanoiaConfig(**config_dict)

    return _config
