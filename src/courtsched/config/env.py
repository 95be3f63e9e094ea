"""Environment variable handling for configuration."""

import os
from typing import Any

from courtsched.config.types import GlobalConfig
from courtsched.config.types import LoggingSettings
from courtsched.config.types import SchedulingSettings


class EnvConfig:
    """Environment variable configuration."""

    # Mapping of environment variables to configuration paths
    ENV_MAPPING = {
        'COURTSCHED_TIMEZONE': ('timezone',),
        'COURTSCHED_CONFIG_DIR': ('directories', 'config'),
        'COURTSCHED_EXPORT_DIR': ('directories', 'export'),
        'COURTSCHED_LOG_LEVEL': ('logging', 'default_level'),
        'COURTSCHED_LOG_FILE': ('logging', 'file'),
        'COURTSCHED_CHECKIN_GRACE_MINUTES': ('scheduling', 'checkin_grace_minutes'),
        'COURTSCHED_STEP_MINUTES': ('scheduling', 'default_step_minutes'),
    }

    @staticmethod
    def get_env_value(env_var: str, default: Any | None = None) -> Any | None:
        """Get value from environment variable with default."""
        return os.getenv(env_var, default)

    @staticmethod
    def _set_nested_value(config: dict[str, Any], path: tuple, value: Any) -> None:
        """Set value in nested dictionary using path tuple."""
        current = config
        for part in path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    @classmethod
    def update_config_from_env(cls, config: dict[str, Any]) -> None:
        """Update configuration dictionary with environment variables.

        Args:
            config: Configuration dictionary to update
        """
        for env_var, path in cls.ENV_MAPPING.items():
            value = cls.get_env_value(env_var)
            if value is not None:
                cls._set_nested_value(config, path, value)

    @classmethod
    def get_logging_config(cls) -> LoggingSettings:
        """Get logging configuration from environment."""
        return {
            'default_level': cls.get_env_value('COURTSCHED_LOG_LEVEL', 'WARNING'),
            'verbose_level': cls.get_env_value('COURTSCHED_VERBOSE_LOG_LEVEL', 'DEBUG'),
            'file': cls.get_env_value('COURTSCHED_LOG_FILE')
        }

    @classmethod
    def get_scheduling_config(cls) -> SchedulingSettings:
        """Get scheduling defaults from environment."""
        step = cls.get_env_value('COURTSCHED_STEP_MINUTES')
        return {
            'checkin_grace_minutes': int(cls.get_env_value('COURTSCHED_CHECKIN_GRACE_MINUTES', '15')),
            'default_step_minutes': int(step) if step else None
        }

    @classmethod
    def get_global_config(cls) -> GlobalConfig:
        """Get global configuration from environment."""
        return {
            'timezone': cls.get_env_value('COURTSCHED_TIMEZONE', 'America/Mexico_City'),
            'directories': {
                'config': cls.get_env_value('COURTSCHED_CONFIG_DIR', 'config'),
                'export': cls.get_env_value('COURTSCHED_EXPORT_DIR', 'export')
            },
            'logging': cls.get_logging_config(),
            'scheduling': cls.get_scheduling_config()
        }
