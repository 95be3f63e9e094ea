"""Configuration settings for the court scheduling engine."""

from pathlib import Path
from typing import Any

import yaml

from courtsched.config.env import EnvConfig
from courtsched.config.types import AppConfig
from courtsched.config.types import GlobalConfig
from courtsched.config.utils import deep_merge
from courtsched.config.utils import get_config_paths
from courtsched.config.utils import config_dir_path
from courtsched.config.validation import validate_config


class ConfigurationManager:
    """Centralized configuration management with caching."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config: AppConfig | None = None
        self._config_path: Path | None = None
        self._initialized = True

    @property
    def config(self) -> AppConfig:
        """Get the current configuration, loading it if necessary."""
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load_config() first.")
        return self._config

    def load_config(self, config_dir: str | None = None) -> AppConfig:
        """Load configuration with caching."""
        if self._config is not None:
            return self._config

        self._config_path = _get_config_path(config_dir)

        global_config = _load_global_config(self._config_path)
        courts_data = _load_courts_config(self._config_path)

        courts = {str(k): v for k, v in (courts_data.get('courts') or {}).items()}
        reservations = list(courts_data.get('reservations') or [])
        blocks = list(courts_data.get('blocks') or [])
        validate_config(courts, reservations, blocks)

        self._config = AppConfig(
            global_config=global_config,
            courts=courts,
            reservations=reservations,
            blocks=blocks,
            timezone=global_config.get('timezone', 'America/Mexico_City'),
            config_dir=str(self._config_path),
            log_level=global_config['logging'].get('default_level', 'WARNING'),
            log_file=global_config['logging'].get('file')
        )

        return self._config

    def reload_config(self, config_dir: str | None = None) -> AppConfig:
        """Force reload configuration."""
        self._config = None
        return self.load_config(config_dir)

def _get_config_path(config_dir: str | None = None) -> Path:
    """Get configuration directory path."""
    return config_dir_path(config_dir)

def _load_global_config(config_path: Path) -> GlobalConfig:
    """Load global configuration from YAML file and environment."""
    global_config = EnvConfig.get_global_config()

    config_file = get_config_paths(config_path)['config']
    if config_file.exists():
        with open(config_file, encoding="utf-8") as f:
            loaded_config = yaml.safe_load(f) or {}
            global_config = deep_merge(global_config, loaded_config)

    # Environment wins over the file
    EnvConfig.update_config_from_env(global_config)
    return global_config

def _load_courts_config(config_path: Path) -> dict[str, Any]:
    """Load courts, seed reservations and blocks from YAML file."""
    courts_file = get_config_paths(config_path)['courts']
    if not courts_file.exists():
        raise FileNotFoundError(f"Courts configuration file not found: {courts_file}")

    with open(courts_file, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def load_config(config_dir: str | None = None) -> AppConfig:
    """Load configuration using the ConfigurationManager."""
    config_manager = ConfigurationManager()
    return config_manager.load_config(config_dir)
