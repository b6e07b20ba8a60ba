"""
Configuration management for tilegarden.

This module handles loading and accessing configuration values from config.yaml.
Storage locations, slot keys, autosave timings and logging can all be changed
without touching code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict
import logging


class ConfigManager:
    """
    Manages configuration loading and access for tilegarden.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}

            if not isinstance(loaded, dict):
                raise ValueError(f"Configuration root must be a mapping, got {type(loaded).__name__}")

            # Missing sections fall back to defaults
            self._config = self._merge(self._get_default_config(), loaded)
            logging.info(f"Configuration loaded from {self.config_path}")

        except Exception as e:
            logging.warning(f"Failed to load configuration, using defaults: {e}")
            self._config = self._get_default_config()

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively overlay override onto base."""
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "storage": {
                "backend": "file",
                "directory": ".tilegarden",
                "database": "tilegarden.duckdb",
                "base_url": "http://localhost:8000",
                "timeout": 10.0,
                "live_key": "garden-builder-data",
                "backup_key": "garden-builder-backup"
            },
            "persistence": {
                "version": "2.0.0"
            },
            "autosave": {
                "delay_seconds": 2.0,
                "snapshot_interval_seconds": 120.0,
                "snapshot_key_prefix": "garden-snapshot"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "file": None
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "storage.backend")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("storage.backend")  # Returns "file"
            config.get("autosave.delay_seconds")  # Returns 2.0
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def storage_backend(self) -> str:
        """Get the storage backend name (memory, file, duckdb or http)."""
        return self.get("storage.backend", "file")

    @property
    def storage_directory(self) -> str:
        """Get the directory used by the file backend."""
        return self.get("storage.directory", ".tilegarden")

    @property
    def database_filename(self) -> str:
        """Get the DuckDB database filename."""
        return self.get("storage.database", "tilegarden.duckdb")

    @property
    def storage_base_url(self) -> str:
        """Get the remote storage base URL."""
        return self.get("storage.base_url", "http://localhost:8000")

    @property
    def storage_timeout(self) -> float:
        """Get the remote storage timeout."""
        return self.get("storage.timeout", 10.0)

    @property
    def live_key(self) -> str:
        """Get the key of the live slot."""
        return self.get("storage.live_key", "garden-builder-data")

    @property
    def backup_key(self) -> str:
        """Get the key of the backup slot."""
        return self.get("storage.backup_key", "garden-builder-backup")

    @property
    def format_version(self) -> str:
        """Get the envelope version written on save."""
        return self.get("persistence.version", "2.0.0")

    @property
    def autosave_delay(self) -> float:
        """Get the autosave quiescent delay in seconds."""
        return self.get("autosave.delay_seconds", 2.0)

    @property
    def snapshot_interval(self) -> float:
        """Get the local safety snapshot interval in seconds."""
        return self.get("autosave.snapshot_interval_seconds", 120.0)

    @property
    def snapshot_key_prefix(self) -> str:
        """Get the key prefix for local safety snapshots."""
        return self.get("autosave.snapshot_key_prefix", "garden-snapshot")


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
