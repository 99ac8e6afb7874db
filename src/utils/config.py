"""Configuration management for the sentiment rebalancer.

This module provides simple YAML configuration loading and access.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.utils.exceptions import ConfigurationError


class Config:
    """Simple configuration loader and accessor.

    Loads YAML configuration files and provides dict-like access to settings.

    Example:
        >>> config = Config.from_file("config/default.yaml")
        >>> notional = config.get("rebalancing.notional", 100000.0)
    """

    def __init__(self, config_dict: dict[str, Any]) -> None:
        """Initialize with configuration dictionary.

        Args:
            config_dict: Configuration data as nested dictionary
        """
        self._config = config_dict

    @classmethod
    def from_file(cls, filepath: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML configuration file

        Returns:
            Config instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            config_dict = {}

        return cls(config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Supports nested keys using dot notation (e.g., "logging.level").

        Args:
            key: Configuration key (supports dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("rebalancing.materiality_usd")
            100.0
            >>> config.get("missing.key", "fallback")
            'fallback'
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation.

        Args:
            key: Configuration key (supports dot notation)

        Returns:
            Configuration value

        Raises:
            KeyError: If key not found
        """
        value = self.get(key)
        if value is None:
            raise KeyError(f"Configuration key not found: {key}")
        return value

    def to_dict(self) -> dict[str, Any]:
        """Get the full configuration as dictionary.

        Returns:
            Complete configuration dictionary
        """
        return self._config.copy()


def load_config(filepath: str | Path = None) -> Config:
    """Helper function to load configuration.

    Args:
        filepath: Path to YAML configuration file. If None, uses default path.

    Returns:
        Config instance
    """
    if filepath is None:
        # Use absolute path to default config relative to project root
        root_dir = Path(__file__).parent.parent.parent
        filepath = root_dir / "config" / "default.yaml"
    return Config.from_file(filepath)


def load_completion_credentials(env_file: str | Path = None) -> str:
    """Load the text-completion API key from the environment.

    Loads the ``.env`` file (if present) with python-dotenv, then reads
    ``TOGETHER_API_KEY``. Variables already set in the process environment
    take precedence over the file.

    Args:
        env_file: Path to .env file. If None, uses the project root .env.

    Returns:
        API key string

    Raises:
        ConfigurationError: If TOGETHER_API_KEY is not set

    Example:
        >>> api_key = load_completion_credentials()
    """
    if env_file is None:
        root_dir = Path(__file__).parent.parent.parent
        env_file = root_dir / ".env"

    if Path(env_file).exists():
        load_dotenv(env_file)

    api_key = os.getenv("TOGETHER_API_KEY")
    if not api_key:
        raise ConfigurationError(
            "TOGETHER_API_KEY not found in environment variables. "
            "Please copy .env.example to .env and fill in your credentials."
        )

    return api_key
