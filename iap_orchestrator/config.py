"""Configuration management - loads products.yaml and environment variables."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from iap_orchestrator.models import ProductsConfig, ValidationService, ValidatorSettings


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class Config:
    """Application configuration loader and manager.

    Loads products.yaml and provides validated access to:
    - Bundle namespace and registered products
    - Receipt validator settings
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to products.yaml file. If not provided, uses CONFIG_PATH env var
                        or defaults to ./config/products.yaml
        """
        self._config_path = self._resolve_config_path(config_path)
        self._products_config: Optional[ProductsConfig] = None
        self._load_config()

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        """Resolve configuration file path from argument, env var, or default."""
        if config_path:
            return Path(config_path)

        env_path = os.getenv("CONFIG_PATH")
        if env_path:
            return Path(env_path)

        return Path("config/products.yaml")

    def _load_config(self) -> None:
        """Load and validate products.yaml configuration."""
        if not self._config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self._config_path}\n"
                f"Please create config/products.yaml or set CONFIG_PATH environment variable"
            )

        try:
            with open(self._config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Unable to read configuration file {self._config_path}: {e}") from e

        if not raw_config:
            raise ConfigurationError(f"Configuration file is empty: {self._config_path}")
        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self._config_path}")

        try:
            self._products_config = ProductsConfig(**raw_config)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    @property
    def products(self) -> ProductsConfig:
        """Get validated products configuration."""
        if self._products_config is None:
            raise ConfigurationError("Configuration not loaded")
        return self._products_config

    @property
    def config_path(self) -> Path:
        """Get path to configuration file."""
        return self._config_path

    @property
    def bundle_id(self) -> str:
        """Bundle namespace (e.g., "com.musevisions.iOS.SwiftyStoreKit")."""
        return self.products.bundle_id

    @property
    def validator_settings(self) -> ValidatorSettings:
        """Receipt validator settings."""
        return self.products.validator

    @property
    def validation_service(self) -> ValidationService:
        """Configured validation endpoint."""
        return ValidationService(self.products.validator.service)

    @property
    def shared_secret(self) -> Optional[str]:
        """Shared secret read from the configured environment variable.

        Returns:
            The secret, or None when the variable is unset or empty
        """
        return os.getenv(self.products.validator.shared_secret_env) or None

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load_config()


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """Get global configuration instance (singleton).

    Args:
        config_path: Optional path to configuration file (only used on first call)

    Returns:
        Config instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(config_path)
    return _config_instance


def reload_config() -> None:
    """Reload global configuration from disk."""
    global _config_instance
    if _config_instance:
        _config_instance.reload()
    else:
        _config_instance = Config()


def reset_config() -> None:
    """Drop the global configuration instance (useful for testing)."""
    global _config_instance
    _config_instance = None
