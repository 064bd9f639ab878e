"""
Configuration management for secure-route.
"""

import os
import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional
import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from secure_route.core.errors import ConfigurationError
from secure_route.models.schemas import HookConfiguration
from secure_route.observability.logging import setup_logging
from secure_route.observability.tracing import setup_tracing

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings loaded from environment and config files."""

    # Session behaviour
    lock: bool = False
    basic: bool = True

    # Hook import strings, e.g. {"login": "myapp.auth:login"}
    hooks: Dict[str, str] = {}

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    # Observability
    enable_tracing: bool = False

    # Config file path
    config_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="SECURE_ROUTE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return load_merged_config()


def load_config_from_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary, empty when the file does not exist

    Raises:
        ConfigurationError: If the file is not valid YAML or not a mapping
    """
    if not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return data


def get_config_file_paths() -> List[str]:
    """Get list of potential config file paths in order of preference."""
    return [
        os.environ.get("SECURE_ROUTE_CONFIG_FILE", ""),
        "/etc/secure-route/config.yaml",
        os.path.expanduser("~/.config/secure-route/config.yaml"),
        "./config.yaml"
    ]


def load_merged_config(config_file: Optional[str] = None) -> Settings:
    """
    Load settings from multiple sources with precedence:
    1. Configuration file (``config_file`` or the first existing default path)
    2. Environment variables
    3. Defaults
    """
    paths = [config_file] if config_file else get_config_file_paths()

    config_data: Dict[str, Any] = {}
    for config_path in paths:
        if config_path and os.path.exists(config_path):
            config_data = load_config_from_file(config_path)
            logger.debug("Loaded configuration from %s", config_path)
            break

    if not config_data:
        return Settings()

    flat_config: Dict[str, Any] = {}

    # Logging section
    logging_config = config_data.get("logging", {}) or {}
    if "level" in logging_config:
        flat_config["log_level"] = logging_config["level"]
    if "format" in logging_config:
        flat_config["log_format"] = logging_config["format"]
    if "file" in logging_config:
        flat_config["log_file"] = logging_config["file"]

    # Direct mappings
    for key in ["lock", "basic", "hooks", "enable_tracing"]:
        if key in config_data:
            flat_config[key] = config_data[key]

    try:
        return Settings(**flat_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def build_hook_configuration(settings: Optional[Settings] = None, **hooks: Any) -> HookConfiguration:
    """
    Create a HookConfiguration from settings, with ``hooks`` taking precedence.

    Raises:
        ConfigurationError: If a hook cannot be imported or is not callable
    """
    settings = settings or get_settings()

    values: Dict[str, Any] = {"lock": settings.lock, "basic": settings.basic}
    values.update(settings.hooks)
    values.update(hooks)

    try:
        return HookConfiguration(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid hook configuration: {e}") from e


def configure_observability(settings: Settings, app: Optional[Any] = None) -> None:
    """Apply the logging and tracing settings."""
    setup_logging(settings.log_level, settings.log_format, settings.log_file)
    if settings.enable_tracing:
        setup_tracing(app=app)
