"""Environment-specific configuration management.

Loads configuration from YAML files based on the current environment,
with fallback to environment variables and defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from app.utils.logger import get_logger

logger = get_logger("config.environment")


class EnvironmentConfig(BaseModel):
    """Environment-specific configuration model."""

    # Application settings
    debug: bool = False
    environment: str = "development"

    # Logging
    logging_enabled: bool = True
    log_level: str = "INFO"

    # Security
    require_api_key: bool = False

    # Storage
    storage_backend: str = "redis"
    redis_max_connections: int = 10

    # LLM / OCR
    llm_provider: str = "gemini"
    llm_timeout_seconds: int = 30
    ocr_timeout_seconds: int = 30
    analysis_temperature: float = 0.7
    intent_temperature: float = 0.5
    chat_temperature: float = 0.8

    # Uploads
    max_image_bytes: int = 10 * 1024 * 1024

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]


# Environment variable name -> (config key, type)
ENV_VAR_MAPPING: dict[str, tuple[str, type]] = {
    "DEBUG": ("debug", bool),
    "LOGGING_ENABLED": ("logging_enabled", bool),
    "LOG_LEVEL": ("log_level", str),
    "REQUIRE_API_KEY": ("require_api_key", bool),
    "STORAGE_BACKEND": ("storage_backend", str),
    "REDIS_MAX_CONNECTIONS": ("redis_max_connections", int),
    "LLM_PROVIDER": ("llm_provider", str),
    "LLM_TIMEOUT_SECONDS": ("llm_timeout_seconds", int),
    "OCR_TIMEOUT_SECONDS": ("ocr_timeout_seconds", int),
    "ANALYSIS_TEMPERATURE": ("analysis_temperature", float),
}


class ConfigLoader:
    """Load and manage environment-specific configurations."""

    def __init__(self):
        self.config_dir = Path(__file__).parent.parent.parent / "config"
        self.environment = self._detect_environment()
        self._loaded_config: EnvironmentConfig | None = None

    def _detect_environment(self) -> str:
        """Detect current environment from various sources."""
        env = os.getenv("ENVIRONMENT") or os.getenv("ENV") or os.getenv("STAGE")

        if env:
            return env.lower()

        if os.getenv("CI") or os.getenv("GITHUB_ACTIONS"):
            return "testing"

        return "development"

    def _load_yaml_config(self, environment: str) -> dict[str, Any]:
        """Load configuration from YAML file."""
        config_file = self.config_dir / f"{environment}.yaml"

        if not config_file.exists():
            logger.warning(f"Configuration file not found: {config_file}")
            return {}

        try:
            with open(config_file) as f:
                config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {config_file}")
            return config
        except Exception as e:
            logger.error(f"Failed to load configuration from {config_file}: {e}")
            return {}

    def _merge_with_env_vars(self, config: dict[str, Any]) -> dict[str, Any]:
        """Merge configuration with environment variables."""
        for env_var, (config_key, value_type) in ENV_VAR_MAPPING.items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue

            if value_type is bool:
                config[config_key] = env_value.lower() in ("true", "1", "yes", "on")
                continue

            try:
                config[config_key] = value_type(env_value)
            except ValueError:
                logger.warning(f"Invalid {value_type.__name__} value for {env_var}: {env_value}")

        return config

    def load_config(self, environment: str | None = None) -> EnvironmentConfig:
        """Load complete configuration for the specified environment."""
        if self._loaded_config and environment is None:
            return self._loaded_config

        env = environment or self.environment

        config_data = self._load_yaml_config(env)
        config_data = self._merge_with_env_vars(config_data)

        try:
            config = EnvironmentConfig(**config_data)
            logger.info(f"Configuration loaded for environment: {env}")

            if environment is None:
                self._loaded_config = config

            return config
        except Exception as e:
            logger.error(f"Failed to create configuration: {e}")
            return EnvironmentConfig()

    def get_environment(self) -> str:
        """Get current environment name."""
        return self.environment

    def is_production(self) -> bool:
        return self.environment == "production"

    def is_testing(self) -> bool:
        return self.environment == "testing"


# Global configuration loader
_config_loader = ConfigLoader()


def get_environment_config() -> EnvironmentConfig:
    """Get current environment configuration."""
    return _config_loader.load_config()


def get_environment() -> str:
    """Get current environment name."""
    return _config_loader.get_environment()


def is_production() -> bool:
    return _config_loader.is_production()


def is_testing() -> bool:
    return _config_loader.is_testing()


def reload_config(environment: str | None = None) -> EnvironmentConfig:
    """Reload configuration (useful for testing)."""
    _config_loader._loaded_config = None
    return _config_loader.load_config(environment)
