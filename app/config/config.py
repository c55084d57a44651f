"""Configuration module that loads environment variables from .env.

Enhanced with environment-specific configuration support.
"""


from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from app.config.environment import get_environment_config

# Fields an environment YAML file is allowed to override.
ENVIRONMENT_OVERRIDES = (
    "logging_enabled",
    "log_level",
    "require_api_key",
    "storage_backend",
    "redis_max_connections",
    "llm_provider",
    "llm_timeout_seconds",
    "ocr_timeout_seconds",
    "analysis_temperature",
    "intent_temperature",
    "chat_temperature",
    "max_image_bytes",
    "cors_origins",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    api_keys: str = ""
    api_key_header_name: str = "x-api-key"
    require_api_key: bool = False
    user_id_header_name: str = "x-user-id"
    cors_origins: list[str] = ["http://localhost:3000"]
    # Logging controls
    logging_enabled: bool = True
    log_level: str = "INFO"
    log_dir: str = "app/log"
    # Storage
    storage_backend: str = "redis"  # "redis" or "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 10
    analysis_ttl_seconds: int = 0  # 0 keeps records forever
    # LLM settings
    llm_provider: str = "gemini"  # gemini | groq | openai | anthropic
    llm_model: str = ""  # empty selects the provider default
    analysis_temperature: float = 0.7
    intent_temperature: float = 0.5
    chat_temperature: float = 0.8
    max_output_tokens: int = 2048
    safety_threshold: str = "BLOCK_MEDIUM_AND_ABOVE"
    llm_timeout_seconds: int = 30
    # Provider API keys
    GEMINI_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    GROQ_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    # OCR
    ocr_language: str = "eng"
    tesseract_cmd: str = ""
    ocr_timeout_seconds: int = 30
    # Pipeline
    min_text_length: int = 5
    chat_history_limit: int = 10
    risk_low_threshold: int = 80
    risk_medium_threshold: int = 50
    max_image_bytes: int = 10 * 1024 * 1024
    health_check_timeout_seconds: int = 5

    def apply_environment_overrides(self):
        """Apply environment-specific configuration overrides."""
        try:
            env_config = get_environment_config()
            explicit = env_config.model_fields_set

            for field in ENVIRONMENT_OVERRIDES:
                if field in explicit:
                    setattr(self, field, getattr(env_config, field))

        except Exception as e:
            # Don't fail if environment config is not available
            import logging

            logging.warning(f"Failed to apply environment overrides: {e}")


# Create settings instance and apply environment overrides
settings = Settings()
settings.apply_environment_overrides()


def get_allowed_api_keys() -> list[str]:
    if not settings.api_keys:
        return []
    return [k.strip() for k in settings.api_keys.split(",") if k.strip()]
