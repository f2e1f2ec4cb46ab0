"""Configuration management for cardbooth."""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Kiosk configuration loaded from config.yaml."""

    # Card canvas size in pixels
    card_width_px: int = 1200
    card_height_px: int = 1800
    # TrueType fonts for card text; Pillow's default font is used when unset
    font_path: Path | None = None
    bold_font_path: Path | None = None
    # Built kiosk front-end, served for every non-API path when present
    static_dir: Path = Path("./front/dist")
    # Base URL printed into answer QR codes (defaults to the request's own URL)
    public_base_url: str | None = None
    # Language the model writes questions and card text in
    output_language: str = "Korean"


class Settings(BaseSettings):
    """Environment-based settings."""

    model_config = SettingsConfigDict(
        env_prefix="CARDBOOTH_",
        env_file=".env",
        extra="ignore",
    )

    config_file: Path = Path("config.yaml")
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    ollama_url: str = "http://127.0.0.1:11434"
    ollama_model: str = "gpt-oss:20b"
    ollama_timeout_seconds: float = 600
    ollama_health_timeout_seconds: float = 5

    print_job_ttl_seconds: float = 300
    print_claim_ttl_seconds: float = 60
    input_session_ttl_seconds: float = 600
    sweep_interval_seconds: float = 10


def load_config(config_path: Path) -> AppConfig:
    """Load kiosk configuration from a YAML file. A missing file yields defaults."""
    if not config_path.exists():
        return AppConfig()

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    config = AppConfig.model_validate(data)
    base_dir = config_path.parent
    # Relative paths are resolved against the config file location
    for field_name in ("font_path", "bold_font_path", "static_dir"):
        value = getattr(config, field_name)
        if value is not None and not value.is_absolute():
            setattr(config, field_name, base_dir / value)
    logger.debug(f"Loaded config from {config_path}")
    return config


# Global settings instance
settings = Settings()
