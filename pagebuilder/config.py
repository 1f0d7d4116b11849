"""Configuration settings for the page builder conversion service"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings.

    Priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values
    """

    # Service Identity
    SERVICE_NAME: str = "pagebuilder"
    SERVICE_PORT: int = 5002
    LOG_LEVEL: str = "INFO"

    # Conversion defaults (used when a request omits them)
    DEFAULT_MIN_CONFIDENCE: int = 60
    DEFAULT_FALLBACK_TO_HTML: bool = True
    DEFAULT_PRESERVE_CUSTOM_CSS: bool = True
    DEFAULT_INCLUDE_RESPONSIVE: bool = False
    DEFAULT_INCLUDE_ANIMATIONS: bool = False
    DEFAULT_OPTIMIZE_ASSETS: bool = True

    # Target format versions
    ELEMENTOR_VERSION: str = "3.16.0"
    GUTENBERG_WP_VERSION: str = "6.4"
    BEAVER_BUILDER_VERSION: str = "2.7"
    DIVI_VERSION: str = "4.22"
    BRICKS_VERSION: str = "1.9"
    OXYGEN_VERSION: str = "4.8"

    # Validation
    # Rendering and asset checks share one semaphore of this size
    VALIDATION_TIMEOUT_SECONDS: float = 30.0
    VALIDATION_MAX_WORKERS: int = 4
    ASSET_CHECK_TIMEOUT_SECONDS: float = 10.0
    RENDER_HEADLESS: bool = True
    VISUAL_SIMILARITY_ERROR_THRESHOLD: float = 80.0
    VISUAL_SIMILARITY_WARNING_THRESHOLD: float = 90.0
    ASSET_COMPATIBILITY_ERROR_THRESHOLD: float = 80.0
    ASSET_COMPATIBILITY_WARNING_THRESHOLD: float = 95.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def log_settings():
    """Log the effective configuration at startup"""
    logger.info(f"Service: {settings.SERVICE_NAME}")
    logger.info(f"Port: {settings.SERVICE_PORT}")
    logger.info(f"Min confidence: {settings.DEFAULT_MIN_CONFIDENCE}")
    logger.info(f"HTML fallback: {'ENABLED' if settings.DEFAULT_FALLBACK_TO_HTML else 'DISABLED'}")
    logger.info(f"Validation: timeout={settings.VALIDATION_TIMEOUT_SECONDS}s, workers={settings.VALIDATION_MAX_WORKERS}")
