"""
Application Configuration - Pydantic Settings plus the exchange credentials holder.

NO DICTIONARIES - All configuration is strongly typed.
FAIL FAST - Invalid settings and unconfigured credentials raise immediately.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from structlog import get_logger

from fcm_bridge.exceptions import ConfigurationError
from fcm_bridge.models.domain import APNSEnvironment, ExchangeConfig

logger = get_logger(__name__)

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
_LOG_FORMATS = ("json", "console")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # FCM credentials - optional here, the holder can be configured in code
    fcm_server_key: str = ""
    apns_environment: APNSEnvironment | None = None

    # Host application metadata
    app_bundle_id: str | None = None
    app_name: str | None = None
    app_version: str | None = None
    app_build: str | None = None

    # Transport
    request_timeout: float = 30.0
    send_user_agent: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = False
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "fcm-bridge"
    service_version: str = "0.1.0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """FAIL FAST: reject settings that would break logging or transport setup."""
        errors: list[str] = []

        if self.log_level.upper() not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got: {self.log_level}")
        if self.log_format not in _LOG_FORMATS:
            errors.append(f"LOG_FORMAT must be 'json' or 'console', got: {self.log_format}")
        if self.request_timeout <= 0:
            errors.append(f"REQUEST_TIMEOUT must be positive, got: {self.request_timeout}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self


class ConfigurationHolder:
    """
    Holds the FCM server key and APNS environment.

    Configure once at startup, before concurrent exchanges begin. Writes are
    not synchronized; last write wins.
    """

    def __init__(self, config: ExchangeConfig | None = None) -> None:
        self._api_key: str | None = config.api_key if config else None
        self._environment: APNSEnvironment | None = config.environment if config else None

    def configure(self, api_key: str, environment: APNSEnvironment) -> None:
        """Store both credentials. No validation of the key is performed."""
        self._api_key = api_key
        self._environment = APNSEnvironment(environment)
        logger.info("fcm_bridge_configured", environment=self._environment.value)

    def configure_from_settings(self, settings: Settings) -> bool:
        """Configure from settings if both credentials are present."""
        if not settings.fcm_server_key or settings.apns_environment is None:
            return False
        self.configure(settings.fcm_server_key, settings.apns_environment)
        return True

    def reset(self) -> None:
        self._api_key = None
        self._environment = None

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None and self._environment is not None

    def require(self) -> ExchangeConfig:
        """
        Return the current credentials.

        Raises:
            ConfigurationError: If configure() has not been called
        """
        if self._api_key is None or self._environment is None:
            raise ConfigurationError(
                "FCM server key and/or APNS environment not set, call configure() first"
            )
        return ExchangeConfig(api_key=self._api_key, environment=self._environment)


# Global settings instance - validates at import time
settings = Settings()

# Default holder for the configure-once usage pattern
_default_holder = ConfigurationHolder()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings


def get_holder() -> ConfigurationHolder:
    """Get the process-wide default configuration holder."""
    return _default_holder


def configure(api_key: str, environment: APNSEnvironment) -> None:
    """Configure the process-wide default holder."""
    _default_holder.configure(api_key, environment)
