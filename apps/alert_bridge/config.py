"""
Alert Bridge configuration.

Settings are loaded from environment variables or a .env file with Pydantic
Settings. The exchange credentials are read once at startup and handed to the
order client as an immutable ExchangeCredentials value.

Environment:
    BYBIT_API_KEY, BYBIT_API_SECRET   Bybit API credentials (required)
    USE_TESTNET                       true -> api-testnet.bybit.com
    BYBIT_BASE_URL                    Explicit base URL override (optional)
    PORT, HOST                        Listener address (default 0.0.0.0:3000)
    LOG_LEVEL                         Logging level (default INFO)
    REQUEST_TIMEOUT_SECONDS           Exchange call timeout (default 10)
    RECV_WINDOW_MS                    X-BAPI-RECV-WINDOW (default 5000)
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from libs.bybit import (
    DEFAULT_RECV_WINDOW_MS,
    DEFAULT_TIMEOUT_SECONDS,
    MAINNET_BASE_URL,
    TESTNET_BASE_URL,
    ExchangeCredentials,
)


class Settings(BaseSettings):
    """Alert Bridge settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Configuration
    service_name: str = "alert-bridge"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Bybit API Configuration
    bybit_api_key: str = Field(..., min_length=1, description="Bybit API key")
    bybit_api_secret: SecretStr = Field(..., description="Bybit API secret")
    use_testnet: bool = Field(default=False, description="Trade on Bybit testnet")
    bybit_base_url: str | None = Field(
        default=None,
        description="Override the base URL derived from USE_TESTNET",
    )

    # Exchange Call Configuration
    request_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0, le=60)
    recv_window_ms: int = Field(default=DEFAULT_RECV_WINDOW_MS, gt=0, le=60_000)

    @property
    def base_url(self) -> str:
        if self.bybit_base_url:
            return self.bybit_base_url
        return TESTNET_BASE_URL if self.use_testnet else MAINNET_BASE_URL

    def credentials(self) -> ExchangeCredentials:
        """Immutable credentials for the order client.

        Raises:
            ConfigurationError: If the secret is empty
        """
        return ExchangeCredentials(
            api_key=self.bybit_api_key,
            api_secret=self.bybit_api_secret.get_secret_value(),
            base_url=self.base_url,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Example:
        >>> settings = get_settings()
        >>> settings.base_url
        'https://api-testnet.bybit.com'
    """
    return Settings()
