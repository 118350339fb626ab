"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "forma-analytics"
    environment: str = "production"  # development | production | test
    log_level: str = "INFO"
    enable_test_logs: bool = False

    # Transaction source
    transaction_api_base: str = "http://localhost:8001"
    http_timeout_seconds: float = 5.0
    historical_lookback_days: int = 90

    # Forecast service
    forecast_cache_ttl_seconds: int = 300
    default_minimum_safe_balance: Decimal = Decimal("1000")
    default_safety_buffer_days: int = 7

    # Monitoring
    error_alert_threshold: int = 10


settings = Settings()
