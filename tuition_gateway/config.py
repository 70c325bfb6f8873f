"""Configuration management using Pydantic Settings"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Document store
    database_url: str = "sqlite:///./tuition_gateway.db"

    # Service
    service_name: str = "tuition-gateway"
    log_level: str = "INFO"
    currency: str = "ZAR"

    # HTTP Client
    http_timeout_seconds: float = 5.0

    # Store retries: linear backoff, delay * attempt
    store_max_retries: int = 3
    store_retry_delay_seconds: float = 1.0

    # Payment gateways
    payment_verification_mode: Literal["stub", "live"] = "stub"
    paystack_api_base: str = "https://api.paystack.co"
    paystack_public_key: str = ""
    paystack_secret_key: str = ""
    payfast_api_base: str = "https://www.payfast.co.za"
    payfast_merchant_id: str = ""

    # Admin application list cache
    admin_cache_ttl_seconds: int = 3600


settings = Settings()
