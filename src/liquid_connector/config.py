from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    liquid_api_key: SecretStr | None = Field(default=None, alias="LIQUID_API_KEY")
    liquid_api_secret: SecretStr | None = Field(default=None, alias="LIQUID_API_SECRET")
    liquid_base_url: str = Field(default="https://api.liquid.com", alias="LIQUID_BASE_URL")
    liquid_api_version: str = Field(default="2", alias="LIQUID_API_VERSION")
    liquid_timeout_seconds: float = Field(default=10.0, alias="LIQUID_TIMEOUT_SECONDS")
    liquid_rate_limit_ms: int = Field(default=1000, alias="LIQUID_RATE_LIMIT_MS")
    liquid_cancel_order_exception: bool = Field(
        default=True, alias="LIQUID_CANCEL_ORDER_EXCEPTION"
    )
    liquid_markets_cache_ttl_seconds: int = Field(
        default=60 * 60, alias="LIQUID_MARKETS_CACHE_TTL_SECONDS"
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    observability_enabled: bool = Field(default=False, alias="OBSERVABILITY_ENABLED")
    observability_otlp_endpoint: str | None = Field(
        default=None, alias="OBSERVABILITY_OTLP_ENDPOINT"
    )

    @field_validator("liquid_base_url")
    def validate_base_url(cls, value: str) -> str:
        cleaned = value.strip().rstrip("/")
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("LIQUID_BASE_URL must be an http(s) URL")
        return cleaned

    @field_validator("liquid_timeout_seconds")
    def validate_timeout_seconds(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("LIQUID_TIMEOUT_SECONDS must be > 0")
        return value

    @field_validator("liquid_rate_limit_ms")
    def validate_rate_limit_ms(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LIQUID_RATE_LIMIT_MS must be > 0")
        return value

    @field_validator("liquid_markets_cache_ttl_seconds")
    def validate_markets_cache_ttl(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LIQUID_MARKETS_CACHE_TTL_SECONDS must be > 0")
        return value

    def has_credentials(self) -> bool:
        return bool(
            self.liquid_api_key
            and self.liquid_api_key.get_secret_value()
            and self.liquid_api_secret
            and self.liquid_api_secret.get_secret_value()
        )
