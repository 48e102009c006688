"""Application settings via Pydantic Settings."""

from functools import lru_cache
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Bodega Cat Storefront API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Redis (catalog cache; optional)
    redis_url: str = "redis://localhost:6379/0"

    # CORS
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4321"],
        validation_alias=AliasChoices("CORS_ORIGINS", "ALLOWED_ORIGINS"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v: object) -> list[str]:
        """
        Accept either:
        - JSON array string: '["https://a.com","http://localhost:4321"]'
        - Comma-separated string: "https://a.com,http://localhost:4321"
        - Already-parsed list[str]
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return []
            if s.startswith("["):
                try:
                    parsed = json.loads(s)
                except json.JSONDecodeError:
                    parsed = s.split(",")
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]
                return [str(parsed).strip()]
            return [part.strip() for part in s.split(",") if part.strip()]
        return [str(v).strip()] if str(v).strip() else []

    # Stripe
    stripe_secret_key: str = Field(
        default="",
        validation_alias=AliasChoices("STRIPE_SECRET_KEY"),
    )
    stripe_api_version: str = Field(
        default="2025-06-30.basil",
        validation_alias=AliasChoices("STRIPE_API_VERSION"),
    )

    # Public site URL used for checkout return URLs when the request origin is unknown
    site_url: str = Field(
        default="",
        validation_alias=AliasChoices("SITE_URL"),
    )

    # Catalog
    catalog_flag_key: str = Field(
        default="bodegacat_active",
        description="Stripe product metadata key that must be 'true' to list the product",
    )
    catalog_cache_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("CATALOG_CACHE_ENABLED"),
        description="Cache the product listing in Redis when Redis is available",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
