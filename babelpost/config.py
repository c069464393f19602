"""
Application configuration.

Loads settings from environment variables with sensible defaults.
Translator site settings declared here are only defaults; the live
values are read from the shared settings store (see site_settings.py).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""
    
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")
    
    # ==========================================================================
    # Environment
    # ==========================================================================
    
    environment: str = "development"
    debug: bool = True
    
    # ==========================================================================
    # API Server
    # ==========================================================================
    
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:3000,http://localhost:4200"
    
    # ==========================================================================
    # Authentication
    # ==========================================================================
    
    jwt_secret_key: str = "dev-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    
    # ==========================================================================
    # Shared store / coordination
    # ==========================================================================
    
    # Empty means in-memory storage (single process only)
    redis_url: str = ""
    site_settings_file: str = ""
    
    provider_timeout_seconds: float = 10.0
    detection_lock_ttl_seconds: int = 60
    worker_poll_seconds: float = 1.0
    
    # ==========================================================================
    # Translator site setting defaults
    # ==========================================================================
    
    translator_enabled: bool = False
    translator: str = "Microsoft"
    translator_enabled_for_guests: bool = False
    max_translations_per_minute: int = 3
    translator_max_post_length: int = 0
    translator_skip_category_ids: str = ""
    translator_manual_translation_locales: str = "en,ru"
    
    translator_google_api_key: str = ""
    translator_azure_subscription_key: str = ""
    translator_azure_region: str = ""
    translator_aws_region: str = "us-east-1"
    translator_aws_key_id: str = ""
    translator_aws_secret_access: str = ""
    translator_yandex_api_key: str = ""
    
    # ==========================================================================
    # Optional Services
    # ==========================================================================
    
    sentry_dsn: str = ""
    
    # ==========================================================================
    # Helpers
    # ==========================================================================
    
    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
    
    @property
    def is_production(self) -> bool:
        return self.environment == "production"
    
    @property
    def use_redis(self) -> bool:
        """Whether the shared store is Redis (required for multi-worker)."""
        return bool(self.redis_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
