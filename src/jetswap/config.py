"""Application configuration using pydantic-settings.

Every remote credential is optional. Without ``AUDIT_API_KEY`` the phrase
pipeline runs in offline mode, without ``CMC_API_KEY`` market data is served
from cache and seed values only.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="127.0.0.1", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Linguistic audit (remote judgment service)
    # ======================
    audit_api_key: Optional[str] = Field(
        default=None, description="Credential for the audit service (unset = offline mode)"
    )
    audit_model: str = Field(default="gemini-1.5-flash", description="Audit model name")
    audit_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Audit service base URL",
    )
    audit_min_spacing: float = Field(
        default=5.0, description="Minimum seconds between audit requests"
    )
    audit_backoff_base: float = Field(
        default=4.0, description="First retry delay after a throttled audit request"
    )
    audit_max_attempts: int = Field(default=3, description="Audit attempts before giving up")
    audit_timeout: float = Field(default=30.0, description="Audit HTTP timeout in seconds")
    audit_cache_ttl: float = Field(
        default=300.0, description="Seconds a successful remote verdict is reused"
    )

    # ======================
    # Bridge session
    # ======================
    session_ttl_seconds: int = Field(default=25 * 60, description="Bridge session lifetime")
    session_tick_seconds: float = Field(default=1.0, description="Expiry check interval")
    session_store_path: Optional[str] = Field(
        default=None, description="JSON file for session flags (unset = in-memory)"
    )
    debounce_seconds: float = Field(default=0.5, description="Phrase input debounce delay")

    # ======================
    # Market data (CoinMarketCap)
    # ======================
    cmc_api_key: str = Field(default="", description="CoinMarketCap API key")
    cmc_base_url: str = Field(
        default="https://pro-api.coinmarketcap.com", description="CoinMarketCap API URL"
    )
    cmc_relay_url: str = Field(
        default="https://api.allorigins.win/get?url=",
        description="Relay used as the secondary market data route",
    )
    market_min_spacing: float = Field(
        default=1.0, description="Minimum seconds between market data requests"
    )
    market_backoff_base: float = Field(default=1.0, description="First market retry delay")
    market_max_attempts: int = Field(default=3, description="Market attempts per tier")
    market_tier_timeout: float = Field(
        default=20.0, description="Upper bound in seconds for one fallback tier"
    )
    market_cache_ttl: float = Field(
        default=60.0, description="Seconds fresh quotes are served without a remote call"
    )
    market_stale_ttl: float = Field(
        default=900.0, description="Seconds the last good result remains a fallback"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_audit_credential(self) -> bool:
        """Check if the remote audit service is configured."""
        key = (self.audit_api_key or "").strip()
        return len(key) >= 10 and key != "YOUR_GEMINI_API_KEY_HERE"

    @property
    def has_market_credential(self) -> bool:
        """Check if the CoinMarketCap key is configured."""
        return bool(self.cmc_api_key.strip())

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "audit": {
                "mode": "remote" if self.has_audit_credential else "offline",
                "api_key": "***" if self.audit_api_key else "(not set)",
                "model": self.audit_model,
                "min_spacing": self.audit_min_spacing,
                "max_attempts": self.audit_max_attempts,
            },
            "session": {
                "ttl_seconds": self.session_ttl_seconds,
                "store": "file" if self.session_store_path else "memory",
            },
            "market": {
                "api_key": "***" if self.cmc_api_key else "(not set)",
                "base_url": self.cmc_base_url,
                "cache_ttl": self.market_cache_ttl,
                "stale_ttl": self.market_stale_ttl,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
