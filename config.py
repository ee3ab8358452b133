"""
Configuration management using Pydantic Settings.
Validates all environment variables at startup for fail-fast behavior.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from core.reps.accounts import normalize_account


class Settings(BaseSettings):
    """Application settings with validation."""

    # Data sources
    RPC_URL: str = Field(
        default="https://kaliumapi.appditto.com/api",
        description="Ledger node RPC endpoint (account_info, representatives_online, confirmation_quorum)"
    )
    CREEPER_URL: Optional[str] = Field(
        default="https://api.creeper.banano.cc/banano/v1",
        description="Crawler API base URL (leave empty to disable)"
    )
    NINJA_URL: Optional[str] = Field(
        default="https://ninja.banano.cc/api",
        description="Reputation / uptime API base URL (leave empty to disable)"
    )
    HTTP_TIMEOUT: int = Field(
        default=15,
        ge=1,
        le=120,
        description="Per-request timeout for external sources in seconds (1-120)"
    )

    # Performance settings
    MAX_FETCH_WORKERS: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Maximum parallel source requests per overview (1-32)"
    )

    # Known representative list
    STORE_KEY: str = Field(
        default="banvault-representatives",
        description="Key of the persisted known-representative list"
    )
    LEGACY_STORE_KEY: str = Field(
        default="nanovault-representatives",
        description="Key used by older wallet versions; migrated on first load"
    )
    CREEPER_MIN_WEIGHT: int = Field(
        default=100000,
        ge=0,
        description="Minimum weight (whole units) for crawler-seeded representatives"
    )
    NF_REPRESENTATIVES: str = Field(
        default="",
        description="Comma-separated representatives always treated as non-functional"
    )

    # Database settings
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string for the key-value store (optional)"
    )
    DB_POOL_MIN: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Minimum database pool connections"
    )
    DB_POOL_MAX: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum database pool connections"
    )

    # Frontend settings
    FRONTEND_ORIGIN: str = Field(
        default="http://localhost:3000",
        description="Frontend origin for CORS (no wildcard allowed)"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper

    @field_validator("DB_POOL_MAX")
    @classmethod
    def validate_pool_max_gte_min(cls, v: int, info) -> int:
        """Ensure max pool size >= min pool size."""
        if "DB_POOL_MIN" in info.data and v < info.data["DB_POOL_MIN"]:
            raise ValueError("DB_POOL_MAX must be >= DB_POOL_MIN")
        return v

    @field_validator("FRONTEND_ORIGIN")
    @classmethod
    def validate_no_wildcard_origin(cls, v: str) -> str:
        """Prevent wildcard CORS origin."""
        if v == "*":
            raise ValueError(
                "FRONTEND_ORIGIN cannot be '*' (wildcard). "
                "Set explicit origin or leave unset for localhost:3000 default."
            )
        return v

    @field_validator("RPC_URL")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("RPC_URL must be an http(s) URL")
        return v

    @property
    def blocklist(self) -> List[str]:
        """Parsed NF_REPRESENTATIVES."""
        return [normalize_account(a) for a in self.NF_REPRESENTATIVES.split(",") if a.strip()]

    @property
    def database_enabled(self) -> bool:
        """Check if database is configured."""
        return bool(self.DATABASE_URL)


# Global settings instance
settings = Settings()
