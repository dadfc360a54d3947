"""Configuration management for Tokensmith.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once when the
engine is assembled and is immutable afterwards.
"""

import base64
import binascii
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_HASH_SECRET = "change-me-in-production-use-openssl-rand-hex-32"


class Settings(BaseSettings):
    """Engine configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at construction time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TOKENSMITH_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application Settings
    app_name: str = "Tokensmith"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./ts_data/tokensmith.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Issuer Settings
    issuer: str = Field(
        default="http://localhost:8000",
        description="Value of the iss claim in every access token",
    )

    # Secrets
    private_key_encryption_key: str | None = Field(
        default=None,
        description="Base64-encoded 32-byte master key for signing keys at rest",
    )
    token_hash_secret: str = Field(
        default=DEFAULT_TOKEN_HASH_SECRET,
        description="HMAC secret used to hash authorization codes and refresh tokens",
    )

    # Token lifetimes
    access_token_ttl_seconds: int = Field(default=3600, gt=0)
    refresh_token_ttl_seconds: int = Field(default=30 * 24 * 3600, gt=0)
    authorization_code_ttl_seconds: int = Field(default=600, gt=0)

    # Signing keys
    signing_algorithm: Literal["RS256", "RS384", "RS512", "ES256", "ES384", "ES512"] = "RS256"
    ecdsa_curve: Literal["P-256", "P-384", "P-521"] | None = Field(
        default=None,
        description="Curve for ECDSA keys. When set and signing_algorithm is an ES "
        "algorithm, the curve selects the ES variant.",
    )
    rsa_key_size: int = 4096
    signing_key_lifetime_days: int = Field(default=90, gt=0)
    key_deactivation_grace_seconds: int | None = Field(
        default=None,
        description="How long a deactivated key stays available for verification. "
        "Defaults to the access token TTL.",
    )

    # Client policy
    require_pkce_for_public_clients: bool = True

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("private_key_encryption_key")
    @classmethod
    def validate_private_key_encryption_key(cls, v: str | None) -> str | None:
        """Validate the master key decodes to exactly 32 bytes."""
        if v is None:
            return v
        try:
            raw = base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("private_key_encryption_key must be valid base64") from e
        if len(raw) != 32:
            raise ValueError("private_key_encryption_key must decode to 32 bytes")
        return v

    @field_validator("token_hash_secret")
    @classmethod
    def validate_token_hash_secret(cls, v: str) -> str:
        """Reject HMAC secrets that are too short to be useful."""
        if len(v) < 32:
            raise ValueError("token_hash_secret must be at least 32 characters")
        return v

    @field_validator("rsa_key_size")
    @classmethod
    def validate_rsa_key_size(cls, v: int) -> int:
        """Validate RSA modulus size."""
        if v < 2048:
            raise ValueError("rsa_key_size must be at least 2048 bits")
        return v

    @model_validator(mode="after")
    def validate_deactivation_grace(self) -> "Settings":
        """A deactivated key must outlive every token it has signed."""
        grace = self.key_deactivation_grace_seconds
        if grace is not None and grace < self.access_token_ttl_seconds:
            raise ValueError(
                "key_deactivation_grace_seconds must be at least access_token_ttl_seconds "
                f"({grace} < {self.access_token_ttl_seconds})"
            )
        return self

    @property
    def deactivation_grace_seconds(self) -> int:
        """Effective grace period between key deactivation and deletion."""
        if self.key_deactivation_grace_seconds is None:
            return self.access_token_ttl_seconds
        return self.key_deactivation_grace_seconds

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
