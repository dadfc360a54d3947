import base64
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tokensmith.core.config import DEFAULT_TOKEN_HASH_SECRET, Settings, get_settings

MASTER_KEY = base64.b64encode(b"k" * 32).decode("ascii")


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.app_name == "Tokensmith"
    assert settings.environment == "development"
    assert settings.access_token_ttl_seconds == 3600
    assert settings.refresh_token_ttl_seconds == 30 * 24 * 3600
    assert settings.authorization_code_ttl_seconds == 600
    assert settings.signing_algorithm == "RS256"
    assert settings.rsa_key_size == 4096
    assert settings.ecdsa_curve is None
    assert settings.token_hash_secret == DEFAULT_TOKEN_HASH_SECRET
    assert settings.private_key_encryption_key is None
    assert settings.require_pkce_for_public_clients is True
    assert settings.is_development is True
    assert settings.is_production is False
    assert settings.is_testing is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(
        os.environ,
        {
            "TOKENSMITH_ENVIRONMENT": "production",
            "TOKENSMITH_ISSUER": "https://auth.example.com",
            "TOKENSMITH_ACCESS_TOKEN_TTL_SECONDS": "900",
            "TOKENSMITH_SIGNING_ALGORITHM": "ES256",
            "TOKENSMITH_PRIVATE_KEY_ENCRYPTION_KEY": MASTER_KEY,
        },
    ):
        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.issuer == "https://auth.example.com"
        assert settings.access_token_ttl_seconds == 900
        assert settings.signing_algorithm == "ES256"
        assert settings.private_key_encryption_key == MASTER_KEY
        assert settings.is_production is True


def test_get_settings_is_cached():
    """get_settings returns the same instance until the cache is cleared."""
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_settings_are_immutable():
    settings = Settings(_env_file=None)
    with pytest.raises(ValidationError):
        settings.issuer = "https://other.example.com"


def test_master_key_must_be_base64():
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, private_key_encryption_key="not base64 !!")
    assert "valid base64" in str(exc_info.value)


def test_master_key_must_be_32_bytes():
    short_key = base64.b64encode(b"k" * 16).decode("ascii")
    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None, private_key_encryption_key=short_key)
    assert "32 bytes" in str(exc_info.value)


def test_token_hash_secret_minimum_length():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, token_hash_secret="too-short")


def test_rsa_key_size_minimum():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, rsa_key_size=1024)


def test_non_positive_ttl_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, access_token_ttl_seconds=0)


def test_deactivation_grace_defaults_to_access_token_ttl():
    settings = Settings(_env_file=None, access_token_ttl_seconds=1200)
    assert settings.key_deactivation_grace_seconds is None
    assert settings.deactivation_grace_seconds == 1200


def test_deactivation_grace_shorter_than_access_token_ttl_rejected():
    """A key must stay verifiable for as long as the tokens it signed."""
    with pytest.raises(ValidationError) as exc_info:
        Settings(
            _env_file=None,
            access_token_ttl_seconds=3600,
            key_deactivation_grace_seconds=60,
        )
    assert "key_deactivation_grace_seconds" in str(exc_info.value)


def test_explicit_deactivation_grace():
    settings = Settings(
        _env_file=None,
        access_token_ttl_seconds=3600,
        key_deactivation_grace_seconds=7200,
    )
    assert settings.deactivation_grace_seconds == 7200


def test_ecdsa_curve_must_be_supported():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, ecdsa_curve="P-192")

    assert Settings(_env_file=None, ecdsa_curve="P-521").ecdsa_curve == "P-521"
