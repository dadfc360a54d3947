"""Tests for Argon2id client secret hashing."""

from unittest.mock import patch

from tokensmith.infrastructure.security import secret_hasher


def test_hash_uses_argon2id():
    hashed = secret_hasher.hash_secret("client-secret")
    assert hashed.startswith("$argon2id$")
    assert "client-secret" not in hashed


def test_hashes_are_salted():
    assert secret_hasher.hash_secret("same") != secret_hasher.hash_secret("same")


def test_verify_secret():
    hashed = secret_hasher.hash_secret("client-secret")
    assert secret_hasher.verify_secret("client-secret", hashed) is True
    assert secret_hasher.verify_secret("wrong-secret", hashed) is False


def test_verify_against_malformed_hash_is_false():
    assert secret_hasher.verify_secret("client-secret", "not-a-hash") is False


def test_burn_verification_uses_reference_hash():
    with patch.object(secret_hasher, "verify_secret", return_value=False) as verify:
        secret_hasher.burn_verification()
    verify.assert_called_once()
    assert verify.call_args.args[1] == secret_hasher.DUMMY_SECRET_HASH


def test_needs_rehash():
    assert secret_hasher.needs_rehash(secret_hasher.hash_secret("x")) is False
