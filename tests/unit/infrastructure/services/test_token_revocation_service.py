"""Tests for access token blacklisting, refresh token revocation and logout."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import jwt
import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.domain.entities import AuditEventType, Client, SigningAlgorithm
from tokensmith.domain.exceptions import RepositoryError
from tokensmith.domain.services import RefreshTokenService
from tokensmith.infrastructure.auth import (
    AccessTokenDecoder,
    InvalidAccessTokenError,
    JwtIssuer,
    JwtPayload,
    SigningKeySelector,
)
from tokensmith.infrastructure.persistence.repositories import (
    KeyRepository,
    RefreshTokenRepository,
    TokenBlacklistRepository,
)
from tokensmith.infrastructure.services import TokenRevocationService

ISSUER = "https://auth.example.test"


@pytest.fixture
def audit_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def refresh_tokens(db_session, token_hasher) -> RefreshTokenService:
    return RefreshTokenService(RefreshTokenRepository(db_session, token_hasher), 3600)


@pytest.fixture
def service(db_session, refresh_tokens, audit_logger) -> TokenRevocationService:
    return TokenRevocationService(
        db_session,
        AccessTokenDecoder(KeyRepository(db_session), ISSUER),
        TokenBlacklistRepository(db_session),
        refresh_tokens,
        audit_logger,
    )


@pytest_asyncio.fixture
async def access_token(db_session, encryption, store_signing_key):
    await store_signing_key()
    issuer = JwtIssuer(SigningKeySelector(KeyRepository(db_session), encryption), ISSUER)
    return await issuer.issue(
        JwtPayload(
            subject="user-123",
            audience="web-app",
            scope="read",
            expires_in=600,
            client_id="web-app",
        )
    )


def make_client(public_id: str = "web-app") -> Client:
    return Client(
        public_id=public_id,
        name="Web App",
        redirect_uri="https://app.example.test/callback",
        grant_types=["refresh_token"],
        scopes=["read"],
        is_confidential=True,
        secret_hash="$argon2id$placeholder",
    )


@pytest.mark.asyncio
async def test_revoke_access_token(service, access_token, audit_logger):
    assert await service.revoke_access_token(access_token.token, reason="compromised") is True

    assert await service.is_access_token_revoked(access_token.jti)
    entry = await service.blacklist_repository.find_by_jti(access_token.jti)
    assert entry.expires_at == access_token.expires_at
    assert entry.reason == "compromised"

    event = audit_logger.log.call_args.args[0]
    assert event.event_type is AuditEventType.ACCESS_TOKEN_REVOKED
    assert event.user_id == "user-123"
    assert event.client_id == "web-app"


@pytest.mark.asyncio
async def test_revoke_access_token_twice(service, access_token):
    assert await service.revoke_access_token(access_token.token) is True
    assert await service.revoke_access_token(access_token.token) is False


class StaleBlacklistRepository(TokenBlacklistRepository):
    """Misses the first lookup, as when another revocation commits in between."""

    def __init__(self, session):
        super().__init__(session)
        self.lookups = 0

    async def is_blacklisted(self, jti: str) -> bool:
        self.lookups += 1
        if self.lookups == 1:
            return False
        return await super().is_blacklisted(jti)


@pytest.mark.asyncio
async def test_concurrent_revocation_of_same_token(
    service, db_session, refresh_tokens, access_token, audit_logger
):
    """The revocation that loses the insert reports the token as already blacklisted."""
    assert await service.revoke_access_token(access_token.token) is True
    audit_logger.reset_mock()

    racing = TokenRevocationService(
        db_session,
        service.decoder,
        StaleBlacklistRepository(db_session),
        refresh_tokens,
        audit_logger,
    )

    assert await racing.revoke_access_token(access_token.token) is False
    assert await racing.is_access_token_revoked(access_token.jti)
    audit_logger.log.assert_not_called()


@pytest.mark.asyncio
async def test_revoke_expired_access_token_is_noop(service, store_signing_key, key_pairs):
    """An expired token needs no blacklist entry."""
    key = await store_signing_key()
    now = int(datetime.now(timezone.utc).timestamp())
    token = jwt.encode(
        {"iss": ISSUER, "sub": "u", "aud": "c", "iat": now - 120, "exp": now - 60, "jti": "old"},
        key_pairs[SigningAlgorithm.RS256].private_key,
        algorithm="RS256",
        headers={"kid": key.kid},
    )
    assert await service.revoke_access_token(token) is False
    assert not await service.is_access_token_revoked("old")


@pytest.mark.asyncio
async def test_revoke_foreign_token(service):
    with pytest.raises(InvalidAccessTokenError):
        await service.revoke_access_token("not-a-jwt")


@pytest.mark.asyncio
async def test_revoke_refresh_token(service, refresh_tokens, audit_logger):
    token = await refresh_tokens.issue("web-app", "user-123", ["read"])

    assert await service.revoke_refresh_token(token.token, make_client()) is True
    assert (await refresh_tokens.find(token.token)).is_revoked
    event = audit_logger.log.call_args.args[0]
    assert event.event_type is AuditEventType.REFRESH_TOKEN_REVOKED
    assert event.context["token_identifier"] == token.id


@pytest.mark.asyncio
async def test_revoke_refresh_token_of_other_client(service, refresh_tokens):
    token = await refresh_tokens.issue("web-app", "user-123", ["read"])

    assert await service.revoke_refresh_token(token.token, make_client("other-app")) is False
    assert not (await refresh_tokens.find(token.token)).is_revoked


@pytest.mark.asyncio
async def test_revoke_unknown_refresh_token(service):
    assert await service.revoke_refresh_token("unknown", make_client()) is False


@pytest.mark.asyncio
async def test_logout(service, refresh_tokens, access_token):
    await refresh_tokens.issue("web-app", "user-123", ["read"])
    await refresh_tokens.issue("mobile-app", "user-123", ["read"])
    survivor = await refresh_tokens.issue("web-app", "user-456", ["read"])

    revoked = await service.logout("user-123", access_token=access_token.token)

    assert revoked == 2
    assert await refresh_tokens.find_active_by_user("user-123") == []
    assert (await refresh_tokens.find(survivor.token)).is_valid()
    assert await service.is_access_token_revoked(access_token.jti)


@pytest.mark.asyncio
async def test_commit_failure_is_wrapped(
    service, db_session, refresh_tokens, audit_logger, monkeypatch
):
    token = await refresh_tokens.issue("web-app", "user-123", ["read"])
    monkeypatch.setattr(
        AsyncSession,
        "commit",
        AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("database is locked"))),
    )
    rollback = AsyncMock(wraps=db_session.rollback)
    monkeypatch.setattr(AsyncSession, "rollback", rollback)

    with pytest.raises(RepositoryError, match="commit failed"):
        await service.revoke_refresh_token(token.token, make_client())

    rollback.assert_awaited()
    audit_logger.log.assert_not_called()
