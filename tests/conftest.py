"""Pytest configuration for all tests."""

import base64
import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tokensmith.core.config import Settings
from tokensmith.domain.entities import Client, SigningAlgorithm, SigningKey
from tokensmith.domain.services import ClientRegistrationService
from tokensmith.infrastructure.persistence import models  # noqa: F401
from tokensmith.infrastructure.persistence.database import Base
from tokensmith.infrastructure.persistence.repositories import ClientRepository, KeyRepository
from tokensmith.infrastructure.security import (
    ECDSAKeyGenerator,
    KeyGenerator,
    KeyPair,
    PrivateKeyEncryptionService,
    RSAKeyGenerator,
    TokenHasher,
    hash_secret,
)

TEST_MASTER_KEY = base64.b64encode(bytes(range(32))).decode("ascii")
TEST_TOKEN_HASH_SECRET = "test-token-hash-secret-0123456789abcdef"
TEST_ISSUER = "https://auth.example.test"


@pytest.fixture
def settings() -> Settings:
    """Settings for tests, independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="testing",
        issuer=TEST_ISSUER,
        private_key_encryption_key=TEST_MASTER_KEY,
        token_hash_secret=TEST_TOKEN_HASH_SECRET,
        rsa_key_size=2048,
    )


@pytest.fixture
def encryption() -> PrivateKeyEncryptionService:
    return PrivateKeyEncryptionService(TEST_MASTER_KEY)


@pytest.fixture
def token_hasher() -> TokenHasher:
    return TokenHasher(TEST_TOKEN_HASH_SECRET)


@pytest.fixture(scope="session")
def key_generator() -> KeyGenerator:
    """Key generator with 2048-bit RSA to keep the suite fast."""
    return KeyGenerator(
        [
            RSAKeyGenerator(key_size=2048),
            ECDSAKeyGenerator("P-256"),
            ECDSAKeyGenerator("P-384"),
            ECDSAKeyGenerator("P-521"),
        ]
    )


@pytest.fixture(scope="session")
def key_pairs(key_generator: KeyGenerator) -> dict[SigningAlgorithm, KeyPair]:
    """One generated key pair per algorithm, shared by the whole session."""
    rsa_pair = key_generator.generate(SigningAlgorithm.RS256)
    return {
        SigningAlgorithm.RS256: rsa_pair,
        SigningAlgorithm.RS384: rsa_pair,
        SigningAlgorithm.RS512: rsa_pair,
        SigningAlgorithm.ES256: key_generator.generate(SigningAlgorithm.ES256),
        SigningAlgorithm.ES384: key_generator.generate(SigningAlgorithm.ES384),
        SigningAlgorithm.ES512: key_generator.generate(SigningAlgorithm.ES512),
    }


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def store_signing_key(
    db_session: AsyncSession,
    key_pairs: dict[SigningAlgorithm, KeyPair],
    encryption: PrivateKeyEncryptionService,
) -> Callable[..., Awaitable[SigningKey]]:
    """Factory that stores a signing key built from the session key pairs."""

    async def _store(
        algorithm: SigningAlgorithm = SigningAlgorithm.RS256,
        is_active: bool = True,
        created_at: datetime | None = None,
        expires_at: datetime | None = None,
        kid: str | None = None,
    ) -> SigningKey:
        now = datetime.now(timezone.utc)
        key_pair = key_pairs[algorithm]
        key = SigningKey(
            kid=kid or str(uuid.uuid4()),
            algorithm=algorithm,
            public_key=key_pair.public_key,
            private_key_encrypted=encryption.encrypt(key_pair.private_key),
            is_active=is_active,
            created_at=created_at or now,
            expires_at=expires_at or now + timedelta(days=90),
        )
        stored = await KeyRepository(db_session).create(key)
        await db_session.commit()
        return stored

    return _store


@pytest_asyncio.fixture
async def confidential_client(db_session: AsyncSession) -> tuple[Client, str]:
    """A registered confidential client and its plaintext secret."""
    registered = await ClientRegistrationService(ClientRepository(db_session), hash_secret).register(
        name="Web App",
        redirect_uri="https://app.example.test/callback",
        grant_types=["authorization_code", "refresh_token", "client_credentials"],
        scopes=["read", "write", "admin"],
        is_confidential=True,
        public_id="web-app",
    )
    await db_session.commit()
    return registered.client, registered.client_secret


@pytest_asyncio.fixture
async def public_client(db_session: AsyncSession) -> Client:
    """A registered public client."""
    registered = await ClientRegistrationService(ClientRepository(db_session), hash_secret).register(
        name="Mobile App",
        redirect_uri="com.example.app:/callback",
        grant_types=["authorization_code", "refresh_token"],
        scopes=["read", "write"],
        is_confidential=False,
        public_id="mobile-app",
    )
    await db_session.commit()
    return registered.client
