"""Signing key management: creation, rotation, deactivation and purge.

Keys are created inactive and then activated. Deactivation stops a key from
signing but keeps it resolvable by kid for a grace period at least as long as
the access token lifetime, so that tokens it signed keep verifying.
"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.config import Settings
from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuditEvent, AuditEventType, SigningAlgorithm, SigningKey
from tokensmith.domain.repositories import AuditLogger, KeyRepository
from tokensmith.infrastructure.security.key_generators import KeyGenerator
from tokensmith.infrastructure.security.private_key_encryption import PrivateKeyEncryptionService

logger = get_logger(__name__)


class UnknownKeyError(LookupError):
    """Raised when a kid does not match any stored key."""


class SigningKeyManager:
    """Service for signing key administration.

    Every public method commits its changes.
    """

    def __init__(
        self,
        session: AsyncSession,
        key_repository: KeyRepository,
        key_generator: KeyGenerator,
        encryption: PrivateKeyEncryptionService,
        settings: Settings,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        """Initialize the key manager.

        Args:
            session: SQLAlchemy async session.
            key_repository: Signing key storage.
            key_generator: Key pair generator dispatcher.
            encryption: Encrypts private keys before they are stored.
            settings: Supplies the default algorithm, key lifetime and grace period.
            audit_logger: Optional audit sink.
        """
        self.session = session
        self.key_repository = key_repository
        self.key_generator = key_generator
        self.encryption = encryption
        self.settings = settings
        self.audit_logger = audit_logger

    def default_algorithm(self) -> SigningAlgorithm:
        """The configured algorithm, with ``ecdsa_curve`` choosing among ES variants."""
        algorithm = SigningAlgorithm(self.settings.signing_algorithm)
        if algorithm.family == "ecdsa" and self.settings.ecdsa_curve is not None:
            return SigningAlgorithm.for_curve(self.settings.ecdsa_curve)
        return algorithm

    async def create_key(
        self, algorithm: SigningAlgorithm | str | None = None, activate: bool = True
    ) -> SigningKey:
        """Generate and store a new key.

        Args:
            algorithm: JWS algorithm. Defaults to the configured one.
            activate: Whether the key starts signing immediately.

        Raises:
            KeyGenerationError: If no generator supports the algorithm.
        """
        key = await self._create(algorithm, activate)
        await self.session.commit()
        return key

    async def rotate(self, algorithm: SigningAlgorithm | str | None = None) -> SigningKey:
        """Activate a new key and deactivate every previously active one.

        Returns:
            The new key.
        """
        previous = await self.key_repository.find_active_keys()
        key = await self._create(algorithm, activate=True)
        for old in previous:
            await self._deactivate(old)
        await self.session.commit()
        logger.info(
            "Signing keys rotated",
            kid=key.kid,
            deactivated=[old.kid for old in previous],
        )
        return key

    async def deactivate(self, kid: str) -> SigningKey:
        """Stop a key from signing new tokens.

        Raises:
            UnknownKeyError: If no key has this kid.
        """
        key = await self.key_repository.find_by_kid(kid)
        if key is None:
            raise UnknownKeyError(f"Signing key not found: {kid}")
        key = await self._deactivate(key)
        await self.session.commit()
        return key

    async def ensure_active_key(self) -> SigningKey:
        """Return the newest active key, creating one if there is none."""
        keys = await self.key_repository.find_active_keys()
        if keys:
            return keys[0]
        return await self.create_key()

    async def list_keys(self) -> list[SigningKey]:
        return await self.key_repository.find_all()

    async def purge_expired(self) -> int:
        """Delete deactivated keys whose grace period has ended."""
        deleted = await self.key_repository.delete_expired()
        await self.session.commit()
        if deleted:
            logger.info("Expired signing keys deleted", count=deleted)
        return deleted

    async def _create(
        self, algorithm: SigningAlgorithm | str | None, activate: bool
    ) -> SigningKey:
        algorithm = SigningAlgorithm(algorithm) if algorithm else self.default_algorithm()
        key_pair = self.key_generator.generate(algorithm)
        now = datetime.now(timezone.utc)

        key = SigningKey(
            kid=str(uuid.uuid4()),
            algorithm=algorithm,
            public_key=key_pair.public_key,
            private_key_encrypted=self.encryption.encrypt(key_pair.private_key),
            is_active=False,
            created_at=now,
            expires_at=now + timedelta(days=self.settings.signing_key_lifetime_days),
        )
        key = await self.key_repository.create(key)
        if activate:
            await self.key_repository.activate(key.kid)
            key.is_active = True

        logger.info("Signing key created", kid=key.kid, algorithm=algorithm.value, active=activate)
        self._audit(AuditEventType.SIGNING_KEY_CREATED, key)
        return key

    async def _deactivate(self, key: SigningKey) -> SigningKey:
        grace = timedelta(seconds=self.settings.deactivation_grace_seconds)
        retain_until = max(key.expires_at, datetime.now(timezone.utc) + grace)
        await self.key_repository.deactivate(key.kid, retain_until=retain_until)
        key.is_active = False
        key.expires_at = retain_until

        logger.info("Signing key deactivated", kid=key.kid, retain_until=retain_until.isoformat())
        self._audit(AuditEventType.SIGNING_KEY_DEACTIVATED, key)
        return key

    def _audit(self, event_type: AuditEventType, key: SigningKey) -> None:
        if self.audit_logger is not None:
            self.audit_logger.log(
                AuditEvent.signing_key_changed(event_type, key.kid, key.algorithm.value)
            )
