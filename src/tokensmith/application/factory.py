"""Assembly of the token engine for one database session.

Handlers and services are cheap to build; a new set is assembled for every
session so that no state is shared between requests.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.application.grants import (
    AuthorizationCodeGrantHandler,
    ClientCredentialsGrantHandler,
    GrantHandlerDispatcher,
    RefreshTokenGrantHandler,
)
from tokensmith.core.config import Settings, get_settings
from tokensmith.domain.repositories import AuditLogger
from tokensmith.domain.services import (
    AuthorizationCodeService,
    ClientRegistrationService,
    PkceValidator,
    RefreshTokenService,
    default_pkce_validator,
)
from tokensmith.infrastructure.auth import (
    AccessTokenDecoder,
    ClientAuthenticator,
    JwtIssuer,
    SigningKeySelector,
)
from tokensmith.infrastructure.persistence.repositories import (
    AuthorizationCodeRepository,
    ClientRepository,
    KeyRepository,
    RefreshTokenRepository,
    TokenBlacklistRepository,
)
from tokensmith.infrastructure.security import (
    KeyGenerator,
    PrivateKeyEncryptionService,
    TokenHasher,
    default_key_generator,
    hash_secret,
)
from tokensmith.infrastructure.services import (
    CleanupService,
    SigningKeyManager,
    StructlogAuditLogger,
    TokenRevocationService,
)


def build_authorization_code_service(
    session: AsyncSession,
    settings: Settings | None = None,
    pkce_validator: PkceValidator = default_pkce_validator,
) -> AuthorizationCodeService:
    settings = settings or get_settings()
    return AuthorizationCodeService(
        AuthorizationCodeRepository(session, TokenHasher(settings.token_hash_secret)),
        pkce_validator=pkce_validator,
        code_ttl_seconds=settings.authorization_code_ttl_seconds,
        require_pkce_for_public_clients=settings.require_pkce_for_public_clients,
    )


def build_refresh_token_service(
    session: AsyncSession, settings: Settings | None = None
) -> RefreshTokenService:
    settings = settings or get_settings()
    return RefreshTokenService(
        RefreshTokenRepository(session, TokenHasher(settings.token_hash_secret)),
        token_ttl_seconds=settings.refresh_token_ttl_seconds,
    )


def build_dispatcher(
    session: AsyncSession,
    settings: Settings | None = None,
    encryption: PrivateKeyEncryptionService | None = None,
    audit_logger: AuditLogger | None = None,
    pkce_validator: PkceValidator = default_pkce_validator,
) -> GrantHandlerDispatcher:
    """Build the token endpoint for a session.

    Args:
        session: Session every repository and handler shares.
        settings: Engine configuration. Defaults to :func:`get_settings`.
        encryption: Private key encryption. Defaults to one built from settings.
        audit_logger: Audit sink. Defaults to :class:`StructlogAuditLogger`.
        pkce_validator: PKCE checker.

    Returns:
        A dispatcher over the authorization_code, refresh_token and
        client_credentials handlers.
    """
    settings = settings or get_settings()
    encryption = encryption or PrivateKeyEncryptionService.from_settings(settings)
    audit_logger = audit_logger or StructlogAuditLogger()

    authenticator = ClientAuthenticator(ClientRepository(session), audit_logger)
    issuer = JwtIssuer(SigningKeySelector(KeyRepository(session), encryption), settings.issuer)
    refresh_tokens = build_refresh_token_service(session, settings)
    ttl = settings.access_token_ttl_seconds

    return GrantHandlerDispatcher(
        [
            AuthorizationCodeGrantHandler(
                session,
                authenticator,
                issuer,
                build_authorization_code_service(session, settings, pkce_validator),
                refresh_tokens,
                access_token_ttl_seconds=ttl,
                audit_logger=audit_logger,
            ),
            RefreshTokenGrantHandler(
                session,
                authenticator,
                issuer,
                refresh_tokens,
                access_token_ttl_seconds=ttl,
                audit_logger=audit_logger,
            ),
            ClientCredentialsGrantHandler(
                session,
                authenticator,
                issuer,
                access_token_ttl_seconds=ttl,
                audit_logger=audit_logger,
            ),
        ]
    )


def build_key_manager(
    session: AsyncSession,
    settings: Settings | None = None,
    encryption: PrivateKeyEncryptionService | None = None,
    key_generator: KeyGenerator | None = None,
    audit_logger: AuditLogger | None = None,
) -> SigningKeyManager:
    settings = settings or get_settings()
    return SigningKeyManager(
        session,
        KeyRepository(session),
        key_generator or default_key_generator(settings.rsa_key_size),
        encryption or PrivateKeyEncryptionService.from_settings(settings),
        settings,
        audit_logger=audit_logger or StructlogAuditLogger(),
    )


def build_client_registration(
    session: AsyncSession, audit_logger: AuditLogger | None = None
) -> ClientRegistrationService:
    return ClientRegistrationService(
        ClientRepository(session),
        hash_secret,
        audit_logger=audit_logger or StructlogAuditLogger(),
    )


def build_revocation_service(
    session: AsyncSession,
    settings: Settings | None = None,
    audit_logger: AuditLogger | None = None,
) -> TokenRevocationService:
    settings = settings or get_settings()
    return TokenRevocationService(
        session,
        AccessTokenDecoder(KeyRepository(session), settings.issuer),
        TokenBlacklistRepository(session),
        build_refresh_token_service(session, settings),
        audit_logger=audit_logger or StructlogAuditLogger(),
    )


def build_cleanup_service(
    session: AsyncSession, settings: Settings | None = None
) -> CleanupService:
    settings = settings or get_settings()
    hasher = TokenHasher(settings.token_hash_secret)
    return CleanupService(
        session,
        AuthorizationCodeRepository(session, hasher),
        RefreshTokenRepository(session, hasher),
        TokenBlacklistRepository(session),
        KeyRepository(session),
    )
