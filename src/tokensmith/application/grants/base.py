"""Base class for grant type handlers."""

from abc import ABC, abstractmethod

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuditEvent, Client, GrantType, TokenRequest, TokenResponse
from tokensmith.domain.exceptions import (
    InvalidRequestError,
    InvalidScopeError,
    OAuth2Error,
    RepositoryError,
    ServerError,
    UnauthorizedClientError,
)
from tokensmith.domain.repositories import AuditLogger
from tokensmith.infrastructure.auth.client_authenticator import ClientAuthenticator
from tokensmith.infrastructure.auth.jwt_issuer import IssuedAccessToken, JwtIssuer, JwtPayload

logger = get_logger(__name__)


def parse_scope(scope: str | None) -> list[str]:
    """Split a space-delimited scope parameter, dropping duplicates."""
    if not scope:
        return []
    return list(dict.fromkeys(scope.split()))


class GrantHandler(ABC):
    """A token endpoint strategy for one grant type.

    Subclasses implement :meth:`_handle`. :meth:`handle` runs it, rolls back
    the session on any failure and turns storage failures into
    :class:`ServerError`.
    """

    grant_type: GrantType

    def __init__(
        self,
        session: AsyncSession,
        authenticator: ClientAuthenticator,
        issuer: JwtIssuer,
        access_token_ttl_seconds: int,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.session = session
        self.authenticator = authenticator
        self.issuer = issuer
        self.access_token_ttl_seconds = access_token_ttl_seconds
        self.audit_logger = audit_logger

    def supports(self, grant_type: str) -> bool:
        return grant_type == self.grant_type.value

    async def handle(self, request: TokenRequest) -> TokenResponse:
        """Process a token request.

        Raises:
            OAuth2Error: If the request is rejected.
        """
        try:
            return await self._handle(request)
        except OAuth2Error as e:
            await self.session.rollback()
            logger.info(
                "Token request rejected",
                grant_type=self.grant_type.value,
                error=e.error.value,
                reason=e.reason,
            )
            raise
        except RepositoryError as e:
            await self.session.rollback()
            logger.error(
                "Storage failure during token request",
                grant_type=self.grant_type.value,
                error=str(e),
            )
            raise ServerError(reason=str(e)) from e
        except Exception:
            await self.session.rollback()
            raise

    @abstractmethod
    async def _handle(self, request: TokenRequest) -> TokenResponse:
        """Grant-specific processing."""

    @staticmethod
    def require(request: TokenRequest, name: str) -> str:
        """Return a required body parameter.

        Raises:
            InvalidRequestError: If it is missing or blank.
        """
        value = request.get(name)
        if value is None:
            raise InvalidRequestError(f"Missing required parameter: {name}")
        return value

    def ensure_grant_allowed(self, client: Client) -> None:
        if not client.allows_grant_type(self.grant_type.value):
            raise UnauthorizedClientError(
                reason=f"client {client.public_id} is not registered for {self.grant_type.value}"
            )

    @staticmethod
    def narrow_scopes(requested: str | None, granted: list[str]) -> list[str]:
        """Resolve the scopes for a token.

        An absent request yields every granted scope. A request must be a
        subset of the granted scopes.

        Raises:
            InvalidScopeError: If the request exceeds the granted scopes or the
                result is empty.
        """
        scopes = parse_scope(requested) if requested else list(granted)
        if not set(scopes).issubset(granted):
            raise InvalidScopeError(
                reason=f"requested scopes exceed granted: {sorted(set(scopes) - set(granted))}"
            )
        if not scopes:
            raise InvalidScopeError(reason="no scope to grant")
        return scopes

    async def issue_access_token(
        self, subject: str, client: Client, scopes: list[str]
    ) -> IssuedAccessToken:
        return await self.issuer.issue(
            JwtPayload(
                subject=subject,
                audience=client.public_id,
                scope=" ".join(scopes),
                expires_in=self.access_token_ttl_seconds,
                client_id=client.public_id,
            )
        )

    def audit_access_token(
        self,
        issued: IssuedAccessToken,
        subject: str,
        client: Client,
        scopes: list[str],
        request: TokenRequest,
    ) -> None:
        self.audit(
            AuditEvent.access_token_issued(
                user_id=subject,
                client_id=client.public_id,
                jti=issued.jti,
                scopes=scopes,
                grant_type=self.grant_type.value,
                ip_address=request.ip_address,
            )
        )

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise RepositoryError(f"commit failed: {e}") from e

    def audit(self, event: AuditEvent) -> None:
        if self.audit_logger is not None:
            self.audit_logger.log(event)
