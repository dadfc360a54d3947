"""Audit events emitted by the engine.

The engine only produces events; where they are stored and for how long is up
to the configured :class:`~tokensmith.domain.repositories.AuditLogger` sink.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AuditEventType(str, Enum):
    """Security-relevant actions recorded in the audit trail."""

    ACCESS_TOKEN_ISSUED = "token.access.issued"
    REFRESH_TOKEN_ISSUED = "token.refresh.issued"
    AUTHORIZATION_CODE_ISSUED = "token.authorization_code.issued"

    ACCESS_TOKEN_REVOKED = "token.access.revoked"
    REFRESH_TOKEN_REVOKED = "token.refresh.revoked"

    CLIENT_CREATED = "client.created"
    CLIENT_AUTHENTICATED = "client.authenticated"

    SIGNING_KEY_CREATED = "key.created"
    SIGNING_KEY_DEACTIVATED = "key.deactivated"

    INVALID_CLIENT_CREDENTIALS = "security.client.invalid_credentials"
    INVALID_GRANT = "security.grant.invalid"
    SUSPICIOUS_ACTIVITY = "security.suspicious_activity"


@dataclass(frozen=True)
class AuditEvent:
    """A single audit record.

    Attributes:
        event_type: What happened.
        level: Log level name (``info``, ``notice``, ``warning``...).
        message: Human-readable summary.
        context: Event-specific details. Never contains plaintext credentials.
        user_id: Resource owner involved, if any.
        client_id: Client involved, if any.
        ip_address: Requesting address, if known.
        user_agent: Requesting user agent, if known.
        occurred_at: Event time.
    """

    event_type: AuditEventType
    level: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    client_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def access_token_issued(
        cls,
        user_id: str,
        client_id: str,
        jti: str,
        scopes: list[str],
        grant_type: str,
        ip_address: str | None = None,
    ) -> "AuditEvent":
        return cls(
            event_type=AuditEventType.ACCESS_TOKEN_ISSUED,
            level="info",
            message="Access token issued",
            context={"jti": jti, "scopes": list(scopes), "grant_type": grant_type},
            user_id=user_id,
            client_id=client_id,
            ip_address=ip_address,
        )

    @classmethod
    def refresh_token_issued(
        cls,
        user_id: str,
        client_id: str,
        token_id: str,
        scopes: list[str],
        ip_address: str | None = None,
    ) -> "AuditEvent":
        return cls(
            event_type=AuditEventType.REFRESH_TOKEN_ISSUED,
            level="info",
            message="Refresh token issued",
            context={"token_identifier": token_id, "scopes": list(scopes)},
            user_id=user_id,
            client_id=client_id,
            ip_address=ip_address,
        )

    @classmethod
    def token_revoked(
        cls,
        event_type: AuditEventType,
        token_identifier: str,
        reason: str,
        user_id: str | None = None,
        client_id: str | None = None,
    ) -> "AuditEvent":
        return cls(
            event_type=event_type,
            level="notice",
            message=f"Token revoked: {reason}",
            context={"token_identifier": token_identifier, "reason": reason},
            user_id=user_id,
            client_id=client_id,
        )

    @classmethod
    def invalid_grant(
        cls,
        message: str,
        client_id: str | None,
        suspicious: bool = False,
        **context: Any,
    ) -> "AuditEvent":
        return cls(
            event_type=(
                AuditEventType.SUSPICIOUS_ACTIVITY if suspicious else AuditEventType.INVALID_GRANT
            ),
            level="warning",
            message=message,
            context=context,
            client_id=client_id,
        )

    @classmethod
    def invalid_client_credentials(
        cls,
        client_id: str | None,
        reason: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> "AuditEvent":
        return cls(
            event_type=AuditEventType.INVALID_CLIENT_CREDENTIALS,
            level="warning",
            message=f"Invalid client credentials: {reason}",
            context={"reason": reason},
            client_id=client_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @classmethod
    def client_created(
        cls,
        client_id: str,
        name: str,
        grant_types: list[str],
        scopes: list[str],
        is_confidential: bool,
    ) -> "AuditEvent":
        return cls(
            event_type=AuditEventType.CLIENT_CREATED,
            level="info",
            message=f"OAuth2 client created: {name}",
            context={
                "grant_types": list(grant_types),
                "scopes": list(scopes),
                "is_confidential": is_confidential,
            },
            client_id=client_id,
        )

    @classmethod
    def signing_key_changed(
        cls, event_type: AuditEventType, kid: str, algorithm: str
    ) -> "AuditEvent":
        return cls(
            event_type=event_type,
            level="notice",
            message=f"Signing key {kid} {event_type.value.split('.')[-1]}",
            context={"kid": kid, "algorithm": algorithm},
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten the event for structured sinks."""
        return {
            "event_type": self.event_type.value,
            "level": self.level,
            "message": self.message,
            "context": self.context,
            "user_id": self.user_id,
            "client_id": self.client_id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": self.occurred_at.isoformat(),
        }
