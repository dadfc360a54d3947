"""Infrastructure services built on the repositories."""

from tokensmith.infrastructure.services.audit_logger import StructlogAuditLogger
from tokensmith.infrastructure.services.cleanup_service import CleanupResult, CleanupService
from tokensmith.infrastructure.services.signing_key_manager import (
    SigningKeyManager,
    UnknownKeyError,
)
from tokensmith.infrastructure.services.token_revocation_service import TokenRevocationService

__all__ = [
    "CleanupResult",
    "CleanupService",
    "SigningKeyManager",
    "StructlogAuditLogger",
    "TokenRevocationService",
    "UnknownKeyError",
]
