"""Registration of new OAuth2 clients."""

import uuid
from dataclasses import dataclass
from typing import Callable

from tokensmith.core.logging import get_logger
from tokensmith.domain.entities import AuditEvent, Client, GrantType
from tokensmith.domain.repositories import AuditLogger, ClientRepository
from tokensmith.domain.services.secret_entropy_validator import (
    SecretEntropyValidator,
    default_secret_validator,
)
logger = get_logger(__name__)


@dataclass(frozen=True)
class RegisteredClient:
    """Result of a registration.

    ``client_secret`` is the only copy of the plaintext secret; it is None
    for public clients.
    """

    client: Client
    client_secret: str | None


class ClientRegistrationService:
    """Creates clients and their secrets.

    ``hash_secret`` turns a plaintext secret into the stored hash.
    """

    def __init__(
        self,
        repository: ClientRepository,
        hash_secret: Callable[[str], str],
        secret_validator: SecretEntropyValidator = default_secret_validator,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.repository = repository
        self.hash_secret = hash_secret
        self.secret_validator = secret_validator
        self.audit_logger = audit_logger

    async def register(
        self,
        name: str,
        redirect_uri: str,
        grant_types: list[str],
        scopes: list[str],
        is_confidential: bool = True,
        pkce_required: bool = False,
        public_id: str | None = None,
        client_secret: str | None = None,
    ) -> RegisteredClient:
        """Register a client.

        Confidential clients get a generated secret unless one is supplied;
        either way the secret must pass the entropy rules.

        Raises:
            ValueError: If a grant type is unknown, or a secret is supplied for
                a public client.
            WeakClientSecretError: If the supplied secret is too weak.
        """
        known = {grant_type.value for grant_type in GrantType}
        unknown = sorted(set(grant_types) - known)
        if unknown:
            raise ValueError(f"Unknown grant types: {', '.join(unknown)}")
        if not is_confidential and GrantType.CLIENT_CREDENTIALS.value in grant_types:
            raise ValueError("Public clients cannot use the client_credentials grant")
        if not is_confidential and client_secret:
            raise ValueError("Public clients cannot have a secret")

        secret: str | None = None
        secret_hash: str | None = None
        if is_confidential:
            secret = client_secret or self.secret_validator.generate()
            self.secret_validator.validate(secret)
            secret_hash = self.hash_secret(secret)

        client = Client(
            public_id=public_id or str(uuid.uuid4()),
            name=name,
            redirect_uri=redirect_uri,
            grant_types=list(dict.fromkeys(grant_types)),
            scopes=list(dict.fromkeys(scopes)),
            is_confidential=is_confidential,
            secret_hash=secret_hash,
            pkce_required=pkce_required,
        )
        client = await self.repository.create(client)

        logger.info(
            "Client registered",
            client_id=client.public_id,
            is_confidential=is_confidential,
        )
        if self.audit_logger is not None:
            self.audit_logger.log(
                AuditEvent.client_created(
                    client_id=client.public_id,
                    name=name,
                    grant_types=client.grant_types,
                    scopes=client.scopes,
                    is_confidential=is_confidential,
                )
            )
        return RegisteredClient(client=client, client_secret=secret)
