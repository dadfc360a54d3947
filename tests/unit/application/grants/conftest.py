"""Fixtures for end-to-end grant tests against an in-memory database."""

import base64
from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from tokensmith.application.factory import build_authorization_code_service, build_dispatcher
from tokensmith.domain.entities import TokenRequest


@pytest.fixture
def audit_logger() -> MagicMock:
    return MagicMock()


@pytest_asyncio.fixture
async def signing_key(store_signing_key):
    return await store_signing_key()


@pytest.fixture
def dispatcher(db_session, settings, encryption, audit_logger):
    return build_dispatcher(db_session, settings, encryption, audit_logger)


@pytest.fixture
def issue_code(db_session, settings):
    """Issue and commit an authorization code the way the authorization step would."""

    async def _issue(client, scopes=None, **pkce):
        service = build_authorization_code_service(db_session, settings)
        code = await service.issue(
            client,
            "user-123",
            client.redirect_uri,
            scopes or client.scopes,
            **pkce,
        )
        await db_session.commit()
        return code.code

    return _issue


def basic_auth(client_id: str, secret: str) -> dict[str, str]:
    credentials = base64.b64encode(f"{client_id}:{secret}".encode()).decode()
    return {"Authorization": f"Basic {credentials}"}


def token_request(parameters: dict[str, str], headers: dict[str, str] | None = None) -> TokenRequest:
    return TokenRequest(
        parameters=parameters,
        headers=headers or {},
        ip_address="203.0.113.7",
        user_agent="pytest",
    )


def audited_types(audit_logger: MagicMock) -> list[str]:
    return [call.args[0].event_type.value for call in audit_logger.log.call_args_list]
