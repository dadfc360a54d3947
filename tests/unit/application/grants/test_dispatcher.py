"""Tests for grant type routing."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tokensmith.application.factory import build_dispatcher
from tokensmith.application.grants import GrantHandlerDispatcher
from tokensmith.domain.entities import GrantType, TokenRequest, TokenResponse
from tokensmith.domain.exceptions import InvalidRequestError, UnsupportedGrantTypeError


def stub_handler(grant_type: GrantType) -> MagicMock:
    handler = MagicMock()
    handler.grant_type = grant_type
    handler.supports.side_effect = lambda value: value == grant_type.value
    handler.handle = AsyncMock(return_value=TokenResponse(access_token="jwt", expires_in=60))
    return handler


@pytest.fixture
def handlers():
    return [
        stub_handler(GrantType.AUTHORIZATION_CODE),
        stub_handler(GrantType.REFRESH_TOKEN),
        stub_handler(GrantType.CLIENT_CREDENTIALS),
    ]


@pytest.mark.asyncio
async def test_routes_to_matching_handler(handlers):
    dispatcher = GrantHandlerDispatcher(handlers)
    request = TokenRequest(parameters={"grant_type": "refresh_token"})

    response = await dispatcher.dispatch(request)

    assert response.access_token == "jwt"
    handlers[1].handle.assert_awaited_once_with(request)
    handlers[0].handle.assert_not_awaited()
    handlers[2].handle.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_grant_type(handlers):
    with pytest.raises(InvalidRequestError, match="grant_type"):
        await GrantHandlerDispatcher(handlers).dispatch(TokenRequest(parameters={}))


@pytest.mark.asyncio
async def test_blank_grant_type(handlers):
    with pytest.raises(InvalidRequestError):
        await GrantHandlerDispatcher(handlers).dispatch(
            TokenRequest(parameters={"grant_type": ""})
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("grant_type", ["password", "implicit", "urn:custom"])
async def test_unsupported_grant_type(handlers, grant_type):
    with pytest.raises(UnsupportedGrantTypeError):
        await GrantHandlerDispatcher(handlers).dispatch(
            TokenRequest(parameters={"grant_type": grant_type})
        )


def test_supported_grant_types(handlers):
    assert GrantHandlerDispatcher(handlers).supported_grant_types() == [
        "authorization_code",
        "refresh_token",
        "client_credentials",
    ]


def test_factory_dispatcher_supports_every_grant(db_session, settings, encryption):
    dispatcher = build_dispatcher(db_session, settings, encryption, MagicMock())
    assert set(dispatcher.supported_grant_types()) == {grant.value for grant in GrantType}
