"""End-to-end tests for the refresh_token grant with rotation."""

import jwt
import pytest
import pytest_asyncio

from tests.unit.application.grants.conftest import audited_types, basic_auth, token_request
from tokensmith.application.factory import build_refresh_token_service
from tokensmith.domain.entities import AuditEventType
from tokensmith.domain.exceptions import InvalidGrantError, InvalidRequestError, InvalidScopeError


@pytest_asyncio.fixture
async def tokens(dispatcher, confidential_client, issue_code, signing_key):
    """Access and refresh tokens obtained through the authorization_code grant."""
    client, secret = confidential_client
    code = await issue_code(client, scopes=["read", "write"])
    return await dispatcher.dispatch(
        token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": client.redirect_uri,
            },
            basic_auth(client.public_id, secret),
        )
    )


def refresh_request(client, secret, refresh_token, **extra):
    parameters = {"grant_type": "refresh_token", "refresh_token": refresh_token}
    parameters.update(extra)
    return token_request(parameters, basic_auth(client.public_id, secret))


@pytest.mark.asyncio
async def test_refresh_rotates_token(
    dispatcher, confidential_client, tokens, db_session, settings, audit_logger
):
    """The presented refresh token is revoked and replaced."""
    client, secret = confidential_client
    audit_logger.reset_mock()

    response = await dispatcher.dispatch(refresh_request(client, secret, tokens.refresh_token))

    assert response.refresh_token
    assert response.refresh_token != tokens.refresh_token
    assert response.access_token != tokens.access_token
    assert response.scope == "read write"

    refresh_tokens = build_refresh_token_service(db_session, settings)
    assert (await refresh_tokens.find(tokens.refresh_token)).is_revoked
    assert (await refresh_tokens.find(response.refresh_token)).is_valid()

    assert audited_types(audit_logger) == [
        "token.refresh.revoked",
        "token.refresh.issued",
        "token.access.issued",
    ]


@pytest.mark.asyncio
async def test_reused_refresh_token_is_suspicious(
    dispatcher, confidential_client, tokens, audit_logger
):
    client, secret = confidential_client
    await dispatcher.dispatch(refresh_request(client, secret, tokens.refresh_token))
    audit_logger.reset_mock()

    with pytest.raises(InvalidGrantError) as exc_info:
        await dispatcher.dispatch(refresh_request(client, secret, tokens.refresh_token))

    assert exc_info.value.reason == "refresh token revoked"
    event = audit_logger.log.call_args.args[0]
    assert event.event_type is AuditEventType.SUSPICIOUS_ACTIVITY
    assert event.client_id == client.public_id


@pytest.mark.asyncio
async def test_narrowed_scope_applies_to_access_token_only(
    dispatcher, confidential_client, tokens, key_pairs
):
    """A narrower scope limits the access token; the new refresh token keeps the grant."""
    client, secret = confidential_client

    narrowed = await dispatcher.dispatch(
        refresh_request(client, secret, tokens.refresh_token, scope="read")
    )
    assert narrowed.scope == "read"
    claims = jwt.decode(narrowed.access_token, options={"verify_signature": False})
    assert claims["scope"] == "read"

    widened_back = await dispatcher.dispatch(
        refresh_request(client, secret, narrowed.refresh_token)
    )
    assert widened_back.scope == "read write"


@pytest.mark.asyncio
async def test_scope_cannot_exceed_original_grant(dispatcher, confidential_client, tokens):
    client, secret = confidential_client

    with pytest.raises(InvalidScopeError):
        await dispatcher.dispatch(
            refresh_request(client, secret, tokens.refresh_token, scope="read admin")
        )

    # The failed request left the token usable
    response = await dispatcher.dispatch(refresh_request(client, secret, tokens.refresh_token))
    assert response.refresh_token


@pytest.mark.asyncio
async def test_unknown_refresh_token(dispatcher, confidential_client, signing_key, audit_logger):
    client, secret = confidential_client

    with pytest.raises(InvalidGrantError) as exc_info:
        await dispatcher.dispatch(refresh_request(client, secret, "not-a-real-token"))

    assert exc_info.value.reason == "refresh token not found"
    assert audited_types(audit_logger)[-1] == "security.grant.invalid"


@pytest.mark.asyncio
async def test_refresh_token_bound_to_client(
    dispatcher, db_session, tokens, public_client
):
    """Another client cannot redeem the token."""
    with pytest.raises(InvalidGrantError) as exc_info:
        await dispatcher.dispatch(
            token_request(
                {
                    "grant_type": "refresh_token",
                    "refresh_token": tokens.refresh_token,
                    "client_id": public_client.public_id,
                }
            )
        )
    assert exc_info.value.reason == "refresh token was issued to another client"


@pytest.mark.asyncio
async def test_missing_refresh_token(dispatcher, confidential_client):
    client, secret = confidential_client
    with pytest.raises(InvalidRequestError, match="refresh_token"):
        await dispatcher.dispatch(
            token_request({"grant_type": "refresh_token"}, basic_auth(client.public_id, secret))
        )


@pytest.mark.asyncio
async def test_concurrent_rotation_loses(
    dispatcher, confidential_client, tokens, db_session, settings, audit_logger
):
    """If the token is revoked between lookup and rotation, the request fails."""
    client, secret = confidential_client
    handler = next(h for h in dispatcher.handlers if h.supports("refresh_token"))
    original_find = handler.refresh_tokens.find

    async def find_then_competitor_rotates(token):
        found = await original_find(token)
        await handler.refresh_tokens.revoke(token)
        return found

    handler.refresh_tokens.find = find_then_competitor_rotates
    audit_logger.reset_mock()

    with pytest.raises(InvalidGrantError) as exc_info:
        await dispatcher.dispatch(refresh_request(client, secret, tokens.refresh_token))

    assert exc_info.value.reason == "refresh token already rotated"
    assert audit_logger.log.call_args.args[0].event_type is AuditEventType.SUSPICIOUS_ACTIVITY
