"""End-to-end tests for the authorization_code grant."""

import jwt
import pytest
from sqlalchemy import update

from tests.unit.application.grants.conftest import audited_types, basic_auth, token_request
from tokensmith.domain.entities import SigningAlgorithm
from tokensmith.domain.exceptions import (
    InvalidClientError,
    InvalidGrantError,
    InvalidRequestError,
    UnauthorizedClientError,
)
from tokensmith.infrastructure.auth import NoActiveKeyError
from tokensmith.infrastructure.persistence.models import ClientModel

VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def code_request(client, code, **extra):
    parameters = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": client.redirect_uri,
    }
    parameters.update(extra)
    return parameters


@pytest.mark.asyncio
async def test_exchange_code_with_basic_auth(
    dispatcher, confidential_client, issue_code, signing_key, key_pairs, settings, audit_logger
):
    """A valid code yields a signed access token and a refresh token."""
    client, secret = confidential_client
    code = await issue_code(client, scopes=["read", "write"])

    response = await dispatcher.dispatch(
        token_request(code_request(client, code), basic_auth(client.public_id, secret))
    )

    assert response.token_type == "Bearer"
    assert response.expires_in == settings.access_token_ttl_seconds
    assert response.scope == "read write"
    assert response.refresh_token

    claims = jwt.decode(
        response.access_token,
        key_pairs[SigningAlgorithm.RS256].public_key,
        algorithms=["RS256"],
        audience=client.public_id,
        issuer=settings.issuer,
    )
    assert claims["sub"] == "user-123"
    assert claims["client_id"] == client.public_id
    assert claims["scope"] == "read write"
    assert jwt.get_unverified_header(response.access_token)["kid"] == signing_key.kid

    assert audited_types(audit_logger) == ["token.access.issued", "token.refresh.issued"]


@pytest.mark.asyncio
async def test_exchange_code_with_post_body(dispatcher, confidential_client, issue_code, signing_key):
    client, secret = confidential_client
    code = await issue_code(client)

    response = await dispatcher.dispatch(
        token_request(
            code_request(client, code, client_id=client.public_id, client_secret=secret)
        )
    )
    assert response.scope == "read write admin"


@pytest.mark.asyncio
async def test_code_is_single_use(
    dispatcher, confidential_client, issue_code, signing_key, audit_logger
):
    client, secret = confidential_client
    code = await issue_code(client)
    request = token_request(code_request(client, code), basic_auth(client.public_id, secret))
    await dispatcher.dispatch(request)

    with pytest.raises(InvalidGrantError):
        await dispatcher.dispatch(request)
    assert audited_types(audit_logger)[-1] == "security.grant.invalid"


@pytest.mark.asyncio
async def test_missing_client_id_without_basic_auth(dispatcher, confidential_client, issue_code):
    client, secret = confidential_client
    code = await issue_code(client)

    with pytest.raises(InvalidRequestError, match="client_id"):
        await dispatcher.dispatch(token_request(code_request(client, code, client_secret=secret)))


@pytest.mark.asyncio
async def test_client_id_must_match_basic_credentials(
    dispatcher, confidential_client, issue_code, signing_key
):
    client, secret = confidential_client
    code = await issue_code(client)

    with pytest.raises(InvalidClientError) as exc_info:
        await dispatcher.dispatch(
            token_request(
                code_request(client, code, client_id="someone-else"),
                basic_auth(client.public_id, secret),
            )
        )

    assert exc_info.value.http_status == 401
    assert exc_info.value.reason == "client_id does not match the authenticated client"
    # The code was not consumed
    response = await dispatcher.dispatch(
        token_request(code_request(client, code), basic_auth(client.public_id, secret))
    )
    assert response.access_token


@pytest.mark.asyncio
async def test_missing_parameters(dispatcher, confidential_client):
    client, secret = confidential_client
    headers = basic_auth(client.public_id, secret)

    with pytest.raises(InvalidRequestError, match="code"):
        await dispatcher.dispatch(
            token_request(
                {"grant_type": "authorization_code", "redirect_uri": client.redirect_uri}, headers
            )
        )
    with pytest.raises(InvalidRequestError, match="redirect_uri"):
        await dispatcher.dispatch(
            token_request({"grant_type": "authorization_code", "code": "abc"}, headers)
        )


@pytest.mark.asyncio
async def test_wrong_secret(dispatcher, confidential_client, issue_code):
    client, _ = confidential_client
    code = await issue_code(client)

    with pytest.raises(InvalidClientError):
        await dispatcher.dispatch(
            token_request(code_request(client, code), basic_auth(client.public_id, "wrong"))
        )


@pytest.mark.asyncio
async def test_wrong_redirect_uri(dispatcher, confidential_client, issue_code, signing_key):
    client, secret = confidential_client
    code = await issue_code(client)

    with pytest.raises(InvalidGrantError):
        await dispatcher.dispatch(
            token_request(
                code_request(client, code, redirect_uri="https://app.example.test/other"),
                basic_auth(client.public_id, secret),
            )
        )


@pytest.mark.asyncio
async def test_public_client_with_pkce(dispatcher, public_client, issue_code, signing_key):
    code = await issue_code(public_client, code_challenge=CHALLENGE, code_challenge_method="S256")

    response = await dispatcher.dispatch(
        token_request(
            code_request(
                public_client, code, client_id=public_client.public_id, code_verifier=VERIFIER
            )
        )
    )
    assert response.refresh_token


@pytest.mark.asyncio
async def test_wrong_verifier_keeps_code_usable(
    dispatcher, public_client, issue_code, signing_key
):
    code = await issue_code(public_client, code_challenge=CHALLENGE, code_challenge_method="S256")

    with pytest.raises(InvalidGrantError):
        await dispatcher.dispatch(
            token_request(
                code_request(
                    public_client, code, client_id=public_client.public_id, code_verifier="x" * 43
                )
            )
        )

    response = await dispatcher.dispatch(
        token_request(
            code_request(
                public_client, code, client_id=public_client.public_id, code_verifier=VERIFIER
            )
        )
    )
    assert response.access_token


@pytest.mark.asyncio
async def test_client_not_registered_for_grant(
    db_session, dispatcher, confidential_client, issue_code
):
    client, secret = confidential_client
    code = await issue_code(client)

    await db_session.execute(
        update(ClientModel)
        .where(ClientModel.public_id == client.public_id)
        .values(grant_types=["client_credentials"])
    )
    await db_session.commit()

    with pytest.raises(UnauthorizedClientError):
        await dispatcher.dispatch(
            token_request(code_request(client, code), basic_auth(client.public_id, secret))
        )


@pytest.mark.asyncio
async def test_failed_issuance_does_not_consume_code(
    dispatcher, confidential_client, issue_code, store_signing_key
):
    """Without a signing key the exchange fails and the code stays redeemable."""
    client, secret = confidential_client
    code = await issue_code(client)
    request = token_request(code_request(client, code), basic_auth(client.public_id, secret))

    with pytest.raises(NoActiveKeyError):
        await dispatcher.dispatch(request)

    await store_signing_key()
    response = await dispatcher.dispatch(request)
    assert response.access_token
