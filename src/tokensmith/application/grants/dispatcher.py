"""Routes token requests to the handler for their grant type."""

from tokensmith.application.grants.base import GrantHandler
from tokensmith.core.logging import LoggingContext, get_logger
from tokensmith.domain.entities import TokenRequest, TokenResponse
from tokensmith.domain.exceptions import InvalidRequestError, UnsupportedGrantTypeError

logger = get_logger(__name__)


class GrantHandlerDispatcher:
    """Ordered list of grant handlers; the first one that supports a grant type wins."""

    def __init__(self, handlers: list[GrantHandler]) -> None:
        self.handlers = list(handlers)

    def supported_grant_types(self) -> list[str]:
        return [handler.grant_type.value for handler in self.handlers]

    async def dispatch(self, request: TokenRequest) -> TokenResponse:
        """Handle a token request.

        Raises:
            InvalidRequestError: If ``grant_type`` is missing.
            UnsupportedGrantTypeError: If no handler supports it.
            OAuth2Error: Whatever the selected handler raises.
        """
        grant_type = request.get("grant_type")
        if grant_type is None:
            raise InvalidRequestError("Missing required parameter: grant_type")

        for handler in self.handlers:
            if handler.supports(grant_type):
                with LoggingContext(grant_type=grant_type):
                    response = await handler.handle(request)
                    logger.info("Token issued", has_refresh_token=response.refresh_token is not None)
                    return response

        logger.info("Unsupported grant type requested", grant_type=grant_type)
        raise UnsupportedGrantTypeError(reason=f"unsupported grant type: {grant_type}")
