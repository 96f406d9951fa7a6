"""
Webhook request authentication.

Snipcart sends a request token with every webhook call. The token is
confirmed by calling back the Snipcart request validation API
(handshake) before the payload is trusted.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..services.snipcart_client import SnipcartClient
from ..utils.exceptions import AuthenticationFailure, SnipcartAPIError
from ..utils.errors import ErrorCode
from ..utils.logging_config import WEBHOOKS_LOG_NAME

logger = logging.getLogger(WEBHOOKS_LOG_NAME)

REQUEST_TOKEN_HEADER = 'X-Snipcart-RequestToken'
METHOD_OVERRIDE_HEADER = 'X-HTTP-Method-Override'


@dataclass(frozen=True)
class InboundRequest:
    """The parts of an HTTP request the webhook pipeline looks at."""
    method: str
    content_type: str = ''
    request_token: Optional[str] = None
    method_override: Optional[str] = None
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_flask(cls, request) -> 'InboundRequest':
        return cls(
            method=request.method,
            content_type=request.headers.get('Content-Type', ''),
            request_token=request.headers.get(REQUEST_TOKEN_HEADER),
            method_override=request.headers.get(METHOD_OVERRIDE_HEADER),
            body=request.get_data(cache=True),
            headers={k: v for k, v in request.headers.items()},
        )

    @property
    def is_post(self) -> bool:
        return self.method == 'POST' or self.method_override == 'POST'


class RequestAuthenticator:
    """
    Checks that a request is a genuine Snipcart webhook call.

    Checks, in order:
    1. Request method is POST (or overridden to POST)
    2. Content type contains application/json
    3. Request token header is present
    4. Snipcart confirms the token (skipped in local development mode)

    Usage:
        authenticator = RequestAuthenticator(settings)
        authenticator.authenticate(inbound)  # raises AuthenticationFailure
    """

    def __init__(self, settings, client: Optional[SnipcartClient] = None):
        self.settings = settings
        self.debug = settings.debug
        self.client = client or SnipcartClient(
            api_endpoint=settings.api_endpoint,
            secret_api_key=settings.secret_api_key,
            timeout=settings.handshake_timeout,
            validation_path=settings.request_validation_path,
        )

    def authenticate(self, inbound: InboundRequest) -> str:
        """
        Authenticate an inbound webhook request.

        Returns:
            The confirmed request token

        Raises:
            AuthenticationFailure: If any check fails
        """
        if self.debug:
            logger.debug(f'[DEBUG] request headers: {json.dumps(inbound.headers)}')
            logger.debug(f'[DEBUG] payload: {inbound.body!r}')

        if not inbound.is_post or 'application/json' not in (inbound.content_type or '').lower():
            self._reject('Invalid webhooks request: no POST data or content not json')

        token = inbound.request_token
        if token is None:
            self._reject('Invalid webhooks request: no request token', ErrorCode.MISSING_TOKEN)

        if self.debug:
            logger.debug(f'[DEBUG] request token: {token}')

        if self.settings.local_dev:
            logger.debug('Local development mode: skipping request token handshake')
            return token

        self.handshake(token)
        return token

    def handshake(self, token: str) -> None:
        """
        Confirm the request token with Snipcart.

        Raises:
            AuthenticationFailure: On transport failure, non-200 status,
                non-JSON response or token mismatch
        """
        if self.debug:
            logger.debug(f'[DEBUG] handshakeUrl: {self.client.request_validation_url(token)}')

        try:
            data = self.client.validate_request_token(token)
        except SnipcartAPIError as e:
            self._reject(
                f'Snipcart REST connection for checking request token failed: {e.message}',
                ErrorCode.HANDSHAKE_FAILED
            )

        if self.debug:
            logger.debug(f'[DEBUG] handshake: {json.dumps(data)}')

        if data.get('token') != token:
            self._reject('Invalid webhooks request: invalid token', ErrorCode.INVALID_TOKEN)

    def _reject(self, message: str, code: ErrorCode = ErrorCode.INVALID_REQUEST):
        logger.warning(message)
        raise AuthenticationFailure(message, code.value)
