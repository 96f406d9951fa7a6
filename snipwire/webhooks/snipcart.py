"""
Snipcart webhooks endpoint.

Flow:
1. Authenticate the request (method, content type, request token handshake)
2. Validate the payload envelope
3. Dispatch to the handler bound to the event
4. Emit the handler's status and body

Rejections: 404 for unauthenticated requests, 400 for invalid payloads,
500 for events without handler.
"""
import logging
from typing import Optional

from flask import Blueprint, current_app, request

from .authenticator import InboundRequest, RequestAuthenticator
from .handlers import WebhookHandlers
from .response import ProcessingState, WebhookResponse, emit_response
from .router import EventRouter
from .validator import PayloadValidator
from ..utils.errors import ErrorCode, error_body
from ..utils.exceptions import AuthenticationFailure, SchemaInvalid, UnboundHandler
from ..utils.logging_config import WEBHOOKS_LOG_NAME

logger = logging.getLogger(WEBHOOKS_LOG_NAME)

snipcart_webhooks_bp = Blueprint('snipcart_webhooks', __name__)

EXTENSION_KEY = 'snipwire_webhooks'


class WebhookProcessor:
    """
    Runs one webhook request through the pipeline.

    Holds only read-only collaborators, so a single instance serves
    concurrent requests.

    Usage:
        processor = WebhookProcessor(settings)
        webhook_response = processor.process(InboundRequest.from_flask(request))
    """

    def __init__(
        self,
        settings,
        authenticator: Optional[RequestAuthenticator] = None,
        validator: Optional[PayloadValidator] = None,
        router: Optional[EventRouter] = None
    ):
        self.settings = settings
        self.debug = settings.debug
        self.authenticator = authenticator or RequestAuthenticator(settings)
        self.validator = validator or PayloadValidator(debug=settings.debug)
        self.router = router or EventRouter(WebhookHandlers(settings).bindings())

    def process(self, inbound: InboundRequest) -> WebhookResponse:
        try:
            self.authenticator.authenticate(inbound)
        except AuthenticationFailure as e:
            if self.debug:
                logger.debug('[DEBUG] Invalid request - responseStatus = 404')
            return self._rejected(e.status_code, e.message, e.code)

        try:
            payload = self.validator.validate(inbound.body)
        except SchemaInvalid as e:
            if self.debug:
                logger.debug('[DEBUG] Bad request (no valid request data) - responseStatus = 400')
            return self._rejected(e.status_code, e.message, e.code)

        try:
            result = self.router.dispatch(payload)
        except UnboundHandler as e:
            return self._rejected(e.status_code, e.message, ErrorCode.UNBOUND_HANDLER)

        if self.debug:
            logger.debug(f'[DEBUG] Webhooks request success: responseStatus = {result.status_code}')
            if result.body:
                logger.debug(f'[DEBUG] Webhooks request success: responseBody = {result.body}')

        return WebhookResponse(status_code=result.status_code, body=result.body)

    def _rejected(self, status_code: int, message: str, code) -> WebhookResponse:
        return WebhookResponse(
            status_code=status_code,
            body=error_body(message, code, status_code),
            state=ProcessingState.REJECTED
        )


def init_webhooks(app, settings) -> WebhookProcessor:
    """Create the processor for an app and check every event has a handler."""
    processor = WebhookProcessor(settings)
    processor.router.verify_bindings()
    app.extensions[EXTENSION_KEY] = processor
    return processor


def get_webhook_router(app=None) -> EventRouter:
    """Router of the current (or given) app, e.g. to register hooks."""
    app = app or current_app
    return app.extensions[EXTENSION_KEY].router


@snipcart_webhooks_bp.route('', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE'], strict_slashes=False)
def handle_snipcart_webhook():
    """
    Handle an incoming Snipcart webhook.

    Every verb is routed here so that non-POST requests are rejected the
    same way as other unauthenticated requests (404).
    """
    processor = current_app.extensions[EXTENSION_KEY]
    webhook_response = processor.process(InboundRequest.from_flask(request))
    return emit_response(webhook_response)
