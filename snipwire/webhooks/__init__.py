"""
Webhook handling for SnipWire.
Authenticates, validates and dispatches Snipcart webhook calls.
"""
from .events import WebhookEvent, WebhookMode
from .authenticator import InboundRequest, RequestAuthenticator, REQUEST_TOKEN_HEADER
from .validator import Payload, PayloadValidator
from .handlers import HandlerResult, WebhookHandlers
from .router import EventRouter
from .response import ProcessingState, WebhookResponse, emit_response
from .snipcart import (
    WebhookProcessor,
    snipcart_webhooks_bp,
    init_webhooks,
    get_webhook_router,
)

__all__ = [
    'WebhookEvent',
    'WebhookMode',
    'InboundRequest',
    'RequestAuthenticator',
    'REQUEST_TOKEN_HEADER',
    'Payload',
    'PayloadValidator',
    'HandlerResult',
    'WebhookHandlers',
    'EventRouter',
    'ProcessingState',
    'WebhookResponse',
    'emit_response',
    'WebhookProcessor',
    'snipcart_webhooks_bp',
    'init_webhooks',
    'get_webhook_router',
]
