"""
Snipcart webhook event handlers.

Every handler receives the validated payload and returns a HandlerResult
holding the original payload plus the response status and body it
committed. Purely acknowledged events answer 202 Accepted without body.

To run extra logic after a handler, register an observer on the router:

    router.add_hook_after(on_order_completed, WebhookEvent.ORDER_COMPLETED)
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .events import WebhookEvent
from .validator import Payload
from ..services.tax_engine import TaxEngine
from ..utils.errors import ErrorCode, error_body
from ..utils.exceptions import TaxPreconditionFailure
from ..utils.logging_config import WEBHOOKS_LOG_NAME

logger = logging.getLogger(WEBHOOKS_LOG_NAME)

ACCEPTED = 202
NO_CONTENT = 204
BAD_REQUEST = 400


@dataclass(frozen=True)
class HandlerResult:
    """What a handler committed: payload seen, response status and body."""
    payload: Optional[Dict[str, Any]]
    status_code: int
    body: Optional[str] = None


class WebhookHandlers:
    """
    Handlers for all Snipcart webhook events.

    Usage:
        handlers = WebhookHandlers(settings)
        router = EventRouter(handlers.bindings())
    """

    EVENT_HANDLERS = {
        WebhookEvent.ORDER_COMPLETED: 'handle_order_completed',
        WebhookEvent.ORDER_STATUS_CHANGED: 'handle_order_status_changed',
        WebhookEvent.ORDER_NOTIFICATION_CREATED: 'handle_order_notification_created',
        WebhookEvent.ORDER_PAYMENT_STATUS_CHANGED: 'handle_order_payment_status_changed',
        WebhookEvent.ORDER_TRACKING_NUMBER_CHANGED: 'handle_order_tracking_number_changed',
        WebhookEvent.ORDER_REFUND_CREATED: 'handle_order_refund_created',
        WebhookEvent.SUBSCRIPTION_CREATED: 'handle_subscription_created',
        WebhookEvent.SUBSCRIPTION_CANCELLED: 'handle_subscription_cancelled',
        WebhookEvent.SUBSCRIPTION_PAUSED: 'handle_subscription_paused',
        WebhookEvent.SUBSCRIPTION_RESUMED: 'handle_subscription_resumed',
        WebhookEvent.SUBSCRIPTION_INVOICE_CREATED: 'handle_subscription_invoice_created',
        WebhookEvent.SHIPPINGRATES_FETCH: 'handle_shippingrates_fetch',
        WebhookEvent.TAXES_CALCULATE: 'handle_taxes_calculate',
        WebhookEvent.CUSTOMER_UPDATED: 'handle_customer_updated',
    }

    def __init__(self, settings, tax_engine: Optional[TaxEngine] = None):
        self.settings = settings
        self.debug = settings.debug
        self.tax_engine = tax_engine or TaxEngine.from_settings(settings)

    def bindings(self) -> Dict[WebhookEvent, Callable[[Payload], HandlerResult]]:
        """Map each event to its bound handler method."""
        return {
            event: getattr(self, method_name)
            for event, method_name in self.EVENT_HANDLERS.items()
        }

    def _accept(self, handler_name: str, payload: Payload) -> HandlerResult:
        if self.debug:
            logger.debug(f'[DEBUG] Webhooks request: {handler_name}')
        return HandlerResult(payload=payload.raw, status_code=ACCEPTED)

    # Order events

    def handle_order_completed(self, payload: Payload) -> HandlerResult:
        """A new order has been completed successfully; contains the whole order."""
        return self._accept('handle_order_completed', payload)

    def handle_order_status_changed(self, payload: Payload) -> HandlerResult:
        """Order status changed from the dashboard or API; contains old and new status."""
        return self._accept('handle_order_status_changed', payload)

    def handle_order_notification_created(self, payload: Payload) -> HandlerResult:
        """A notification was added to an order."""
        return self._accept('handle_order_notification_created', payload)

    def handle_order_payment_status_changed(self, payload: Payload) -> HandlerResult:
        """Payment status of an order changed; contains old and new status."""
        return self._accept('handle_order_payment_status_changed', payload)

    def handle_order_tracking_number_changed(self, payload: Payload) -> HandlerResult:
        """Tracking number of an order changed."""
        return self._accept('handle_order_tracking_number_changed', payload)

    def handle_order_refund_created(self, payload: Payload) -> HandlerResult:
        """A refund was created; contains order token, amount and currency."""
        return self._accept('handle_order_refund_created', payload)

    # Subscription events

    def handle_subscription_created(self, payload: Payload) -> HandlerResult:
        return self._accept('handle_subscription_created', payload)

    def handle_subscription_cancelled(self, payload: Payload) -> HandlerResult:
        return self._accept('handle_subscription_cancelled', payload)

    def handle_subscription_paused(self, payload: Payload) -> HandlerResult:
        return self._accept('handle_subscription_paused', payload)

    def handle_subscription_resumed(self, payload: Payload) -> HandlerResult:
        return self._accept('handle_subscription_resumed', payload)

    def handle_subscription_invoice_created(self, payload: Payload) -> HandlerResult:
        """Upcoming invoice added to an existing subscription (not sent on creation)."""
        return self._accept('handle_subscription_invoice_created', payload)

    # Cart events

    def handle_shippingrates_fetch(self, payload: Payload) -> HandlerResult:
        """Custom shipping rates are not provided; the request is only acknowledged."""
        return self._accept('handle_shippingrates_fetch', payload)

    def handle_taxes_calculate(self, payload: Payload) -> HandlerResult:
        """
        Calculate taxes for the cart in the payload.

        Returns 204 without calculating when the integrated taxes provider
        is disabled, 400 when the cart content is incomplete and 202 with
        ``{"taxes": [...]}`` otherwise.
        """
        if self.debug:
            logger.debug('[DEBUG] Webhooks request: handle_taxes_calculate')

        if not self.settings.integrated_taxes:
            logger.info(
                'Webhooks request: handle_taxes_calculate - '
                'the integrated taxes provider is disabled in module settings'
            )
            return HandlerResult(payload=None, status_code=NO_CONTENT)

        try:
            lines = self.tax_engine.compute_taxes(payload.content)
        except TaxPreconditionFailure as e:
            logger.warning(f'Webhooks request: handle_taxes_calculate - {e.message}')
            return HandlerResult(
                payload=None,
                status_code=BAD_REQUEST,
                body=error_body(e.message, ErrorCode.INVALID_TAXES_REQUEST, BAD_REQUEST)
            )

        body = json.dumps({'taxes': [line.to_dict() for line in lines]})
        return HandlerResult(payload=payload.raw, status_code=ACCEPTED, body=body)

    # Customer events

    def handle_customer_updated(self, payload: Payload) -> HandlerResult:
        """Customer updated from the dashboard or API (undocumented event)."""
        return self._accept('handle_customer_updated', payload)
