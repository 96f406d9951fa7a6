"""
Snipcart webhook event names and modes.
"""
from enum import Enum


class WebhookEvent(str, Enum):
    """Events Snipcart posts to the webhooks endpoint."""
    ORDER_COMPLETED = 'order.completed'
    ORDER_STATUS_CHANGED = 'order.status.changed'
    ORDER_NOTIFICATION_CREATED = 'order.notification.created'
    ORDER_PAYMENT_STATUS_CHANGED = 'order.paymentStatus.changed'
    ORDER_TRACKING_NUMBER_CHANGED = 'order.trackingNumber.changed'
    ORDER_REFUND_CREATED = 'order.refund.created'
    SUBSCRIPTION_CREATED = 'subscription.created'
    SUBSCRIPTION_CANCELLED = 'subscription.cancelled'
    SUBSCRIPTION_PAUSED = 'subscription.paused'
    SUBSCRIPTION_RESUMED = 'subscription.resumed'
    SUBSCRIPTION_INVOICE_CREATED = 'subscription.invoice.created'
    SHIPPINGRATES_FETCH = 'shippingrates.fetch'
    TAXES_CALCULATE = 'taxes.calculate'
    # Not documented by Snipcart
    CUSTOMER_UPDATED = 'customauth:customer_updated'

    @classmethod
    def from_name(cls, name):
        """Return the event for a raw event name, None if unknown."""
        try:
            return cls(name)
        except (ValueError, TypeError):
            return None


class WebhookMode(str, Enum):
    LIVE = 'Live'
    TEST = 'Test'
