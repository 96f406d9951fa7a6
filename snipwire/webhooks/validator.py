"""
Webhook payload validation.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

from .events import WebhookEvent, WebhookMode
from ..utils.exceptions import SchemaInvalid
from ..utils.logging_config import WEBHOOKS_LOG_NAME

logger = logging.getLogger(WEBHOOKS_LOG_NAME)


@dataclass(frozen=True)
class Payload:
    """A validated webhook payload."""
    event: WebhookEvent
    mode: WebhookMode
    content: Any
    raw: Dict[str, Any]


class PayloadValidator:
    """
    Parses the raw request body and checks the webhook envelope.

    The envelope must be a JSON object with a known ``eventName``, a
    ``mode`` of "Live" or "Test" and a ``content`` key. The first failing
    check determines the rejection.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def validate(self, raw_body) -> Payload:
        """
        Validate a raw webhook body.

        Args:
            raw_body: Request body as bytes or str

        Returns:
            Payload with the typed event and the full decoded document

        Raises:
            SchemaInvalid: If the body is not a valid webhook envelope
        """
        if self.debug:
            logger.debug(f'[DEBUG] Webhooks request payload: {raw_body!r}')

        try:
            if isinstance(raw_body, bytes):
                raw_body = raw_body.decode('utf-8')
            data = json.loads(raw_body)
        except (UnicodeDecodeError, ValueError, TypeError):
            data = None

        if not isinstance(data, dict):
            self._reject('Webhooks request: invalid request data - not an object')

        if data.get('eventName') is None:
            self._reject('Webhooks request: invalid request data - key eventName missing', 'eventName')

        event = WebhookEvent.from_name(data['eventName'])
        if event is None:
            self._reject('Webhooks request: invalid request data - unknown event', 'eventName')

        mode = data.get('mode')
        if mode not in (WebhookMode.LIVE.value, WebhookMode.TEST.value):
            self._reject('Webhooks request: invalid request data - wrong or missing mode', 'mode')

        if data.get('content') is None:
            self._reject('Webhooks request: invalid request data - missing content', 'content')

        return Payload(event=event, mode=WebhookMode(mode), content=data['content'], raw=data)

    def _reject(self, message: str, field: str = None):
        logger.warning(message)
        raise SchemaInvalid(message, field)
