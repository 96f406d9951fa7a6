"""
Webhook response model and emission.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flask import Response

JSON_CONTENT_TYPE = 'application/json; charset=utf-8'

NO_CACHE_HEADERS = {
    'Cache-Control': 'no-store, no-cache, must-revalidate, max-age=0',
    'Pragma': 'no-cache',
}


class ProcessingState(str, Enum):
    """Terminal state of a webhook request."""
    RESPONDED = 'responded'
    REJECTED = 'rejected'


@dataclass(frozen=True)
class WebhookResponse:
    """Status and optional JSON body sent back to Snipcart."""
    status_code: int
    body: Optional[str] = None
    state: ProcessingState = ProcessingState.RESPONDED


def emit_response(webhook_response: WebhookResponse) -> Response:
    """Build the Flask response; cache headers are set on every response."""
    if webhook_response.body:
        response = Response(webhook_response.body, status=webhook_response.status_code)
        response.headers['Content-Type'] = JSON_CONTENT_TYPE
    else:
        response = Response(status=webhook_response.status_code)
        response.headers.pop('Content-Type', None)

    for header, value in NO_CACHE_HEADERS.items():
        response.headers[header] = value
    return response
