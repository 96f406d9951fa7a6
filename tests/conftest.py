"""
Shared fixtures for SnipWire tests.
"""
import json
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from snipwire import create_app
from snipwire.config import SnipWireSettings
from snipwire.services.taxes import ShippingTaxesType, TaxesConfig


WEBHOOK_URL = '/webhooks/snipcart'
REQUEST_TOKEN = 'c9b5c7a3-5b0c-4a5e-9a38-0d1a6f9ef2d4'

TEST_TAXES = [
    {'name': '20% VAT', 'numberForInvoice': 'VAT-20', 'rate': '0.20', 'appliesOnShipping': []},
    {'name': '10% VAT', 'numberForInvoice': 'VAT-10', 'rate': '0.10', 'appliesOnShipping': []},
    {'name': 'Shipping VAT', 'numberForInvoice': 'VAT-SHIP', 'rate': '0.19', 'appliesOnShipping': [1]},
]


def build_settings(**overrides) -> SnipWireSettings:
    """Settings snapshot used by tests, with optional overrides."""
    settings = SnipWireSettings(
        taxes=TaxesConfig.from_rows(TEST_TAXES),
        taxes_provider='integrated',
        taxes_included=True,
        shipping_taxes_type=ShippingTaxesType.HIGHEST_RATE,
        local_dev=False,
        debug=False,
        secret_api_key='test_secret_api_key',
        handshake_timeout=5.0,
    )
    return replace(settings, **overrides)


def handshake_response(token=REQUEST_TOKEN, status_code=200):
    """Mocked requests.Response for the request validation call."""
    response = MagicMock()
    response.status_code = status_code
    if token is None:
        response.content = b''
        response.json.side_effect = ValueError('No JSON object could be decoded')
    else:
        data = {'token': token, 'resourceUrl': f'https://app.snipcart.com/api/requestvalidation/{token}'}
        response.content = json.dumps(data).encode('utf-8')
        response.json.return_value = data
    return response


def webhook_payload(event_name='order.completed', mode='Live', content=None):
    return {
        'eventName': event_name,
        'mode': mode,
        'createdOn': '2026-01-20T12:00:00.000Z',
        'content': content if content is not None else {'token': 'order-token-123'},
    }


@pytest.fixture
def settings():
    return build_settings()


@pytest.fixture
def app(settings):
    app = create_app('testing', settings=settings)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def post_webhook(client):
    """Send a payload to the webhooks endpoint with Snipcart headers."""
    def _post(payload, token=REQUEST_TOKEN, content_type='application/json', method='POST', headers=None):
        request_headers = {'Content-Type': content_type}
        if token is not None:
            request_headers['X-Snipcart-RequestToken'] = token
        request_headers.update(headers or {})
        data = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        return client.open(WEBHOOK_URL, method=method, data=data, headers=request_headers)
    return _post
