"""
Tests for the Snipcart webhooks endpoint with mocked Snipcart payloads.

Tests cover:
- Request authentication (method, content type, request token, handshake)
- Payload validation (eventName, mode, content)
- Dispatch of all events and response codes
- taxes.calculate end to end
- Hooks run after handlers
- Response headers

The request validation call to Snipcart is mocked.
"""
import json
import logging
from unittest.mock import patch, MagicMock

import pytest
import requests

from snipwire import create_app
from snipwire.webhooks import (
    EventRouter,
    InboundRequest,
    ProcessingState,
    WebhookEvent,
    WebhookHandlers,
    WebhookProcessor,
    get_webhook_router,
)
from snipwire.utils.exceptions import UnboundHandler

from conftest import (
    REQUEST_TOKEN,
    WEBHOOK_URL,
    build_settings,
    handshake_response,
    webhook_payload,
)


HANDSHAKE_GET = 'snipwire.services.snipcart_client.requests.get'

NO_CACHE = 'no-store, no-cache, must-revalidate, max-age=0'

# ============================================================================
# REALISTIC SNIPCART WEBHOOK PAYLOADS
# ============================================================================

SAMPLE_TAXES_CALCULATE = {
    'eventName': 'taxes.calculate',
    'mode': 'Test',
    'createdOn': '2026-01-20T12:00:00.000Z',
    'content': {
        'token': '2d1bd7a2-9d4e-4b1a-8d3e-0c5a1f3e2b9c',
        'email': 'customer@example.com',
        'currency': 'eur',
        'itemsTotal': 450,
        'items': [
            {
                'id': '1045',
                'name': 'Hardcover book',
                'price': 150,
                'quantity': 2,
                'taxable': True,
                'taxes': ['20% VAT'],
                'totalPriceWithoutTaxes': 300,
            },
            {
                'id': '1046',
                'name': 'Coffee beans',
                'price': 75,
                'quantity': 2,
                'taxable': True,
                'taxes': ['10% VAT'],
                'totalPriceWithoutTaxes': 150,
            },
            {
                'id': '1047',
                'name': 'Gift card',
                'price': 25,
                'quantity': 1,
                'taxable': False,
                'taxes': [],
                'totalPriceWithoutTaxes': 25,
            },
        ],
        'shippingInformation': {
            'fees': 10,
            'method': 'Express',
        },
        'billingAddress': {
            'fullName': 'Test Customer',
            'address1': '123 Main St',
            'city': 'Vienna',
            'country': 'AT',
            'postalCode': '1010',
        },
    },
}

NON_TAX_EVENTS = [event for event in WebhookEvent if event != WebhookEvent.TAXES_CALCULATE]


def client_for(**overrides):
    return create_app('testing', settings=build_settings(**overrides)).test_client()


# ============================================================================
# REQUEST AUTHENTICATION
# ============================================================================

class TestRequestAuthentication:
    """Tests for method, content type and request token checks."""

    def test_missing_token_returns_404_without_handshake(self, post_webhook):
        with patch(HANDSHAKE_GET) as mock_get:
            response = post_webhook(webhook_payload(), token=None)

        assert response.status_code == 404
        mock_get.assert_not_called()

    def test_get_request_returns_404(self, post_webhook):
        with patch(HANDSHAKE_GET) as mock_get:
            response = post_webhook(webhook_payload(), method='GET')

        assert response.status_code == 404
        mock_get.assert_not_called()

    def test_method_override_header_is_accepted(self, post_webhook):
        with patch(HANDSHAKE_GET, return_value=handshake_response()):
            response = post_webhook(
                webhook_payload(),
                method='PUT',
                headers={'X-HTTP-Method-Override': 'POST'}
            )

        assert response.status_code == 202

    def test_wrong_content_type_returns_404(self, post_webhook):
        with patch(HANDSHAKE_GET) as mock_get:
            response = post_webhook(webhook_payload(), content_type='text/plain')

        assert response.status_code == 404
        mock_get.assert_not_called()

    def test_content_type_match_is_case_insensitive(self, post_webhook):
        with patch(HANDSHAKE_GET, return_value=handshake_response()):
            response = post_webhook(webhook_payload(), content_type='Application/JSON; charset=UTF-8')

        assert response.status_code == 202

    def test_rejection_body_has_error_code(self, post_webhook):
        response = post_webhook(webhook_payload(), token=None)

        data = json.loads(response.data)
        assert data['error']['code'] == 'MISSING_TOKEN'

    def test_rejection_is_logged(self, post_webhook, caplog):
        with caplog.at_level(logging.WARNING, logger='snipwire.webhooks'):
            post_webhook(webhook_payload(), token=None)

        assert 'Invalid webhooks request: no request token' in caplog.text


class TestHandshake:
    """Tests for the request token handshake with Snipcart."""

    def test_valid_token_is_accepted(self, post_webhook):
        with patch(HANDSHAKE_GET, return_value=handshake_response()) as mock_get:
            response = post_webhook(webhook_payload())

        assert response.status_code == 202
        mock_get.assert_called_once_with(
            f'https://app.snipcart.com/api/requestvalidation/{REQUEST_TOKEN}',
            headers={'Accept': 'application/json'},
            auth=('test_secret_api_key', ''),
            timeout=5.0
        )

    def test_token_mismatch_returns_404(self, post_webhook):
        with patch(HANDSHAKE_GET, return_value=handshake_response(token='another-token')):
            response = post_webhook(webhook_payload())

        assert response.status_code == 404
        assert json.loads(response.data)['error']['code'] == 'INVALID_TOKEN'

    def test_non_200_returns_404(self, post_webhook):
        with patch(HANDSHAKE_GET, return_value=handshake_response(status_code=401)):
            response = post_webhook(webhook_payload())

        assert response.status_code == 404

    def test_empty_response_returns_404(self, post_webhook):
        with patch(HANDSHAKE_GET, return_value=handshake_response(token=None)):
            response = post_webhook(webhook_payload())

        assert response.status_code == 404

    def test_non_json_response_returns_404(self, post_webhook):
        mock_response = MagicMock(status_code=200, content=b'<html>Not found</html>')
        mock_response.json.side_effect = ValueError('Expecting value')

        with patch(HANDSHAKE_GET, return_value=mock_response):
            response = post_webhook(webhook_payload())

        assert response.status_code == 404

    @pytest.mark.parametrize('error', [
        requests.exceptions.Timeout('timed out'),
        requests.exceptions.ConnectionError('connection refused'),
    ])
    def test_transport_failure_fails_closed(self, post_webhook, error):
        with patch(HANDSHAKE_GET, side_effect=error):
            response = post_webhook(webhook_payload())

        assert response.status_code == 404
        assert json.loads(response.data)['error']['code'] == 'HANDSHAKE_FAILED'

    def test_local_dev_skips_handshake(self):
        client = client_for(local_dev=True)

        with patch(HANDSHAKE_GET) as mock_get:
            response = client.post(
                WEBHOOK_URL,
                data=json.dumps(webhook_payload()),
                headers={'Content-Type': 'application/json', 'X-Snipcart-RequestToken': 'anything'}
            )

        assert response.status_code == 202
        mock_get.assert_not_called()

    def test_local_dev_still_requires_token(self):
        client = client_for(local_dev=True)

        response = client.post(
            WEBHOOK_URL,
            data=json.dumps(webhook_payload()),
            headers={'Content-Type': 'application/json'}
        )

        assert response.status_code == 404

    def test_debug_mode_logs_intermediate_values(self, caplog):
        client = client_for(debug=True)

        with caplog.at_level(logging.DEBUG, logger='snipwire.webhooks'):
            with patch(HANDSHAKE_GET, return_value=handshake_response()):
                client.post(
                    WEBHOOK_URL,
                    data=json.dumps(webhook_payload()),
                    headers={'Content-Type': 'application/json', 'X-Snipcart-RequestToken': REQUEST_TOKEN}
                )

        assert f'[DEBUG] request token: {REQUEST_TOKEN}' in caplog.text
        assert '[DEBUG] handshakeUrl:' in caplog.text
        assert '[DEBUG] Webhooks request success: responseStatus = 202' in caplog.text


# ============================================================================
# PAYLOAD VALIDATION
# ============================================================================

class TestPayloadValidation:
    """Tests for the webhook envelope checks (400)."""

    @pytest.fixture(autouse=True)
    def valid_handshake(self):
        with patch(HANDSHAKE_GET, return_value=handshake_response()):
            yield

    def test_body_not_json(self, post_webhook):
        assert post_webhook('{not json').status_code == 400

    def test_body_not_an_object(self, post_webhook):
        assert post_webhook('[1, 2, 3]').status_code == 400

    def test_missing_event_name(self, post_webhook):
        payload = webhook_payload()
        del payload['eventName']
        assert post_webhook(payload).status_code == 400

    def test_unknown_event_name(self, post_webhook):
        assert post_webhook(webhook_payload(event_name='order.shipped')).status_code == 400

    @pytest.mark.parametrize('mode', ['live', 'Production', None, ''])
    def test_invalid_mode(self, post_webhook, mode):
        assert post_webhook(webhook_payload(mode=mode)).status_code == 400

    def test_missing_mode(self, post_webhook):
        payload = webhook_payload()
        del payload['mode']
        assert post_webhook(payload).status_code == 400

    def test_missing_content(self, post_webhook):
        payload = webhook_payload()
        del payload['content']
        assert post_webhook(payload).status_code == 400

    def test_null_content(self, post_webhook):
        payload = webhook_payload()
        payload['content'] = None
        assert post_webhook(payload).status_code == 400

    @pytest.mark.parametrize('mode', ['Live', 'Test'])
    def test_valid_modes(self, post_webhook, mode):
        assert post_webhook(webhook_payload(mode=mode)).status_code == 202


# ============================================================================
# DISPATCH
# ============================================================================

class TestEventDispatch:
    """Tests for routing events to handlers."""

    @pytest.fixture(autouse=True)
    def valid_handshake(self):
        with patch(HANDSHAKE_GET, return_value=handshake_response()):
            yield

    @pytest.mark.parametrize('event', NON_TAX_EVENTS, ids=lambda e: e.value)
    def test_acknowledged_events_return_202_without_body(self, post_webhook, event):
        response = post_webhook(webhook_payload(event_name=event.value))

        assert response.status_code == 202
        assert response.data == b''

    def test_every_event_has_a_handler(self):
        router = EventRouter(WebhookHandlers(build_settings()).bindings())
        router.verify_bindings()

    def test_cache_headers_on_success(self, post_webhook):
        response = post_webhook(webhook_payload())

        assert response.headers['Cache-Control'] == NO_CACHE
        assert response.headers['Pragma'] == 'no-cache'

    def test_cache_headers_on_rejection(self, post_webhook):
        response = post_webhook(webhook_payload(), token=None)

        assert response.headers['Cache-Control'] == NO_CACHE
        assert response.headers['Pragma'] == 'no-cache'

    def test_handlers_return_original_payload(self):
        settings = build_settings()
        processor = WebhookProcessor(settings)
        payload = processor.validator.validate(json.dumps(webhook_payload('subscription.paused')))

        result = processor.router.dispatch(payload)

        assert result.payload == webhook_payload('subscription.paused')
        assert result.status_code == 202
        assert result.body is None


class TestUnboundHandler:
    """Tests for events without a handler."""

    def _processor(self):
        settings = build_settings()
        bindings = WebhookHandlers(settings).bindings()
        del bindings[WebhookEvent.CUSTOMER_UPDATED]
        authenticator = MagicMock()
        authenticator.authenticate.return_value = REQUEST_TOKEN
        return WebhookProcessor(settings, authenticator=authenticator, router=EventRouter(bindings))

    def test_verify_bindings_raises(self):
        with pytest.raises(UnboundHandler) as exc_info:
            self._processor().router.verify_bindings()

        assert exc_info.value.event_name == 'customauth:customer_updated'

    def test_dispatch_returns_500(self):
        inbound = InboundRequest(
            method='POST',
            content_type='application/json',
            request_token=REQUEST_TOKEN,
            body=json.dumps(webhook_payload('customauth:customer_updated')).encode('utf-8')
        )

        response = self._processor().process(inbound)

        assert response.status_code == 500
        assert response.state == ProcessingState.REJECTED

    def test_other_events_still_dispatch(self):
        inbound = InboundRequest(
            method='POST',
            content_type='application/json',
            request_token=REQUEST_TOKEN,
            body=json.dumps(webhook_payload('order.completed')).encode('utf-8')
        )

        assert self._processor().process(inbound).status_code == 202


# ============================================================================
# TAXES.CALCULATE
# ============================================================================

class TestTaxesCalculateWebhook:
    """Tests for the taxes.calculate webhook end to end."""

    @pytest.fixture(autouse=True)
    def valid_handshake(self):
        with patch(HANDSHAKE_GET, return_value=handshake_response()):
            yield

    def test_taxes_response(self, post_webhook):
        response = post_webhook(SAMPLE_TAXES_CALCULATE)

        assert response.status_code == 202
        assert response.headers['Content-Type'] == 'application/json; charset=utf-8'
        assert json.loads(response.data) == {
            'taxes': [
                {'name': 'incl. 20% VAT', 'amount': 50.0, 'rate': 0.2,
                 'numberForInvoice': 'VAT-20', 'includedInPrice': True},
                {'name': 'incl. 10% VAT', 'amount': 13.64, 'rate': 0.1,
                 'numberForInvoice': 'VAT-10', 'includedInPrice': True},
                {'name': 'incl. 20% VAT (Express)', 'amount': 1.67, 'rate': 0.2,
                 'numberForInvoice': 'VAT-20', 'includedInPrice': True},
            ]
        }

    def test_empty_cart_returns_empty_taxes(self, post_webhook):
        payload = {**SAMPLE_TAXES_CALCULATE, 'content': {**SAMPLE_TAXES_CALCULATE['content'], 'itemsTotal': 0}}

        response = post_webhook(payload)

        assert response.status_code == 202
        assert json.loads(response.data) == {'taxes': []}

    def test_incomplete_content_returns_400(self, post_webhook):
        content = dict(SAMPLE_TAXES_CALCULATE['content'])
        del content['currency']

        response = post_webhook({**SAMPLE_TAXES_CALCULATE, 'content': content})

        assert response.status_code == 400

    def test_provider_disabled_returns_204(self):
        client = client_for(taxes_provider='snipcart')

        with patch('snipwire.webhooks.handlers.TaxEngine.compute_taxes') as mock_compute:
            response = client.post(
                WEBHOOK_URL,
                data=json.dumps({**SAMPLE_TAXES_CALCULATE, 'content': 'not evaluated'}),
                headers={'Content-Type': 'application/json', 'X-Snipcart-RequestToken': REQUEST_TOKEN}
            )

        assert response.status_code == 204
        assert response.data == b''
        mock_compute.assert_not_called()

    def test_identical_requests_give_identical_responses(self, post_webhook):
        first = post_webhook(SAMPLE_TAXES_CALCULATE)
        second = post_webhook(SAMPLE_TAXES_CALCULATE)

        assert first.data == second.data

    def test_failed_request_does_not_affect_next_one(self, post_webhook):
        bad = post_webhook({**SAMPLE_TAXES_CALCULATE, 'content': {'itemsTotal': 10}})
        good = post_webhook(SAMPLE_TAXES_CALCULATE)

        assert bad.status_code == 400
        assert good.status_code == 202

    @pytest.mark.parametrize('overrides', [
        {'shippingInformation': {'fees': 'NaN', 'method': 'Express'}},
        {'itemsTotal': 'Infinity'},
        {'itemsTotal': 1e30, 'items': [
            {'taxable': True, 'taxes': ['20% VAT'], 'totalPriceWithoutTaxes': 1e30},
        ]},
    ], ids=['nan-fees', 'infinite-total', 'huge-price'])
    def test_unusable_amounts_return_400(self, post_webhook, overrides):
        content = {**SAMPLE_TAXES_CALCULATE['content'], **overrides}

        response = post_webhook({**SAMPLE_TAXES_CALCULATE, 'content': content})

        assert response.status_code == 400
        assert json.loads(response.data)['error']['code'] == 'INVALID_TAXES_REQUEST'


# ============================================================================
# HOOKS
# ============================================================================

class TestHooks:
    """Tests for observers registered with add_hook_after."""

    @pytest.fixture(autouse=True)
    def valid_handshake(self):
        with patch(HANDSHAKE_GET, return_value=handshake_response()):
            yield

    def test_hook_receives_committed_result(self, app, post_webhook):
        calls = []
        get_webhook_router(app).add_hook_after(
            lambda event, payload, status, body: calls.append((event, payload, status, body)),
            WebhookEvent.ORDER_COMPLETED
        )

        post_webhook(webhook_payload('order.completed'))

        assert calls == [(WebhookEvent.ORDER_COMPLETED, webhook_payload('order.completed'), 202, None)]

    def test_hook_for_other_event_is_not_called(self, app, post_webhook):
        hook = MagicMock()
        get_webhook_router(app).add_hook_after(hook, WebhookEvent.ORDER_REFUND_CREATED)

        post_webhook(webhook_payload('order.completed'))

        hook.assert_not_called()

    def test_hook_without_event_observes_all(self, app, post_webhook):
        hook = MagicMock()
        get_webhook_router(app).add_hook_after(hook)

        post_webhook(webhook_payload('order.completed'))
        post_webhook(webhook_payload('subscription.created'))

        assert hook.call_count == 2

    def test_hook_sees_taxes_body(self, app, post_webhook):
        bodies = []
        get_webhook_router(app).add_hook_after(
            lambda event, payload, status, body: bodies.append(body),
            WebhookEvent.TAXES_CALCULATE
        )

        response = post_webhook(SAMPLE_TAXES_CALCULATE)

        assert bodies == [response.data.decode('utf-8')]

    def test_failing_hook_does_not_change_response(self, app, post_webhook):
        get_webhook_router(app).add_hook_after(MagicMock(side_effect=RuntimeError('boom')))

        response = post_webhook(webhook_payload('order.completed'))

        assert response.status_code == 202


class TestHealth:
    """Tests for the health endpoint."""

    def test_health_check(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'
