"""
Snipcart REST API client.

Only the request validation resource is used: it confirms that a webhook
request token was really issued by Snipcart.

API Documentation: https://docs.snipcart.com/v3/api-reference/request-validation
"""
import logging
from typing import Any, Dict, Optional

import requests

from ..utils.exceptions import SnipcartAPIError

logger = logging.getLogger(__name__)


class SnipcartClient:
    """
    Thin synchronous wrapper around the Snipcart REST API.

    Usage:
        client = SnipcartClient(api_endpoint, secret_api_key, timeout=10)
        data = client.validate_request_token(token)
    """

    DEFAULT_API_ENDPOINT = 'https://app.snipcart.com/api'
    DEFAULT_VALIDATION_PATH = 'requestvalidation'

    def __init__(
        self,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        secret_api_key: Optional[str] = None,
        timeout: float = 10,
        validation_path: str = DEFAULT_VALIDATION_PATH
    ):
        self.api_endpoint = api_endpoint.rstrip('/')
        self.secret_api_key = secret_api_key
        self.timeout = timeout
        self.validation_path = validation_path.strip('/')

    def _get_headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
        }

    def request_validation_url(self, token: str) -> str:
        """URL of the request validation resource for a token."""
        return f'{self.api_endpoint}/{self.validation_path}/{token}'

    def get(self, url: str) -> requests.Response:
        """
        Issue an authenticated GET.

        Raises:
            SnipcartAPIError: on connection failure or timeout
        """
        auth = (self.secret_api_key, '') if self.secret_api_key else None
        try:
            return requests.get(
                url,
                headers=self._get_headers(),
                auth=auth,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f'Snipcart GET failed: {type(e).__name__}')
            raise SnipcartAPIError(f'Snipcart REST connection failed: {e}')

    def validate_request_token(self, token: str) -> Dict[str, Any]:
        """
        Ask Snipcart to confirm a webhook request token.

        Returns:
            Decoded JSON document returned by Snipcart

        Raises:
            SnipcartAPIError: on transport failure, non-200 status,
                empty body or a body that is not a JSON object
        """
        response = self.get(self.request_validation_url(token))

        if response.status_code != 200:
            raise SnipcartAPIError(
                f'Request validation returned HTTP {response.status_code}',
                http_status=response.status_code
            )
        if not response.content:
            raise SnipcartAPIError('Request validation returned no response', http_status=200)

        try:
            data = response.json()
        except ValueError:
            raise SnipcartAPIError('Request validation response is not JSON', http_status=200)

        if not data or not isinstance(data, dict):
            raise SnipcartAPIError('Request validation response is not JSON', http_status=200)

        return data
