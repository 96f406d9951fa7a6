"""
Configuration management for SnipWire.
"""
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from .services.taxes import ShippingTaxesType, TaxesConfig
from .utils.exceptions import ConfigurationError

load_dotenv()


def _get_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ('true', '1', 'yes', 'on')


def _get_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    JSON_SORT_KEYS = False

    # Snipcart REST API
    SNIPWIRE_API_ENDPOINT = os.getenv('SNIPWIRE_API_ENDPOINT', 'https://app.snipcart.com/api')
    SNIPWIRE_REQUEST_VALIDATION_PATH = os.getenv('SNIPWIRE_REQUEST_VALIDATION_PATH', 'requestvalidation')
    SNIPWIRE_SECRET_API_KEY = os.getenv('SNIPWIRE_SECRET_API_KEY', '')
    SNIPWIRE_HANDSHAKE_TIMEOUT = _get_float('SNIPWIRE_HANDSHAKE_TIMEOUT', 10.0)

    # Webhooks
    SNIPWIRE_WEBHOOKS_ENDPOINT = os.getenv('SNIPWIRE_WEBHOOKS_ENDPOINT', '/webhooks/snipcart')
    SNIPWIRE_LOCAL_DEV = _get_bool('SNIPWIRE_LOCAL_DEV', False)
    SNIPWIRE_DEBUG = _get_bool('SNIPWIRE_DEBUG', False)

    # Taxes
    SNIPWIRE_TAXES_PROVIDER = os.getenv('SNIPWIRE_TAXES_PROVIDER', 'integrated')
    SNIPWIRE_TAXES_INCLUDED = _get_bool('SNIPWIRE_TAXES_INCLUDED', True)
    SNIPWIRE_SHIPPING_TAXES_TYPE = os.getenv('SNIPWIRE_SHIPPING_TAXES_TYPE', 'highest-rate')
    SNIPWIRE_TAXES = os.getenv('SNIPWIRE_TAXES', '')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE')


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    @classmethod
    def validate_api_key(cls) -> str:
        """
        Validate the Snipcart secret API key in production.

        Raises:
            ConfigurationError: If the key is missing while the handshake is active
        """
        if not cls.SNIPWIRE_LOCAL_DEV and not cls.SNIPWIRE_SECRET_API_KEY:
            raise ConfigurationError(
                "SNIPWIRE_SECRET_API_KEY environment variable is not set!\n"
                "Webhook request tokens cannot be validated against Snipcart without it."
            )
        return cls.SNIPWIRE_SECRET_API_KEY


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SNIPWIRE_LOCAL_DEV = False
    SNIPWIRE_DEBUG = False
    SNIPWIRE_SECRET_API_KEY = 'test_secret_api_key'
    SNIPWIRE_TAXES_PROVIDER = 'integrated'
    SNIPWIRE_TAXES_INCLUDED = True
    SNIPWIRE_SHIPPING_TAXES_TYPE = 'highest-rate'
    SNIPWIRE_TAXES = ''


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Validate configuration before app startup.

    Raises:
        ConfigurationError: If validation fails in production
    """
    if config_name == 'production':
        ProductionConfig.validate_api_key()


@dataclass(frozen=True)
class SnipWireSettings:
    """
    Immutable snapshot of everything the webhook pipeline reads.

    Built once per process in create_app() and passed explicitly to the
    authenticator, router, handlers and tax engine.
    """
    taxes: TaxesConfig
    taxes_provider: str = 'integrated'
    taxes_included: bool = True
    shipping_taxes_type: ShippingTaxesType = ShippingTaxesType.HIGHEST_RATE
    local_dev: bool = False
    debug: bool = False
    api_endpoint: str = 'https://app.snipcart.com/api'
    request_validation_path: str = 'requestvalidation'
    secret_api_key: str = ''
    handshake_timeout: float = 10.0
    webhooks_endpoint: str = '/webhooks/snipcart'

    @property
    def integrated_taxes(self) -> bool:
        return self.taxes_provider == 'integrated'

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any], taxes: Optional[TaxesConfig] = None) -> 'SnipWireSettings':
        """Build settings from a Flask config (or any mapping of SNIPWIRE_* keys)."""
        raw_type = config.get('SNIPWIRE_SHIPPING_TAXES_TYPE') or ShippingTaxesType.HIGHEST_RATE.value
        try:
            shipping_taxes_type = ShippingTaxesType(raw_type)
        except ValueError:
            raise ConfigurationError(f'Unknown shipping taxes type: {raw_type}')

        if taxes is None:
            taxes = TaxesConfig.from_json(config.get('SNIPWIRE_TAXES'))

        return cls(
            taxes=taxes,
            taxes_provider=config.get('SNIPWIRE_TAXES_PROVIDER', 'integrated'),
            taxes_included=bool(config.get('SNIPWIRE_TAXES_INCLUDED', True)),
            shipping_taxes_type=shipping_taxes_type,
            local_dev=bool(config.get('SNIPWIRE_LOCAL_DEV', False)),
            debug=bool(config.get('SNIPWIRE_DEBUG', False)),
            api_endpoint=config.get('SNIPWIRE_API_ENDPOINT', 'https://app.snipcart.com/api'),
            request_validation_path=config.get('SNIPWIRE_REQUEST_VALIDATION_PATH', 'requestvalidation'),
            secret_api_key=config.get('SNIPWIRE_SECRET_API_KEY', ''),
            handshake_timeout=float(config.get('SNIPWIRE_HANDSHAKE_TIMEOUT', 10.0)),
            webhooks_endpoint=config.get('SNIPWIRE_WEBHOOKS_ENDPOINT', '/webhooks/snipcart'),
        )
