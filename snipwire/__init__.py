"""
SnipWire webhooks service
Flask application factory
"""
import os
import logging
from flask import Flask

from .config import SnipWireSettings, get_config, validate_config
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

__version__ = '1.0.0'


def create_app(config_name: str = None, settings: SnipWireSettings = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)
        settings: Prebuilt settings snapshot (tests); built from config when omitted

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    # Setup logging before anything else
    debug = settings.debug if settings else app.config.get('SNIPWIRE_DEBUG')
    setup_logging(
        level='DEBUG' if debug else app.config.get('LOG_LEVEL'),
        log_file=app.config.get('LOG_FILE')
    )

    validate_config(config_name)

    # Immutable settings snapshot shared by all requests
    if settings is None:
        settings = SnipWireSettings.from_mapping(app.config)
    app.extensions['snipwire'] = settings

    from .webhooks import init_webhooks
    init_webhooks(app, settings)

    register_blueprints(app, settings)
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'snipwire', 'version': __version__}

    logger.info(
        f'SnipWire webhooks ready at {settings.webhooks_endpoint} '
        f'(taxes provider: {settings.taxes_provider}, local dev: {settings.local_dev})'
    )
    return app


def register_blueprints(app: Flask, settings: SnipWireSettings) -> None:
    """Register all blueprints."""
    from .webhooks.snipcart import snipcart_webhooks_bp

    # Webhook routes
    app.register_blueprint(snipcart_webhooks_bp, url_prefix=settings.webhooks_endpoint)


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found(error):
        return {'error': 'Not found', 'message': str(error)}, 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f'Unhandled error: {error}')
        return {'error': 'Internal server error', 'message': 'An unexpected error occurred'}, 500
