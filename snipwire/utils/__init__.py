"""
Utility modules for SnipWire.
"""
from .logging_config import setup_logging, WEBHOOKS_LOG_NAME
from .errors import ErrorCode, error_body
from .exceptions import (
    SnipWireError,
    AuthenticationFailure,
    SchemaInvalid,
    UnboundHandler,
    TaxPreconditionFailure,
    SnipcartAPIError,
    ConfigurationError
)
