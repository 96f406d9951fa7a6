"""
Custom exceptions for SnipWire webhook processing.

Each exception carries the HTTP status code the webhook endpoint answers
with when the exception ends a request.
"""


class SnipWireError(Exception):
    """Base exception for all SnipWire errors."""

    status_code = 500

    def __init__(self, message: str, code: str = "SNIPWIRE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class AuthenticationFailure(SnipWireError):
    """Request is not a genuine Snipcart webhook call (wrong verb, content type or token)."""

    status_code = 404

    def __init__(self, message: str, code: str = "INVALID_REQUEST"):
        super().__init__(message, code)


class SchemaInvalid(SnipWireError):
    """Webhook payload does not match the expected envelope."""

    status_code = 400

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class UnboundHandler(SnipWireError):
    """A known event has no handler registered."""

    status_code = 500

    def __init__(self, event_name: str):
        self.event_name = event_name
        super().__init__(f"No handler bound for event {event_name}", "UNBOUND_HANDLER")


class TaxPreconditionFailure(SnipWireError):
    """taxes.calculate content is missing data needed for the calculation."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, "INVALID_TAXES_REQUEST")


class SnipcartAPIError(SnipWireError):
    """Snipcart REST API call failed."""

    def __init__(self, message: str, http_status: int = None):
        self.http_status = http_status
        super().__init__(message, "SNIPCART_API_ERROR")


class ConfigurationError(SnipWireError):
    """Module configuration is invalid."""

    def __init__(self, message: str, problems: list = None):
        self.problems = problems or []
        super().__init__(message, "CONFIGURATION_ERROR")
