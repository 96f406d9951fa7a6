"""
Standardized error bodies for webhook rejections.

Rejections answer with:
{
    "error": {
        "message": "Human readable reason",
        "code": "ERROR_CODE"
    }
}

Usage:
    from snipwire.utils.errors import error_body, ErrorCode

    body = error_body("Missing request token", ErrorCode.MISSING_TOKEN)
"""
import json
import logging
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for webhook responses."""

    # Request authentication (404)
    INVALID_REQUEST = "INVALID_REQUEST"
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    HANDSHAKE_FAILED = "HANDSHAKE_FAILED"

    # Payload validation (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_TAXES_REQUEST = "INVALID_TAXES_REQUEST"

    # Server errors (500)
    UNBOUND_HANDLER = "UNBOUND_HANDLER"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_body(message: str, code=ErrorCode.INTERNAL_ERROR, status_code: int = 500) -> str:
    """
    Build the JSON error document for a rejected webhook request.

    Args:
        message: Error message
        code: ErrorCode member or plain code string
        status_code: HTTP status the body is sent with (used for log level)

    Returns:
        JSON encoded error body
    """
    if status_code >= 500:
        logger.error(f"Webhook error [{code}]: {message}")

    return json.dumps({
        "error": {
            "message": message,
            "code": code.value if isinstance(code, ErrorCode) else code
        }
    })
