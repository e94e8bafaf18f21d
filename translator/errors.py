"""Error types and Claude error payload mapping."""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TranslationError(Exception):
    """Base error carrying the HTTP status and OpenAI-style error fields."""

    status_code = 500
    error_type = 'api_error'

    def __init__(self, message: str, error_type: Optional[str] = None,
                 code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if error_type:
            self.error_type = error_type
        if status_code is not None:
            self.status_code = status_code
        self.code = code or self.error_type

    def to_dict(self) -> Dict[str, Any]:
        """Return the OpenAI error response body."""
        return {
            'error': {
                'message': self.message,
                'type': self.error_type,
                'param': None,
                'code': self.code,
            }
        }


class InvalidRequestError(TranslationError):
    """The inbound chat request cannot be mapped structurally."""

    status_code = 400
    error_type = 'invalid_request_error'


class ImageFetchError(TranslationError):
    """An image_url part could not be resolved to base64 data."""

    status_code = 400
    error_type = 'invalid_request_error'

    def __init__(self, message: str):
        super().__init__(message, code='image_url_invalid')


class ProviderError(TranslationError):
    """Claude reported an error in a response body or stream event."""

    status_code = 400


class DecodeError(TranslationError):
    """A provider payload could not be decoded."""

    status_code = 502
    error_type = 'decode_error'


def map_error(payload: Optional[Dict[str, Any]]) -> Optional[ProviderError]:
    """
    Map a Claude error payload to a ProviderError.

    Claude errors look like {"type": "overloaded_error", "message": "..."}.
    Every subtype is reported as a 400; the provider's type is kept in
    `error_type`/`code` and the message is passed through verbatim.

    Returns:
        None when the payload is absent or empty
    """
    if not payload or not isinstance(payload, dict):
        return None

    provider_type = str(payload.get('type') or '')
    message = str(payload.get('message') or '')
    if not provider_type and not message:
        return None

    logger.debug(f"Claude error payload: type={provider_type} message={message[:200]}")
    return ProviderError(
        message,
        error_type=provider_type or 'api_error',
        code=provider_type or None,
    )
