"""Translate Claude Messages responses to OpenAI chat completion format."""

import logging
import time
from typing import Any, Dict, Optional

from .errors import DecodeError, map_error
from .usage import Usage

logger = logging.getLogger(__name__)


def translate_response(
    claude_response: Dict[str, Any],
    openai_request: Dict[str, Any],
    usage: Usage
) -> Dict[str, Any]:
    """
    Translate a Claude /v1/messages response to OpenAI /v1/chat/completions format.

    Args:
        claude_response: The Claude API response body
        openai_request: The original OpenAI request (for the model name)
        usage: Caller-owned accumulator, overwritten with this response's usage

    Returns:
        OpenAI-compatible response body

    Raises:
        ProviderError: if the response carries an error payload
        DecodeError: if the response body has the wrong shape
    """
    if not isinstance(claude_response, dict):
        raise DecodeError('Claude response must be a JSON object')

    error = map_error(claude_response.get('error'))
    if error is not None:
        logger.warning(f"Claude returned an error: {error.message}")
        raise error

    content = claude_response.get('content') or []
    if not isinstance(content, list):
        raise DecodeError('Claude response content must be a list')

    text = ''
    if content:
        first_block = content[0]
        if not isinstance(first_block, dict):
            raise DecodeError('Claude content block must be an object')
        text = first_block.get('text') or ''
        if not isinstance(text, str):
            raise DecodeError('Claude content block text must be a string')
    # Claude prefixes continuations with a single space
    if text.startswith(' '):
        text = text[1:]

    stop_reason = claude_response.get('stop_reason')
    if stop_reason is not None and not isinstance(stop_reason, str):
        raise DecodeError('Claude stop_reason must be a string')

    choice = {
        'index': 0,
        'message': {
            'role': claude_response.get('role') or 'assistant',
            'content': text,
        },
        'finish_reason': map_stop_reason(stop_reason),
    }

    claude_usage = claude_response.get('usage') or {}
    if not isinstance(claude_usage, dict):
        raise DecodeError('Claude response usage must be an object')
    usage.set(
        _token_count(claude_usage, 'input_tokens'),
        _token_count(claude_usage, 'output_tokens')
    )

    return {
        'id': claude_response.get('id', ''),
        'object': 'chat.completion',
        'created': int(time.time()),
        'model': openai_request.get('model', ''),
        'choices': [choice],
        'usage': usage.to_dict(),
    }


def map_stop_reason(stop_reason: Optional[str]) -> Optional[str]:
    """Translate Claude stop_reason to OpenAI finish_reason."""
    if not stop_reason:
        return None

    mapping = {
        'end_turn': 'stop',
        'stop_sequence': 'stop',
        'max_tokens': 'length',
        'tool_use': 'tool_calls',
    }

    return mapping.get(stop_reason, stop_reason)


def _token_count(claude_usage: Dict[str, Any], key: str) -> int:
    value = claude_usage.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f'Claude usage field "{key}" must be an integer')
    return value
