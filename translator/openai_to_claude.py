"""Translate OpenAI chat completion requests to Claude Messages format."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import InvalidRequestError
from .images import fetch_image

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096

ImageFetcher = Callable[[str], Tuple[str, str]]


def translate_request(
    openai_request: Dict[str, Any],
    image_fetcher: ImageFetcher = fetch_image,
    default_max_tokens: int = DEFAULT_MAX_TOKENS
) -> Dict[str, Any]:
    """
    Translate an OpenAI /v1/chat/completions request to Claude /v1/messages format.

    Args:
        openai_request: The OpenAI API request body
        image_fetcher: Resolves an image URL to (media_type, base64_data)
        default_max_tokens: Used when max_tokens is missing or 0

    Returns:
        Claude-compatible request body

    Raises:
        InvalidRequestError: on a structurally invalid message
        ImageFetchError: when an image part cannot be resolved
    """
    claude_request = {'model': openai_request.get('model', '')}

    # Claude has no system role, the prompt lives at top level
    system_prompt = ''
    messages = []

    openai_messages = openai_request.get('messages') or []
    if not isinstance(openai_messages, list):
        raise InvalidRequestError('messages must be an array')

    for msg in openai_messages:
        if not isinstance(msg, dict):
            raise InvalidRequestError('Each message must be an object')

        if msg.get('role') == 'system':
            content = msg.get('content')
            if not isinstance(content, str):
                raise InvalidRequestError('System message content must be a string')
            system_prompt = content
            continue

        messages.append({
            'role': _translate_role(msg.get('role')),
            'content': _translate_content(msg.get('content'), image_fetcher),
        })

    if system_prompt:
        claude_request['system'] = system_prompt
    claude_request['messages'] = messages

    max_tokens = openai_request.get('max_tokens') or 0
    if not max_tokens:
        max_tokens = default_max_tokens
        logger.debug(f"Injected max_tokens={default_max_tokens}")
    claude_request['max_tokens'] = max_tokens

    stop = openai_request.get('stop')
    if stop:
        if isinstance(stop, str):
            claude_request['stop_sequences'] = [stop]
        elif isinstance(stop, list) and all(isinstance(s, str) for s in stop):
            claude_request['stop_sequences'] = list(stop)
        else:
            raise InvalidRequestError('stop must be a string or an array of strings')

    if openai_request.get('temperature') is not None:
        claude_request['temperature'] = openai_request['temperature']

    if openai_request.get('top_p') is not None:
        claude_request['top_p'] = openai_request['top_p']

    claude_request['stream'] = bool(openai_request.get('stream', False))

    return claude_request


def _translate_role(role: Optional[str]) -> str:
    """Claude only knows user and assistant."""
    if role == 'user':
        return 'user'
    return 'assistant'


def _translate_content(content: Any, image_fetcher: ImageFetcher) -> List[Dict[str, Any]]:
    """Translate message content (string or parts array) to Claude content blocks."""
    if content is None:
        return []

    if isinstance(content, str):
        return [{'type': 'text', 'text': content}]

    if not isinstance(content, list):
        raise InvalidRequestError(f'Unsupported message content: {type(content).__name__}')

    blocks = []
    for part in content:
        if not isinstance(part, dict):
            raise InvalidRequestError('Content parts must be objects')

        part_type = part.get('type')
        if part_type == 'text':
            blocks.append({'type': 'text', 'text': part.get('text', '')})
        elif part_type == 'image_url':
            media_type, data = image_fetcher(_image_url(part))
            blocks.append({
                'type': 'image',
                'source': {
                    'type': 'base64',
                    'media_type': media_type,
                    'data': data,
                }
            })
        else:
            logger.warning(f"Skipping unsupported content part: {part_type}")

    return blocks


def _image_url(part: Dict[str, Any]) -> str:
    image_url = part.get('image_url')
    if isinstance(image_url, dict):
        url = image_url.get('url')
        return url if isinstance(url, str) else ''
    if isinstance(image_url, str):
        return image_url
    return ''
