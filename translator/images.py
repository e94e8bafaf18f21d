"""Resolve image_url parts into (media_type, base64 data)."""

import base64
import logging
from typing import Tuple

import requests

from .errors import ImageFetchError

logger = logging.getLogger(__name__)

SUPPORTED_MEDIA_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')


def fetch_image(url: str, timeout: float = 30, verify: bool = True) -> Tuple[str, str]:
    """
    Turn an image URL or data URI into a media type and base64 payload.

    Args:
        url: data:image/...;base64,... URI or http(s) URL
        timeout: Download timeout in seconds
        verify: TLS verification for downloads

    Returns:
        (media_type, base64_data)

    Raises:
        ImageFetchError: if the URL cannot be resolved to a supported image
    """
    url = (url or '').strip()
    if not url:
        raise ImageFetchError('Empty image URL')

    if url.startswith('data:'):
        return _parse_data_uri(url)

    if not url.startswith(('http://', 'https://')):
        raise ImageFetchError(f'Unsupported image URL scheme: {url[:50]}')

    try:
        response = requests.get(url, timeout=timeout, verify=verify)
    except requests.exceptions.RequestException as e:
        raise ImageFetchError(f'Failed to fetch image: {e}') from e

    if not response.ok:
        raise ImageFetchError(f'Failed to fetch image: HTTP {response.status_code}')

    media_type = response.headers.get('Content-Type', '').split(';', 1)[0].strip().lower()
    if media_type not in SUPPORTED_MEDIA_TYPES:
        raise ImageFetchError(f'Unsupported image type: {media_type or "unknown"}')

    logger.debug(f"Fetched image {url[:100]} ({media_type}, {len(response.content)} bytes)")
    return media_type, base64.b64encode(response.content).decode('ascii')


def _parse_data_uri(url: str) -> Tuple[str, str]:
    """Split a base64 data URI."""
    if ';base64,' not in url:
        raise ImageFetchError('Image data URI must be base64 encoded')

    prefix, data = url.split(';base64,', 1)
    media_type = prefix[5:].lower()
    if media_type not in SUPPORTED_MEDIA_TYPES:
        raise ImageFetchError(f'Unsupported image type: {media_type or "unknown"}')
    if not data:
        raise ImageFetchError('Image data URI has no data')

    return media_type, data
