"""Image URL resolution."""

import base64

import pytest
import requests

from translator import images
from translator.errors import ImageFetchError


class _ImageResponse:
    def __init__(self, status_code=200, content=b'', content_type='image/png'):
        self.status_code = status_code
        self.content = content
        self.headers = {'Content-Type': content_type}

    @property
    def ok(self):
        return self.status_code < 400


def test_data_uri():
    assert images.fetch_image('data:image/png;base64,AAAA') == ('image/png', 'AAAA')


@pytest.mark.parametrize('url', [
    '',
    'data:image/png,rawdata',
    'data:text/plain;base64,AAAA',
    'data:image/png;base64,',
    'ftp://example.com/cat.png',
    '/etc/passwd',
])
def test_invalid_references(url):
    with pytest.raises(ImageFetchError) as exc_info:
        images.fetch_image(url)

    assert exc_info.value.status_code == 400


def test_http_download(monkeypatch):
    calls = []

    def fake_get(url, timeout, verify):
        calls.append((url, timeout, verify))
        return _ImageResponse(content=b'\x89PNG', content_type='image/png; charset=binary')

    monkeypatch.setattr(images.requests, 'get', fake_get)

    media_type, data = images.fetch_image('https://example.com/cat.png', timeout=5, verify=False)

    assert media_type == 'image/png'
    assert base64.b64decode(data) == b'\x89PNG'
    assert calls == [('https://example.com/cat.png', 5, False)]


def test_http_error_status(monkeypatch):
    monkeypatch.setattr(images.requests, 'get', lambda url, timeout, verify: _ImageResponse(status_code=404))

    with pytest.raises(ImageFetchError, match='404'):
        images.fetch_image('https://example.com/missing.png')


def test_http_non_image(monkeypatch):
    monkeypatch.setattr(images.requests, 'get',
                        lambda url, timeout, verify: _ImageResponse(content=b'<html>', content_type='text/html'))

    with pytest.raises(ImageFetchError, match='text/html'):
        images.fetch_image('https://example.com/page')


def test_transport_failure(monkeypatch):
    def fake_get(url, timeout, verify):
        raise requests.exceptions.ConnectionError('refused')

    monkeypatch.setattr(images.requests, 'get', fake_get)

    with pytest.raises(ImageFetchError, match='refused'):
        images.fetch_image('https://example.com/cat.png')
