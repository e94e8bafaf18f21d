"""Shared fixtures for the claude-relay test suite."""

import pytest

from translator import Usage

ACCESS_TOKEN = 'test-access-token'


@pytest.fixture()
def usage() -> Usage:
    return Usage()


@pytest.fixture()
def config(monkeypatch: pytest.MonkeyPatch):
    """Config built from a clean, deterministic environment."""
    monkeypatch.setenv('GATEWAY_ACCESS_TOKEN', ACCESS_TOKEN)
    monkeypatch.setenv('CLAUDE_API_KEY', 'sk-ant-test')
    monkeypatch.setenv('CLAUDE_BASE_URL', 'https://claude.test/v1/')
    monkeypatch.delenv('DEFAULT_MAX_TOKENS', raising=False)
    monkeypatch.delenv('SKIP_SSL_VERIFY', raising=False)

    from config import Config
    return Config()


@pytest.fixture()
def client(config):
    from app import create_app

    app = create_app(config)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture()
def auth_headers() -> dict:
    return {'Authorization': f'Bearer {ACCESS_TOKEN}'}
