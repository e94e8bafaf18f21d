"""Configuration management for claude-relay."""

import os
import secrets
import logging

logger = logging.getLogger(__name__)


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        # Gateway settings
        self.port = int(os.getenv('GATEWAY_PORT', '5000'))
        self.access_token = os.getenv('GATEWAY_ACCESS_TOKEN') or self._generate_token()

        # Claude endpoint
        self.claude_base_url = os.getenv('CLAUDE_BASE_URL', 'https://api.anthropic.com/v1').rstrip('/')
        # Check CLAUDE_API_KEY, fall back to ANTHROPIC_API_KEY
        self.claude_api_key = os.getenv('CLAUDE_API_KEY') or os.getenv('ANTHROPIC_API_KEY')
        self.anthropic_version = os.getenv('ANTHROPIC_VERSION', '2023-06-01')

        # Request shaping
        self.default_max_tokens = int(os.getenv('DEFAULT_MAX_TOKENS', '4096'))

        # Timeouts (seconds)
        self.request_timeout = float(os.getenv('REQUEST_TIMEOUT', '120'))
        self.stream_timeout = float(os.getenv('STREAM_TIMEOUT', '600'))
        self.image_fetch_timeout = float(os.getenv('IMAGE_FETCH_TIMEOUT', '30'))

        # Streaming hand-off between provider reader and client writer
        self.stream_queue_size = int(os.getenv('STREAM_QUEUE_SIZE', '64'))

        self.skip_ssl_verify = os.getenv('SKIP_SSL_VERIFY', 'false').lower() == 'true'

    @property
    def messages_url(self) -> str:
        return f"{self.claude_base_url}/messages"

    def _generate_token(self) -> str:
        """Generate a random access token."""
        return f"claude-relay-{secrets.token_hex(32)}"

    def is_api_key_configured(self) -> bool:
        """Check if the Claude API key is configured."""
        return bool(self.claude_api_key)

    def get_verify_ssl(self) -> bool:
        """Get SSL verification setting."""
        return not self.skip_ssl_verify

    def provider_headers(self, stream: bool = False) -> dict:
        """Build headers for a Claude /v1/messages call."""
        headers = {
            'Content-Type': 'application/json',
            'anthropic-version': self.anthropic_version,
        }
        if self.claude_api_key:
            headers['x-api-key'] = self.claude_api_key
        else:
            logger.warning("No Claude API key configured")
        if stream:
            headers['Accept'] = 'text/event-stream'
        return headers

    def to_dict(self) -> dict:
        """Return configuration as dictionary (for API response)."""
        return {
            'port': self.port,
            'claude_base_url': self.claude_base_url,
            'anthropic_version': self.anthropic_version,
            'default_max_tokens': self.default_max_tokens,
            'request_timeout': self.request_timeout,
            'stream_timeout': self.stream_timeout,
            'stream_queue_size': self.stream_queue_size,
            'api_key_configured': self.is_api_key_configured(),
            'ssl_verify': self.get_verify_ssl(),
        }
