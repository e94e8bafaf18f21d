"""Request handlers for claude-relay."""

from .proxy_handler import proxy_bp
from .stats_api import stats_bp

__all__ = ['proxy_bp', 'stats_bp']
