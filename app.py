#!/usr/bin/env python3
"""claude-relay - OpenAI-compatible gateway in front of the Claude Messages API."""

import sys
import logging
from typing import Optional

from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

# Import our modules
from config import Config
from logger_manager import LoggerManager
from handlers import proxy_bp, stats_bp


def create_app(config: Optional[Config] = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    CORS(app)

    config = config or Config()
    app.config['RELAY_CONFIG'] = config

    app.config['LOG_MANAGER'] = LoggerManager()

    app.register_blueprint(proxy_bp)
    app.register_blueprint(stats_bp)

    if not config.is_api_key_configured():
        logger.warning('No Claude API key configured')

    logger.info(f"claude-relay ready | target={config.claude_base_url} | "
                f"ssl_verify={config.get_verify_ssl()}")

    return app


def main():
    """Main entry point."""
    app = create_app()
    config = app.config['RELAY_CONFIG']

    print()
    print("=" * 60)
    print("  claude-relay - OpenAI-compatible gateway for Claude")
    print("=" * 60)
    print()
    print(f"  Endpoint:   http://localhost:{config.port}/v1/chat/completions")
    print(f"  Target:     {config.messages_url}")
    print(f"  SSL verify: {'Enabled' if config.get_verify_ssl() else 'Disabled'}")
    print()
    print("  Point an OpenAI client at this gateway with:")
    print()
    print(f"    export OPENAI_BASE_URL='http://localhost:{config.port}/v1'")
    print(f"    export OPENAI_API_KEY='{config.access_token}'")
    print()
    print("=" * 60)
    print()

    try:
        app.run(
            host='0.0.0.0',
            port=config.port,
            debug=False,
            threaded=True
        )
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
