"""Usage and request log endpoints for claude-relay."""

import logging
from flask import Blueprint, request, jsonify

logger = logging.getLogger(__name__)

stats_bp = Blueprint('stats', __name__)


def get_config():
    """Get config from Flask app context."""
    from flask import current_app
    return current_app.config['RELAY_CONFIG']


def get_log_manager():
    """Get log manager from Flask app context."""
    from flask import current_app
    return current_app.config['LOG_MANAGER']


@stats_bp.route('/api/config', methods=['GET'])
def get_configuration():
    """Get current configuration (secrets omitted)."""
    return jsonify(get_config().to_dict())


@stats_bp.route('/api/logs', methods=['GET'])
def get_logs():
    """Get recent chat completion calls, newest first."""
    log_manager = get_log_manager()
    limit = request.args.get('limit', 50, type=int)

    return jsonify({'calls': log_manager.get_calls(limit)})


@stats_bp.route('/api/logs', methods=['DELETE'])
def clear_logs():
    """Clear the call log."""
    get_log_manager().clear_logs()

    return jsonify({'success': True, 'message': 'Logs cleared'})


@stats_bp.route('/api/usage', methods=['GET'])
def get_usage():
    """Get usage totals, broken down by model and finish reason."""
    return jsonify(get_log_manager().get_usage_stats())


@stats_bp.route('/api/usage/reset', methods=['POST'])
def reset_usage():
    """Reset usage statistics."""
    get_log_manager().reset_usage()

    return jsonify({'success': True, 'message': 'Usage statistics reset'})


@stats_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({'status': 'healthy', 'service': 'claude-relay'})
