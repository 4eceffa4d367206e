"""
Operational routes: health check and CORS preflight.
"""
from flask import Blueprint, jsonify

from social.utils.payloads import empty_response

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Health check endpoint for uptime monitoring."""
    return jsonify({
        'status': 'healthy',
        'service': 'social-backend'
    }), 200


@main_bp.route('/', defaults={'path': ''}, methods=['OPTIONS'])
@main_bp.route('/<path:path>', methods=['OPTIONS'])
def preflight(path):
    """Catch-all preflight; CORS headers are added by Flask-Cors."""
    return empty_response(204)
