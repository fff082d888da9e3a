"""
Health route — database reachability for the load balancer.
"""
from flask import Blueprint, jsonify

from nurture.services.db import check_connection

bp = Blueprint('health', __name__)


@bp.route('/health')
def health():
    if check_connection():
        return jsonify({'status': 'ok', 'database': 'ok'})
    return jsonify({'status': 'degraded', 'database': 'unavailable'}), 503
