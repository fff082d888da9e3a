"""
Nurture routes — preview stage buckets, enqueue cycles, list past runs.
"""
import math

from flask import Blueprint, request, jsonify

from nurture.sequencing.cycle import enqueue_nurture_cycle
from nurture.sequencing.engine import get_nurture_leads
from nurture.services.db import list_recent_runs

bp = Blueprint('nurture', __name__)

# JSON body key → (engine/cycle kwarg, allow fractional)
_NUMERIC_PARAMS = {
    'daysWithoutReply': ('days_without_reply', True),
    'limit': ('limit', False),
    'maxLeadsPerStage': ('max_leads_per_stage', False),
}


def _parse_numeric_params(data):
    """
    Pull the optional numeric knobs out of a request body.

    Returns (kwargs, error). Missing/null keys are left to engine defaults;
    anything present must be a non-negative number (integer where required).
    """
    kwargs = {}
    for key, (kwarg, fractional) in _NUMERIC_PARAMS.items():
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None, f'{key} must be a number'
        # Flask's JSON parser accepts NaN and Infinity
        if not math.isfinite(value):
            return None, f'{key} must be a finite number'
        if value < 0:
            return None, f'{key} must be non-negative'
        if not fractional and int(value) != value:
            return None, f'{key} must be an integer'
        kwargs[kwarg] = value if fractional else int(value)
    return kwargs, None


@bp.route('/api/nurture/<site_id>/preview', methods=['POST'])
def preview(site_id):
    """Classify a site's leads without applying terminal writes."""
    data = request.get_json(silent=True) or {}
    kwargs, error = _parse_numeric_params(data)
    if error:
        return jsonify({'error': error}), 400

    result = get_nurture_leads(site_id, dry_run=True, **kwargs)
    return jsonify(result), (200 if result['success'] else 503)


@bp.route('/api/nurture/<site_id>/cycles', methods=['POST'])
def create_cycle(site_id):
    """Enqueue a full nurture cycle (engine + follow-up dispatch) for a site."""
    data = request.get_json(silent=True) or {}
    kwargs, error = _parse_numeric_params(data)
    if error:
        return jsonify({'error': error}), 400

    options = {}
    if 'days_without_reply' in kwargs:
        options['days_without_reply'] = kwargs['days_without_reply']
    if 'limit' in kwargs:
        options['max_leads'] = kwargs['limit']
    if 'max_leads_per_stage' in kwargs:
        options['max_leads_per_stage'] = kwargs['max_leads_per_stage']
    if data.get('userId'):
        options['user_id'] = data['userId']
    if isinstance(data.get('additionalData'), dict):
        options['additional_data'] = data['additionalData']

    try:
        job_id = enqueue_nurture_cycle(site_id, **options)
        return jsonify({'job_id': job_id, 'site_id': site_id}), 202
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@bp.route('/api/nurture/runs')
def list_runs():
    """List recent nurture cycle runs, optionally filtered by ?site_id=."""
    limit = request.args.get('limit', 20, type=int)
    site_id = request.args.get('site_id')
    return jsonify(list_recent_runs(site_id=site_id, limit=limit))
