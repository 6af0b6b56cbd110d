"""
Registration Postback Receiver

The betting platform calls this endpoint when a visitor registers there;
the player id is then marked as validated for the raffle.

Usage:
    from core.postback import register_postback_routes

    register_postback_routes(app, service)

Accepted parameters (query string, JSON body or form body):
- player_id (alias playerid): required
- currency
- registration_date (alias registration)
- type
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from tip_raffle.errors import StoreError
from utils.logging_config import log_route_access

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'authorization, x-client-info, apikey, content-type',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
}

# Create Flask Blueprint for postback routes
postback_bp = Blueprint('postback', __name__)


@postback_bp.after_request
def add_cors_headers(response):
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


def _postback_params():
    """Merge query string, form body and JSON body; body values win"""
    params = {}
    params.update(request.args.to_dict())
    if request.form:
        params.update(request.form.to_dict())
    body = request.get_json(silent=True)
    if isinstance(body, dict):
        params.update({k: v for k, v in body.items() if v is not None})
    return params


def _first(params, *names):
    for name in names:
        value = params.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


@postback_bp.route('/functions/postback', methods=['GET', 'POST', 'OPTIONS'])
def handle_postback():
    """
    Mark a player id as validated

    Returns:
        200 {success, player_id}
        400 if player_id is missing
        500 if the store write fails
    """
    if request.method == 'OPTIONS':
        return '', 204

    log_route_access(logger, request.path, request.method)
    params = _postback_params()

    player_id = _first(params, 'player_id', 'playerid')
    if not player_id:
        return jsonify({'error': 'player_id is required'}), 400

    service = current_app.config['RAFFLE_SERVICE']
    try:
        service.record_validated_player(
            player_id,
            currency=_first(params, 'currency'),
            registration_date=_first(params, 'registration_date', 'registration'),
            player_type=_first(params, 'type'),
        )
    except StoreError as e:
        logger.error(f"Error storing validated player {player_id}: {e}")
        return jsonify({'error': 'Failed to store player'}), 500

    return jsonify({'success': True, 'player_id': player_id}), 200


def register_postback_routes(app, service=None):
    """
    Register postback routes with a Flask app

    Args:
        app: Flask application
        service: RaffleService (optional if already in app.config)
    """
    if service is not None:
        app.config['RAFFLE_SERVICE'] = service
    app.register_blueprint(postback_bp)
    logger.info("✅ Registered postback route at /functions/postback")
