"""
Winner Email Relay Endpoint
Accepts {to, subject, body, fromName} and forwards it to the email provider
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from tip_raffle.errors import EmailRelayError
from utils.logging_config import log_route_access

from .postback import CORS_HEADERS

logger = logging.getLogger(__name__)

email_relay_bp = Blueprint('email_relay', __name__)


@email_relay_bp.after_request
def add_cors_headers(response):
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


@email_relay_bp.route('/functions/send-winner-email', methods=['POST', 'OPTIONS'])
def send_winner_email():
    """
    Relay one winner email

    Returns:
        200 {success, id}
        400 when to, subject or body is missing
        provider status code when the provider refuses
        500 when the relay is not configured
    """
    if request.method == 'OPTIONS':
        return '', 204

    log_route_access(logger, request.path, request.method)
    relay = current_app.config['EMAIL_RELAY']

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({'error': 'Invalid JSON'}), 400

    to = payload.get('to')
    subject = payload.get('subject')
    body = payload.get('body')
    if not to or not subject or not body:
        return jsonify({'error': 'Missing required fields: to, subject, body'}), 400

    try:
        message_id = relay.send(to, subject, body, payload.get('fromName') or '')
    except EmailRelayError as e:
        logger.error(f"Error sending email: {e}")
        response = {'error': str(e)}
        if e.payload:
            response['details'] = e.payload
        return jsonify(response), e.status_code

    return jsonify({'success': True, 'id': message_id}), 200


def register_email_relay_routes(app, relay=None):
    if relay is not None:
        app.config['EMAIL_RELAY'] = relay
    app.register_blueprint(email_relay_bp)
    logger.info("✅ Registered email relay route at /functions/send-winner-email")
