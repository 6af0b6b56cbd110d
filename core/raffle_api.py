"""
Raffle HTTP API
Public landing-page routes and the admin dashboard routes

Usage:
    from core.raffle_api import register_raffle_routes

    register_raffle_routes(app, service, admin_key=ADMIN_API_KEY)
"""

import logging
from datetime import date

from flask import Blueprint, Response, current_app, request

from tip_raffle.config import ADMIN_API_KEY
from utils.error_helpers import (
    api_error_handler,
    json_error,
    json_success,
    require_admin_key,
    safe_int,
)
from utils.logging_config import log_route_access

logger = logging.getLogger(__name__)

raffle_bp = Blueprint('raffle_api', __name__, url_prefix='/api')

EXPORT_MIMETYPES = {
    'csv': 'text/csv; charset=utf-8',
    'pdf': 'application/pdf',
}


def _service():
    return current_app.config['RAFFLE_SERVICE']


def _admin_key():
    return current_app.config.get('ADMIN_API_KEY', ADMIN_API_KEY)


def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


admin_only = require_admin_key(_admin_key)


# -------------------------
# Public routes
# -------------------------

@raffle_bp.route('/page', methods=['GET'])
@api_error_handler
def get_page():
    """Landing page configuration without private settings"""
    return json_success(_service().config.to_public_dict())


@raffle_bp.route('/access', methods=['POST'])
@api_error_handler
def check_access():
    password = _json_body().get('password', '')
    if _service().check_access_password(password):
        return json_success(message='Access granted')
    return json_error('Incorrect password', 403, code='wrong_password')


@raffle_bp.route('/submissions', methods=['POST'])
@api_error_handler
def create_submission():
    """
    Register a participant

    Body: {"data": {fieldId: value}, "rules_accepted": bool}

    Returns:
        201 with the stored submission; rejections carry an error code
    """
    log_route_access(logger, request.path, request.method)
    body = _json_body()
    data = body.get('data')
    if not isinstance(data, dict):
        return json_error('data must be an object', 400, code='invalid_request')

    submission = _service().submit(data, rules_accepted=bool(body.get('rules_accepted')))
    return json_success(submission.to_dict(), message='Cadastro realizado com sucesso!',
                        status_code=201)


# -------------------------
# Admin: submissions
# -------------------------

@raffle_bp.route('/admin/submissions', methods=['GET'])
@admin_only
@api_error_handler
def list_submissions():
    log_route_access(logger, request.path, request.method, admin=True)
    return json_success(_service().participant_status())


@raffle_bp.route('/admin/submissions/<submission_id>', methods=['PATCH'])
@admin_only
@api_error_handler
def update_submission(submission_id):
    log_route_access(logger, request.path, request.method, admin=True)
    body = _json_body()
    changes = body.get('data', body)
    if not isinstance(changes, dict):
        return json_error('data must be an object', 400)
    submission = _service().update_submission(submission_id, changes)
    return json_success(submission.to_dict())


@raffle_bp.route('/admin/submissions/<submission_id>', methods=['DELETE'])
@admin_only
@api_error_handler
def delete_submission(submission_id):
    log_route_access(logger, request.path, request.method, admin=True)
    _service().delete_submission(submission_id)
    return json_success(message='Submission deleted')


@raffle_bp.route('/admin/submissions', methods=['DELETE'])
@admin_only
@api_error_handler
def clear_submissions():
    log_route_access(logger, request.path, request.method, admin=True)
    deleted = _service().clear_submissions()
    return json_success(message=f'{deleted} submissions deleted', deleted=deleted)


# -------------------------
# Admin: draws
# -------------------------

@raffle_bp.route('/admin/draw/random', methods=['POST'])
@admin_only
@api_error_handler
def draw_random():
    log_route_access(logger, request.path, request.method, admin=True)
    count = safe_int(_json_body().get('count'), default=0)
    if count <= 0:
        return json_error('count must be a positive integer', 400)

    result = _service().draw_random(count)
    message = 'No eligible participants' if result.count == 0 else None
    return json_success(result.to_dict(), message=message, requested=count)


@raffle_bp.route('/admin/draw/selected', methods=['POST'])
@admin_only
@api_error_handler
def draw_selected():
    log_route_access(logger, request.path, request.method, admin=True)
    ids = _json_body().get('ids')
    if not isinstance(ids, list) or not ids:
        return json_error('ids must be a non-empty list', 400)

    result = _service().draw_selected([str(i) for i in ids])
    return json_success(result.to_dict(), requested=len(ids))


# -------------------------
# Admin: wins and tips
# -------------------------

@raffle_bp.route('/admin/wins', methods=['GET'])
@admin_only
@api_error_handler
def list_wins():
    log_route_access(logger, request.path, request.method, admin=True)
    day = request.args.get('date')
    service = _service()
    wins = service.wins_by_date(day) if day else service.list_wins()
    return json_success([w.to_dict() for w in wins])


@raffle_bp.route('/admin/wins', methods=['DELETE'])
@admin_only
@api_error_handler
def clear_wins():
    log_route_access(logger, request.path, request.method, admin=True)
    deleted = _service().clear_wins()
    return json_success(message=f'{deleted} win records deleted', deleted=deleted)


@raffle_bp.route('/admin/wins/<win_id>/tip', methods=['POST'])
@admin_only
@api_error_handler
def attach_tip(win_id):
    log_route_access(logger, request.path, request.method, admin=True)
    win = _service().attach_tip(win_id, _json_body().get('tip_value'))
    return json_success(win.to_dict())


@raffle_bp.route('/admin/tips/summary', methods=['GET'])
@admin_only
@api_error_handler
def tip_summary():
    return json_success(_service().tip_summary())


@raffle_bp.route('/admin/notifications/failures', methods=['GET'])
@admin_only
@api_error_handler
def notification_failures():
    return json_success(_service().notification_failures())


# -------------------------
# Admin: ban list
# -------------------------

@raffle_bp.route('/admin/banned', methods=['GET'])
@admin_only
@api_error_handler
def list_banned():
    return json_success([b.to_dict() for b in _service().ban_list.list()])


@raffle_bp.route('/admin/banned', methods=['POST'])
@admin_only
@api_error_handler
def add_banned():
    log_route_access(logger, request.path, request.method, admin=True)
    body = _json_body()
    entry = _service().ban_list.add(body.get('type'), body.get('value'), body.get('reason', ''))
    return json_success(entry.to_dict(), status_code=201)


@raffle_bp.route('/admin/banned/<ban_id>', methods=['DELETE'])
@admin_only
@api_error_handler
def remove_banned(ban_id):
    log_route_access(logger, request.path, request.method, admin=True)
    _service().ban_list.remove(ban_id)
    return json_success(message='Ban removed')


# -------------------------
# Admin: configuration
# -------------------------

@raffle_bp.route('/admin/config', methods=['GET'])
@admin_only
@api_error_handler
def get_config():
    return json_success(_service().config.to_dict())


@raffle_bp.route('/admin/config', methods=['PATCH'])
@admin_only
@api_error_handler
def update_config():
    log_route_access(logger, request.path, request.method, admin=True)
    config = _service().update_config(_json_body())
    return json_success(config.to_dict())


@raffle_bp.route('/admin/config/reset', methods=['POST'])
@admin_only
@api_error_handler
def reset_config():
    log_route_access(logger, request.path, request.method, admin=True)
    return json_success(_service().reset_config().to_dict())


@raffle_bp.route('/admin/validated/count', methods=['GET'])
@admin_only
@api_error_handler
def validated_count():
    return json_success({'count': _service().validated_count()})


# -------------------------
# Admin: exports
# -------------------------

def _export_response(content, fmt, filename):
    if isinstance(content, str):
        content = content.encode('utf-8')
    return Response(
        content,
        mimetype=EXPORT_MIMETYPES[fmt],
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )


@raffle_bp.route('/admin/export/wins.<fmt>', methods=['GET'])
@admin_only
@api_error_handler
def export_wins(fmt):
    log_route_access(logger, request.path, request.method, admin=True)
    if fmt not in EXPORT_MIMETYPES:
        return json_error(f'Unsupported export format: {fmt}', 404)

    day = request.args.get('date') or date.today().isoformat()
    content = _service().export_wins(day, fmt)
    return _export_response(content, fmt, f'sorteados-{day}.{fmt}')


@raffle_bp.route('/admin/export/submissions.<fmt>', methods=['GET'])
@admin_only
@api_error_handler
def export_submissions(fmt):
    log_route_access(logger, request.path, request.method, admin=True)
    if fmt not in EXPORT_MIMETYPES:
        return json_error(f'Unsupported export format: {fmt}', 404)

    content = _service().export_submissions(fmt)
    return _export_response(content, fmt, f'cadastros.{fmt}')


def register_raffle_routes(app, service=None, admin_key=None):
    """
    Register raffle API routes with a Flask app

    Args:
        app: Flask application
        service: RaffleService (optional if already in app.config)
        admin_key: overrides ADMIN_API_KEY
    """
    if service is not None:
        app.config['RAFFLE_SERVICE'] = service
    if admin_key is not None:
        app.config['ADMIN_API_KEY'] = admin_key
    if not app.config.get('ADMIN_API_KEY', ADMIN_API_KEY):
        logger.warning("⚠️ ADMIN_API_KEY not set - admin routes will reject every request")
    app.register_blueprint(raffle_bp)
    logger.info("✅ Registered raffle API routes at /api")