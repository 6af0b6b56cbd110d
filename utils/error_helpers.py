"""
Error handling helpers and decorators for Flask routes and store calls
Reduces repetitive try/except patterns and JSON error responses
"""

from functools import wraps
import hmac
import logging

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from tip_raffle.errors import RaffleError, StoreError

logger = logging.getLogger(__name__)


def api_error_handler(func):
    """
    Decorator for API endpoints that automatically handles exceptions
    and returns proper JSON error responses

    Usage:
        @bp.route('/api/data')
        @api_error_handler
        def get_data():
            return json_success(data)
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except StoreError as e:
            logger.error(f"Store failure in {func.__name__}: {e}")
            return json_error('Operation failed, please try again', e.status_code, code=e.code)
        except RaffleError as e:
            level = logging.WARNING if e.status_code < 500 else logging.ERROR
            logger.log(level, f"{type(e).__name__} in {func.__name__}: {e}")
            return json_error(str(e), e.status_code, code=e.code)
        except ValueError as e:
            logger.warning(f"Validation error in {func.__name__}: {e}")
            return json_error(str(e), 400)
        except LookupError as e:
            logger.warning(f"Not found in {func.__name__}: {e}")
            return json_error('Resource not found', 404)
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            return json_error('Internal server error', 500)
    return wrapper


def db_error_handler(func):
    """
    Decorator for store operations

    Logs the database error and re-raises it as StoreError so callers
    never see driver-specific exceptions.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Database error in {func.__name__}: {e}", exc_info=True)
            raise StoreError(f"{func.__name__} failed") from e
    return wrapper


def require_admin_key(get_key):
    """
    Decorator factory guarding admin routes with the X-Admin-Key header

    Args:
        get_key: callable returning the configured key (read per request so
                 tests and the app factory can override it)
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            expected = get_key() or ''
            supplied = request.headers.get('X-Admin-Key', '')
            if not expected or not hmac.compare_digest(expected, supplied):
                logger.warning(f"Rejected admin request to {request.path}")
                return json_error('Unauthorized', 401)
            return func(*args, **kwargs)
        return wrapper
    return decorator


# Helper functions for common response patterns

def json_success(data=None, message=None, status_code=200, **kwargs):
    """
    Create standardized success JSON response

    Args:
        data: Optional data to include
        message: Optional success message
        status_code: HTTP status code (default 200)
        **kwargs: Additional fields to include
    """
    response = {'success': True}
    if data is not None:
        response['data'] = data
    if message:
        response['message'] = message
    response.update(kwargs)
    return jsonify(response), status_code


def json_error(error, status_code=400, **kwargs):
    """
    Create standardized error JSON response

    Returns:
        JSON response with success=False and given status code
    """
    response = {'success': False, 'error': str(error)}
    response.update(kwargs)
    return jsonify(response), status_code


def safe_int(value, default=0):
    """Safely convert value to integer with fallback"""
    try:
        return int(value)
    except (ValueError, TypeError):
        return default
