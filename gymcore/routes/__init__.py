"""
Shared route helpers: the acting principal, request parsing and the
translation of domain errors into JSON responses.
"""

from datetime import date, datetime

from flask import jsonify, request, current_app
from flask_login import current_user

from gymcore.services.authorization_service import Actor
from gymcore.services.exceptions import GymError, AccessDeniedError, ValidationError


def current_actor():
    return Actor.from_member(current_user)


def json_body():
    """Request JSON as a dict; anything other than a JSON object is rejected"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_date(value, field):
    if value in (None, ''):
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)")


def parse_datetime(value, field):
    if value in (None, ''):
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an ISO date-time")


def parse_int(value, field, default=None):
    """Whole numbers only: JSON integers or strings of digits (2.9 is refused)"""
    if value in (None, ''):
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        digits = value.strip()
        if digits.startswith('-'):
            digits = digits[1:]
        if digits.isdecimal():
            return int(value)
    raise ValidationError(f"{field} must be a whole number")


def register_error_handlers(app):

    @app.errorhandler(GymError)
    def handle_gym_error(error):
        if isinstance(error, AccessDeniedError):
            current_app.logger.warning(
                "Access denied: actor=%s intent=%s target=%s",
                getattr(current_user, 'id', None), error.intent, error.target_id
            )
        return jsonify({'error': str(error), 'type': type(error).__name__}), error.status_code
