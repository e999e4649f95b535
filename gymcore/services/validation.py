"""
Input checks shared by the services.

Values may come straight from a JSON body, so types are checked
before any string method is called.
"""

from gymcore.services.exceptions import ValidationError


def required_text(value, field):
    """Non-empty string, returned stripped"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def optional_text(value, field):
    """None or a string; returned unchanged"""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be text")
    return value
