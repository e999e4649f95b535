"""
DOMAIN EXCEPTIONS
=================

Every service raises one of these. Routes translate them to HTTP
responses in one place (gymcore/routes/__init__.py).
"""


class GymError(Exception):
    """Base exception for gym domain operations"""
    status_code = 400


class NotFoundError(GymError):
    """Referenced member, ledger or record does not exist"""
    status_code = 404


class ValidationError(GymError):
    """Invalid input: negative counts, bad date range, non-trainer as trainer"""
    status_code = 400


class AccessDeniedError(GymError):
    """Raised when an authorization rule fails"""
    status_code = 403

    def __init__(self, intent, target_id, message=None):
        self.intent = intent
        self.target_id = target_id
        super().__init__(message or f"Access denied: {intent} on member {target_id}")


class InsufficientBalanceError(GymError):
    """Raised when no sessions of the requested kind remain"""
    status_code = 409


class ConcurrentUpdateError(GymError):
    """Raised when a ledger write keeps losing to concurrent writers"""
    status_code = 409
