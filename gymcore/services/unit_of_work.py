"""
UNIT OF WORK
============

Runs a block of ORM changes as one transaction:
- commit on success
- rollback and re-raise any other error
- rollback and retry when an optimistic version check fails
"""

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from gymcore.extensions import db
from gymcore.services.exceptions import ConcurrentUpdateError


def run_atomic(operation, *args, **kwargs):
    """
    Call operation(*args, **kwargs) and commit.

    The operation must only stage changes on db.session (add/flush),
    never commit. If a versioned row was changed underneath us the whole
    operation is replayed against fresh state, up to
    LEDGER_RETRY_ATTEMPTS times.
    """
    attempts = current_app.config.get('LEDGER_RETRY_ATTEMPTS', 3)

    for attempt in range(1, attempts + 1):
        try:
            result = operation(*args, **kwargs)
            db.session.commit()
            return result

        except StaleDataError:
            db.session.rollback()
            current_app.logger.warning(
                "Concurrent ledger update detected in %s (attempt %d/%d)",
                operation.__name__, attempt, attempts
            )
        except Exception:
            db.session.rollback()
            raise

    raise ConcurrentUpdateError(
        f"{operation.__name__} did not complete after {attempts} attempts"
    )
