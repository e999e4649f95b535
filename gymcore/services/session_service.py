"""
SESSION CONSUMPTION WORKFLOW
============================

A SessionRecord moves through: none -> recorded -> (updated)* -> deleted

- create: assigned trainer or admin; consumes one REGULAR session
- update: authoring trainer or admin; descriptive fields only
- delete: authoring trainer or admin; gives the REGULAR session back

Ledger changes and record changes commit together. Notifications go
out after the commit and never undo it.
"""

from datetime import datetime

from flask import current_app

from gymcore.extensions import db
from gymcore.models import SessionRecord, Role, SessionKind, Severity
from gymcore.services.authorization_service import (
    require, require_role, can_read, can_write_as_custodian, can_edit_session,
    can_view_trainer
)
from gymcore.services.exceptions import NotFoundError, ValidationError
from gymcore.services.ledger_service import apply_decrement, apply_restore
from gymcore.services.member_service import find_member
from gymcore.services.notification_service import notify
from gymcore.services.unit_of_work import run_atomic
from gymcore.services.validation import optional_text


# ============================================================
# HELPERS
# ============================================================

def _validate_details(occurred_at, duration_minutes):
    if not isinstance(occurred_at, datetime):
        raise ValidationError("Session time is required")
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) \
            or duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes")


def find_session(session_id):
    record = db.session.get(SessionRecord, session_id)
    if not record:
        raise NotFoundError(f"Session record {session_id} not found")
    return record


def shows_private_memo(actor):
    """Trainer memos are hidden from members"""
    return actor.is_custodian


# ============================================================
# CREATE (ATOMIC)
# ============================================================

def _record_and_consume(member_id, trainer_id, occurred_at, duration_minutes, notes, memo):
    find_member(member_id)

    record = SessionRecord(
        member_id=member_id,
        trainer_id=trainer_id,
        occurred_at=occurred_at,
        duration_minutes=duration_minutes,
        notes=notes,
        trainer_private_memo=memo,
        completed=True
    )
    db.session.add(record)

    ledger = apply_decrement(member_id, SessionKind.REGULAR, require_ledger=True)
    return record, ledger.remain_regular


def create_session(actor, member_id, occurred_at, duration_minutes, notes=None, memo=None):
    """
    Log a completed session and consume one regular session.

    ATOMIC: if the member or ledger is missing, the balance is zero, or
    the actor is not a custodian, nothing is persisted.

    Returns: SessionRecord
    """
    _validate_details(occurred_at, duration_minutes)
    notes = optional_text(notes, "Notes")
    memo = optional_text(memo, "Memo")

    require_role(actor, [Role.TRAINER, Role.ADMIN], 'record session', member_id)
    require(can_write_as_custodian, actor, member_id, 'record session')

    record, remain = run_atomic(
        _record_and_consume, member_id, actor.id, occurred_at,
        duration_minutes, notes, memo
    )

    current_app.logger.info(
        "Session %s recorded for member %s by %s (remaining regular: %d)",
        record.id, member_id, actor.id, remain
    )

    trainer = find_member(actor.id)
    notify(member_id, Severity.SUCCESS, f"PT session completed (trainer: {trainer.name})")

    warning_limit = current_app.config.get('LOW_BALANCE_WARNING_LIMIT', 3)
    if 0 < remain <= warning_limit:
        notify(member_id, Severity.WARNING, f"Only {remain} PT session(s) left!")

    return record


# ============================================================
# UPDATE
# ============================================================

def update_session(actor, session_id, occurred_at=None, duration_minutes=None,
                   notes=None, memo=None):
    """Edit descriptive fields. Never touches the ledger."""
    notes = optional_text(notes, "Notes")
    memo = optional_text(memo, "Memo")
    record = find_session(session_id)
    require(can_edit_session, actor, record.trainer_id, 'update session')

    try:
        if occurred_at is not None:
            if not isinstance(occurred_at, datetime):
                raise ValidationError("Session time must be a datetime")
            record.occurred_at = occurred_at
        if duration_minutes is not None:
            _validate_details(record.occurred_at, duration_minutes)
            record.duration_minutes = duration_minutes
        if notes is not None:
            record.notes = notes
        if memo is not None:
            record.trainer_private_memo = memo

        db.session.commit()
        return record

    except Exception:
        db.session.rollback()
        raise


# ============================================================
# DELETE (ATOMIC)
# ============================================================

def _delete_and_restore(session_id):
    record = find_session(session_id)
    member_id = record.member_id

    db.session.delete(record)
    restored = apply_restore(member_id, SessionKind.REGULAR)
    return member_id, restored is not None


def delete_session(actor, session_id):
    """
    Delete a session record and give one regular session back.

    If the ledger cannot take the unit back (missing row, nothing used)
    the deletion still goes through; the mismatch is logged.
    """
    record = find_session(session_id)
    require(can_edit_session, actor, record.trainer_id, 'delete session')

    member_id, restored = run_atomic(_delete_and_restore, session_id)

    if restored:
        current_app.logger.info("Session %s deleted; one regular session restored to member %s",
                                session_id, member_id)
        notify(member_id, Severity.INFO, "PT session record deleted. One PT session was restored.")
    else:
        current_app.logger.warning("Session %s deleted without restoring a session to member %s",
                                   session_id, member_id)
        notify(member_id, Severity.INFO, "PT session record deleted.")

    return True


# ============================================================
# QUERIES
# ============================================================

def get_session(actor, session_id):
    record = find_session(session_id)
    require(can_read, actor, record.member_id, 'read session')
    return record


def list_sessions_for_member(actor, member_id, start=None, end=None):
    """Sessions of a member, newest first, optionally within [start, end]"""
    require(can_read, actor, member_id, 'read sessions')

    query = SessionRecord.query.filter_by(member_id=member_id)
    if start is not None:
        query = query.filter(SessionRecord.occurred_at >= start)
    if end is not None:
        query = query.filter(SessionRecord.occurred_at <= end)

    return query.order_by(SessionRecord.occurred_at.desc(), SessionRecord.id.desc()).all()


def list_sessions_for_trainer(actor, trainer_id):
    require(can_view_trainer, actor, trainer_id, 'read trainer sessions')
    return SessionRecord.query.filter_by(trainer_id=trainer_id) \
        .order_by(SessionRecord.occurred_at.desc(), SessionRecord.id.desc()) \
        .all()
