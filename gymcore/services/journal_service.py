"""
JOURNAL SERVICE (DIET / WORKOUT LOGS)
=====================================

Thin caller of the authorization engine:
- write: assigned trainer / admin, or a PT member writing their own log
- read:  the member, their trainer, admins

Comments hang off diet logs and follow the same rules; a comment can
also be removed by whoever wrote it.
"""

from sqlalchemy import func

from gymcore.extensions import db
from gymcore.models import DietLog, DietComment, WorkoutLog, Severity
from gymcore.services.authorization_service import (
    require, can_read, can_write, can_delete_comment
)
from gymcore.services.exceptions import NotFoundError, ValidationError, AccessDeniedError
from gymcore.services.member_service import find_member
from gymcore.services.notification_service import notify
from gymcore.services.validation import required_text, optional_text


JOURNALS = {
    'diet': (DietLog, 'Diet'),
    'workout': (WorkoutLog, 'Workout'),
}


def _journal(kind):
    try:
        return JOURNALS[kind]
    except KeyError:
        raise ValidationError(f"Unknown log kind: {kind}")


def find_log(kind, log_id):
    model, label = _journal(kind)
    log = db.session.get(model, log_id)
    if not log:
        raise NotFoundError(f"{label} log {log_id} not found")
    return log


def _validate_calories(calories):
    if calories is None:
        return None
    if isinstance(calories, bool) or not isinstance(calories, int) or calories < 0:
        raise ValidationError("Calories must be a whole number, 0 or more")
    return calories


# ============================================================
# CREATE / UPDATE / DELETE
# ============================================================

def create_log(actor, kind, member_id, title, content=None, calories=None):
    model, label = _journal(kind)

    title = required_text(title, "Title")
    content = optional_text(content, "Content")

    require(can_write, actor, member_id, f'write {kind} log')
    find_member(member_id)

    fields = dict(member_id=member_id, author_id=actor.id, title=title, content=content)
    if model is DietLog:
        fields['calories'] = _validate_calories(calories)

    try:
        log = model(**fields)
        db.session.add(log)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    notify(member_id, Severity.SUCCESS, f"{label} log created!")
    return log


def update_log(actor, kind, log_id, title=None, content=None, calories=None):
    model, label = _journal(kind)
    log = find_log(kind, log_id)
    require(can_write, actor, log.member_id, f'update {kind} log')

    try:
        if title is not None:
            log.title = required_text(title, "Title")
        if content is not None:
            log.content = optional_text(content, "Content")
        if calories is not None and model is DietLog:
            log.calories = _validate_calories(calories)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    notify(log.member_id, Severity.SUCCESS, f"{label} log updated!")
    return log


def delete_log(actor, kind, log_id):
    _, label = _journal(kind)
    log = find_log(kind, log_id)
    member_id = log.member_id
    require(can_write, actor, member_id, f'delete {kind} log')

    try:
        db.session.delete(log)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    notify(member_id, Severity.WARNING, f"{label} log deleted.")
    return True


# ============================================================
# QUERIES
# ============================================================

def list_logs(actor, kind, member_id):
    model, _ = _journal(kind)
    require(can_read, actor, member_id, f'read {kind} logs')
    return model.query.filter_by(member_id=member_id) \
        .order_by(model.created_at.desc(), model.id.desc()) \
        .all()


def total_calories(actor, member_id, start=None, end=None):
    """Sum of logged calories, optionally within [start, end]"""
    require(can_read, actor, member_id, 'read diet logs')

    if start is not None and end is not None and start > end:
        raise ValidationError("Period ends before it starts")

    query = db.session.query(func.coalesce(func.sum(DietLog.calories), 0)) \
        .filter(DietLog.member_id == member_id)
    if start is not None:
        query = query.filter(DietLog.created_at >= start)
    if end is not None:
        query = query.filter(DietLog.created_at <= end)

    return int(query.scalar())


# ============================================================
# DIET LOG COMMENTS
# ============================================================

def find_comment(comment_id):
    comment = db.session.get(DietComment, comment_id)
    if not comment:
        raise NotFoundError(f"Comment {comment_id} not found")
    return comment


def add_comment(actor, log_id, content):
    """Comment on a diet log; anyone who may write the log may comment"""
    log = find_log('diet', log_id)
    require(can_write, actor, log.member_id, 'comment on diet log')
    content = required_text(content, "Comment")

    try:
        comment = DietComment(diet_log_id=log.id, author_id=actor.id, content=content)
        db.session.add(comment)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    if actor.id != log.member_id:
        notify(log.member_id, Severity.INFO, f"New comment on your diet log '{log.title}'")
    return comment


def list_comments(actor, log_id):
    """Comments on a diet log, oldest first"""
    log = find_log('diet', log_id)
    require(can_read, actor, log.member_id, 'read diet comments')
    return DietComment.query.filter_by(diet_log_id=log.id) \
        .order_by(DietComment.created_at.asc(), DietComment.id.asc()) \
        .all()


def delete_comment(actor, comment_id):
    comment = find_comment(comment_id)
    owner_id = comment.diet_log.member_id

    if not can_delete_comment(actor, comment.author_id, owner_id):
        raise AccessDeniedError('delete diet comment', owner_id)

    try:
        db.session.delete(comment)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return True
