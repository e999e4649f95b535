"""
NOTIFICATION SERVICE
====================

Best-effort sink for member notifications.

notify() is called AFTER the primary transaction committed. It never
raises: a failed notification is logged and rolled back, and the caller
carries on.
"""

from flask import current_app

from gymcore.extensions import db
from gymcore.models import Notification, Severity
from gymcore.services.authorization_service import require


def notify(member_id, severity, message):
    """Persist a notification for a member. Never raises."""
    try:
        severity = Severity(severity.value if isinstance(severity, Severity) else severity)
        db.session.add(Notification(
            member_id=member_id,
            severity=severity.value,
            message=message
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Notification to member %s dropped: %s", member_id, message
        )


# ============================================================
# INBOX (member self or admin)
# ============================================================

def _can_open_inbox(actor, member_id):
    return actor.is_admin or actor.id == member_id


def list_notifications(actor, member_id, unread_only=False):
    require(_can_open_inbox, actor, member_id, 'read notifications')

    query = Notification.query.filter_by(member_id=member_id)
    if unread_only:
        query = query.filter_by(is_read=False)

    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def count_unread(actor, member_id):
    require(_can_open_inbox, actor, member_id, 'read notifications')
    return Notification.query.filter_by(member_id=member_id, is_read=False).count()


def mark_all_read(actor, member_id):
    """Mark every unread notification as read. Returns how many changed."""
    require(_can_open_inbox, actor, member_id, 'update notifications')

    changed = Notification.query.filter_by(
        member_id=member_id,
        is_read=False
    ).update({'is_read': True}, synchronize_session='fetch')
    db.session.commit()
    return changed
