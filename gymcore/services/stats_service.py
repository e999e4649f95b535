"""
STATS SERVICE
=============

Read-only counts over the journals, session records and directory.

- member_stats:       one member (anyone who may read that member)
- admin_summary:      gym-wide numbers (admin)
- member_log_stats:   log counts per member (admin)
- trainer_stats:      trainees per trainer (admin)

Removed (soft-deleted) members are left out of every member count.
"""

from datetime import datetime, timedelta

from sqlalchemy import func

from gymcore.extensions import db
from gymcore.models import (
    Member, DietLog, WorkoutLog, SessionRecord, Role, TRAINER_CAPABLE_ROLES
)
from gymcore.services.authorization_service import require, require_role, can_read
from gymcore.services.member_service import find_member


RECENT_DAYS = 7
MONTHS_OF_HISTORY = 6


# ============================================================
# HELPERS
# ============================================================

def _isoformat(value):
    return value.isoformat() if value else None


def _count_and_last(model, member_column, time_column, member_id):
    count, last = db.session.query(func.count(model.id), func.max(time_column)) \
        .filter(member_column == member_id) \
        .one()
    return count, last


def _per_member(model):
    """{member_id: (count, last created_at)} for a journal model"""
    rows = db.session.query(model.member_id, func.count(model.id), func.max(model.created_at)) \
        .group_by(model.member_id) \
        .all()
    return {member_id: (count, last) for member_id, count, last in rows}


def _month_start(moment, months_back):
    index = moment.year * 12 + (moment.month - 1) - months_back
    return datetime(index // 12, index % 12 + 1, 1)


def _ratio(numerator, denominator, scale=1):
    if not denominator:
        return 0.0
    return round(numerator * scale / denominator, 2)


# ============================================================
# PER MEMBER
# ============================================================

def member_stats(actor, member_id):
    """Journal and session counts for one member, with last activity"""
    require(can_read, actor, member_id, 'read member stats')
    find_member(member_id)

    diet_count, diet_last = _count_and_last(
        DietLog, DietLog.member_id, DietLog.created_at, member_id
    )
    workout_count, workout_last = _count_and_last(
        WorkoutLog, WorkoutLog.member_id, WorkoutLog.created_at, member_id
    )
    session_count, session_last = _count_and_last(
        SessionRecord, SessionRecord.member_id, SessionRecord.occurred_at, member_id
    )

    return {
        'member_id': member_id,
        'diet_count': diet_count,
        'diet_last': _isoformat(diet_last),
        'workout_count': workout_count,
        'workout_last': _isoformat(workout_last),
        'session_count': session_count,
        'session_last': _isoformat(session_last),
    }


# ============================================================
# ADMIN
# ============================================================

def trainer_stats(actor):
    """Active trainees per trainer-capable member"""
    require_role(actor, [Role.ADMIN], 'read trainer stats')

    trainers = Member.active() \
        .filter(Member.role.in_(TRAINER_CAPABLE_ROLES)) \
        .order_by(Member.id.asc()) \
        .all()

    counts = dict(
        db.session.query(Member.trainer_id, func.count(Member.id))
        .filter(Member.deleted_at.is_(None), Member.trainer_id.isnot(None))
        .group_by(Member.trainer_id)
        .all()
    )

    return [
        {
            'trainer_id': trainer.id,
            'name': trainer.name,
            'role': trainer.role,
            'trainee_count': counts.get(trainer.id, 0),
        }
        for trainer in trainers
    ]


def member_log_stats(actor):
    """Diet and workout log counts for every active member"""
    require_role(actor, [Role.ADMIN], 'read member log stats')

    diets = _per_member(DietLog)
    workouts = _per_member(WorkoutLog)

    result = []
    for member in Member.active().order_by(Member.id.asc()).all():
        diet_count, diet_last = diets.get(member.id, (0, None))
        workout_count, workout_last = workouts.get(member.id, (0, None))
        last = max([t for t in (diet_last, workout_last) if t is not None], default=None)

        result.append({
            'member_id': member.id,
            'name': member.name,
            'workout_count': workout_count,
            'diet_count': diet_count,
            'total_logs': workout_count + diet_count,
            'last_log_at': _isoformat(last),
        })
    return result


def admin_summary(actor, now=None):
    """
    Gym-wide dashboard numbers.

    now is the reference time for "recent" and monthly buckets
    (defaults to the current UTC time).
    """
    require_role(actor, [Role.ADMIN], 'read gym stats')
    now = now or datetime.utcnow()

    active = Member.active()
    total_members = active.count()
    removed_members = Member.query.filter(Member.deleted_at.isnot(None)).count()
    recent_joined = active.filter(Member.created_at >= now - timedelta(days=RECENT_DAYS)).count()
    this_month_joined = active.filter(Member.created_at >= _month_start(now, 0)).count()

    role_distribution = {role.value: 0 for role in Role}
    rows = db.session.query(Member.role, func.count(Member.id)) \
        .filter(Member.deleted_at.is_(None)) \
        .group_by(Member.role) \
        .all()
    for role, count in rows:
        role_distribution[role] = count

    monthly_joined = []
    for months_back in range(MONTHS_OF_HISTORY - 1, -1, -1):
        start = _month_start(now, months_back)
        end = _month_start(now, months_back - 1)
        monthly_joined.append({
            'year': start.year,
            'month': start.month,
            'count': active.filter(Member.created_at >= start, Member.created_at < end).count(),
        })

    total_diet_logs = DietLog.query.count()
    total_workout_logs = WorkoutLog.query.count()
    total_sessions = SessionRecord.query.count()

    pt_members = role_distribution[Role.PT.value]
    trainers = sum(role_distribution[r] for r in TRAINER_CAPABLE_ROLES)
    with_trainer = active.filter(Member.trainer_id.isnot(None)).count()

    return {
        'total_members': total_members,
        'removed_members': removed_members,
        'recent_joined': recent_joined,
        'this_month_joined': this_month_joined,
        'role_distribution': role_distribution,
        'monthly_joined': monthly_joined,
        'trainer_stats': trainer_stats(actor),
        'total_diet_logs': total_diet_logs,
        'total_workout_logs': total_workout_logs,
        'total_sessions': total_sessions,
        'avg_diet_per_member': _ratio(total_diet_logs, total_members),
        'avg_workout_per_member': _ratio(total_workout_logs, total_members),
        'avg_sessions_per_pt_member': _ratio(total_sessions, pt_members),
        'pt_conversion_rate': _ratio(pt_members, total_members, scale=100),
        'avg_trainees_per_trainer': _ratio(with_trainer, trainers),
    }
