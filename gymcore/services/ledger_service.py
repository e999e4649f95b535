"""
SESSION LEDGER SERVICE - ATOMIC SESSION INVENTORY OPERATIONS
=============================================================

CRITICAL BUSINESS RULES:
1. Ledger counters ONLY change through register / decrement / restore_one
2. used never exceeds total: a decrement with nothing left is REJECTED
3. Every registration appends exactly one LedgerHistoryEntry (per call,
   not cumulative)
4. Member role follows the regular balance:
   - OT -> PT when a registration leaves regular sessions remaining
   - PT -> OT when a regular decrement uses the last one
     (DEMOTE_ON_ZERO_BALANCE)
5. Nothing else in the code base assigns Member.role after enrollment
6. Each mutation is one unit of work: ledger row locked, versioned,
   committed together with the role flip and the history row

The apply_* functions stage changes without committing so the session
workflow can combine them with its own writes.
"""

from flask import current_app

from gymcore.extensions import db
from gymcore.models import (
    Member, SessionLedger, LedgerHistoryEntry, Role, SessionKind
)
from gymcore.services.authorization_service import (
    require, can_read, can_write_as_custodian
)
from gymcore.services.exceptions import (
    NotFoundError, ValidationError, InsufficientBalanceError, AccessDeniedError
)
from gymcore.services.member_service import find_member
from gymcore.services.unit_of_work import run_atomic


# ============================================================
# HELPERS
# ============================================================

def coerce_kind(kind):
    """Accept SessionKind or its string value"""
    if isinstance(kind, SessionKind):
        return kind
    try:
        return SessionKind(str(kind).upper())
    except ValueError:
        raise ValidationError(f"Unknown session kind: {kind}")


def _validate_count(name, value):
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number")
    if value < 0:
        raise ValidationError(f"{name} must be 0 or more")
    return value


def _locked_ledger(member_id):
    """Read the ledger row FOR UPDATE, refreshing anything cached"""
    return SessionLedger.query.filter_by(member_id=member_id) \
        .with_for_update() \
        .populate_existing() \
        .first()


# ============================================================
# GET OR CREATE LEDGER
# ============================================================

def get_or_create_ledger(member_id):
    """Get existing ledger (locked) or create an all-zero one"""
    ledger = _locked_ledger(member_id)

    if not ledger:
        ledger = SessionLedger(
            member_id=member_id,
            regular_total=0,
            regular_used=0,
            service_total=0,
            service_used=0
        )
        db.session.add(ledger)
        db.session.flush()

    return ledger


def find_ledger(member_id):
    """Get existing ledger (locked) or raise NotFoundError"""
    ledger = _locked_ledger(member_id)
    if not ledger:
        raise NotFoundError(f"No session ledger for member {member_id}")
    return ledger


# ============================================================
# ROLE TRANSITIONS (only the ledger calls these)
# ============================================================

def promote_on_first_balance(member, ledger):
    """OT -> PT once regular sessions are available"""
    if member.role == Role.OT.value and ledger.remain_regular > 0:
        member.role = Role.PT.value
        current_app.logger.info(
            "Member %s promoted OT -> PT (remaining regular: %d)",
            member.id, ledger.remain_regular
        )
        return True
    return False


def demote_on_zero_balance(member, ledger):
    """PT -> OT once the last regular session is used"""
    if not current_app.config.get('DEMOTE_ON_ZERO_BALANCE', True):
        return False

    if member.role == Role.PT.value and ledger.remain_regular == 0:
        member.role = Role.OT.value
        current_app.logger.info("Member %s demoted PT -> OT (no regular sessions left)", member.id)
        return True
    return False


# ============================================================
# STAGED MUTATIONS (no commit)
# ============================================================

def apply_register(member_id, add_regular, add_service, valid_from=None,
                   valid_to=None, payment_amount=0):
    member = find_member(member_id)
    ledger = get_or_create_ledger(member_id)

    ledger.regular_total += add_regular
    ledger.service_total += add_service
    if valid_from is not None:
        ledger.valid_from = valid_from
    if valid_to is not None:
        ledger.valid_to = valid_to

    if ledger.valid_from and ledger.valid_to and ledger.valid_from > ledger.valid_to:
        raise ValidationError(
            f"Validity window ends ({ledger.valid_to}) before it starts ({ledger.valid_from})"
        )

    db.session.add(LedgerHistoryEntry(
        member_id=member_id,
        regular_added=add_regular,
        service_added=add_service,
        payment_amount=payment_amount,
        valid_from=valid_from,
        valid_to=valid_to
    ))

    promote_on_first_balance(member, ledger)
    db.session.flush()

    return ledger


def apply_decrement(member_id, kind, require_ledger=False):
    """
    Use one session of the given kind.

    require_ledger=True refuses to create a missing ledger (the session
    workflow needs an existing package to consume from).
    """
    kind = coerce_kind(kind)
    member = find_member(member_id)
    ledger = find_ledger(member_id) if require_ledger else get_or_create_ledger(member_id)

    if ledger.remaining(kind) <= 0:
        raise InsufficientBalanceError(
            f"No {kind.value.lower()} sessions remaining for member {member_id}"
        )

    if kind == SessionKind.REGULAR:
        ledger.regular_used += 1
        demote_on_zero_balance(member, ledger)
    else:
        ledger.service_used += 1

    db.session.flush()
    return ledger


def apply_restore(member_id, kind):
    """
    Give back one used session (undo of a consumption).

    Never promotes. Returns the ledger, or None when there was nothing
    to restore; that case is logged because it means the ledger and the
    session records disagree.
    """
    kind = coerce_kind(kind)
    ledger = _locked_ledger(member_id)

    if ledger is None:
        current_app.logger.warning(
            "Restore skipped: member %s has no session ledger", member_id
        )
        return None

    if kind == SessionKind.REGULAR:
        if ledger.regular_used <= 0:
            current_app.logger.warning(
                "Restore skipped: member %s has no used regular sessions", member_id
            )
            return None
        ledger.regular_used -= 1
    else:
        if ledger.service_used <= 0:
            current_app.logger.warning(
                "Restore skipped: member %s has no used service sessions", member_id
            )
            return None
        ledger.service_used -= 1

    db.session.flush()
    return ledger


# ============================================================
# REGISTER (ATOMIC)
# ============================================================

def register(actor, member_id, add_regular=0, add_service=0, valid_from=None,
             valid_to=None, payment_amount=0):
    """
    Add purchased sessions to a member's ledger.

    ATOMIC: ledger totals, history entry and OT -> PT promotion commit
    together. Only the assigned trainer or an admin may register.

    Returns: SessionLedger
    """
    add_regular = _validate_count('Regular sessions', add_regular)
    add_service = _validate_count('Service sessions', add_service)
    payment_amount = _validate_count('Payment amount', payment_amount)

    if valid_from and valid_to and valid_from > valid_to:
        raise ValidationError("Validity window ends before it starts")

    require(can_write_as_custodian, actor, member_id, 'register sessions')

    ledger = run_atomic(
        apply_register, member_id, add_regular, add_service,
        valid_from=valid_from, valid_to=valid_to, payment_amount=payment_amount
    )

    current_app.logger.info(
        "Registered +%d regular / +%d service for member %s by %s",
        add_regular, add_service, member_id, actor.id
    )
    return ledger


# ============================================================
# DECREMENT (ATOMIC)
# ============================================================

def decrement(actor, member_id, kind=SessionKind.REGULAR):
    """
    Use one session of the given kind.

    Raises InsufficientBalanceError (counters untouched) when none are
    left. A regular decrement that uses the last session may demote the
    member to OT.

    Returns: SessionLedger
    """
    kind = coerce_kind(kind)
    require(can_write_as_custodian, actor, member_id, 'decrement sessions')

    ledger = run_atomic(apply_decrement, member_id, kind)

    current_app.logger.info(
        "Decremented one %s session for member %s by %s",
        kind.value, member_id, actor.id
    )
    return ledger


# ============================================================
# RESTORE (ATOMIC, used by session deletion)
# ============================================================

def restore_one(member_id, kind=SessionKind.REGULAR):
    """Commit a single restore; see apply_restore"""
    return run_atomic(apply_restore, member_id, kind)


# ============================================================
# QUERIES
# ============================================================

def get_ledger(actor, member_id):
    """Ledger for a member, created lazily (all zero) on first access"""
    require(can_read, actor, member_id, 'read ledger')
    find_member(member_id)

    ledger = SessionLedger.query.filter_by(member_id=member_id).first()
    if ledger is None:
        ledger = run_atomic(get_or_create_ledger, member_id)
    return ledger


def low_remain_members(actor, threshold=None):
    """
    PT members with remain_regular <= threshold (0 included).

    Admin sees every member, a trainer only their assigned members.
    OT members are never listed whatever their balance.
    """
    if threshold is None:
        threshold = current_app.config.get('LOW_REMAIN_THRESHOLD', 4)
    if threshold < 0:
        raise ValidationError("Threshold must be 0 or more")

    remain = SessionLedger.regular_total - SessionLedger.regular_used

    query = db.session.query(Member, SessionLedger) \
        .join(SessionLedger, SessionLedger.member_id == Member.id) \
        .filter(
            Member.deleted_at.is_(None),
            Member.role == Role.PT.value,
            remain <= threshold
        )

    if actor.is_admin:
        pass
    elif actor.is_trainer:
        query = query.filter(Member.trainer_id == actor.id)
    else:
        raise AccessDeniedError('list low balance members', None,
                                "Only trainers or admins can view membership alerts")

    rows = query.order_by(remain.asc(), Member.id.asc()).all()

    return [
        {
            'member_id': member.id,
            'name': member.name,
            'phone': member.phone,
            'remain_regular': ledger.remain_regular
        }
        for member, ledger in rows
    ]


def latest_registration(actor, member_id):
    """Most recent history entry, or None"""
    require(can_read, actor, member_id, 'read ledger history')
    return LedgerHistoryEntry.query.filter_by(member_id=member_id) \
        .order_by(LedgerHistoryEntry.created_at.desc(), LedgerHistoryEntry.id.desc()) \
        .first()


def registration_history(actor, member_id):
    """Every registration for a member, newest first"""
    require(can_read, actor, member_id, 'read ledger history')
    return LedgerHistoryEntry.query.filter_by(member_id=member_id) \
        .order_by(LedgerHistoryEntry.created_at.desc(), LedgerHistoryEntry.id.desc()) \
        .all()
