"""
Services Package
================

Business logic layer for the gym core.

All session-inventory and authorization operations are handled here.
Routes should call these services, not manipulate models directly.
"""

from gymcore.services.exceptions import (
    GymError,
    NotFoundError,
    ValidationError,
    AccessDeniedError,
    InsufficientBalanceError,
    ConcurrentUpdateError
)

from gymcore.services.authorization_service import (
    Actor,
    can_read,
    can_write,
    can_write_own,
    can_write_as_custodian,
    can_edit_session,
    can_view_trainer,
    can_delete_comment,
    require
)

from gymcore.services.member_service import (
    find_member,
    enroll_member,
    get_member,
    update_profile,
    list_members,
    list_trainees,
    assign_trainer,
    remove_member,
    remove_trainer_permanently,
    change_password
)

from gymcore.services.ledger_service import (
    register,
    decrement,
    restore_one,
    get_ledger,
    low_remain_members,
    latest_registration,
    registration_history
)

from gymcore.services.session_service import (
    create_session,
    update_session,
    delete_session,
    get_session,
    list_sessions_for_member,
    list_sessions_for_trainer
)

from gymcore.services.journal_service import (
    create_log,
    update_log,
    delete_log,
    list_logs,
    total_calories,
    add_comment,
    list_comments,
    delete_comment
)

from gymcore.services.notification_service import (
    notify,
    list_notifications,
    count_unread,
    mark_all_read
)

from gymcore.services.stats_service import (
    member_stats,
    admin_summary,
    member_log_stats,
    trainer_stats
)
