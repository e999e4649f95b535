"""
CENTRALIZED AUTHORIZATION SERVICE
==================================

All permission checks live here.
Routes and other services call these functions.

Every check takes an explicit Actor (who is acting) and the id of the
member whose records are touched. Checks only read the member
directory; they never change anything.

NEVER bypass these checks!
"""

from gymcore.models import Member, Role
from gymcore.services.exceptions import AccessDeniedError


# ============================================================
# ACTOR
# ============================================================

class Actor:
    """The principal performing an operation: an id and a role."""

    def __init__(self, id, role):
        self.id = id
        self.role = role.value if isinstance(role, Role) else role

    @classmethod
    def from_member(cls, member):
        return cls(member.id, member.role)

    @property
    def is_admin(self):
        return self.role == Role.ADMIN.value

    @property
    def is_trainer(self):
        return self.role == Role.TRAINER.value

    @property
    def is_custodian(self):
        return self.is_admin or self.is_trainer

    def __eq__(self, other):
        return isinstance(other, Actor) and (self.id, self.role) == (other.id, other.role)

    def __hash__(self):
        return hash((self.id, self.role))

    def __repr__(self):
        return f'<Actor {self.id} {self.role}>'


# ============================================================
# DIRECTORY LOOKUPS
# ============================================================

def _active_member(member_id):
    return Member.active().filter_by(id=member_id).first()


def is_assigned_trainer(trainer_id, member_id):
    """Check if trainer_id is the assigned trainer of an active member"""
    member = _active_member(member_id)
    return member is not None and member.trainer_id is not None \
        and member.trainer_id == trainer_id


# ============================================================
# READ AUTHORIZATION
# ============================================================

def can_read(actor, target_member_id):
    """
    Check if actor can read a member's records.

    First match wins:
    - Admin
    - The member themself (OT and PT alike)
    - The member's assigned trainer
    """
    if actor.is_admin:
        return True

    if actor.id == target_member_id:
        return True

    if actor.is_trainer and is_assigned_trainer(actor.id, target_member_id):
        return True

    return False


# ============================================================
# WRITE AUTHORIZATION
# ============================================================

def can_write_as_custodian(actor, target_member_id):
    """
    Check if actor can write on behalf of a member.

    Requirements:
    - Admin, or
    - Trainer assigned to the member

    The target's tier does not matter. The member themself never
    passes this check, PT or not.
    """
    if actor.is_admin:
        return True

    return actor.is_trainer and is_assigned_trainer(actor.id, target_member_id)


def can_write_own(actor, target_member_id):
    """
    Check if a member can author their own records.

    Requirements:
    - Actor is the target member
    - Target's current role is PT (OT members cannot self-author)
    """
    if actor.id != target_member_id:
        return False

    member = _active_member(target_member_id)
    return member is not None and member.role == Role.PT.value


def can_write(actor, target_member_id):
    """Diet/workout logs: custodian write or PT self-write"""
    return can_write_as_custodian(actor, target_member_id) or \
        can_write_own(actor, target_member_id)


# ============================================================
# SESSION RECORD / TRAINER AUTHORIZATION
# ============================================================

def can_edit_session(actor, author_trainer_id):
    """Only the trainer who logged a session (or an admin) may change it"""
    if actor.is_admin:
        return True
    return author_trainer_id is not None and actor.id == author_trainer_id


def can_delete_comment(actor, author_id, owner_member_id):
    """
    Diet comments: the comment author, the log owner's assigned
    trainer, or an admin
    """
    if actor.is_admin:
        return True
    if author_id is not None and actor.id == author_id:
        return True
    return actor.is_trainer and is_assigned_trainer(actor.id, owner_member_id)


def can_view_trainer(actor, trainer_id):
    """Trainer-scoped lists: the trainer themself or an admin"""
    return actor.is_admin or actor.id == trainer_id


def can_manage_directory(actor):
    """Enrollment: admins and trainers"""
    return actor.is_custodian


# ============================================================
# HELPER FUNCTION: REQUIRE AUTHORIZATION
# ============================================================

def require(check_func, actor, target_id, intent):
    """
    Raise AccessDeniedError if the check fails.

    Usage:
        require(can_read, actor, member_id, 'read ledger')
    """
    if not check_func(actor, target_id):
        raise AccessDeniedError(intent, target_id)
    return True


def require_role(actor, roles, intent, target_id=None):
    """Raise AccessDeniedError unless actor.role is one of roles"""
    allowed = [r.value if isinstance(r, Role) else r for r in roles]
    if actor.role not in allowed:
        raise AccessDeniedError(intent, target_id)
    return True
