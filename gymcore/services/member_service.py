"""
MEMBER DIRECTORY SERVICE
========================

Handles:
- Enrollment and profile updates
- Trainer assignment
- Member removal (soft delete)
- Password changes
- Permanent trainer removal (hard delete)

Role is set once at enrollment. Afterwards only the session ledger
moves a member between OT and PT.
"""

from flask import current_app

from gymcore.extensions import db
from gymcore.models import (
    Member, SessionRecord, DietLog, DietComment, WorkoutLog, Role,
    TRAINER_CAPABLE_ROLES
)
from gymcore.services.authorization_service import (
    require, require_role, can_read, can_write_as_custodian, can_view_trainer,
    can_manage_directory
)
from gymcore.services.exceptions import (
    NotFoundError, ValidationError, AccessDeniedError
)
from gymcore.services.validation import required_text, optional_text


# ============================================================
# LOOKUP
# ============================================================

def find_member(member_id):
    """Active member by id, or NotFoundError"""
    member = Member.active().filter_by(id=member_id).first()
    if not member:
        raise NotFoundError(f"Member {member_id} not found")
    return member


def find_trainer(trainer_id):
    trainer = find_member(trainer_id)
    if trainer.role not in TRAINER_CAPABLE_ROLES:
        raise ValidationError(f"Member {trainer_id} is not a trainer")
    return trainer


# ============================================================
# ENROLL MEMBER
# ============================================================

def enroll_member(actor, name, email=None, phone=None, password=None,
                  trainer_id=None, role=Role.OT.value):
    """
    Enroll a new member.

    RULES:
    - Only trainers and admins enroll
    - New members start as OT; PT is only reachable through the ledger
    - Only admins create TRAINER / ADMIN accounts
    - A trainer enrolling without trainer_id becomes the trainer
    """
    role = role.value if isinstance(role, Role) else role

    if not can_manage_directory(actor):
        raise AccessDeniedError('enroll member', None, "Only trainers or admins can enroll members")

    name = required_text(name, "Name")
    email = optional_text(email, "Email")
    phone = optional_text(phone, "Phone")
    password = optional_text(password, "Password")

    if role == Role.PT.value:
        raise ValidationError("PT is granted by registering sessions, not at enrollment")
    if role not in (Role.OT.value, Role.TRAINER.value, Role.ADMIN.value):
        raise ValidationError(f"Unknown role: {role}")
    if role != Role.OT.value and not actor.is_admin:
        raise AccessDeniedError('enroll staff', None, "Only admins can create trainer or admin accounts")

    if not email:
        if not phone:
            raise ValidationError("Email or phone is required")
        email = f"{phone}@gymapp.com"

    if Member.query.filter_by(email=email).first():
        raise ValidationError("Email is already registered")
    if phone and Member.active().filter_by(phone=phone).first():
        raise ValidationError("Phone number is already in use")

    if not password:
        if not phone or len(phone) < 4:
            raise ValidationError("Password is required when no phone number is given")
        password = phone[-4:]

    trainer = None
    if trainer_id is not None:
        trainer = find_trainer(trainer_id)
    elif actor.is_trainer:
        trainer = find_member(actor.id)

    try:
        member = Member(
            name=name,
            email=email,
            phone=phone,
            role=role,
            trainer=trainer
        )
        member.set_password(password)
        db.session.add(member)
        db.session.commit()

        current_app.logger.info("Enrolled member %s (%s) by %s", member.id, role, actor.id)
        return member

    except Exception:
        db.session.rollback()
        raise


# ============================================================
# VIEW / UPDATE
# ============================================================

def get_member(actor, member_id):
    require(can_read, actor, member_id, 'read member')
    return find_member(member_id)


def _can_edit_profile(actor, member_id):
    return actor.id == member_id or can_write_as_custodian(actor, member_id)


def update_profile(actor, member_id, name=None, phone=None):
    """Change name/phone. Role is deliberately not editable here."""
    phone = optional_text(phone, "Phone")
    require(_can_edit_profile, actor, member_id, 'update member')
    member = find_member(member_id)

    try:
        if name is not None:
            member.name = required_text(name, "Name")

        if phone is not None and phone != member.phone:
            clash = Member.active().filter(Member.phone == phone, Member.id != member_id).first()
            if clash:
                raise ValidationError("Phone number is already in use")
            member.phone = phone

        db.session.commit()
        return member

    except Exception:
        db.session.rollback()
        raise


def list_members(actor):
    require_role(actor, [Role.ADMIN], 'list members')
    return Member.active().order_by(Member.id.asc()).all()


def list_trainees(actor, trainer_id):
    require(can_view_trainer, actor, trainer_id, 'list trainees')
    return Member.active().filter_by(trainer_id=trainer_id).order_by(Member.id.asc()).all()


# ============================================================
# PASSWORD
# ============================================================

MIN_PASSWORD_LENGTH = 4


def _can_change_password(actor, member_id):
    return actor.is_admin or actor.id == member_id


def change_password(actor, member_id, new_password, current_password=None):
    """
    Set a new password. Only the member themself or an admin.

    A member changing their own password must give the current one.
    An admin resetting someone else's does not.
    """
    require(_can_change_password, actor, member_id, 'change password')
    member = find_member(member_id)

    new_password = optional_text(new_password, "New password")
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    if actor.id == member_id:
        current_password = optional_text(current_password, "Current password")
        if not current_password or not member.check_password(current_password):
            raise ValidationError("Current password is incorrect")

    try:
        member.set_password(new_password)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Password changed for member %s by %s", member_id, actor.id)
    return True


# ============================================================
# TRAINER ASSIGNMENT
# ============================================================

def assign_trainer(actor, member_id, trainer_id):
    """Admin assigns a trainer-capable member as trainer"""
    require_role(actor, [Role.ADMIN], 'assign trainer', member_id)

    member = find_member(member_id)
    trainer = find_trainer(trainer_id)

    if member.id == trainer.id:
        raise ValidationError("A member cannot be their own trainer")

    try:
        member.trainer_id = trainer.id
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Member %s assigned to trainer %s", member_id, trainer_id)
    return member


# ============================================================
# REMOVE MEMBER (soft delete)
# ============================================================

def _can_remove(actor, member_id):
    return actor.is_admin or actor.id == member_id


def remove_member(actor, member_id):
    """
    Soft-delete a member. Ledger, history and records stay in place.

    Admin accounts can never be removed, whoever asks. The permission
    check runs before any lookup.
    """
    require(_can_remove, actor, member_id, 'remove member')

    member = find_member(member_id)
    if member.role == Role.ADMIN.value:
        raise AccessDeniedError('remove member', member_id, "Admin accounts cannot be removed")

    try:
        member.soft_delete()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info("Member %s removed (soft delete) by %s", member_id, actor.id)
    return True


# ============================================================
# REMOVE TRAINER PERMANENTLY (hard delete)
# ============================================================

def remove_trainer_permanently(actor, trainer_id):
    """
    IRREVERSIBLE: delete a trainer row outright.

    1. Every trainee's trainer_id is cleared (members are kept)
    2. Session records the trainer authored lose their author
    3. Journal entries and comments the trainer authored lose their author
    4. The trainer row and what it owns are deleted
    """
    require_role(actor, [Role.ADMIN], 'remove trainer', trainer_id)

    trainer = find_member(trainer_id)
    if trainer.role != Role.TRAINER.value:
        raise ValidationError(f"Member {trainer_id} is not a trainer account")

    try:
        trainee_count = Member.query.filter_by(trainer_id=trainer_id) \
            .update({'trainer_id': None}, synchronize_session='fetch')

        SessionRecord.query.filter_by(trainer_id=trainer_id) \
            .update({'trainer_id': None}, synchronize_session='fetch')
        DietLog.query.filter_by(author_id=trainer_id) \
            .update({'author_id': None}, synchronize_session='fetch')
        WorkoutLog.query.filter_by(author_id=trainer_id) \
            .update({'author_id': None}, synchronize_session='fetch')
        DietComment.query.filter_by(author_id=trainer_id) \
            .update({'author_id': None}, synchronize_session='fetch')

        db.session.delete(trainer)
        db.session.commit()

        current_app.logger.warning(
            "Trainer %s permanently removed by %s (%d trainees unassigned)",
            trainer_id, actor.id, trainee_count
        )
        return trainee_count

    except Exception:
        db.session.rollback()
        raise
