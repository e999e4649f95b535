from datetime import datetime

import pytest

from gymcore.extensions import db
from gymcore.models import Member, Role, SessionRecord
from gymcore.services.authorization_service import Actor
from gymcore.services.exceptions import AccessDeniedError, NotFoundError, ValidationError
from gymcore.services.ledger_service import register
from gymcore.services.member_service import (
    assign_trainer, enroll_member, find_member, get_member, list_members,
    change_password, list_trainees, remove_member, remove_trainer_permanently,
    update_profile
)
from gymcore.services.session_service import create_session


def test_trainer_enrollment_assigns_self_and_defaults_password(trainer):
    member = enroll_member(Actor.from_member(trainer), name='New Person', phone='01012345678')

    assert member.role == Role.OT.value
    assert member.trainer_id == trainer.id
    assert member.email == '01012345678@gymapp.com'
    assert member.check_password('5678')


def test_enrollment_never_grants_pt(admin):
    with pytest.raises(ValidationError):
        enroll_member(Actor.from_member(admin), name='Shortcut', email='s@example.com',
                      password='pw123456', role='PT')


def test_only_admin_creates_staff(admin, trainer):
    with pytest.raises(AccessDeniedError):
        enroll_member(Actor.from_member(trainer), name='Coach', email='c@example.com',
                      password='pw123456', role='TRAINER')

    coach = enroll_member(Actor.from_member(admin), name='Coach', email='c@example.com',
                          password='pw123456', role=Role.TRAINER)
    assert coach.role == Role.TRAINER.value
    assert coach.trainer_id is None


def test_members_cannot_enroll(member):
    with pytest.raises(AccessDeniedError):
        enroll_member(Actor.from_member(member), name='Friend', email='f@example.com',
                      password='pw123456')


def test_duplicate_email_and_phone_rejected(admin, member):
    actor = Actor.from_member(admin)

    with pytest.raises(ValidationError):
        enroll_member(actor, name='Dup', email=member.email, password='pw123456')
    with pytest.raises(ValidationError):
        enroll_member(actor, name='Dup', email='other@example.com', phone=member.phone,
                      password='pw123456')


def test_enroll_with_non_trainer_as_trainer(admin, make_member):
    plain = make_member(Role.PT)
    with pytest.raises(ValidationError):
        enroll_member(Actor.from_member(admin), name='X', email='x@example.com',
                      password='pw123456', trainer_id=plain.id)


def test_assign_trainer_requires_trainer_capable_role(admin, member, make_member, other_trainer):
    actor = Actor.from_member(admin)
    plain = make_member(Role.PT)

    with pytest.raises(ValidationError):
        assign_trainer(actor, member.id, plain.id)

    assign_trainer(actor, member.id, other_trainer.id)
    assert member.trainer_id == other_trainer.id

    # admins may act as trainers
    assign_trainer(actor, member.id, admin.id)
    assert member.trainer_id == admin.id


def test_assign_trainer_admin_only(trainer, other_trainer, member):
    with pytest.raises(AccessDeniedError):
        assign_trainer(Actor.from_member(trainer), member.id, other_trainer.id)


def test_admin_can_never_be_removed(admin, make_member):
    other_admin = make_member(Role.ADMIN)

    with pytest.raises(AccessDeniedError):
        remove_member(Actor.from_member(admin), other_admin.id)
    with pytest.raises(AccessDeniedError):
        remove_member(Actor.from_member(admin), admin.id)

    assert find_member(admin.id).deleted_at is None


def test_remove_member_is_soft(admin, member):
    remove_member(Actor.from_member(admin), member.id)

    with pytest.raises(NotFoundError):
        find_member(member.id)

    row = db.session.get(Member, member.id)
    assert row is not None
    assert row.deleted_at is not None
    assert member.id not in [m.id for m in list_members(Actor.from_member(admin))]


def test_member_can_remove_self_but_not_others(member, make_member):
    other = make_member(Role.OT)

    with pytest.raises(AccessDeniedError):
        remove_member(Actor.from_member(other), member.id)

    remove_member(Actor.from_member(member), member.id)
    with pytest.raises(NotFoundError):
        find_member(member.id)


def test_remove_trainer_permanently(admin, trainer, member, make_member):
    second = make_member(Role.OT, trainer=trainer)
    register(Actor.from_member(admin), member.id, add_regular=3)
    record = create_session(Actor.from_member(trainer), member.id, datetime(2026, 10, 2, 9), 45)
    trainer_id = trainer.id

    unassigned = remove_trainer_permanently(Actor.from_member(admin), trainer_id)

    assert unassigned == 2
    assert db.session.get(Member, trainer_id) is None
    assert find_member(member.id).trainer_id is None
    assert find_member(second.id).trainer_id is None

    kept = db.session.get(SessionRecord, record.id)
    assert kept is not None
    assert kept.trainer_id is None


def test_remove_trainer_permanently_rejects_non_trainers(admin, member, trainer):
    with pytest.raises(ValidationError):
        remove_trainer_permanently(Actor.from_member(admin), member.id)
    with pytest.raises(AccessDeniedError):
        remove_trainer_permanently(Actor.from_member(trainer), trainer.id)


def test_get_member_relationship_gated(trainer, other_trainer, member):
    assert get_member(Actor.from_member(trainer), member.id).id == member.id
    with pytest.raises(AccessDeniedError):
        get_member(Actor.from_member(other_trainer), member.id)


def test_update_profile_never_touches_role(trainer, member):
    updated = update_profile(Actor.from_member(trainer), member.id, name='Renamed', phone='010-9999-9999')

    assert updated.name == 'Renamed'
    assert updated.phone == '010-9999-9999'
    assert updated.role == Role.OT.value


def test_list_trainees(trainer, other_trainer, member, make_member):
    make_member(Role.OT, trainer=other_trainer)

    assert [m.id for m in list_trainees(Actor.from_member(trainer), trainer.id)] == [member.id]
    with pytest.raises(AccessDeniedError):
        list_trainees(Actor.from_member(other_trainer), trainer.id)


def test_list_members_admin_only(trainer):
    with pytest.raises(AccessDeniedError):
        list_members(Actor.from_member(trainer))


@pytest.mark.parametrize('bad_name', [5, ['Bob'], '   ', None])
def test_enrollment_rejects_non_text_names(admin, bad_name):
    with pytest.raises(ValidationError):
        enroll_member(Actor.from_member(admin), name=bad_name, email='n@example.com',
                      password='secret123')
    assert Member.query.filter_by(email='n@example.com').first() is None


def test_update_profile_rejects_non_text_fields(member):
    actor = Actor.from_member(member)
    with pytest.raises(ValidationError):
        update_profile(actor, member.id, name=7)
    with pytest.raises(ValidationError):
        update_profile(actor, member.id, phone=1234)


def test_remove_member_checks_permission_before_lookup(admin, member, make_member):
    stranger = Actor.from_member(make_member(Role.OT))

    for target in (admin.id, member.id, 99999):
        with pytest.raises(AccessDeniedError) as excinfo:
            remove_member(stranger, target)
        assert excinfo.value.intent == 'remove member'


def test_assign_trainer_rolls_back_failed_commit(monkeypatch, admin, trainer, other_trainer, member):
    def broken_commit():
        raise RuntimeError("database went away")

    monkeypatch.setattr(db.session(), 'commit', broken_commit)
    with pytest.raises(RuntimeError):
        assign_trainer(Actor.from_member(admin), member.id, other_trainer.id)
    monkeypatch.undo()

    assert db.session.get(Member, member.id).trainer_id == trainer.id


def test_member_changes_own_password(member):
    actor = Actor.from_member(member)

    with pytest.raises(ValidationError):
        change_password(actor, member.id, 'newpass1', current_password='wrong')
    with pytest.raises(ValidationError):
        change_password(actor, member.id, 'abc', current_password='secret123')

    change_password(actor, member.id, 'newpass1', current_password='secret123')
    assert find_member(member.id).check_password('newpass1')


def test_admin_resets_password_without_current(admin, member):
    change_password(Actor.from_member(admin), member.id, 'reset-1234')
    assert find_member(member.id).check_password('reset-1234')


def test_trainer_cannot_change_trainee_password(trainer, member):
    with pytest.raises(AccessDeniedError):
        change_password(Actor.from_member(trainer), member.id, 'hijack99')
    assert find_member(member.id).check_password('secret123')
