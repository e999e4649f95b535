from datetime import datetime, timedelta

import pytest

from gymcore.extensions import db
from gymcore.models import DietComment, DietLog, Notification, Role, WorkoutLog
from gymcore.services.authorization_service import Actor
from gymcore.services.exceptions import AccessDeniedError, NotFoundError, ValidationError
from gymcore.services.journal_service import (
    add_comment, create_log, delete_comment, delete_log, list_comments, list_logs,
    total_calories, update_log
)
from gymcore.services.ledger_service import register
from gymcore.services.member_service import remove_trainer_permanently


@pytest.mark.parametrize('kind', ['diet', 'workout'])
def test_ot_member_cannot_self_author_until_promoted(admin, member, kind):
    actor = Actor.from_member(member)

    with pytest.raises(AccessDeniedError):
        create_log(actor, kind, member.id, title='Day 1')

    register(Actor.from_member(admin), member.id, add_regular=5)
    assert member.role == Role.PT.value

    log = create_log(actor, kind, member.id, title='Day 1')
    assert log.author_id == member.id


def test_trainer_writes_for_ot_member(trainer, member):
    log = create_log(Actor.from_member(trainer), 'workout', member.id,
                     title='Leg day', content='5x5 squats')

    assert WorkoutLog.query.count() == 1
    assert log.author_id == trainer.id
    assert Notification.query.filter_by(member_id=member.id).count() == 1


def test_unassigned_trainer_cannot_write(other_trainer, member):
    with pytest.raises(AccessDeniedError):
        create_log(Actor.from_member(other_trainer), 'diet', member.id, title='Lunch')


def test_update_and_delete_follow_write_rule(trainer, make_member):
    pt_member = make_member(Role.PT, trainer=trainer)
    own = Actor.from_member(pt_member)
    log = create_log(own, 'diet', pt_member.id, title='Breakfast', calories=450)

    updated = update_log(Actor.from_member(trainer), 'diet', log.id, calories=500)
    assert updated.calories == 500

    stranger = make_member(Role.PT)
    with pytest.raises(AccessDeniedError):
        delete_log(Actor.from_member(stranger), 'diet', log.id)

    delete_log(own, 'diet', log.id)
    assert DietLog.query.count() == 0
    with pytest.raises(NotFoundError):
        delete_log(own, 'diet', log.id)


def test_read_rule_applies_to_logs(trainer, other_trainer, member):
    create_log(Actor.from_member(trainer), 'diet', member.id, title='Dinner')

    assert len(list_logs(Actor.from_member(member), 'diet', member.id)) == 1
    with pytest.raises(AccessDeniedError):
        list_logs(Actor.from_member(other_trainer), 'diet', member.id)


def test_invalid_input(trainer, member):
    actor = Actor.from_member(trainer)

    with pytest.raises(ValidationError):
        create_log(actor, 'sleep', member.id, title='Nap')
    with pytest.raises(ValidationError):
        create_log(actor, 'diet', member.id, title='  ')
    with pytest.raises(ValidationError):
        create_log(actor, 'diet', member.id, title='Cake', calories=-10)


def test_total_calories(trainer, member):
    actor = Actor.from_member(trainer)
    create_log(actor, 'diet', member.id, title='Breakfast', calories=400)
    create_log(actor, 'diet', member.id, title='Lunch', calories=700)
    create_log(actor, 'diet', member.id, title='Water')

    assert total_calories(actor, member.id) == 1100

    tomorrow = datetime.utcnow() + timedelta(days=1)
    assert total_calories(actor, member.id, start=tomorrow) == 0


def test_non_text_title_and_content_rejected(trainer, member):
    actor = Actor.from_member(trainer)

    with pytest.raises(ValidationError):
        create_log(actor, 'workout', member.id, title=5)
    with pytest.raises(ValidationError):
        create_log(actor, 'workout', member.id, title='Run', content={'km': 5})

    log = create_log(actor, 'workout', member.id, title='Run')
    with pytest.raises(ValidationError):
        update_log(actor, 'workout', log.id, title=['Walk'])
    assert db.session.get(WorkoutLog, log.id).title == 'Run'


# ============================================================
# COMMENTS
# ============================================================

def test_trainer_comments_on_member_diet_log(trainer, member):
    coach = Actor.from_member(trainer)
    log = create_log(coach, 'diet', member.id, title='Lunch')

    comment = add_comment(coach, log.id, '  More protein please  ')
    assert comment.content == 'More protein please'
    assert comment.author_id == trainer.id

    comments = list_comments(Actor.from_member(member), log.id)
    assert [c.id for c in comments] == [comment.id]
    assert comments[0].to_dict()['author_name'] == 'Coach Kim'

    messages = [n.message for n in Notification.query.filter_by(member_id=member.id)]
    assert any('comment' in m for m in messages)


def test_comment_rules_follow_the_log(trainer, other_trainer, member):
    log = create_log(Actor.from_member(trainer), 'diet', member.id, title='Lunch')

    with pytest.raises(AccessDeniedError):
        add_comment(Actor.from_member(member), log.id, 'Tasty')
    with pytest.raises(AccessDeniedError):
        add_comment(Actor.from_member(other_trainer), log.id, 'Hi')
    with pytest.raises(AccessDeniedError):
        list_comments(Actor.from_member(other_trainer), log.id)
    with pytest.raises(ValidationError):
        add_comment(Actor.from_member(trainer), log.id, '   ')
    with pytest.raises(NotFoundError):
        add_comment(Actor.from_member(trainer), 4242, 'Hi')


def test_comment_deletion(admin, trainer, make_member):
    pt_member = make_member(Role.PT, trainer=trainer)
    own = Actor.from_member(pt_member)
    log = create_log(own, 'diet', pt_member.id, title='Dinner')

    from_trainer = add_comment(Actor.from_member(trainer), log.id, 'Good')
    from_member = add_comment(own, log.id, 'Thanks')

    with pytest.raises(AccessDeniedError):
        delete_comment(own, from_trainer.id)

    member_comment_id = from_member.id
    delete_comment(own, member_comment_id)
    delete_comment(Actor.from_member(admin), from_trainer.id)
    assert DietComment.query.count() == 0

    with pytest.raises(NotFoundError):
        delete_comment(own, member_comment_id)


def test_deleting_log_removes_its_comments(trainer, member):
    coach = Actor.from_member(trainer)
    log = create_log(coach, 'diet', member.id, title='Lunch')
    add_comment(coach, log.id, 'Nice')

    delete_log(coach, 'diet', log.id)
    assert DietComment.query.count() == 0


def test_removed_trainer_comments_keep_content(admin, trainer, member):
    log = create_log(Actor.from_member(admin), 'diet', member.id, title='Lunch')
    comment = add_comment(Actor.from_member(trainer), log.id, 'Keep it up')

    remove_trainer_permanently(Actor.from_member(admin), trainer.id)

    kept = db.session.get(DietComment, comment.id)
    assert kept.author_id is None
    assert kept.content == 'Keep it up'
    assert kept.to_dict()['author_name'] is None
