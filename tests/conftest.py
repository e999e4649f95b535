import pytest

from config import TestConfig
from gymcore import create_app
from gymcore.extensions import db
from gymcore.models import Member, Role


@pytest.fixture
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_member(app):
    counter = {'n': 0}

    def _make(role=Role.OT, trainer=None, name=None, password='secret123'):
        counter['n'] += 1
        n = counter['n']
        member = Member(
            name=name or f'Member {n}',
            email=f'member{n}@example.com',
            phone=f'010-0000-{n:04d}',
            role=role.value if isinstance(role, Role) else role,
            trainer_id=trainer.id if trainer is not None else None
        )
        member.set_password(password)
        db.session.add(member)
        db.session.commit()
        return member

    return _make


@pytest.fixture
def admin(make_member):
    return make_member(Role.ADMIN, name='Admin')


@pytest.fixture
def trainer(make_member):
    return make_member(Role.TRAINER, name='Coach Kim')


@pytest.fixture
def other_trainer(make_member):
    return make_member(Role.TRAINER, name='Coach Lee')


@pytest.fixture
def member(make_member, trainer):
    return make_member(Role.OT, trainer=trainer, name='Trainee')
