from datetime import datetime
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from gymcore.extensions import db


# ============================================================
# ENUMS
# ============================================================
class Role(Enum):
    OT = 'OT'
    PT = 'PT'
    TRAINER = 'TRAINER'
    ADMIN = 'ADMIN'


# Member tiers are driven by the session ledger; custodians act for members
MEMBER_TIERS = (Role.OT.value, Role.PT.value)
TRAINER_CAPABLE_ROLES = (Role.TRAINER.value, Role.ADMIN.value)


class SessionKind(Enum):
    REGULAR = 'REGULAR'
    SERVICE = 'SERVICE'


class Severity(Enum):
    SUCCESS = 'SUCCESS'
    WARNING = 'WARNING'
    INFO = 'INFO'


# ============================================================
# MEMBER MODEL
# ============================================================
class Member(UserMixin, db.Model):
    """
    A person known to the gym: member (OT/PT), trainer or admin.

    The role column is written at enrollment and afterwards ONLY by the
    session ledger's promote/demote transitions.

    Removal is a soft delete (deleted_at tombstone). Trainers can be
    removed permanently, which is a real DELETE.
    """
    __tablename__ = 'members'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone = db.Column(db.String(20), index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=Role.OT.value)

    trainer_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    trainer = db.relationship('Member', remote_side=[id], backref=db.backref('trainees', lazy='dynamic'))
    ledger = db.relationship('SessionLedger', backref='member', uselist=False,
                             cascade='all, delete-orphan')
    ledger_history = db.relationship('LedgerHistoryEntry', backref='member', lazy='dynamic',
                                     cascade='all, delete-orphan')
    notifications = db.relationship('Notification', backref='member', lazy='dynamic',
                                    cascade='all, delete-orphan')
    diet_logs = db.relationship('DietLog', backref='member', lazy='dynamic',
                                cascade='all, delete-orphan', foreign_keys='DietLog.member_id')
    workout_logs = db.relationship('WorkoutLog', backref='member', lazy='dynamic',
                                   cascade='all, delete-orphan', foreign_keys='WorkoutLog.member_id')
    sessions_received = db.relationship('SessionRecord', backref='member', lazy='dynamic',
                                        cascade='all, delete-orphan',
                                        foreign_keys='SessionRecord.member_id')
    sessions_given = db.relationship('SessionRecord', backref='trainer', lazy='dynamic',
                                     foreign_keys='SessionRecord.trainer_id')

    @classmethod
    def active(cls):
        """Query over members that have not been soft-deleted."""
        return cls.query.filter(cls.deleted_at.is_(None))

    @property
    def is_active(self):
        # Flask-Login refuses sessions for tombstoned members
        return self.deleted_at is None

    def is_admin(self):
        return self.role == Role.ADMIN.value

    def is_trainer(self):
        return self.role == Role.TRAINER.value

    def is_trainer_capable(self):
        return self.role in TRAINER_CAPABLE_ROLES

    def set_password(self, password):
        """Hash and set the member's password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against stored hash."""
        return check_password_hash(self.password_hash, password)

    def soft_delete(self):
        self.deleted_at = datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'trainer_id': self.trainer_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Member {self.id} {self.role}>'


# ============================================================
# SESSION LEDGER MODEL
# ============================================================
class SessionLedger(db.Model):
    """
    Cumulative session counters for one member.

    CRITICAL: counters are only changed by ledger_service (register,
    decrement, restore_one). used <= total always holds because a
    decrement with nothing remaining is rejected, never clamped.

    version_id guards the read-modify-write against concurrent writers.
    """
    __tablename__ = 'session_ledgers'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), unique=True, nullable=False)

    # Regular ("PT") sessions
    regular_total = db.Column(db.Integer, default=0, nullable=False)
    regular_used = db.Column(db.Integer, default=0, nullable=False)

    # Service (complimentary) sessions
    service_total = db.Column(db.Integer, default=0, nullable=False)
    service_used = db.Column(db.Integer, default=0, nullable=False)

    valid_from = db.Column(db.Date, nullable=True)
    valid_to = db.Column(db.Date, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {'version_id_col': version_id}

    @property
    def remain_regular(self):
        return max(0, self.regular_total - self.regular_used)

    @property
    def remain_service(self):
        return max(0, self.service_total - self.service_used)

    @property
    def remain_total(self):
        return self.remain_regular + self.remain_service

    def remaining(self, kind):
        if kind == SessionKind.REGULAR:
            return self.remain_regular
        return self.remain_service

    def to_dict(self):
        return {
            'member_id': self.member_id,
            'regular_total': self.regular_total,
            'regular_used': self.regular_used,
            'remain_regular': self.remain_regular,
            'service_total': self.service_total,
            'service_used': self.service_used,
            'remain_service': self.remain_service,
            'remain_total': self.remain_total,
            'valid_from': self.valid_from.isoformat() if self.valid_from else None,
            'valid_to': self.valid_to.isoformat() if self.valid_to else None,
        }

    def __repr__(self):
        return f'<SessionLedger member={self.member_id} regular={self.remain_regular} service={self.remain_service}>'


# ============================================================
# LEDGER HISTORY MODEL (APPEND-ONLY)
# ============================================================
class LedgerHistoryEntry(db.Model):
    """
    One row per registration call, holding exactly what that call added.

    Never updated or deleted; the cumulative numbers live on SessionLedger.
    """
    __tablename__ = 'ledger_history'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    regular_added = db.Column(db.Integer, default=0, nullable=False)
    service_added = db.Column(db.Integer, default=0, nullable=False)
    payment_amount = db.Column(db.Integer, default=0, nullable=False)
    valid_from = db.Column(db.Date, nullable=True)
    valid_to = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'regular_added': self.regular_added,
            'service_added': self.service_added,
            'payment_amount': self.payment_amount,
            'valid_from': self.valid_from.isoformat() if self.valid_from else None,
            'valid_to': self.valid_to.isoformat() if self.valid_to else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<LedgerHistoryEntry member={self.member_id} +{self.regular_added}/+{self.service_added}>'


# ============================================================
# SESSION RECORD MODEL
# ============================================================
class SessionRecord(db.Model):
    """
    A training session a trainer logged for a member.

    Creating one consumes a regular session from the member's ledger,
    deleting one gives it back. trainer_private_memo is never shown to
    the member.
    """
    __tablename__ = 'session_records'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    # NULL once the authoring trainer has been removed permanently
    trainer_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=True, index=True)
    occurred_at = db.Column(db.DateTime, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text)
    trainer_private_memo = db.Column(db.Text)
    completed = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self, include_private=False):
        data = {
            'id': self.id,
            'member_id': self.member_id,
            'trainer_id': self.trainer_id,
            'occurred_at': self.occurred_at.isoformat() if self.occurred_at else None,
            'duration_minutes': self.duration_minutes,
            'notes': self.notes,
            'completed': self.completed,
        }
        if include_private:
            data['trainer_private_memo'] = self.trainer_private_memo
        return data

    def __repr__(self):
        return f'<SessionRecord {self.id} member={self.member_id} trainer={self.trainer_id}>'


# ============================================================
# NOTIFICATION MODEL
# ============================================================
class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    severity = db.Column(db.String(20), nullable=False)
    message = db.Column(db.String(500), nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'severity': self.severity,
            'message': self.message,
            'is_read': self.is_read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Notification member={self.member_id} {self.severity}>'


# ============================================================
# JOURNAL MODELS (DIET / WORKOUT)
# ============================================================
class DietLog(db.Model):
    __tablename__ = 'diet_logs'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text)
    calories = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    comments = db.relationship('DietComment', backref='diet_log', lazy='dynamic',
                               cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'author_id': self.author_id,
            'title': self.title,
            'content': self.content,
            'calories': self.calories,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class WorkoutLog(db.Model):
    __tablename__ = 'workout_logs'

    id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey('members.id'), nullable=False, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'member_id': self.member_id,
            'author_id': self.author_id,
            'title': self.title,
            'content': self.content,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class DietComment(db.Model):
    """Feedback left on a diet log, usually by the member's trainer."""
    __tablename__ = 'diet_comments'

    id = db.Column(db.Integer, primary_key=True)
    diet_log_id = db.Column(db.Integer, db.ForeignKey('diet_logs.id'), nullable=False, index=True)
    # NULL once the author has been removed permanently
    author_id = db.Column(db.Integer, db.ForeignKey('members.id', ondelete='SET NULL'), nullable=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    author = db.relationship('Member', foreign_keys=[author_id])

    def to_dict(self):
        return {
            'id': self.id,
            'diet_log_id': self.diet_log_id,
            'author_id': self.author_id,
            'author_name': self.author.name if self.author else None,
            'content': self.content,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<DietComment {self.id} log={self.diet_log_id}>'
