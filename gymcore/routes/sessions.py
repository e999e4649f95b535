"""
PT SESSION ROUTES
=================

Session records; creating and deleting one moves the member's ledger.
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required
from gymcore.routes import current_actor, json_body, parse_datetime, parse_int
from gymcore.services.exceptions import ValidationError
from gymcore.services.session_service import (
    create_session, update_session, delete_session, get_session,
    list_sessions_for_member, list_sessions_for_trainer, shows_private_memo
)

sessions_bp = Blueprint('sessions', __name__, url_prefix='/api/pt-sessions')


def _serialize(records, actor):
    private = shows_private_memo(actor)
    return [r.to_dict(include_private=private) for r in records]


@sessions_bp.route('', methods=['POST'])
@login_required
def create():
    data = json_body()
    member_id = parse_int(data.get('member_id'), 'member_id')
    if member_id is None:
        raise ValidationError("member_id is required")

    actor = current_actor()
    record = create_session(
        actor, member_id,
        occurred_at=parse_datetime(data.get('occurred_at'), 'occurred_at'),
        duration_minutes=parse_int(data.get('duration_minutes'), 'duration_minutes'),
        notes=data.get('notes'),
        memo=data.get('memo')
    )
    return jsonify(record.to_dict(include_private=shows_private_memo(actor))), 201


@sessions_bp.route('/<int:session_id>', methods=['GET'])
@login_required
def show(session_id):
    actor = current_actor()
    record = get_session(actor, session_id)
    return jsonify(record.to_dict(include_private=shows_private_memo(actor)))


@sessions_bp.route('/<int:session_id>', methods=['PUT'])
@login_required
def update(session_id):
    data = json_body()
    actor = current_actor()
    record = update_session(
        actor, session_id,
        occurred_at=parse_datetime(data.get('occurred_at'), 'occurred_at'),
        duration_minutes=parse_int(data.get('duration_minutes'), 'duration_minutes'),
        notes=data.get('notes'),
        memo=data.get('memo')
    )
    return jsonify(record.to_dict(include_private=shows_private_memo(actor)))


@sessions_bp.route('/<int:session_id>', methods=['DELETE'])
@login_required
def remove(session_id):
    delete_session(current_actor(), session_id)
    return '', 204


@sessions_bp.route('/member/<int:member_id>', methods=['GET'])
@login_required
def by_member(member_id):
    actor = current_actor()
    records = list_sessions_for_member(
        actor, member_id,
        start=parse_datetime(request.args.get('start'), 'start'),
        end=parse_datetime(request.args.get('end'), 'end')
    )
    return jsonify(_serialize(records, actor))


@sessions_bp.route('/trainer/<int:trainer_id>', methods=['GET'])
@login_required
def by_trainer(trainer_id):
    actor = current_actor()
    return jsonify(_serialize(list_sessions_for_trainer(actor, trainer_id), actor))
