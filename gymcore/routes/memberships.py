"""
MEMBERSHIP ROUTES
=================

Session inventory: register, decrement, alerts and history.
All operations go through ledger_service.
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required
from gymcore.routes import current_actor, json_body, parse_date, parse_int
from gymcore.services.ledger_service import (
    register, decrement, get_ledger, low_remain_members,
    latest_registration, registration_history
)

memberships_bp = Blueprint('memberships', __name__, url_prefix='/api/memberships')


@memberships_bp.route('/alerts', methods=['GET'])
@login_required
def alerts():
    threshold = parse_int(request.args.get('threshold'), 'threshold')
    return jsonify(low_remain_members(current_actor(), threshold))


@memberships_bp.route('/<int:member_id>', methods=['GET'])
@login_required
def show(member_id):
    return jsonify(get_ledger(current_actor(), member_id).to_dict())


@memberships_bp.route('/<int:member_id>/register', methods=['POST'])
@login_required
def register_sessions(member_id):
    data = json_body()
    ledger = register(
        current_actor(), member_id,
        add_regular=parse_int(data.get('add_regular'), 'add_regular', 0),
        add_service=parse_int(data.get('add_service'), 'add_service', 0),
        valid_from=parse_date(data.get('valid_from'), 'valid_from'),
        valid_to=parse_date(data.get('valid_to'), 'valid_to'),
        payment_amount=parse_int(data.get('payment_amount'), 'payment_amount', 0)
    )
    return jsonify(ledger.to_dict()), 201


@memberships_bp.route('/<int:member_id>/decrement', methods=['POST'])
@login_required
def decrement_session(member_id):
    kind = json_body().get('kind', 'REGULAR')
    ledger = decrement(current_actor(), member_id, kind)
    return jsonify(ledger.to_dict())


@memberships_bp.route('/<int:member_id>/latest', methods=['GET'])
@login_required
def latest(member_id):
    entry = latest_registration(current_actor(), member_id)
    if entry is None:
        return '', 204
    return jsonify(entry.to_dict())


@memberships_bp.route('/<int:member_id>/history', methods=['GET'])
@login_required
def history(member_id):
    entries = registration_history(current_actor(), member_id)
    return jsonify([e.to_dict() for e in entries])
