"""
DIET / WORKOUT LOG ROUTES
=========================
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required
from gymcore.routes import current_actor, json_body, parse_datetime, parse_int
from gymcore.services.journal_service import (
    create_log, update_log, delete_log, list_logs, total_calories,
    add_comment, list_comments, delete_comment
)

journals_bp = Blueprint('journals', __name__, url_prefix='/api')

KIND_PATTERN = '<any(diet, workout):kind>'


@journals_bp.route(f'/members/<int:member_id>/{KIND_PATTERN}-logs', methods=['GET'])
@login_required
def index(member_id, kind):
    logs = list_logs(current_actor(), kind, member_id)
    return jsonify([log.to_dict() for log in logs])


@journals_bp.route(f'/members/<int:member_id>/{KIND_PATTERN}-logs', methods=['POST'])
@login_required
def create(member_id, kind):
    data = json_body()
    log = create_log(
        current_actor(), kind, member_id,
        title=data.get('title'),
        content=data.get('content'),
        calories=parse_int(data.get('calories'), 'calories')
    )
    return jsonify(log.to_dict()), 201


@journals_bp.route(f'/{KIND_PATTERN}-logs/<int:log_id>', methods=['PUT'])
@login_required
def update(kind, log_id):
    data = json_body()
    log = update_log(
        current_actor(), kind, log_id,
        title=data.get('title'),
        content=data.get('content'),
        calories=parse_int(data.get('calories'), 'calories')
    )
    return jsonify(log.to_dict())


@journals_bp.route(f'/{KIND_PATTERN}-logs/<int:log_id>', methods=['DELETE'])
@login_required
def remove(kind, log_id):
    delete_log(current_actor(), kind, log_id)
    return '', 204


@journals_bp.route('/members/<int:member_id>/calories', methods=['GET'])
@login_required
def calories(member_id):
    total = total_calories(
        current_actor(), member_id,
        start=parse_datetime(request.args.get('start'), 'start'),
        end=parse_datetime(request.args.get('end'), 'end')
    )
    return jsonify({'member_id': member_id, 'calories': total})


@journals_bp.route('/diet-logs/<int:log_id>/comments', methods=['GET'])
@login_required
def comments(log_id):
    return jsonify([c.to_dict() for c in list_comments(current_actor(), log_id)])


@journals_bp.route('/diet-logs/<int:log_id>/comments', methods=['POST'])
@login_required
def comment(log_id):
    created = add_comment(current_actor(), log_id, json_body().get('content'))
    return jsonify(created.to_dict()), 201


@journals_bp.route('/diet-comments/<int:comment_id>', methods=['DELETE'])
@login_required
def remove_comment(comment_id):
    delete_comment(current_actor(), comment_id)
    return '', 204
