"""
NOTIFICATION ROUTES
===================
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required
from gymcore.routes import current_actor
from gymcore.services.notification_service import (
    list_notifications, count_unread, mark_all_read
)

notifications_bp = Blueprint('notifications', __name__, url_prefix='/api/notifications')


@notifications_bp.route('/<int:member_id>', methods=['GET'])
@login_required
def index(member_id):
    unread_only = request.args.get('unread') in ('1', 'true', 'yes')
    items = list_notifications(current_actor(), member_id, unread_only=unread_only)
    return jsonify([n.to_dict() for n in items])


@notifications_bp.route('/<int:member_id>/unread-count', methods=['GET'])
@login_required
def unread_count(member_id):
    return jsonify({'member_id': member_id, 'unread': count_unread(current_actor(), member_id)})


@notifications_bp.route('/<int:member_id>/read', methods=['POST'])
@login_required
def read_all(member_id):
    changed = mark_all_read(current_actor(), member_id)
    return jsonify({'member_id': member_id, 'marked_read': changed})
