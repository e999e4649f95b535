"""
STATS ROUTES
============
"""

from flask import Blueprint, jsonify
from flask_login import login_required
from gymcore.routes import current_actor
from gymcore.services.stats_service import (
    member_stats, admin_summary, member_log_stats, trainer_stats
)

stats_bp = Blueprint('stats', __name__, url_prefix='/api')


@stats_bp.route('/stats/<int:member_id>', methods=['GET'])
@login_required
def for_member(member_id):
    return jsonify(member_stats(current_actor(), member_id))


@stats_bp.route('/admin/stats', methods=['GET'])
@login_required
def summary():
    return jsonify(admin_summary(current_actor()))


@stats_bp.route('/admin/stats/members', methods=['GET'])
@login_required
def members():
    return jsonify(member_log_stats(current_actor()))


@stats_bp.route('/admin/stats/trainers', methods=['GET'])
@login_required
def trainers():
    return jsonify(trainer_stats(current_actor()))
