"""
MEMBER DIRECTORY ROUTES
=======================
"""

from flask import Blueprint, jsonify
from flask_login import login_required
from gymcore.routes import current_actor, json_body, parse_int
from gymcore.services.member_service import (
    enroll_member, get_member, update_profile, list_members, list_trainees,
    assign_trainer, remove_member, remove_trainer_permanently, change_password
)

members_bp = Blueprint('members', __name__, url_prefix='/api')


@members_bp.route('/members', methods=['GET'])
@login_required
def index():
    members = list_members(current_actor())
    return jsonify([m.to_dict() for m in members])


@members_bp.route('/members', methods=['POST'])
@login_required
def enroll():
    data = json_body()
    member = enroll_member(
        current_actor(),
        name=data.get('name'),
        email=data.get('email'),
        phone=data.get('phone'),
        password=data.get('password'),
        trainer_id=parse_int(data.get('trainer_id'), 'trainer_id'),
        role=data.get('role') or 'OT'
    )
    return jsonify(member.to_dict()), 201


@members_bp.route('/members/<int:member_id>', methods=['GET'])
@login_required
def show(member_id):
    return jsonify(get_member(current_actor(), member_id).to_dict())


@members_bp.route('/members/<int:member_id>', methods=['PATCH'])
@login_required
def update(member_id):
    data = json_body()
    member = update_profile(
        current_actor(), member_id,
        name=data.get('name'),
        phone=data.get('phone')
    )
    return jsonify(member.to_dict())


@members_bp.route('/members/<int:member_id>', methods=['DELETE'])
@login_required
def remove(member_id):
    remove_member(current_actor(), member_id)
    return '', 204


@members_bp.route('/members/<int:member_id>/password', methods=['PUT'])
@login_required
def set_password(member_id):
    data = json_body()
    change_password(
        current_actor(), member_id,
        new_password=data.get('new_password'),
        current_password=data.get('current_password')
    )
    return '', 204


@members_bp.route('/members/<int:member_id>/trainer', methods=['PUT'])
@login_required
def set_trainer(member_id):
    trainer_id = parse_int(json_body().get('trainer_id'), 'trainer_id')
    member = assign_trainer(current_actor(), member_id, trainer_id)
    return jsonify(member.to_dict())


@members_bp.route('/trainers/<int:trainer_id>', methods=['DELETE'])
@login_required
def remove_trainer(trainer_id):
    unassigned = remove_trainer_permanently(current_actor(), trainer_id)
    return jsonify({'trainer_id': trainer_id, 'unassigned_members': unassigned})


@members_bp.route('/trainers/<int:trainer_id>/members', methods=['GET'])
@login_required
def trainees(trainer_id):
    members = list_trainees(current_actor(), trainer_id)
    return jsonify([m.to_dict() for m in members])
