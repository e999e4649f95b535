"""
AUTHENTICATION ROUTES
=====================
"""

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from gymcore.models import Member
from gymcore.routes import json_body

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    member = Member.active().filter_by(email=email).first()

    if member and member.check_password(password):
        login_user(member, remember=bool(data.get('remember', False)))
        return jsonify(member.to_dict())

    return jsonify({'error': 'Invalid email or password'}), 401


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify(current_user.to_dict())
