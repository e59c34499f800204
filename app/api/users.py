"""
Users Routes Blueprint

Team management (admin only): list members, add a member, change a
member's role or deactivate them.
"""

import logging
from flask import Blueprint, request, jsonify

from auth import admin_required, current_user_id
from database.connection import get_db_session
from database.models import UserRole
from services.users_repository import UsersRepository
from validators import validate_user_registration
from app.utils.helpers import get_json_body, validation_error

logger = logging.getLogger(__name__)

# Create blueprint
users_bp = Blueprint('users_bp', __name__)


def _validate_role(role):
    try:
        UserRole.parse(role)
    except ValueError as e:
        return False, str(e)
    return True, None


@users_bp.route('/api/users', methods=['GET'])
@admin_required
def list_users():
    active_only = request.args.get('active', 'false').lower() == 'true'
    with get_db_session() as db:
        users = UsersRepository(db).list_users(active_only=active_only)
    return jsonify({'success': True, 'users': users})


@users_bp.route('/api/users', methods=['POST'])
@admin_required
def create_user():
    """Add a team member with an initial password"""
    data = get_json_body()
    is_valid, error = validate_user_registration(data)
    if not is_valid:
        return validation_error(error)

    if data.get('role'):
        is_valid, error = _validate_role(data['role'])
        if not is_valid:
            return validation_error(error)

    with get_db_session() as db:
        user = UsersRepository(db).create_user(data)
    return jsonify({'success': True, 'user': user}), 201


@users_bp.route('/api/users/<user_id>', methods=['GET'])
@admin_required
def get_user(user_id):
    with get_db_session() as db:
        user = UsersRepository(db).get_user(user_id)
    if not user:
        return jsonify({'success': False, 'error': 'User not found'}), 404
    return jsonify({'success': True, 'user': user})


@users_bp.route('/api/users/<user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    """Body: {role?, is_active?}"""
    data = get_json_body()
    if 'role' not in data and 'is_active' not in data:
        return validation_error('Provide role or is_active')

    if 'role' in data:
        is_valid, error = _validate_role(data['role'])
        if not is_valid:
            return validation_error(error)

    demoting = 'role' in data and UserRole.parse(data['role']) != UserRole.ADMIN
    if user_id == current_user_id() and (data.get('is_active') is False or demoting):
        return validation_error('You cannot demote or deactivate your own account')

    with get_db_session() as db:
        repo = UsersRepository(db)
        user = None
        if 'role' in data:
            user = repo.update_role(user_id, data['role'])
        if 'is_active' in data:
            user = repo.set_active(user_id, bool(data['is_active']))
    return jsonify({'success': True, 'user': user})
