"""
Authentication Routes Blueprint

Handles login, self-registration, logout and the current-user lookup.
"""

from flask import Blueprint, request, jsonify, redirect
import logging

from database.connection import get_db_session
from services.users_repository import UsersRepository
from validators import validate_user_registration, sanitize_string
from app.utils.helpers import get_json_body, validation_error

logger = logging.getLogger(__name__)

# Create blueprint
auth_bp = Blueprint('auth_bp', __name__)


def get_auth():
    """Get auth module - imported lazily to avoid circular imports"""
    import auth
    return auth


# ============================================================================
# LOGIN/LOGOUT ROUTES
# ============================================================================

@auth_bp.route('/login', methods=['GET'])
def login_page():
    """Describe the login form (authenticated users are sent to /dashboard by the gate)"""
    return jsonify({
        'success': True,
        'login': {'method': 'POST', 'url': '/api/auth/login', 'fields': ['email', 'password']}
    })


@auth_bp.route('/login', methods=['POST'])
@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """API endpoint for user login"""
    auth = get_auth()
    data = get_json_body() or request.form.to_dict()
    email = data.get('email')
    password = data.get('password')

    if not email or not password:
        return validation_error('Email and password required')

    with get_db_session() as db:
        user = UsersRepository(db).authenticate(email, password)

    if not user:
        return jsonify({'success': False, 'error': 'Invalid email or password'}), 401

    # Set session
    auth.login_user(user)
    logger.info(f"User logged in: {user['email']}")

    return jsonify({'success': True, 'user': user, 'redirect': '/dashboard'})


@auth_bp.route('/register', methods=['POST'])
@auth_bp.route('/api/auth/register', methods=['POST'])
def api_register():
    """Self-registration; new accounts start as solo technicians"""
    auth = get_auth()
    data = get_json_body() or request.form.to_dict()

    is_valid, error = validate_user_registration(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        user = UsersRepository(db).create_user({
            'email': data['email'],
            'password': data['password'],
            'full_name': sanitize_string(data.get('full_name', ''), max_length=255),
        })

    auth.login_user(user)
    logger.info(f"User registered: {user['email']}")

    return jsonify({'success': True, 'user': user, 'redirect': '/dashboard'}), 201


@auth_bp.route('/logout', methods=['GET'])
def logout_page():
    """Logout and go back to the login page"""
    get_auth().logout_user()
    return redirect('/login')


@auth_bp.route('/logout', methods=['POST'])
@auth_bp.route('/api/auth/logout', methods=['POST'])
def api_logout():
    """API endpoint for user logout"""
    get_auth().logout_user()
    return jsonify({'success': True, 'redirect': '/login'})


@auth_bp.route('/api/auth/me', methods=['GET'])
def current_user():
    """The logged-in user, or 401 when there is no session"""
    auth = get_auth()
    if not auth.is_authenticated():
        return jsonify({'success': False, 'error': 'Authentication required', 'redirect': '/login'}), 401

    with get_db_session() as db:
        user = UsersRepository(db).get_user(auth.current_user_id())

    if not user or not user.get('is_active', True):
        auth.logout_user()
        return jsonify({'success': False, 'error': 'Authentication required', 'redirect': '/login'}), 401

    return jsonify({'success': True, 'user': user})
