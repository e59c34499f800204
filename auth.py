"""
User Authentication and Authorization Module
Handles session login, the request gate and role-based route protection.

Sessions are Flask's signed cookie holding the user id and role. Users
live in the database (see services.users_repository).

Gate rules:
- Unauthenticated request to a non-public path: browser paths redirect to
  /login, /api paths get 401 JSON
- Authenticated request to /login redirects to /dashboard
"""
from functools import wraps
from flask import session, redirect, jsonify, request
import logging

from database.models import UserRole

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {'/', '/login', '/register', '/favicon.ico'}
PUBLIC_PREFIXES = ('/api/auth/', '/static/')
HEALTH_PATHS = {'/api/health', '/api/ready', '/api/metrics', '/api/ping'}


def login_user(user):
    """Set user session"""
    session.clear()
    session['user_id'] = user['id']
    session['user_email'] = user['email']
    session['user_name'] = user.get('full_name')
    session['user_role'] = user['role']


def logout_user():
    """Clear user session"""
    session.clear()


def is_authenticated():
    """Check if user is logged in"""
    return 'user_id' in session


def current_user_id():
    return session.get('user_id')


def is_admin():
    return session.get('user_role') == UserRole.ADMIN.value


def is_public_path(path):
    """Paths reachable without a session"""
    if path in PUBLIC_PATHS or path in HEALTH_PATHS:
        return True
    return path.startswith(PUBLIC_PREFIXES)


def _wants_json():
    return request.path.startswith('/api/') or request.is_json


def _unauthenticated():
    if _wants_json():
        return jsonify({'success': False, 'error': 'Authentication required', 'redirect': '/login'}), 401
    return redirect('/login')


def session_gate():
    """before_request hook enforcing the gate rules"""
    path = request.path

    if is_authenticated():
        if path == '/login' and request.method == 'GET':
            return redirect('/dashboard')
        return None

    if request.method == 'OPTIONS' or is_public_path(path):
        return None

    logger.debug(f"Blocked unauthenticated request to {path}")
    return _unauthenticated()


def init_auth(app):
    """Register the session gate on the app"""
    app.before_request(session_gate)
    logger.info("Session gate registered")


# Decorators for route protection
def login_required(f):
    """Decorator to require login for a route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return _unauthenticated()
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require the admin role"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_authenticated():
            return _unauthenticated()

        if not is_admin():
            if _wants_json():
                return jsonify({'success': False, 'error': 'Admin permission required'}), 403
            return redirect('/dashboard')

        return f(*args, **kwargs)
    return decorated_function
