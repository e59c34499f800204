"""
Page Routes Blueprint

Entry points of the service: the public landing document and the
dashboard summary shown after login.
"""

import logging
from flask import Blueprint, jsonify, session

from database.connection import get_db_session
from services.finance_service import FinanceService

logger = logging.getLogger(__name__)

# Create blueprint
pages_bp = Blueprint('pages', __name__)


def get_auth():
    """Get auth module - imported lazily to avoid circular imports"""
    import auth
    return auth


# ============================================================================
# MAIN PAGE ROUTES
# ============================================================================

@pages_bp.route('/')
def index():
    """Service info and where to go next"""
    auth = get_auth()
    return jsonify({
        'success': True,
        'service': 'ServiTech Pro',
        'authenticated': auth.is_authenticated(),
        'next': '/dashboard' if auth.is_authenticated() else '/login'
    })


@pages_bp.route('/dashboard')
def dashboard():
    """Headline numbers plus today's agenda"""
    with get_db_session() as db:
        summary = FinanceService(db).dashboard_summary()

    return jsonify({
        'success': True,
        'user': {
            'id': session.get('user_id'),
            'name': session.get('user_name'),
            'role': session.get('user_role')
        },
        'summary': summary
    })
