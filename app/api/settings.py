"""
Settings Routes Blueprint

Business profile printed on invoices and used in AI prompts.
"""

import logging
from flask import Blueprint, jsonify

from auth import admin_required
from database.connection import get_db_session
from services.business_profile_repository import BusinessProfileRepository
from validators import validate_email, validate_string_length
from app.utils.helpers import get_json_body, validation_error

logger = logging.getLogger(__name__)

# Create blueprint
settings_bp = Blueprint('settings_bp', __name__)


def _validate_profile(data):
    if 'name' in data:
        is_valid, error = validate_string_length(data.get('name') or '', min_length=2, max_length=255)
        if not is_valid:
            return False, f"Invalid name: {error}"

    if data.get('email'):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, error

    methods = data.get('payment_methods')
    if methods is not None:
        if not isinstance(methods, list):
            return False, "payment_methods must be an array"
        for idx, method in enumerate(methods):
            if not isinstance(method, dict) or not method.get('name'):
                return False, f"Payment method {idx} must have a name"

    return True, None


@settings_bp.route('/api/settings/business-profile', methods=['GET'])
def get_business_profile():
    with get_db_session() as db:
        profile = BusinessProfileRepository(db).get_profile()
    return jsonify({'success': True, 'profile': profile})


@settings_bp.route('/api/settings/business-profile', methods=['PUT'])
@admin_required
def update_business_profile():
    data = get_json_body()
    is_valid, error = _validate_profile(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        profile = BusinessProfileRepository(db).update_profile(data)
    return jsonify({'success': True, 'profile': profile})
