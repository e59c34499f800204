"""
Technicians Routes Blueprint

Field technician CRUD.
"""

import logging
from flask import Blueprint, request, jsonify

from database.connection import get_db_session
from services.technician_repository import TechnicianRepository
from validators import validate_required_fields, validate_number_range, sanitize_string
from app.utils.helpers import get_json_body, validation_error

logger = logging.getLogger(__name__)

# Create blueprint
technicians_bp = Blueprint('technicians_bp', __name__)


def _validate_technician(data, partial=False):
    if not partial:
        is_valid, error = validate_required_fields(data, ['full_name'])
        if not is_valid:
            return False, error
    if data.get('commission_rate') not in (None, ''):
        is_valid, error = validate_number_range(data['commission_rate'], min_value=0, max_value=100)
        if not is_valid:
            return False, f"Invalid commission_rate: {error}"
    return True, None


@technicians_bp.route('/api/technicians', methods=['GET', 'POST'])
def handle_technicians():
    """List or create technicians"""
    if request.method == 'GET':
        active_only = request.args.get('active', 'false').lower() == 'true'
        with get_db_session() as db:
            technicians = TechnicianRepository(db).list_technicians(active_only=active_only)
        return jsonify({'success': True, 'technicians': technicians})

    data = get_json_body()
    is_valid, error = _validate_technician(data)
    if not is_valid:
        return validation_error(error)

    data['full_name'] = sanitize_string(data['full_name'], max_length=255)
    with get_db_session() as db:
        technician = TechnicianRepository(db).create_technician(data)
    return jsonify({'success': True, 'technician': technician}), 201


@technicians_bp.route('/api/technicians/<tech_id>', methods=['GET', 'PUT', 'DELETE'])
def handle_technician(tech_id):
    """Single technician; DELETE deactivates technicians that have orders"""
    with get_db_session() as db:
        repo = TechnicianRepository(db)

        if request.method == 'GET':
            return jsonify({'success': True, 'technician': repo.get_technician(tech_id)})

        if request.method == 'PUT':
            data = get_json_body()
            is_valid, error = _validate_technician(data, partial=True)
            if not is_valid:
                return validation_error(error)
            return jsonify({'success': True, 'technician': repo.update_technician(tech_id, data)})

        deleted = repo.delete_technician(tech_id)

    return jsonify({
        'success': True,
        'deleted': deleted,
        'message': 'Technician deleted' if deleted else 'Technician has orders and was deactivated'
    })
