"""
Google Service Routes Blueprint

Single action endpoint for Drive and Calendar plus a credential diagnostic:
- GET  /api/google-service - capabilities
- POST /api/google-service - {action: upload_to_drive | create_calendar_event |
                              list_calendar_events | delete_calendar_event}
- GET  /api/google-test    - verify credentials against Cloud Resource Manager
"""

import logging
from flask import Blueprint, jsonify

from validators import validate_drive_upload_request, validate_calendar_event_request
from app.utils.helpers import get_json_body, validation_error, get_google

logger = logging.getLogger(__name__)

# Create blueprint
google_bp = Blueprint('google_bp', __name__)

CAPABILITIES = ['Drive', 'Calendar', 'Cloud Platform']


@google_bp.route('/api/google-service', methods=['GET'])
def google_service_info():
    return jsonify({'status': 'active', 'capabilities': CAPABILITIES})


@google_bp.route('/api/google-service', methods=['POST'])
def google_service_action():
    """Dispatch on the body's action; unknown actions report service status"""
    data = get_json_body()
    action = data.get('action')

    if action == 'upload_to_drive':
        is_valid, error = validate_drive_upload_request(data)
        if not is_valid:
            return validation_error(error)
    elif action == 'create_calendar_event':
        is_valid, error = validate_calendar_event_request(data.get('calendarEvent'))
        if not is_valid:
            return validation_error(error)

    logger.info(f"Google service action: {action or 'status'}")
    return jsonify(get_google().handle_action(data))


@google_bp.route('/api/google-test', methods=['GET'])
def google_test():
    return jsonify(get_google().check_connection())
