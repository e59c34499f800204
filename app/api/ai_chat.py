"""
AI Chat Routes Blueprint

ServiBot endpoints backed by Gemini:
- /api/ai/chat     - assistant chat with optional photo
- /api/ai/diagnose - structured technical diagnosis
- /api/ai/message  - personalized client message
"""

import logging
from flask import Blueprint, jsonify, current_app

from database.connection import get_db_session
from services.ai_chat_service import ServiBotChatService, MESSAGE_TOPICS
from services.order_service import whatsapp_link
from validators import validate_ai_chat_request, validate_required_fields, validate_string_length
from app.utils.helpers import get_json_body, validation_error, get_gemini

logger = logging.getLogger(__name__)

# Create blueprint
ai_chat_bp = Blueprint('ai_chat', __name__)


@ai_chat_bp.route('/api/ai/chat', methods=['POST'])
def ai_chat():
    """
    Chat with ServiBot. Body: {message, history?, image?}
    A failed model call still answers 200 with the fallback text.
    """
    data = get_json_body()
    is_valid, error = validate_ai_chat_request(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        assistant = ServiBotChatService(db, get_gemini(), current_app.config)
        response = assistant.chat(data['message'], data.get('history', []), data.get('image'))

    return jsonify({'success': True, 'response': response})


@ai_chat_bp.route('/api/ai/diagnose', methods=['POST'])
def ai_diagnose():
    """Body: {symptoms, brand?, model?, year?}"""
    data = get_json_body()
    is_valid, error = validate_required_fields(data, ['symptoms'])
    if not is_valid:
        return validation_error(error)

    is_valid, error = validate_string_length(data['symptoms'], min_length=3, max_length=5000)
    if not is_valid:
        return validation_error(f"Invalid symptoms: {error}")

    appliance = {
        'brand': data.get('brand', ''),
        'model': data.get('model', ''),
        'year': data.get('year'),
    }
    with get_db_session() as db:
        diagnosis = ServiBotChatService(db, get_gemini(), current_app.config).diagnose(
            appliance, data['symptoms']
        )
    return jsonify({'success': True, 'diagnosis': diagnosis})


@ai_chat_bp.route('/api/ai/message', methods=['POST'])
def ai_message():
    """Body: {client_name, appliance?, topic?, phone?}"""
    data = get_json_body()
    is_valid, error = validate_required_fields(data, ['client_name'])
    if not is_valid:
        return validation_error(error)

    topic = data.get('topic') or 'maintenance'
    if topic not in MESSAGE_TOPICS:
        return validation_error(f"Invalid topic. Allowed: {', '.join(MESSAGE_TOPICS)}")

    with get_db_session() as db:
        message = ServiBotChatService(db, get_gemini(), current_app.config).personalized_message(
            data['client_name'], data.get('appliance'), topic
        )

    result = {'success': True, 'message': message}
    if data.get('phone'):
        result['whatsapp_link'] = whatsapp_link(data['phone'], message)
    return jsonify(result)
