"""
Service Orders Routes Blueprint

Service-order workflow:
- /api/service-orders                        - list / new-service intake
- /api/service-orders/<id>                   - detail
- /api/service-orders/<id>/status            - status change (audited)
- /api/service-orders/<id>/finish            - diagnosis, labor, parts, totals
- /api/service-orders/<id>/history           - status history
- /api/service-orders/<id>/whatsapp          - confirmation message + wa.me link
- /api/service-orders/<id>/recommendations   - care tips for the client
- /api/agenda                                - orders scheduled on a date
"""

import logging
from flask import Blueprint, request, jsonify, current_app, session

from database.connection import get_db_session
from services.ai_chat_service import ServiBotChatService
from services.finance_service import FinanceService
from services.order_repository import OrderRepository
from services.order_service import OrderService, whatsapp_link
from services.parsing import parse_date
from validators import (
    validate_intake_request, validate_order_status, validate_finish_request, sanitize_string
)
from app.utils.helpers import get_json_body, validation_error, get_gemini

logger = logging.getLogger(__name__)

# Create blueprint
service_orders_bp = Blueprint('service_orders_bp', __name__)


def _assistant(db):
    return ServiBotChatService(db, get_gemini(), current_app.config)


# ============================================================================
# ORDERS
# ============================================================================

@service_orders_bp.route('/api/service-orders', methods=['GET'])
def list_orders():
    """List orders filtered by status, technician, client or scheduled date"""
    status = request.args.get('status')
    if status:
        is_valid, error = validate_order_status(status)
        if not is_valid:
            return validation_error(error)

    with get_db_session() as db:
        orders = OrderRepository(db).list_orders(
            status=status,
            technician_id=request.args.get('technician_id'),
            day=parse_date(request.args.get('date')),
            client_id=request.args.get('client_id')
        )
    return jsonify({'success': True, 'orders': orders, 'count': len(orders)})


@service_orders_bp.route('/api/service-orders', methods=['POST'])
def create_order():
    """New-service intake: client, equipment and a PENDING order in one call"""
    data = get_json_body()
    is_valid, error = validate_intake_request(data)
    if not is_valid:
        return validation_error(error)

    data['full_name'] = sanitize_string(data['full_name'], max_length=255)
    data['reported_issue'] = sanitize_string(data['reported_issue'], max_length=5000)
    data['changed_by_id'] = session.get('user_id')

    with get_db_session() as db:
        order = OrderService(db).create_intake(data)
    return jsonify({'success': True, 'order': order}), 201


@service_orders_bp.route('/api/service-orders/<order_id>', methods=['GET'])
def get_order(order_id):
    with get_db_session() as db:
        order = OrderRepository(db).get_order(order_id)
    return jsonify({'success': True, 'order': order})


@service_orders_bp.route('/api/service-orders/<order_id>/status', methods=['POST'])
def change_status(order_id):
    """
    Move an order to any of the ten statuses.
    WAITING_PARTS also returns a drafted client message and its WhatsApp link.
    """
    data = get_json_body()
    is_valid, error = validate_order_status(data.get('status'))
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        result = OrderService(db, assistant=_assistant(db)).change_status(
            order_id,
            data['status'],
            changed_by_id=session.get('user_id'),
            comment=data.get('comment')
        )
    return jsonify({'success': True, **result})


@service_orders_bp.route('/api/service-orders/<order_id>/finish', methods=['POST'])
def finish_order(order_id):
    """Record diagnosis, labor and parts used; the order becomes COMPLETED"""
    data = get_json_body()
    is_valid, error = validate_finish_request(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        order = OrderService(db).finish_order(
            order_id,
            diagnosis=data.get('diagnosis', ''),
            labor_cost=data.get('labor_cost', 0),
            parts=data.get('parts', []),
            changed_by_id=session.get('user_id')
        )
    return jsonify({'success': True, 'order': order})


@service_orders_bp.route('/api/service-orders/<order_id>/history', methods=['GET'])
def order_history(order_id):
    with get_db_session() as db:
        repo = OrderRepository(db)
        repo.get_model(order_id)
        history = repo.get_history(order_id)
    return jsonify({'success': True, 'history': history})


# ============================================================================
# CLIENT MESSAGES
# ============================================================================

@service_orders_bp.route('/api/service-orders/<order_id>/whatsapp', methods=['POST'])
def order_whatsapp(order_id):
    """Draft the visit confirmation and build the wa.me link"""
    with get_db_session() as db:
        order = OrderRepository(db).get_order(order_id)
        message = _assistant(db).order_confirmation_message(order)

    phone = (order.get('client') or {}).get('phone')
    return jsonify({
        'success': True,
        'message': message,
        'whatsapp_link': whatsapp_link(phone, message)
    })


@service_orders_bp.route('/api/service-orders/<order_id>/recommendations', methods=['POST'])
def order_recommendations(order_id):
    """Care tips for the client after the repair"""
    with get_db_session() as db:
        order = OrderRepository(db).get_order(order_id)
        recommendations = _assistant(db).care_recommendations(order)
    return jsonify({'success': True, 'recommendations': recommendations})


# ============================================================================
# AGENDA
# ============================================================================

@service_orders_bp.route('/api/agenda', methods=['GET'])
def agenda():
    """Orders scheduled on ?date=YYYY-MM-DD (today by default)"""
    day_arg = request.args.get('date')
    day = parse_date(day_arg) if day_arg else None
    if day_arg and not day:
        return validation_error(f"Invalid date: {day_arg}")

    with get_db_session() as db:
        result = FinanceService(db).agenda(day)
    return jsonify({'success': True, **result})
