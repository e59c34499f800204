"""
Inventory Routes Blueprint

Spare parts catalogue and stock:
- /api/parts              - list / create
- /api/parts/<id>         - detail / update
- /api/parts/<id>/stock   - set or adjust stock
- /api/parts/scan/<code>  - barcode / QR lookup
- /api/parts/search       - name search
- /api/parts/low-stock    - parts at or under their minimum
- /api/parts/export       - xlsx download
- /api/parts/<id>/repair-advice - AI repair tips for a part
"""

import logging
from flask import Blueprint, request, jsonify, current_app

from database.connection import get_db_session
from services.ai_chat_service import ServiBotChatService
from services.export_service import export_to_excel
from services.inventory_repository import InventoryRepository
from validators import validate_part_request, validate_stock_request
from app.utils.helpers import (
    get_json_body, validation_error, get_gemini, xlsx_response, stamped_filename
)

logger = logging.getLogger(__name__)

# Create blueprint
inventory_bp = Blueprint('inventory_bp', __name__)

EXPORT_COLUMNS = ['Codigo', 'Nombre', 'Ubicacion', 'Stock', 'Stock Minimo', 'Costo', 'Precio']


# ============================================================================
# PARTS
# ============================================================================

@inventory_bp.route('/api/parts', methods=['GET'])
def list_parts():
    """List parts with optional in_stock / low_stock / search filters"""
    with get_db_session() as db:
        repo = InventoryRepository(db)
        parts = repo.list_parts(
            in_stock_only=request.args.get('in_stock', 'false').lower() == 'true',
            low_stock_only=request.args.get('low_stock', 'false').lower() == 'true',
            search=request.args.get('search')
        )
        stock_value = repo.get_stock_value()
    return jsonify({'success': True, 'parts': parts, 'count': len(parts), 'stock_value': stock_value})


@inventory_bp.route('/api/parts', methods=['POST'])
def create_part():
    """Create a part; code and name are required, code is unique"""
    data = get_json_body()
    is_valid, error = validate_part_request(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        part = InventoryRepository(db).create_part(data)
    return jsonify({'success': True, 'part': part}), 201


@inventory_bp.route('/api/parts/search', methods=['GET'])
def search_parts():
    """Name search used by the finish-order form"""
    name = (request.args.get('q') or request.args.get('name') or '').strip()
    if not name:
        return jsonify({'success': True, 'parts': []})

    limit = request.args.get('limit', 5, type=int)
    with get_db_session() as db:
        parts = InventoryRepository(db).search_parts(name, limit=max(1, min(limit, 50)))
    return jsonify({'success': True, 'parts': parts})


@inventory_bp.route('/api/parts/low-stock', methods=['GET'])
def low_stock_parts():
    """Parts at or below their minimum stock"""
    with get_db_session() as db:
        parts = InventoryRepository(db).get_low_stock_parts()
    return jsonify({'success': True, 'parts': parts, 'count': len(parts)})


@inventory_bp.route('/api/parts/export', methods=['GET'])
def export_parts():
    """Download the inventory as xlsx"""
    with get_db_session() as db:
        parts = InventoryRepository(db).list_parts()

    rows = [{
        'Codigo': p['code'],
        'Nombre': p['name'],
        'Ubicacion': p.get('location') or '',
        'Stock': p['stock_level'],
        'Stock Minimo': p['min_stock'],
        'Costo': p['unit_cost'],
        'Precio': p['unit_price'],
    } for p in parts]

    content = export_to_excel(rows, 'Inventario', columns=EXPORT_COLUMNS)
    return xlsx_response(content, stamped_filename('inventario', 'xlsx'))


@inventory_bp.route('/api/parts/scan/<path:code>', methods=['GET'])
def scan_part(code):
    """Resolve a decoded barcode / QR value to a part"""
    with get_db_session() as db:
        part = InventoryRepository(db).find_by_code(code)

    if not part:
        return jsonify({'success': False, 'error': f"Código no encontrado: {code}"}), 404
    return jsonify({'success': True, 'part': part})


@inventory_bp.route('/api/parts/<part_id>', methods=['GET'])
def get_part(part_id):
    with get_db_session() as db:
        part = InventoryRepository(db).get_part(part_id)
    return jsonify({'success': True, 'part': part})


@inventory_bp.route('/api/parts/<part_id>', methods=['PUT'])
def update_part(part_id):
    data = get_json_body()
    is_valid, error = validate_part_request(data, partial=True)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        part = InventoryRepository(db).update_part(part_id, data)
    return jsonify({'success': True, 'part': part})


@inventory_bp.route('/api/parts/<part_id>/stock', methods=['POST'])
def change_stock(part_id):
    """Body: {'quantity': n} sets the level, {'adjustment': +/-n} moves it"""
    data = get_json_body()
    is_valid, error = validate_stock_request(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        repo = InventoryRepository(db)
        if data.get('quantity') is not None:
            part = repo.set_stock(part_id, data['quantity'])
        else:
            part = repo.adjust_stock(part_id, data['adjustment'])
    return jsonify({'success': True, 'part': part})


@inventory_bp.route('/api/parts/<part_id>/repair-advice', methods=['POST'])
def part_repair_advice(part_id):
    """Failure symptoms and repair tips for a scanned part"""
    with get_db_session() as db:
        part = InventoryRepository(db).get_part(part_id)
        assistant = ServiBotChatService(db, get_gemini(), current_app.config)
        advice = assistant.part_repair_advice(part['name'])
    return jsonify({'success': True, 'part': part, 'advice': advice})
