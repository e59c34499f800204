"""
Clients Routes Blueprint

Client directory, client profile with equipment and service history,
equipment registration and the client export.
"""

import logging
from flask import Blueprint, request, jsonify

from database.connection import get_db_session
from services.client_repository import ClientRepository, EquipmentRepository
from services.export_service import export_to_excel
from validators import validate_client_request, validate_required_fields
from app.utils.helpers import get_json_body, validation_error, xlsx_response, stamped_filename

logger = logging.getLogger(__name__)

# Create blueprint
clients_bp = Blueprint('clients_bp', __name__)

EXPORT_COLUMNS = ['Cedula', 'Nombre', 'Telefono', 'Email', 'Direccion', 'Categoria',
                  'Ultimo Servicio', 'Ultimo Equipo']


# ============================================================================
# CLIENTS
# ============================================================================

@clients_bp.route('/api/clients', methods=['GET'])
def list_clients():
    """List clients, optionally filtered by name / national ID / phone"""
    with get_db_session() as db:
        clients = ClientRepository(db).list_clients(search=request.args.get('search'))
    return jsonify({'success': True, 'clients': clients, 'count': len(clients)})


@clients_bp.route('/api/clients', methods=['POST'])
def create_client():
    """Create a client; a duplicate national ID is a 409"""
    data = get_json_body()
    is_valid, error = validate_client_request(data)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        client = ClientRepository(db).create_client(data)
    return jsonify({'success': True, 'client': client}), 201


@clients_bp.route('/api/clients/export', methods=['GET'])
def export_clients():
    """Download the client list as xlsx"""
    with get_db_session() as db:
        clients = ClientRepository(db).list_clients(search=request.args.get('search'))

    rows = [{
        'Cedula': c['national_id'],
        'Nombre': c['full_name'],
        'Telefono': c['phone'],
        'Email': c['email'],
        'Direccion': c['address'],
        'Categoria': c['category'],
        'Ultimo Servicio': (c.get('last_service_date') or '')[:10],
        'Ultimo Equipo': c.get('last_appliance') or '',
    } for c in clients]

    content = export_to_excel(rows, 'Clientes', columns=EXPORT_COLUMNS)
    return xlsx_response(content, stamped_filename('clientes', 'xlsx'))


@clients_bp.route('/api/clients/by-national-id/<national_id>', methods=['GET'])
def get_client_by_national_id(national_id):
    """Lookup used by the intake form to prefill returning clients"""
    with get_db_session() as db:
        client = ClientRepository(db).get_by_national_id(national_id)
    if not client:
        return jsonify({'success': False, 'error': 'Client not found'}), 404
    return jsonify({'success': True, 'client': client})


@clients_bp.route('/api/clients/<client_id>', methods=['GET'])
def get_client_profile(client_id):
    """Client with equipment and service history"""
    with get_db_session() as db:
        profile = ClientRepository(db).get_profile(client_id)
    return jsonify({'success': True, 'client': profile})


@clients_bp.route('/api/clients/<client_id>', methods=['PUT'])
def update_client(client_id):
    """Update contact fields of a client"""
    data = get_json_body()
    is_valid, error = validate_client_request(data, partial=True)
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        client = ClientRepository(db).update_client(client_id, data)
    return jsonify({'success': True, 'client': client})


# ============================================================================
# EQUIPMENT
# ============================================================================

@clients_bp.route('/api/clients/<client_id>/equipment', methods=['GET'])
def list_client_equipment(client_id):
    """Equipment registered to a client"""
    with get_db_session() as db:
        ClientRepository(db).get_client(client_id)
        equipment = EquipmentRepository(db).list_by_client(client_id)
    return jsonify({'success': True, 'equipment': equipment})


@clients_bp.route('/api/clients/<client_id>/equipment', methods=['POST'])
def add_client_equipment(client_id):
    """Register an appliance to a client"""
    data = get_json_body()
    is_valid, error = validate_required_fields(data, ['type'])
    if not is_valid:
        return validation_error(error)

    with get_db_session() as db:
        ClientRepository(db).get_client(client_id)
        equipment = EquipmentRepository(db).create_equipment(client_id, data)
    return jsonify({'success': True, 'equipment': equipment}), 201
