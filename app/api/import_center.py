"""
Import Center Routes Blueprint

Excel template download and bulk import of orders or clients.
"""

import logging
from flask import Blueprint, request, jsonify

from database.connection import get_db_session
from services.import_service import ImportService, build_import_template
from validators import validate_spreadsheet_upload
from app.utils.helpers import validation_error, xlsx_response

logger = logging.getLogger(__name__)

# Create blueprint
import_bp = Blueprint('import_bp', __name__)


def _uploaded_workbook():
    """Return (bytes, error) for the multipart 'file' field"""
    if 'file' not in request.files:
        return None, 'No file provided'

    file = request.files['file']
    is_valid, error, filename = validate_spreadsheet_upload(file)
    if not is_valid:
        return None, error

    logger.info(f"Import upload received: {filename}")
    return file.read(), None


@import_bp.route('/api/import/template', methods=['GET'])
def download_template():
    return xlsx_response(build_import_template(), 'plantilla_servitech.xlsx')


@import_bp.route('/api/import/orders', methods=['POST'])
def import_orders():
    """One order per row; bad rows are reported and skipped"""
    content, error = _uploaded_workbook()
    if error:
        return validation_error(error)

    with get_db_session() as db:
        summary = ImportService(db).import_orders(content)
    return jsonify({'success': True, **summary})


@import_bp.route('/api/import/clients', methods=['POST'])
def import_clients():
    """Upsert clients by national ID"""
    content, error = _uploaded_workbook()
    if error:
        return validation_error(error)

    with get_db_session() as db:
        summary = ImportService(db).import_clients(content)
    return jsonify({'success': True, **summary})
