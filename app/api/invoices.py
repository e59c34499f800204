"""
Invoices Routes Blueprint

Invoice preview data, PDF download and archiving the PDF in Google Drive.
"""

import logging
from flask import Blueprint, jsonify

from database.connection import get_db_session
from services.export_service import render_invoice_pdf
from services.order_service import OrderService
from app.utils.helpers import get_google, pdf_response

logger = logging.getLogger(__name__)

# Create blueprint
invoices_bp = Blueprint('invoices_bp', __name__)


def _invoice(order_id):
    with get_db_session() as db:
        return OrderService(db).invoice_data(order_id)


def _pdf_name(invoice):
    return f"Factura_{invoice['order']['order_number']}.pdf"


@invoices_bp.route('/api/invoices/<order_id>', methods=['GET'])
def invoice_preview(order_id):
    """Everything the invoice screen shows, plus the WhatsApp share link"""
    return jsonify({'success': True, 'invoice': _invoice(order_id)})


@invoices_bp.route('/api/invoices/<order_id>/pdf', methods=['GET'])
def invoice_pdf(order_id):
    invoice = _invoice(order_id)
    return pdf_response(render_invoice_pdf(invoice), _pdf_name(invoice))


@invoices_bp.route('/api/invoices/<order_id>/drive', methods=['POST'])
def invoice_to_drive(order_id):
    """Render the PDF and store it in the invoices Drive folder"""
    invoice = _invoice(order_id)
    content = render_invoice_pdf(invoice)

    result = get_google().upload_to_drive(_pdf_name(invoice), content, 'application/pdf')
    logger.info(f"Invoice {invoice['order']['order_number']} archived in Drive")
    return jsonify(result)
