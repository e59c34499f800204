"""
Helper functions shared by the route blueprints.
"""

import io
from datetime import datetime

from flask import current_app, request, jsonify, send_file

from services.export_service import XLSX_MIMETYPE


def get_json_body():
    """
    Parsed JSON body of the current request.

    Returns:
        The body as a dict, or an empty dict when missing or malformed
    """
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def validation_error(message, status=400):
    """JSON envelope for a rejected request."""
    return jsonify({'success': False, 'error': message}), status


def get_gemini():
    """GeminiService bound to the running app."""
    return current_app.extensions['gemini']


def get_google():
    """GoogleService bound to the running app."""
    return current_app.extensions['google']


def stamped_filename(prefix, extension):
    """
    Download filename carrying today's date.

    Example:
        stamped_filename('clientes', 'xlsx') -> 'clientes_2024-05-01.xlsx'
    """
    return f"{prefix}_{datetime.utcnow().strftime('%Y-%m-%d')}.{extension}"


def xlsx_response(content, filename):
    """Send workbook bytes as an attachment."""
    return send_file(
        io.BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=filename
    )


def pdf_response(content, filename):
    """Send PDF bytes as an attachment."""
    return send_file(
        io.BytesIO(content),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
