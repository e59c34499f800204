"""
Utilities Package

Shared helper functions used across the route blueprints.
"""

from app.utils.helpers import (
    get_json_body,
    validation_error,
    get_gemini,
    get_google,
    stamped_filename,
    xlsx_response,
    pdf_response,
)

__all__ = [
    'get_json_body',
    'validation_error',
    'get_gemini',
    'get_google',
    'stamped_filename',
    'xlsx_response',
    'pdf_response',
]
