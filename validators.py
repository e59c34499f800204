"""
Request Validation for the ServiTech API
Validators return (is_valid, error_message); routes turn a failure into a 400
via app.utils.helpers.validation_error.
"""
import re
import os
from typing import Dict, Any, List, Optional, Tuple
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename
import logging

from database.models import ClientCategory, OrderStatus

logger = logging.getLogger(__name__)

Result = Tuple[bool, Optional[str]]

SPREADSHEET_EXTENSIONS = {'xlsx', 'xlsm'}
MAX_SPREADSHEET_SIZE = 10 * 1024 * 1024  # 10MB

MAX_CHAT_MESSAGE = 10000
MAX_CHAT_IMAGE = 8 * 1024 * 1024  # base64 characters
MIN_PASSWORD_LENGTH = 6

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
# Local numbers (7-10 digits) or international with country code
PHONE_PATTERN = re.compile(r'^\+?\d{7,15}$')
PHONE_SEPARATORS = re.compile(r'[\s\-().]')


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Result:
    """
    Check that every named field is present and not blank

    Args:
        data: Request payload
        required_fields: Field names that must carry a value

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing = [name for name in required_fields if _is_blank(data.get(name))]
    if missing:
        return False, f"Missing required fields: {', '.join(missing)}"
    return True, None


def validate_email(email: str) -> Result:
    if not isinstance(email, str) or not email:
        return False, "Email must be a non-empty string"
    if len(email) > 254:
        return False, "Email address too long"
    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"
    return True, None


def validate_phone(phone: str) -> Result:
    """Accepts spaces, dashes, dots and parentheses as separators"""
    if not isinstance(phone, str) or not phone:
        return False, "Phone must be a non-empty string"
    if not PHONE_PATTERN.match(PHONE_SEPARATORS.sub('', phone)):
        return False, "Invalid phone number format"
    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Result:
    if not isinstance(value, str):
        return False, "Value must be a string"
    if not min_length <= len(value) <= max_length:
        bound = f"minimum {min_length}" if len(value) < min_length else f"maximum {max_length}"
        return False, f"Value length out of range ({bound} characters)"
    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None,
                          max_value: Optional[float] = None) -> Result:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"
    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"
    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"
    return True, None


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """Strip NUL bytes and surrounding whitespace, then truncate"""
    if not isinstance(value, str):
        value = str(value)
    return value.replace('\x00', '').strip()[:max_length]


def sanitize_filename(filename: str) -> str:
    return secure_filename(filename or '') or 'file'


def validate_spreadsheet_upload(file: FileStorage) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Validate an Excel import upload

    Args:
        file: FileStorage from request.files

    Returns:
        Tuple of (is_valid, error_message, safe_filename)
    """
    if not file or not file.filename:
        return False, "No spreadsheet provided", None

    safe_name = sanitize_filename(file.filename)
    extension = safe_name.rsplit('.', 1)[1].lower() if '.' in safe_name else ''
    if extension not in SPREADSHEET_EXTENSIONS:
        allowed = ', '.join(sorted(SPREADSHEET_EXTENSIONS))
        return False, f"File type not allowed. Allowed types: {allowed}", None

    file.seek(0, os.SEEK_END)
    size = file.tell()
    file.seek(0)

    if size == 0:
        return False, "Spreadsheet is empty", None
    if size > MAX_SPREADSHEET_SIZE:
        return False, f"Spreadsheet too large (maximum {MAX_SPREADSHEET_SIZE // (1024 * 1024)}MB)", None

    logger.info(f"Spreadsheet accepted: {safe_name} ({size} bytes)")
    return True, None, safe_name




def _validate_optional_contact(data: Dict[str, Any]) -> Result:
    if data.get('email'):
        is_valid, error = validate_email(data['email'])
        if not is_valid:
            return False, f"Invalid email: {error}"

    if data.get('phone'):
        is_valid, error = validate_phone(str(data['phone']))
        if not is_valid:
            return False, f"Invalid phone: {error}"

    return True, None


def validate_client_request(data: Dict[str, Any], partial: bool = False) -> Result:
    """
    Validate client create/update data

    Args:
        data: Request data dictionary
        partial: True for updates, where no field is required

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not partial:
        is_valid, error = validate_required_fields(data, ['national_id', 'full_name'])
        if not is_valid:
            return False, error

    if data.get('full_name'):
        is_valid, error = validate_string_length(data['full_name'], min_length=2, max_length=255)
        if not is_valid:
            return False, f"Invalid full_name: {error}"

    if data.get('national_id'):
        is_valid, error = validate_string_length(str(data['national_id']), min_length=3, max_length=50)
        if not is_valid:
            return False, f"Invalid national_id: {error}"

    if data.get('category'):
        try:
            ClientCategory.parse(data['category'])
        except ValueError as e:
            return False, str(e)

    return _validate_optional_contact(data)


def validate_part_request(data: Dict[str, Any], partial: bool = False) -> Result:
    """
    Validate spare part create/update data

    Args:
        data: Request data dictionary
        partial: True for updates, where no field is required

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not partial:
        is_valid, error = validate_required_fields(data, ['code', 'name'])
        if not is_valid:
            return False, error
    else:
        for field in ('code', 'name'):
            if field in data and _is_blank(data[field]):
                return False, f"{field} cannot be empty"

    for field in ('stock_level', 'min_stock'):
        if data.get(field) not in (None, ''):
            if not isinstance(data[field], int) or isinstance(data[field], bool):
                return False, f"{field} must be an integer"
            is_valid, error = validate_number_range(data[field], min_value=0)
            if not is_valid:
                return False, f"Invalid {field}: {error}"

    for field in ('unit_cost', 'unit_price'):
        if data.get(field) not in (None, ''):
            is_valid, error = validate_number_range(data[field], min_value=0)
            if not is_valid:
                return False, f"Invalid {field}: {error}"

    return True, None


def validate_stock_request(data: Dict[str, Any]) -> Result:
    """Validate a stock change: exactly one of `quantity` (absolute) or `adjustment` (delta)"""
    has_quantity = data.get('quantity') is not None
    has_adjustment = data.get('adjustment') is not None
    if has_quantity == has_adjustment:
        return False, "Provide either quantity or adjustment"

    value = data['quantity'] if has_quantity else data['adjustment']
    if not isinstance(value, int) or isinstance(value, bool):
        return False, "Stock values must be integers"
    if has_quantity and value < 0:
        return False, "quantity cannot be negative"

    return True, None


def validate_order_status(value: Any) -> Result:
    """
    Validate a service order status literal

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        OrderStatus.parse(value)
    except ValueError as e:
        return False, str(e)
    return True, None


def validate_intake_request(data: Dict[str, Any]) -> Result:
    """Validate the new-service intake form"""
    is_valid, error = validate_required_fields(data, ['full_name', 'reported_issue'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data['reported_issue'], min_length=3, max_length=5000)
    if not is_valid:
        return False, f"Invalid reported_issue: {error}"

    return _validate_optional_contact(data)


def validate_finish_request(data: Dict[str, Any]) -> Result:
    """Validate the finish-order payload"""
    labor = data.get('labor_cost', 0)
    if not isinstance(labor, (int, float)) or isinstance(labor, bool):
        return False, "labor_cost must be a number"
    if labor < 0:
        return False, "labor_cost cannot be negative"

    parts = data.get('parts', [])
    if not isinstance(parts, list):
        return False, "parts must be an array"

    for idx, entry in enumerate(parts):
        if not isinstance(entry, dict) or not entry.get('part_id'):
            return False, f"Part {idx} must include part_id"
        quantity = entry.get('quantity', 1)
        if not isinstance(quantity, int) or quantity < 1:
            return False, f"Part {idx} quantity must be a positive integer"

    return True, None


def validate_ai_chat_request(data: Dict[str, Any]) -> Result:
    """
    Validate ServiBot chat request data

    Args:
        data: Request data dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_required_fields(data, ['message'])
    if not is_valid:
        return False, error

    is_valid, error = validate_string_length(data.get('message', ''), min_length=1, max_length=MAX_CHAT_MESSAGE)
    if not is_valid:
        return False, f"Invalid message: {error}"

    history = data.get('history', [])
    if not isinstance(history, list):
        return False, "history must be an array"
    for idx, turn in enumerate(history):
        if not isinstance(turn, dict) or turn.get('role') not in ('user', 'model'):
            return False, f"History entry {idx} must have role 'user' or 'model'"

    image = data.get('image')
    if image is not None:
        if not isinstance(image, str):
            return False, "image must be a base64 string"
        if len(image) > MAX_CHAT_IMAGE:
            return False, "image too large"

    return True, None


def validate_drive_upload_request(data: Dict[str, Any]) -> Result:
    """Validate a Drive upload action"""
    if not data.get('fileName') or not data.get('content'):
        return False, "Faltan datos: fileName o content"
    return True, None


def validate_calendar_event_request(event: Any) -> Result:
    """Validate calendar event data"""
    if not event or not isinstance(event, dict):
        return False, "Faltan datos del evento"
    is_valid, error = validate_required_fields(event, ['summary', 'start', 'end'])
    if not is_valid:
        return False, error
    return True, None


def validate_user_registration(data: Dict[str, Any]) -> Result:
    """Validate a sign-up request"""
    is_valid, error = validate_required_fields(data, ['email', 'password'])
    if not is_valid:
        return False, error

    is_valid, error = validate_email(data['email'])
    if not is_valid:
        return False, error

    if len(data['password']) < MIN_PASSWORD_LENGTH:
        return False, "Password must be at least 6 characters"

    return True, None
