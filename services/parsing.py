"""
Loose value parsing shared by the services.

Form posts and spreadsheet cells arrive as strings, numbers, dates or
blanks; these helpers turn them into the types the models store.
"""

from datetime import datetime, date, time

DATE_FORMATS = ('%Y-%m-%d', '%d/%m/%Y', '%d-%m-%Y', '%Y/%m/%d')
TIME_FORMATS = ('%H:%M', '%H:%M:%S', '%I:%M %p')


def parse_date(value):
    """Return a date, or None when the value is blank or unparseable."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if 'T' in text:
        text = text.split('T')[0]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_time(value, default='09:00'):
    """Return a time; blanks and unparseable input fall back to the default."""
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    text = str(value).strip() if value not in (None, '') else default
    for fmt in TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    return datetime.strptime(default, '%H:%M').time()


def parse_datetime(value):
    """Parse an ISO timestamp (with or without trailing Z) into a naive datetime."""
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time())
    text = str(value).strip().replace('Z', '+00:00')
    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        day = parse_date(text)
        return datetime.combine(day, time()) if day else None


def combine_schedule(day_value, time_value, default_time='09:00'):
    """Build the scheduled datetime from separate date and time inputs."""
    day = parse_date(day_value) or datetime.utcnow().date()
    return datetime.combine(day, parse_time(time_value, default_time))


def to_float(value, default=0.0):
    if value in (None, ''):
        return default
    try:
        return float(str(value).replace(',', '').replace('$', '').strip())
    except (TypeError, ValueError):
        return default


def to_int(value, default=0):
    if value in (None, ''):
        return default
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'si', 'sí', 'yes', 'x')
