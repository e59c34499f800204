"""
Service-layer exceptions.

Error handlers registered in security.py turn these into JSON responses.
"""

from typing import Optional, Dict, Any


class ServiceError(Exception):
    """Base exception for ServiTech service errors."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the JSON error envelope."""
        data = {'success': False, 'error': self.message}
        if self.details:
            data['details'] = self.details
        return data


class NotFoundError(ServiceError):
    """Raised when a record does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str = None):
        super().__init__(f"{entity} not found: {entity_id}" if entity_id else f"{entity} not found",
                         {'entity': entity, 'id': entity_id})


class DuplicateRecordError(ServiceError):
    """Raised when a unique business key already exists."""

    status_code = 409


class InvalidInputError(ServiceError):
    """Raised when a service receives input it cannot act on."""

    status_code = 400
