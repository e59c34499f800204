"""
Services package for ServiTech Pro.
Contains repository classes for database access and the workflow,
finance, import/export, AI and Google services built on them.
"""

from services.exceptions import ServiceError, NotFoundError, DuplicateRecordError, InvalidInputError
from services.client_repository import ClientRepository, EquipmentRepository
from services.technician_repository import TechnicianRepository
from services.inventory_repository import InventoryRepository
from services.order_repository import OrderRepository
from services.users_repository import UsersRepository
from services.business_profile_repository import BusinessProfileRepository
from services.order_service import OrderService
from services.finance_service import FinanceService
from services.import_service import ImportService, ImportFileError
from services.ai_chat_service import ServiBotChatService
from services.google_service import GoogleService, GoogleServiceError

__all__ = [
    'ServiceError',
    'NotFoundError',
    'DuplicateRecordError',
    'InvalidInputError',
    'ClientRepository',
    'EquipmentRepository',
    'TechnicianRepository',
    'InventoryRepository',
    'OrderRepository',
    'UsersRepository',
    'BusinessProfileRepository',
    'OrderService',
    'FinanceService',
    'ImportService',
    'ImportFileError',
    'ServiBotChatService',
    'GoogleService',
    'GoogleServiceError',
]
