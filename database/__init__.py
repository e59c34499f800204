"""
Database package for ServiTech Pro.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    init_engine,
    get_engine,
    get_db_session,
    init_db,
    check_db_connection
)

from database.models import (
    OrderStatus,
    ClientCategory,
    OrderPriority,
    ServiceType,
    UserRole,
    User,
    Client,
    Equipment,
    Technician,
    Part,
    ServiceOrder,
    OrderItem,
    StatusHistory,
    BusinessProfile
)

__all__ = [
    # Connection
    'Base',
    'init_engine',
    'get_engine',
    'get_db_session',
    'init_db',
    'check_db_connection',
    # Enumerations
    'OrderStatus',
    'ClientCategory',
    'OrderPriority',
    'ServiceType',
    'UserRole',
    # Models
    'User',
    'Client',
    'Equipment',
    'Technician',
    'Part',
    'ServiceOrder',
    'OrderItem',
    'StatusHistory',
    'BusinessProfile'
]
