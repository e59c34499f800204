"""
SQLAlchemy models for ServiTech Pro.
Defines the core tables for clients, equipment, service orders, inventory and staff.
"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime, Date,
    ForeignKey, JSON, Index
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# ENUMERATIONS
# =============================================================================

class _StrEnum(str, enum.Enum):
    """String-valued enum that parses its own literals."""

    @classmethod
    def parse(cls, value):
        """
        Return the member matching a literal (case-insensitive).

        Raises:
            ValueError: If the value is not one of the allowed literals
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            candidate = value.strip()
            for member in cls:
                if member.value.lower() == candidate.lower():
                    return member
        allowed = ', '.join(m.value for m in cls)
        raise ValueError(f"Invalid {cls.__name__} '{value}'. Allowed values: {allowed}")

    @classmethod
    def values(cls):
        return [m.value for m in cls]


class OrderStatus(_StrEnum):
    """Service order lifecycle. Any status may follow any other."""
    PENDING = 'PENDING'              # Received, not assigned
    DIAGNOSIS = 'DIAGNOSIS'          # Technician evaluating
    QUOTED = 'QUOTED'                # Quote sent to client
    APPROVED = 'APPROVED'            # Client accepted the repair
    IN_PROGRESS = 'IN_PROGRESS'      # Under repair
    WAITING_PARTS = 'WAITING_PARTS'  # Waiting on supplier parts
    COMPLETED = 'COMPLETED'          # Technical work finished
    READY = 'READY'                  # Ready for delivery / payment
    DELIVERED = 'DELIVERED'          # Delivered and closed
    CANCELLED = 'CANCELLED'


# Statuses whose total_cost counts as billed income
BILLED_STATUSES = (OrderStatus.COMPLETED, OrderStatus.READY, OrderStatus.DELIVERED)


class ClientCategory(_StrEnum):
    REGULAR = 'REGULAR'
    PREMIUM = 'PREMIUM'
    ENTERPRISE = 'ENTERPRISE'


class OrderPriority(_StrEnum):
    LOW = 'LOW'
    NORMAL = 'NORMAL'
    HIGH = 'HIGH'
    URGENT = 'URGENT'


class ServiceType(_StrEnum):
    REPAIR = 'REPAIR'
    MAINTENANCE = 'MAINTENANCE'
    INSTALLATION = 'INSTALLATION'
    WARRANTY = 'WARRANTY'


class UserRole(_StrEnum):
    ADMIN = 'admin'
    TECHNICIAN = 'technician'
    SOLO_TECHNICIAN = 'solo_technician'


# =============================================================================
# USERS & AUTHENTICATION
# =============================================================================

class User(Base):
    """Application users (office staff and technicians) who can sign in."""
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default=UserRole.SOLO_TECHNICIAN.value)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, include_sensitive=False):
        data = {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'is_active': self.is_active,
            'last_login': _iso(self.last_login),
            'created_at': _iso(self.created_at),
        }
        if include_sensitive:
            data['password_hash'] = self.password_hash
        return data


# =============================================================================
# CLIENTS & EQUIPMENT
# =============================================================================

class Client(Base):
    """Client records, identified by their national ID (cédula, DNI, NIT)."""
    __tablename__ = 'clients'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    national_id = Column(String(50), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), default='')
    email = Column(String(255))
    address = Column(Text, default='')
    latitude = Column(Float)
    longitude = Column(Float)
    category = Column(String(20), default=ClientCategory.REGULAR.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    equipment = relationship("Equipment", back_populates="client")
    service_orders = relationship("ServiceOrder", back_populates="client")

    __table_args__ = (
        Index('ix_clients_full_name', 'full_name'),
    )

    @property
    def initials(self):
        parts = [p for p in (self.full_name or '').split(' ') if p]
        return ''.join(p[0] for p in parts)[:2].upper()

    def to_dict(self):
        return {
            'id': self.id,
            'national_id': self.national_id,
            'full_name': self.full_name,
            'initials': self.initials,
            'phone': self.phone,
            'email': self.email,
            'address': self.address,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'category': self.category,
            'created_at': _iso(self.created_at),
        }


class Equipment(Base):
    """An appliance owned by a client."""
    __tablename__ = 'equipment'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    client_id = Column(String(36), ForeignKey('clients.id'), nullable=False)
    type = Column(String(100), default='Otros')
    brand = Column(String(100), default='Genérica')
    model = Column(String(100), default='Estandar')
    serial_number = Column(String(100), unique=True)
    purchase_date = Column(Date)
    specs = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client", back_populates="equipment")
    service_orders = relationship("ServiceOrder", back_populates="equipment")

    __table_args__ = (
        Index('ix_equipment_client', 'client_id'),
    )

    @property
    def label(self):
        return f"{self.type or ''} {self.brand or ''}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'client_id': self.client_id,
            'type': self.type,
            'brand': self.brand,
            'model': self.model,
            'serial_number': self.serial_number,
            'purchase_date': _iso(self.purchase_date),
            'specs': self.specs or {},
            'created_at': _iso(self.created_at),
        }


# =============================================================================
# STAFF
# =============================================================================

class Technician(Base):
    """Field technician assignable to service orders."""
    __tablename__ = 'technicians'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    full_name = Column(String(255), nullable=False)
    specialty = Column(String(100), default='')
    phone = Column(String(50), default='')
    commission_rate = Column(Float, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    service_orders = relationship("ServiceOrder", back_populates="technician")

    def to_dict(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'specialty': self.specialty,
            'phone': self.phone,
            'commission_rate': self.commission_rate,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
        }


# =============================================================================
# INVENTORY
# =============================================================================

class Part(Base):
    """Spare part kept in stock."""
    __tablename__ = 'parts'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(100), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    location = Column(String(100))
    stock_level = Column(Integer, default=0)
    min_stock = Column(Integer, default=0)
    unit_cost = Column(Float, default=0)
    unit_price = Column(Float, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_parts_name', 'name'),
    )

    @property
    def is_low_stock(self):
        return (self.stock_level or 0) <= (self.min_stock or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'name': self.name,
            'description': self.description,
            'location': self.location,
            'stock_level': self.stock_level,
            'min_stock': self.min_stock,
            'unit_cost': self.unit_cost,
            'unit_price': self.unit_price,
            'is_low_stock': self.is_low_stock,
            'updated_at': _iso(self.updated_at),
        }


# =============================================================================
# SERVICE ORDERS
# =============================================================================

class ServiceOrder(Base):
    """A unit of repair work tracked from intake to delivery."""
    __tablename__ = 'service_orders'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_number = Column(String(50), unique=True, nullable=False)
    client_id = Column(String(36), ForeignKey('clients.id'), nullable=False)
    equipment_id = Column(String(36), ForeignKey('equipment.id'), nullable=False)
    technician_id = Column(String(36), ForeignKey('technicians.id'))
    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False)
    reported_issue = Column(Text, default='')
    technical_diagnosis = Column(Text)
    service_type = Column(String(20), default=ServiceType.REPAIR.value)
    priority = Column(String(20), default=OrderPriority.NORMAL.value)
    labor_cost = Column(Float, default=0)
    total_cost = Column(Float, default=0)
    is_warranty = Column(Boolean, default=False)
    scheduled_at = Column(DateTime)
    completed_at = Column(DateTime)
    next_maintenance_date = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    client = relationship("Client", back_populates="service_orders")
    equipment = relationship("Equipment", back_populates="service_orders")
    technician = relationship("Technician", back_populates="service_orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    history = relationship("StatusHistory", back_populates="order",
                           cascade="all, delete-orphan", order_by="StatusHistory.changed_at")

    __table_args__ = (
        Index('ix_service_orders_status', 'status'),
        Index('ix_service_orders_scheduled', 'scheduled_at'),
        Index('ix_service_orders_client', 'client_id'),
    )

    def to_dict(self, include_relations=False):
        data = {
            'id': self.id,
            'order_number': self.order_number,
            'client_id': self.client_id,
            'equipment_id': self.equipment_id,
            'technician_id': self.technician_id,
            'status': self.status,
            'reported_issue': self.reported_issue,
            'technical_diagnosis': self.technical_diagnosis,
            'service_type': self.service_type,
            'priority': self.priority,
            'labor_cost': self.labor_cost,
            'total_cost': self.total_cost,
            'is_warranty': self.is_warranty,
            'scheduled_at': _iso(self.scheduled_at),
            'completed_at': _iso(self.completed_at),
            'next_maintenance_date': _iso(self.next_maintenance_date),
            'created_at': _iso(self.created_at),
        }
        if include_relations:
            data['client'] = self.client.to_dict() if self.client else None
            data['equipment'] = self.equipment.to_dict() if self.equipment else None
            data['technician'] = self.technician.to_dict() if self.technician else None
            data['items'] = [item.to_dict() for item in self.items]
        return data


class OrderItem(Base):
    """Part consumed by an order, priced at the moment it was added."""
    __tablename__ = 'order_items'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey('service_orders.id'), nullable=False)
    part_id = Column(String(36), ForeignKey('parts.id'), nullable=False)
    quantity = Column(Integer, default=1)
    price_at_time = Column(Float, default=0)

    order = relationship("ServiceOrder", back_populates="items")
    part = relationship("Part")

    @property
    def line_total(self):
        return (self.quantity or 0) * (self.price_at_time or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'part_id': self.part_id,
            'part': {'id': self.part.id, 'name': self.part.name, 'code': self.part.code} if self.part else None,
            'quantity': self.quantity,
            'price_at_time': self.price_at_time,
            'line_total': self.line_total,
        }


class StatusHistory(Base):
    """Audit trail of status changes on a service order."""
    __tablename__ = 'status_history'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey('service_orders.id'), nullable=False)
    status_from = Column(String(20))
    status_to = Column(String(20), nullable=False)
    comment = Column(Text)
    changed_by_id = Column(String(36), ForeignKey('users.id'))
    changed_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("ServiceOrder", back_populates="history")

    __table_args__ = (
        Index('ix_status_history_order', 'order_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'status_from': self.status_from,
            'status_to': self.status_to,
            'comment': self.comment,
            'changed_by_id': self.changed_by_id,
            'changed_at': _iso(self.changed_at),
        }


# =============================================================================
# BUSINESS PROFILE
# =============================================================================

class BusinessProfile(Base):
    """Company identity printed on invoices; a single row."""
    __tablename__ = 'business_profiles'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    tax_id = Column(String(50))
    address = Column(Text)
    phone = Column(String(50))
    email = Column(String(255))
    website = Column(String(255))
    payment_methods = Column(JSON, default=list)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'tax_id': self.tax_id,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'website': self.website,
            'payment_methods': self.payment_methods or [],
            'updated_at': _iso(self.updated_at),
        }
