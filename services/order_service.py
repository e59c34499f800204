"""
Order Service - service-order workflow from intake to invoice.

Operations:
- create_intake: new-service form (client + equipment + order in one call)
- change_status: status update with audit trail
- finish_order: diagnosis, labor, parts consumed, totals
- invoice_data: everything the invoice screen and PDF need
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from database.models import (
    Client, Equipment, Part, OrderItem, OrderStatus, OrderPriority, ServiceType
)
from services.client_repository import ClientRepository, EquipmentRepository
from services.order_repository import OrderRepository
from services.business_profile_repository import BusinessProfileRepository
from services.exceptions import InvalidInputError, NotFoundError
from services.parsing import combine_schedule, to_float, to_int

logger = logging.getLogger(__name__)

MAINTENANCE_INTERVAL_MONTHS = 6


def add_months(value: datetime, months: int) -> datetime:
    """Same day-of-month N months later, clamped to the month's last day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    for day in (value.day, 30, 29, 28):
        try:
            return value.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    return value


def whatsapp_link(phone: str, message: str) -> str:
    digits = re.sub(r'\D', '', phone or '')
    return f"https://wa.me/{digits}?text={quote(message)}"


def _coerce(enum_cls, value, default):
    if not value:
        return default.value
    try:
        return enum_cls.parse(value).value
    except ValueError:
        return default.value


class OrderService:
    """Workflow operations spanning clients, equipment, orders and stock."""

    def __init__(self, session: Session, assistant=None):
        self.session = session
        self.orders = OrderRepository(session)
        self.clients = ClientRepository(session)
        self.equipment = EquipmentRepository(session)
        self.assistant = assistant

    def create_intake(self, data: Dict) -> Dict:
        """
        Register a new service from the intake form.

        Reuses the client (by id or national ID) and equipment when given,
        otherwise creates them, then inserts a PENDING order.

        Raises:
            InvalidInputError: If the client name or reported issue is missing
        """
        full_name = (data.get('full_name') or '').strip()
        issue = (data.get('reported_issue') or '').strip()
        if not full_name or not issue:
            raise InvalidInputError('Nombre del cliente y falla reportada son obligatorios')

        client_id = data.get('client_id')
        if client_id:
            if not self.session.query(Client).filter(Client.id == client_id).first():
                raise NotFoundError('Client', client_id)
        else:
            national_id = (data.get('national_id') or '').strip()
            existing = self.clients.get_by_national_id(national_id) if national_id else None
            if existing:
                client_id = existing['id']
            else:
                client = self.clients.create_client({
                    'national_id': national_id or f"TMP-{uuid.uuid4().hex[:12]}",
                    'full_name': full_name,
                    'phone': data.get('phone'),
                    'email': data.get('email'),
                    'address': data.get('address'),
                    'latitude': data.get('latitude'),
                    'longitude': data.get('longitude'),
                })
                client_id = client['id']

        equipment_id = data.get('equipment_id')
        if equipment_id:
            if not self.session.query(Equipment).filter(Equipment.id == equipment_id).first():
                raise NotFoundError('Equipment', equipment_id)
        else:
            equipment = self.equipment.create_equipment(client_id, {
                'type': data.get('appliance_type'),
                'brand': data.get('brand'),
                'model': data.get('model'),
                'serial_number': data.get('serial_number'),
            })
            equipment_id = equipment['id']

        order = self.orders.create_order({
            'client_id': client_id,
            'equipment_id': equipment_id,
            'technician_id': data.get('technician_id'),
            'status': OrderStatus.PENDING.value,
            'reported_issue': issue,
            'service_type': _coerce(ServiceType, data.get('service_type'), ServiceType.REPAIR),
            'priority': _coerce(OrderPriority, data.get('priority'), OrderPriority.NORMAL),
            'is_warranty': bool(data.get('is_warranty')),
            'scheduled_at': combine_schedule(data.get('date'), data.get('time')),
        })
        self.orders.add_history(order['id'], None, OrderStatus.PENDING.value, 'Orden creada',
                                data.get('changed_by_id'))
        logger.info(f"Intake registered: {order['order_number']}")
        return self.orders.get_order(order['id'])

    def change_status(self, order_id: str, status, changed_by_id: str = None,
                      comment: str = None) -> Dict:
        """
        Move an order to any status.

        Raises:
            ValueError: If the status is not a known literal
            NotFoundError: If the order does not exist
        """
        new_status = OrderStatus.parse(status)
        order = self.orders.get_model(order_id)
        old_status = order.status

        order.status = new_status.value
        if new_status == OrderStatus.COMPLETED and not order.completed_at:
            order.completed_at = datetime.utcnow()
        self.session.flush()

        self.orders.add_history(order_id, old_status, new_status.value, comment, changed_by_id)
        logger.info(f"Order {order.order_number}: {old_status} -> {new_status.value}")

        result = {'order': order.to_dict(include_relations=True)}
        if new_status == OrderStatus.WAITING_PARTS and self.assistant:
            result['suggested_message'] = self.assistant.waiting_parts_message(result['order'])
            result['whatsapp_link'] = whatsapp_link(
                (result['order'].get('client') or {}).get('phone'),
                result['suggested_message']
            )
        return result

    def finish_order(self, order_id: str, diagnosis: str, labor_cost,
                     parts: Optional[List[Dict]] = None, changed_by_id: str = None) -> Dict:
        """
        Close the technical work on an order.

        Each part entry is {'part_id', 'quantity', 'price'?}. Stock is
        decremented per part and never goes below zero.
        """
        order = self.orders.get_model(order_id)
        labor = to_float(labor_cost)
        parts_total = 0.0

        for entry in parts or []:
            part = self.session.query(Part).filter(Part.id == entry.get('part_id')).first()
            if not part:
                raise NotFoundError('Part', entry.get('part_id'))
            quantity = max(to_int(entry.get('quantity'), 1), 1)
            price = to_float(entry.get('price'), part.unit_price or 0)

            order.items.append(OrderItem(
                part_id=part.id,
                quantity=quantity,
                price_at_time=price
            ))
            part.stock_level = max((part.stock_level or 0) - quantity, 0)
            parts_total += quantity * price

        old_status = order.status
        now = datetime.utcnow()
        order.technical_diagnosis = diagnosis
        order.labor_cost = labor
        order.total_cost = labor + parts_total
        order.status = OrderStatus.COMPLETED.value
        order.completed_at = now
        order.next_maintenance_date = add_months(now, MAINTENANCE_INTERVAL_MONTHS)
        self.session.flush()

        self.orders.add_history(order.id, old_status, OrderStatus.COMPLETED.value,
                                'Servicio finalizado', changed_by_id)
        logger.info(f"Finished order {order.order_number}: total={order.total_cost}")
        return self.orders.get_order(order.id)

    def invoice_data(self, order_id: str) -> Dict:
        """Invoice payload: order, parties, line items and a WhatsApp share link."""
        order = self.orders.get_order(order_id)
        items = order.get('items', [])
        parts_subtotal = sum(item['line_total'] for item in items)
        profile = BusinessProfileRepository(self.session).get_profile()
        client = order.get('client') or {}

        message = (f"Hola {client.get('full_name', '')}, adjuntamos la factura de su servicio "
                   f"{order['order_number']} por un total de ${order['total_cost']:,.0f}. "
                   f"Gracias por confiar en {profile['name']}.")

        return {
            'order': order,
            'client': client,
            'equipment': order.get('equipment'),
            'technician': order.get('technician'),
            'items': items,
            'parts_subtotal': parts_subtotal,
            'labor_cost': order.get('labor_cost') or 0,
            'total': order.get('total_cost') or 0,
            'business': profile,
            'whatsapp_link': whatsapp_link(client.get('phone'), message),
        }
