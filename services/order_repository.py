"""
Order Repository - Database access layer for service orders.
"""

import logging
from datetime import datetime, date, timedelta
from typing import List, Optional, Dict
from sqlalchemy.orm import Session, joinedload

from database.models import ServiceOrder, OrderStatus, OrderPriority, ServiceType, StatusHistory
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)

# Status changes go through OrderService.change_status
ORDER_FIELDS = ['client_id', 'equipment_id', 'technician_id', 'reported_issue',
                'technical_diagnosis', 'service_type', 'priority', 'labor_cost',
                'total_cost', 'is_warranty', 'scheduled_at', 'completed_at',
                'next_maintenance_date']


class OrderRepository:
    """Repository for service order database operations."""

    def __init__(self, session: Session):
        self.session = session

    def get_model(self, order_id: str) -> ServiceOrder:
        order = self.session.query(ServiceOrder).options(
            joinedload(ServiceOrder.client),
            joinedload(ServiceOrder.equipment),
            joinedload(ServiceOrder.technician)
        ).filter(ServiceOrder.id == order_id).first()
        if not order:
            raise NotFoundError('Service order', order_id)
        return order

    def next_order_number(self, suffix: str = '') -> str:
        """Next ORD-<year>-<seq> number for the current calendar year."""
        year = datetime.utcnow().year
        prefix = f"ORD-{year}-"
        existing = self.session.query(ServiceOrder.order_number).filter(
            ServiceOrder.order_number.like(f"{prefix}%")
        ).all()

        highest = 0
        for (number,) in existing:
            seq = number[len(prefix):].split('-')[0]
            if seq.isdigit():
                highest = max(highest, int(seq))
        return f"{prefix}{highest + 1:04d}{suffix}"

    def list_orders(self, status: str = None, technician_id: str = None,
                    day: date = None, client_id: str = None) -> List[Dict]:
        """List orders with optional filters, newest first."""
        query = self.session.query(ServiceOrder).options(
            joinedload(ServiceOrder.client),
            joinedload(ServiceOrder.equipment),
            joinedload(ServiceOrder.technician)
        )
        if status:
            query = query.filter(ServiceOrder.status == OrderStatus.parse(status).value)
        if technician_id:
            query = query.filter(ServiceOrder.technician_id == technician_id)
        if client_id:
            query = query.filter(ServiceOrder.client_id == client_id)
        if day:
            start = datetime.combine(day, datetime.min.time())
            query = query.filter(ServiceOrder.scheduled_at >= start,
                                 ServiceOrder.scheduled_at < start + timedelta(days=1))

        orders = query.order_by(ServiceOrder.created_at.desc()).all()
        return [o.to_dict(include_relations=True) for o in orders]

    def get_order(self, order_id: str) -> Dict:
        """Get an order with client, equipment, technician and items."""
        return self.get_model(order_id).to_dict(include_relations=True)

    def create_order(self, data: Dict, number_suffix: str = '') -> Dict:
        """Create a new order with a generated order number."""
        order = ServiceOrder(
            order_number=self.next_order_number(number_suffix),
            client_id=data['client_id'],
            equipment_id=data['equipment_id'],
            technician_id=data.get('technician_id') or None,
            status=OrderStatus.parse(data.get('status') or OrderStatus.PENDING).value,
            reported_issue=data.get('reported_issue', ''),
            service_type=data.get('service_type') or ServiceType.REPAIR.value,
            priority=data.get('priority') or OrderPriority.NORMAL.value,
            labor_cost=data.get('labor_cost') or 0,
            total_cost=data.get('total_cost') or 0,
            is_warranty=bool(data.get('is_warranty', False)),
            scheduled_at=data.get('scheduled_at')
        )
        self.session.add(order)
        self.session.flush()
        logger.info(f"Created service order: {order.order_number}")
        return order.to_dict()

    def update_order(self, order_id: str, data: Dict) -> Dict:
        """Update an order's stored fields."""
        order = self.get_model(order_id)
        for key in ORDER_FIELDS:
            if key in data:
                setattr(order, key, data[key])
        self.session.flush()
        logger.info(f"Updated service order: {order_id}")
        return order.to_dict()

    def add_history(self, order_id: str, status_from: Optional[str], status_to: str,
                    comment: str = None, changed_by_id: str = None) -> Dict:
        entry = StatusHistory(
            order_id=order_id,
            status_from=status_from,
            status_to=status_to,
            comment=comment,
            changed_by_id=changed_by_id
        )
        self.session.add(entry)
        self.session.flush()
        return entry.to_dict()

    def get_history(self, order_id: str) -> List[Dict]:
        self.get_model(order_id)
        entries = self.session.query(StatusHistory).filter(
            StatusHistory.order_id == order_id
        ).order_by(StatusHistory.changed_at).all()
        return [e.to_dict() for e in entries]

    def recent_orders(self, limit: int = 5) -> List[Dict]:
        orders = self.session.query(ServiceOrder).options(
            joinedload(ServiceOrder.client),
            joinedload(ServiceOrder.equipment)
        ).order_by(ServiceOrder.created_at.desc()).limit(limit).all()
        return [o.to_dict(include_relations=True) for o in orders]

    def orders_scheduled_between(self, start: datetime, end: datetime) -> List[Dict]:
        orders = self.session.query(ServiceOrder).options(
            joinedload(ServiceOrder.client),
            joinedload(ServiceOrder.equipment),
            joinedload(ServiceOrder.technician)
        ).filter(
            ServiceOrder.scheduled_at >= start,
            ServiceOrder.scheduled_at < end
        ).order_by(ServiceOrder.scheduled_at).all()
        return [o.to_dict(include_relations=True) for o in orders]
