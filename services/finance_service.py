"""
Finance Service - dashboard counters, income summaries and the daily agenda.
"""

import logging
from datetime import datetime, date, timedelta
from typing import Dict, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from database.models import ServiceOrder, Technician, OrderStatus, BILLED_STATUSES
from services.exceptions import InvalidInputError
from services.inventory_repository import InventoryRepository
from services.order_repository import OrderRepository
from services.parsing import parse_date

logger = logging.getLogger(__name__)

PERIODS = ('day', 'week', 'month', 'custom')
OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.DIAGNOSIS, OrderStatus.IN_PROGRESS)


def period_bounds(period: str, start=None, end=None, today: date = None) -> Tuple[datetime, datetime]:
    """
    Half-open [start, end) window for a finance period.

    week starts on Monday; month on the 1st; custom needs both bounds
    (end date inclusive).
    """
    if period not in PERIODS:
        raise InvalidInputError(f"Invalid period '{period}'. Allowed: {', '.join(PERIODS)}")
    today = today or datetime.utcnow().date()

    if period == 'day':
        first, last = today, today
    elif period == 'week':
        first = today - timedelta(days=today.weekday())
        last = first + timedelta(days=6)
    elif period == 'month':
        first = today.replace(day=1)
        last = (first.replace(day=28) + timedelta(days=4)).replace(day=1) - timedelta(days=1)
    else:
        first, last = parse_date(start), parse_date(end)
        if not first or not last:
            raise InvalidInputError('Custom period requires start and end dates')
        if last < first:
            raise InvalidInputError('End date must not be before start date')

    return (datetime.combine(first, datetime.min.time()),
            datetime.combine(last + timedelta(days=1), datetime.min.time()))


class FinanceService:
    """Read-only aggregates over orders, technicians and stock."""

    def __init__(self, session: Session):
        self.session = session

    def _count(self, *statuses) -> int:
        return self.session.query(func.count(ServiceOrder.id)).filter(
            ServiceOrder.status.in_([s.value for s in statuses])
        ).scalar() or 0

    def dashboard_summary(self) -> Dict:
        """Headline numbers for the dashboard."""
        billed = self.session.query(func.coalesce(func.sum(ServiceOrder.total_cost), 0)).filter(
            ServiceOrder.status.in_([s.value for s in BILLED_STATUSES])
        ).scalar()
        active_techs = self.session.query(func.count(Technician.id)).filter(
            Technician.is_active == True  # noqa: E712
        ).scalar()

        today = datetime.utcnow().date()
        start = datetime.combine(today, datetime.min.time())
        todays_orders = OrderRepository(self.session).orders_scheduled_between(
            start, start + timedelta(days=1)
        )

        return {
            'billed_total': float(billed or 0),
            'pending_orders': self._count(*OPEN_STATUSES),
            'completed_orders': self._count(OrderStatus.COMPLETED),
            'active_technicians': active_techs or 0,
            'low_stock_parts': InventoryRepository(self.session).count_low_stock(),
            'today': todays_orders,
        }

    def finance_summary(self, period: str = 'week', start=None, end=None,
                        today: Optional[date] = None) -> Dict:
        """Income from orders completed inside the period, with a per-day series."""
        window_start, window_end = period_bounds(period, start, end, today)

        orders = self.session.query(ServiceOrder).filter(
            ServiceOrder.completed_at >= window_start,
            ServiceOrder.completed_at < window_end,
            ServiceOrder.status.in_([s.value for s in BILLED_STATUSES])
        ).all()

        series = {}
        day = window_start.date()
        while day < window_end.date():
            series[day.isoformat()] = 0.0
            day += timedelta(days=1)
        for order in orders:
            key = order.completed_at.date().isoformat()
            series[key] = series.get(key, 0.0) + (order.total_cost or 0)

        recent = self.session.query(ServiceOrder).options(
            joinedload(ServiceOrder.client)
        ).order_by(ServiceOrder.created_at.desc()).limit(10).all()

        income = sum(o.total_cost or 0 for o in orders)
        logger.info(f"Finance summary {period}: {len(orders)} orders, income={income}")
        return {
            'period': period,
            'start': window_start.date().isoformat(),
            'end': (window_end - timedelta(days=1)).date().isoformat(),
            'income': income,
            'order_count': len(orders),
            'average_ticket': income / len(orders) if orders else 0,
            'series': [{'date': k, 'total': v} for k, v in sorted(series.items())],
            'recent_orders': [o.to_dict(include_relations=True) for o in recent],
        }

    def agenda(self, day: date = None) -> Dict:
        """Orders scheduled on a date, in time order."""
        day = day or datetime.utcnow().date()
        start = datetime.combine(day, datetime.min.time())
        orders = OrderRepository(self.session).orders_scheduled_between(
            start, start + timedelta(days=1)
        )
        for order in orders:
            order['technician_name'] = (order.get('technician') or {}).get('full_name')
        return {'date': day.isoformat(), 'orders': orders, 'count': len(orders)}
