"""
Tests for finance aggregates, the dashboard and the agenda
"""
import pytest
from datetime import date, datetime

from services.exceptions import InvalidInputError
from services.finance_service import FinanceService, period_bounds
from services.inventory_repository import InventoryRepository
from services.order_service import OrderService
from services.technician_repository import TechnicianRepository


@pytest.mark.unit
class TestPeriodBounds:
    """Tests for finance period windows"""

    def test_day(self):
        start, end = period_bounds('day', today=date(2024, 6, 12))
        assert start == datetime(2024, 6, 12)
        assert end == datetime(2024, 6, 13)

    def test_week_starts_on_monday(self):
        # 2024-06-12 is a Wednesday
        start, end = period_bounds('week', today=date(2024, 6, 12))
        assert start == datetime(2024, 6, 10)
        assert end == datetime(2024, 6, 17)

    def test_month(self):
        start, end = period_bounds('month', today=date(2024, 2, 20))
        assert start == datetime(2024, 2, 1)
        assert end == datetime(2024, 3, 1)

    def test_december_rolls_into_next_year(self):
        start, end = period_bounds('month', today=date(2024, 12, 5))
        assert end == datetime(2025, 1, 1)

    def test_custom_includes_end_date(self):
        start, end = period_bounds('custom', '2024-06-01', '2024-06-03')
        assert start == datetime(2024, 6, 1)
        assert end == datetime(2024, 6, 4)

    def test_custom_requires_both_bounds(self):
        with pytest.raises(InvalidInputError):
            period_bounds('custom', '2024-06-01', None)

    def test_custom_rejects_reversed_bounds(self):
        with pytest.raises(InvalidInputError):
            period_bounds('custom', '2024-06-05', '2024-06-01')

    def test_unknown_period(self):
        with pytest.raises(InvalidInputError):
            period_bounds('year')


@pytest.mark.integration
class TestFinanceSummary:
    """Tests for income summaries"""

    def test_only_billed_orders_count(self, db, sample_intake_data):
        service = OrderService(db)
        done = service.create_intake(sample_intake_data)
        service.finish_order(done['id'], 'Limpieza', 60000)
        open_order = service.create_intake(dict(sample_intake_data, serial_number='SN-2'))
        service.change_status(open_order['id'], 'IN_PROGRESS')

        summary = FinanceService(db).finance_summary('day')

        assert summary['income'] == 60000
        assert summary['order_count'] == 1
        assert summary['average_ticket'] == 60000
        assert len(summary['series']) == 1
        assert summary['series'][0]['total'] == 60000
        assert len(summary['recent_orders']) == 2

    def test_empty_period_has_zero_series(self, db):
        summary = FinanceService(db).finance_summary('custom', '2020-01-01', '2020-01-07')
        assert summary['income'] == 0
        assert summary['average_ticket'] == 0
        assert [p['date'] for p in summary['series']][0] == '2020-01-01'
        assert len(summary['series']) == 7


@pytest.mark.integration
class TestDashboardAndAgenda:
    """Tests for the dashboard counters and the daily agenda"""

    def test_dashboard_counters(self, db, sample_intake_data, sample_part_data):
        service = OrderService(db)
        first = service.create_intake(sample_intake_data)
        service.create_intake(dict(sample_intake_data, serial_number='SN-2'))
        service.finish_order(first['id'], 'Cambio', 80000)
        TechnicianRepository(db).create_technician({'full_name': 'Carlos Ruiz'})
        InventoryRepository(db).create_part(dict(sample_part_data, stock_level=1))

        summary = FinanceService(db).dashboard_summary()

        assert summary['billed_total'] == 80000
        assert summary['pending_orders'] == 1
        assert summary['completed_orders'] == 1
        assert summary['active_technicians'] == 1
        assert summary['low_stock_parts'] == 1

    def test_agenda_orders_by_time(self, db, sample_intake_data):
        service = OrderService(db)
        service.create_intake(dict(sample_intake_data, time='15:00', serial_number='SN-LATE'))
        service.create_intake(dict(sample_intake_data, time='08:00', serial_number='SN-EARLY'))
        service.create_intake(dict(sample_intake_data, date='2024-06-11', serial_number='SN-NEXT'))

        agenda = FinanceService(db).agenda(date(2024, 6, 10))

        assert agenda['count'] == 2
        assert [o['equipment']['serial_number'] for o in agenda['orders']] == ['SN-EARLY', 'SN-LATE']
        assert agenda['orders'][0]['technician_name'] is None
