"""
Tests for domain enumerations and model serialization
"""
import pytest
from datetime import datetime

from database.models import (
    OrderStatus, ClientCategory, OrderPriority, ServiceType, UserRole,
    Client, Part, OrderItem, BILLED_STATUSES
)


@pytest.mark.unit
class TestOrderStatus:
    """Tests for the service order status set"""

    def test_exactly_ten_statuses(self):
        assert OrderStatus.values() == [
            'PENDING', 'DIAGNOSIS', 'QUOTED', 'APPROVED', 'IN_PROGRESS',
            'WAITING_PARTS', 'COMPLETED', 'READY', 'DELIVERED', 'CANCELLED'
        ]

    @pytest.mark.parametrize('literal', [
        'PENDING', 'DIAGNOSIS', 'QUOTED', 'APPROVED', 'IN_PROGRESS',
        'WAITING_PARTS', 'COMPLETED', 'READY', 'DELIVERED', 'CANCELLED'
    ])
    def test_every_literal_parses(self, literal):
        assert OrderStatus.parse(literal).value == literal

    def test_parse_is_case_insensitive(self):
        assert OrderStatus.parse(' waiting_parts ') is OrderStatus.WAITING_PARTS

    @pytest.mark.parametrize('bad', ['DONE', 'IN PROGRESS', '', None, 3])
    def test_unknown_literal_rejected(self, bad):
        with pytest.raises(ValueError) as exc:
            OrderStatus.parse(bad)
        assert 'Allowed values' in str(exc.value)

    def test_billed_statuses(self):
        assert set(BILLED_STATUSES) == {OrderStatus.COMPLETED, OrderStatus.READY, OrderStatus.DELIVERED}


@pytest.mark.unit
class TestOtherEnumerations:
    """Tests for categories, priorities, service types and roles"""

    def test_client_categories(self):
        assert ClientCategory.values() == ['REGULAR', 'PREMIUM', 'ENTERPRISE']

    def test_priorities(self):
        assert OrderPriority.values() == ['LOW', 'NORMAL', 'HIGH', 'URGENT']

    def test_service_types(self):
        assert ServiceType.values() == ['REPAIR', 'MAINTENANCE', 'INSTALLATION', 'WARRANTY']

    def test_roles(self):
        assert UserRole.parse('ADMIN') is UserRole.ADMIN
        assert UserRole.values() == ['admin', 'technician', 'solo_technician']


@pytest.mark.unit
class TestModelHelpers:
    """Tests for computed model properties"""

    def test_client_initials(self):
        client = Client(full_name='María Fernanda López', national_id='1')
        assert client.initials == 'MF'

    def test_client_initials_empty_name(self):
        assert Client(full_name='', national_id='1').initials == ''

    def test_part_low_stock_at_minimum(self):
        assert Part(code='X', name='X', stock_level=2, min_stock=2).is_low_stock is True
        assert Part(code='X', name='X', stock_level=3, min_stock=2).is_low_stock is False

    def test_order_item_line_total(self):
        item = OrderItem(quantity=3, price_at_time=12500.0)
        assert item.line_total == 37500.0

    def test_client_to_dict_serializes_dates(self):
        client = Client(full_name='Ana', national_id='99', created_at=datetime(2024, 5, 1, 8, 0))
        data = client.to_dict()
        assert data['created_at'] == '2024-05-01T08:00:00'
        assert data['national_id'] == '99'
