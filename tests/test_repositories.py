"""
Tests for the repository layer (clients, equipment, technicians, parts, orders, users)
"""
import pytest
from datetime import datetime

from database.models import Client, OrderStatus
from services.client_repository import ClientRepository, EquipmentRepository
from services.technician_repository import TechnicianRepository
from services.inventory_repository import InventoryRepository
from services.order_repository import OrderRepository
from services.order_service import OrderService
from services.users_repository import UsersRepository
from services.business_profile_repository import BusinessProfileRepository
from services.exceptions import NotFoundError, DuplicateRecordError, InvalidInputError


@pytest.mark.integration
class TestClientRepository:
    """Tests for client persistence"""

    def test_create_and_get(self, db, sample_client_data):
        repo = ClientRepository(db)
        created = repo.create_client(sample_client_data)
        fetched = repo.get_client(created['id'])
        assert fetched['full_name'] == 'María Fernanda López'
        assert fetched['category'] == 'REGULAR'
        assert fetched['initials'] == 'MF'

    def test_create_duplicate_national_id_rejected(self, db, sample_client_data):
        repo = ClientRepository(db)
        repo.create_client(sample_client_data)
        with pytest.raises(DuplicateRecordError) as exc:
            repo.create_client(sample_client_data)
        assert exc.value.status_code == 409
        assert '1144556677' in exc.value.message

    def test_upsert_duplicate_national_id_updates(self, db, sample_client_data):
        repo = ClientRepository(db)
        first = repo.upsert_client(sample_client_data)
        second = repo.upsert_client({
            'national_id': '1144556677',
            'full_name': 'María F. López',
            'phone': '3119998877',
        })

        assert second['id'] == first['id']
        assert second['full_name'] == 'María F. López'
        assert second['phone'] == '3119998877'
        assert second['email'] == 'maria@example.com'
        assert db.query(Client).filter(Client.national_id == '1144556677').count() == 1

    def test_search_by_name_and_id(self, db, sample_client_data):
        repo = ClientRepository(db)
        repo.create_client(sample_client_data)
        repo.create_client({'national_id': '2233', 'full_name': 'Pedro Gómez'})

        assert [c['full_name'] for c in repo.list_clients('fernanda')] == ['María Fernanda López']
        assert [c['full_name'] for c in repo.list_clients('2233')] == ['Pedro Gómez']
        assert len(repo.list_clients()) == 2

    def test_invalid_category_falls_back_to_regular(self, db):
        client = ClientRepository(db).create_client(
            {'national_id': '55', 'full_name': 'Empresa', 'category': 'GOLD'}
        )
        assert client['category'] == 'REGULAR'

    def test_get_missing_client(self, db):
        with pytest.raises(NotFoundError):
            ClientRepository(db).get_client('missing')

    def test_update_only_writes_non_empty_fields(self, db, sample_client_data):
        repo = ClientRepository(db)
        client = repo.create_client(sample_client_data)
        updated = repo.update_client(client['id'], {'phone': '3200000000', 'address': ''})
        assert updated['phone'] == '3200000000'
        assert updated['address'] == 'Calle 5 # 10-20, Cali'

    def test_profile_includes_equipment_and_history(self, db, sample_client_data):
        client = ClientRepository(db).create_client(sample_client_data)
        equipment = EquipmentRepository(db).create_equipment(client['id'], {'type': 'Lavadora'})
        OrderRepository(db).create_order({
            'client_id': client['id'],
            'equipment_id': equipment['id'],
            'reported_issue': 'No centrifuga',
            'scheduled_at': datetime(2024, 6, 1, 9, 0),
        })

        profile = ClientRepository(db).get_profile(client['id'])
        assert [e['type'] for e in profile['equipment']] == ['Lavadora']
        assert profile['history'][0]['reported_issue'] == 'No centrifuga'

        listed = ClientRepository(db).list_clients()[0]
        assert listed['last_appliance'] == 'Lavadora'
        assert listed['last_service_date'].startswith('2024-06-01')


@pytest.mark.integration
class TestEquipmentRepository:
    """Tests for equipment persistence"""

    def test_defaults_applied(self, db, sample_client_data):
        client = ClientRepository(db).create_client(sample_client_data)
        equipment = EquipmentRepository(db).create_equipment(client['id'], {})
        assert (equipment['type'], equipment['brand'], equipment['model']) == ('Otros', 'Genérica', 'Estandar')

    def test_duplicate_serial_rejected(self, db, sample_client_data):
        client = ClientRepository(db).create_client(sample_client_data)
        repo = EquipmentRepository(db)
        repo.create_equipment(client['id'], {'serial_number': 'SN-1'})
        with pytest.raises(DuplicateRecordError):
            repo.create_equipment(client['id'], {'serial_number': 'SN-1'})

    def test_upsert_generates_serial(self, db, sample_client_data):
        client = ClientRepository(db).create_client(sample_client_data)
        equipment = EquipmentRepository(db).upsert_equipment(client['id'], {'type': 'Horno'})
        assert equipment['serial_number'].startswith('SN-AUTO-')

    def test_upsert_matches_serial(self, db, sample_client_data):
        client = ClientRepository(db).create_client(sample_client_data)
        repo = EquipmentRepository(db)
        first = repo.upsert_equipment(client['id'], {'serial_number': 'SN-9', 'brand': 'LG'})
        second = repo.upsert_equipment(client['id'], {'serial_number': 'SN-9', 'brand': 'Mabe'})
        assert first['id'] == second['id']
        assert second['brand'] == 'Mabe'

    def test_equipment_for_missing_client(self, db):
        with pytest.raises(NotFoundError):
            EquipmentRepository(db).create_equipment('missing', {})


@pytest.mark.integration
class TestTechnicianRepository:
    """Tests for technician persistence"""

    def test_delete_without_orders(self, db):
        repo = TechnicianRepository(db)
        tech = repo.create_technician({'full_name': 'Carlos Ruiz', 'specialty': 'Refrigeración'})
        assert repo.delete_technician(tech['id']) is True
        with pytest.raises(NotFoundError):
            repo.get_technician(tech['id'])

    def test_delete_with_orders_deactivates(self, db, sample_client_data):
        tech = TechnicianRepository(db).create_technician({'full_name': 'Carlos Ruiz'})
        client = ClientRepository(db).create_client(sample_client_data)
        equipment = EquipmentRepository(db).create_equipment(client['id'], {})
        OrderRepository(db).create_order({
            'client_id': client['id'], 'equipment_id': equipment['id'], 'technician_id': tech['id']
        })

        repo = TechnicianRepository(db)
        assert repo.delete_technician(tech['id']) is False
        assert repo.get_technician(tech['id'])['is_active'] is False

    def test_active_filter(self, db):
        repo = TechnicianRepository(db)
        active = repo.create_technician({'full_name': 'Ana'})
        inactive = repo.create_technician({'full_name': 'Beto'})
        repo.set_active(inactive['id'], False)
        assert [t['id'] for t in repo.list_technicians(active_only=True)] == [active['id']]


@pytest.mark.integration
class TestInventoryRepository:
    """Tests for spare part persistence and stock"""

    def test_create_requires_name_and_code(self, db):
        with pytest.raises(InvalidInputError):
            InventoryRepository(db).create_part({'name': 'Motor'})

    @pytest.mark.parametrize('changes', [{'name': None}, {'code': ''}, {'code': '   '}])
    def test_update_rejects_blank_name_or_code(self, db, sample_part_data, changes):
        repo = InventoryRepository(db)
        part = repo.create_part(sample_part_data)
        with pytest.raises(InvalidInputError):
            repo.update_part(part['id'], changes)

    def test_duplicate_code_rejected(self, db, sample_part_data):
        repo = InventoryRepository(db)
        repo.create_part(sample_part_data)
        with pytest.raises(DuplicateRecordError):
            repo.create_part(sample_part_data)

    def test_stock_never_negative(self, db, sample_part_data):
        repo = InventoryRepository(db)
        part = repo.create_part(sample_part_data)
        assert repo.adjust_stock(part['id'], -4)['stock_level'] == 6
        assert repo.adjust_stock(part['id'], -50)['stock_level'] == 0
        assert repo.set_stock(part['id'], -3)['stock_level'] == 0

    def test_find_by_code_exact_then_partial(self, db, sample_part_data):
        repo = InventoryRepository(db)
        repo.create_part(sample_part_data)
        assert repo.find_by_code('RP-TERM-01')['name'] == 'Termostato nevera'
        assert repo.find_by_code('TERM')['code'] == 'RP-TERM-01'
        assert repo.find_by_code('NOPE') is None
        assert repo.find_by_code('  ') is None

    def test_low_stock(self, db, sample_part_data):
        repo = InventoryRepository(db)
        repo.create_part(sample_part_data)
        low = repo.create_part({'code': 'RP-2', 'name': 'Correa', 'stock_level': 1, 'min_stock': 3})
        assert [p['id'] for p in repo.get_low_stock_parts()] == [low['id']]
        assert repo.count_low_stock() == 1

    def test_stock_value(self, db, sample_part_data):
        repo = InventoryRepository(db)
        repo.create_part(sample_part_data)
        value = repo.get_stock_value()
        assert value['total_quantity'] == 10
        assert value['total_cost_value'] == 200000
        assert value['total_retail_value'] == 350000
        assert value['potential_profit'] == 150000


@pytest.mark.integration
class TestOrderRepository:
    """Tests for order numbering and history"""

    def _order(self, db, suffix=''):
        client = ClientRepository(db).upsert_client({'national_id': '77', 'full_name': 'Luis'})
        equipment = EquipmentRepository(db).upsert_equipment(client['id'], {})
        return OrderRepository(db).create_order(
            {'client_id': client['id'], 'equipment_id': equipment['id']}, number_suffix=suffix
        )

    def test_order_numbers_increment(self, db):
        year = datetime.utcnow().year
        first = self._order(db)
        second = self._order(db)
        imported = self._order(db, suffix='-IMP')
        assert first['order_number'] == f"ORD-{year}-0001"
        assert second['order_number'] == f"ORD-{year}-0002"
        assert imported['order_number'] == f"ORD-{year}-0003-IMP"

    def test_default_status_pending(self, db):
        assert self._order(db)['status'] == OrderStatus.PENDING.value

    def test_history_in_order(self, db):
        order = self._order(db)
        repo = OrderRepository(db)
        repo.add_history(order['id'], None, 'PENDING', 'Orden creada')
        repo.add_history(order['id'], 'PENDING', 'DIAGNOSIS')
        history = repo.get_history(order['id'])
        assert [h['status_to'] for h in history] == ['PENDING', 'DIAGNOSIS']

    def test_update_order_leaves_status_alone(self, db):
        order = self._order(db)
        repo = OrderRepository(db)
        updated = repo.update_order(order['id'], {'status': 'DELIVERED', 'labor_cost': 50000})
        assert updated['status'] == OrderStatus.PENDING.value
        assert updated['labor_cost'] == 50000
        assert repo.get_history(order['id']) == []

    def test_list_filters_by_status(self, db):
        order = self._order(db)
        repo = OrderRepository(db)
        OrderService(db).change_status(order['id'], 'READY')
        self._order(db)
        assert [o['id'] for o in repo.list_orders(status='ready')] == [order['id']]


@pytest.mark.integration
class TestUsersRepository:
    """Tests for users and authentication"""

    def test_create_and_authenticate(self, db):
        repo = UsersRepository(db)
        user = repo.create_user({'email': 'Tec@Example.com', 'password': 'clave123'})
        assert user['email'] == 'tec@example.com'
        assert user['role'] == 'solo_technician'
        assert 'password_hash' not in user

        assert repo.authenticate('tec@example.com', 'clave123')['id'] == user['id']
        assert repo.authenticate('tec@example.com', 'wrong') is None

    def test_password_is_hashed_with_pbkdf2(self, db):
        UsersRepository(db).create_user({'email': 'a@b.co', 'password': 'clave123'})
        model = UsersRepository(db).get_user_by_email('a@b.co')
        assert model.password_hash.startswith('pbkdf2:sha256')

    def test_duplicate_email(self, db):
        repo = UsersRepository(db)
        repo.create_user({'email': 'a@b.co', 'password': 'clave123'})
        with pytest.raises(DuplicateRecordError):
            repo.create_user({'email': 'A@B.co', 'password': 'otra123'})

    def test_inactive_user_cannot_login(self, db):
        repo = UsersRepository(db)
        user = repo.create_user({'email': 'a@b.co', 'password': 'clave123'})
        repo.set_active(user['id'], False)
        assert repo.authenticate('a@b.co', 'clave123') is None

    def test_update_role(self, db):
        repo = UsersRepository(db)
        user = repo.create_user({'email': 'a@b.co', 'password': 'clave123'})
        assert repo.update_role(user['id'], 'TECHNICIAN')['role'] == 'technician'


@pytest.mark.integration
class TestBusinessProfileRepository:
    """Tests for the business profile"""

    def test_seeded_profile(self, db):
        profile = BusinessProfileRepository(db).get_profile()
        assert profile['name'] == 'ServiTech Pro'
        assert [m['name'] for m in profile['payment_methods']] == ['Efectivo', 'Bancolombia', 'Nequi']

    def test_update(self, db):
        repo = BusinessProfileRepository(db)
        updated = repo.update_profile({'name': 'Taller Norte', 'phone': '6025550000', 'unknown': 'x'})
        assert updated['name'] == 'Taller Norte'
        assert updated['phone'] == '6025550000'
        assert 'unknown' not in updated
