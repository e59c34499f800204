"""
Tests for spreadsheet import and the import template
"""
import io
import pytest
from unittest.mock import patch

import openpyxl

from database.models import Client, Equipment, ServiceOrder
from services.import_service import (
    ImportService, ImportFileError, TEMPLATE_COLUMNS, build_import_template, read_rows
)
from services.order_repository import OrderRepository


ORDER_HEADERS = ['Cedula', 'Nombre', 'Telefono', 'Tipo', 'Marca', 'Modelo', 'Serial',
                 'Falla', 'Fecha', 'Hora', 'Prioridad']


@pytest.mark.unit
class TestReadRows:
    """Tests for header alias matching"""

    def test_aliases_map_to_fields(self, make_workbook):
        content = make_workbook(['Identificacion', 'Nombre Completo', 'Serie', 'Problema'],
                                [[1144556677, 'Ana Ruiz', 'SN-1', 'No lava']])
        records = read_rows(content)
        assert records == [{'national_id': 1144556677, 'full_name': 'Ana Ruiz',
                            'serial_number': 'SN-1', 'reported_issue': 'No lava'}]

    def test_headers_are_case_insensitive(self, make_workbook):
        content = make_workbook(['  cedula ', 'NOMBRE'], [['1', 'Ana']])
        assert read_rows(content)[0] == {'national_id': '1', 'full_name': 'Ana'}

    def test_blank_rows_are_dropped(self, make_workbook):
        content = make_workbook(['Cedula', 'Nombre'], [['1', 'Ana'], [None, None], ['2', 'Luis']])
        assert len(read_rows(content)) == 2

    def test_unreadable_file(self):
        with pytest.raises(ImportFileError):
            read_rows(b'not a workbook')


@pytest.mark.integration
class TestImportOrders:
    """Tests for the bulk order import"""

    def test_imports_rows_with_suffix(self, db, make_workbook):
        content = make_workbook(ORDER_HEADERS, [
            ['1144556677', 'Ana Ruiz', '3001112233', 'Lavadora', 'LG', 'WT17', 'SN-LG-1',
             'No centrifuga', '2024-06-10', '08:30', 'URGENT'],
            ['2233445566', 'Luis Mora', '3104445566', None, None, None, None,
             None, '10/06/2024', None, 'rapido'],
        ])

        summary = ImportService(db).import_orders(content)

        assert summary['imported'] == 2
        assert summary['failed'] == 0
        numbers = [r['order_number'] for r in summary['rows']]
        assert all(n.endswith('-IMP') for n in numbers)

        orders = OrderRepository(db).list_orders()
        by_client = {o['client']['full_name']: o for o in orders}
        assert by_client['Ana Ruiz']['priority'] == 'URGENT'
        assert by_client['Ana Ruiz']['scheduled_at'] == '2024-06-10T08:30:00'
        assert by_client['Luis Mora']['priority'] == 'NORMAL'
        assert by_client['Luis Mora']['reported_issue'] == 'Revisión General'
        assert by_client['Luis Mora']['equipment']['type'] == 'Otros'
        assert by_client['Luis Mora']['scheduled_at'] == '2024-06-10T09:00:00'

    def test_rows_without_id_or_name_are_skipped(self, db, make_workbook):
        content = make_workbook(ORDER_HEADERS, [
            [None, 'Sin Cedula', None, None, None, None, None, None, None, None, None],
            ['55', None, None, None, None, None, None, None, None, None, None],
        ])
        summary = ImportService(db).import_orders(content)
        assert summary['skipped'] == 2
        assert summary['imported'] == 0
        assert [r['row'] for r in summary['rows']] == [2, 3]
        assert db.query(Client).count() == 0

    def test_existing_client_is_updated_not_duplicated(self, db, make_workbook):
        content = make_workbook(ORDER_HEADERS, [
            ['1144556677', 'Ana Ruiz', '3001112233', 'Nevera', 'LG', 'X', 'SN-1', 'Ruido', None, None, None],
            ['1144556677', 'Ana Ruiz', '3009998877', 'Nevera', 'LG', 'X', 'SN-1', 'Ruido', None, None, None],
        ])
        ImportService(db).import_orders(content)
        assert db.query(Client).count() == 1
        assert db.query(Client).first().phone == '3009998877'
        assert db.query(Equipment).count() == 1
        assert db.query(ServiceOrder).count() == 2

    def test_failing_row_does_not_stop_batch(self, db, make_workbook):
        content = make_workbook(ORDER_HEADERS, [
            ['1', 'Ana', None, None, None, None, None, 'Ruido', None, None, None],
            ['2', 'Luis', None, None, None, None, None, 'BOOM', None, None, None],
            ['3', 'Eva', None, None, None, None, None, 'Fuga', None, None, None],
        ])
        original = OrderRepository.create_order

        def flaky_create(self, data, number_suffix=''):
            if data['reported_issue'] == 'BOOM':
                raise RuntimeError('disk full')
            return original(self, data, number_suffix)

        with patch.object(OrderRepository, 'create_order', flaky_create):
            summary = ImportService(db).import_orders(content)

        assert summary['imported'] == 2
        assert summary['failed'] == 1
        assert summary['rows'][1] == {'row': 3, 'status': 'error', 'error': 'disk full'}
        # The failed row's client was rolled back with its savepoint
        names = sorted(c.full_name for c in db.query(Client).all())
        assert names == ['Ana', 'Eva']


@pytest.mark.integration
class TestImportClients:
    """Tests for the client-only import"""

    def test_creates_and_updates(self, db, make_workbook):
        service = ImportService(db)
        service.import_clients(make_workbook(['Cedula', 'Nombre'], [['10', 'Ana']]))

        summary = service.import_clients(make_workbook(
            ['Cedula', 'Nombre', 'Email'],
            [['10', 'Ana María', 'ana@example.com'], ['20', 'Luis', None], [None, 'Nadie', None]]
        ))

        assert summary == {'created': 1, 'updated': 1, 'skipped': 1, 'total': 2}
        assert db.query(Client).filter(Client.national_id == '10').first().full_name == 'Ana María'

    def test_no_valid_rows(self, db, make_workbook):
        with pytest.raises(ImportFileError):
            ImportService(db).import_clients(make_workbook(['Cedula', 'Nombre'], [[None, 'Ana']]))


@pytest.mark.unit
class TestImportTemplate:
    """Tests for the downloadable template"""

    def test_template_headers_and_examples(self):
        wb = openpyxl.load_workbook(io.BytesIO(build_import_template()))
        ws = wb.active
        headers = [c.value for c in ws[1]]
        assert headers == TEMPLATE_COLUMNS
        assert ws.max_row == 3

    def test_template_reimports_cleanly(self):
        records = read_rows(build_import_template())
        assert [r['full_name'] for r in records] == ['Cliente Ejemplo', 'Empresa ABC']
