"""
Tests for Excel exports and invoice PDFs
"""
import io
import pytest

import openpyxl

from services.export_service import export_to_excel, render_invoice_pdf


INVOICE = {
    'order': {
        'order_number': 'ORD-2024-0001',
        'status': 'COMPLETED',
        'completed_at': '2024-06-10T15:00:00',
        'technical_diagnosis': 'Termostato dañado <reemplazado>',
    },
    'client': {'full_name': 'María Fernanda López', 'national_id': '1144556677', 'phone': '3001234567'},
    'equipment': {'type': 'Nevera', 'brand': 'Samsung', 'model': 'RT38', 'serial_number': 'SN-1'},
    'items': [{'part': {'name': 'Termostato'}, 'quantity': 1, 'price_at_time': 35000, 'line_total': 35000}],
    'parts_subtotal': 35000,
    'labor_cost': 50000,
    'total': 85000,
    'business': {
        'name': 'ServiTech Pro',
        'tax_id': '900.123.456-7',
        'payment_methods': [
            {'name': 'Nequi', 'details': '300 999 8888', 'active': True},
            {'name': 'Daviplata', 'details': 'inactivo', 'active': False},
        ],
    },
}


@pytest.mark.unit
class TestExcelExport:
    """Tests for xlsx exports"""

    def test_header_row_is_styled(self):
        content = export_to_excel([{'Codigo': 'A1', 'Stock': 3}], 'Inventario')
        ws = openpyxl.load_workbook(io.BytesIO(content)).active

        assert ws.title == 'Inventario'
        assert [c.value for c in ws[1]] == ['Codigo', 'Stock']
        assert ws['A1'].font.bold is True
        assert ws['A1'].fill.start_color.rgb.endswith('1F4E79')
        assert ws['B2'].value == 3

    def test_column_order_and_missing_values(self):
        content = export_to_excel([{'b': 1}], 'Hoja', columns=['a', 'b'])
        ws = openpyxl.load_workbook(io.BytesIO(content)).active
        assert [c.value for c in ws[1]] == ['a', 'b']
        assert ws['A2'].value is None
        assert ws['B2'].value == 1

    def test_long_sheet_name_is_truncated(self):
        content = export_to_excel([], 'x' * 40, columns=['a'])
        assert openpyxl.load_workbook(io.BytesIO(content)).active.title == 'x' * 31

    def test_nested_values_are_stringified(self):
        content = export_to_excel([{'a': {'k': 1}}], 'Hoja')
        ws = openpyxl.load_workbook(io.BytesIO(content)).active
        assert ws['A2'].value == "{'k': 1}"


@pytest.mark.unit
class TestInvoicePdf:
    """Tests for the invoice PDF"""

    def test_renders_pdf(self):
        content = render_invoice_pdf(INVOICE)
        assert content.startswith(b'%PDF')
        assert len(content) > 1000

    def test_minimal_invoice(self):
        content = render_invoice_pdf({'order': {'order_number': 'ORD-2024-0002'}})
        assert content.startswith(b'%PDF')
