"""
Import Service - bulk load clients and service orders from Excel.

The first worksheet is read with its first row as headers. Header names
are matched against a list of aliases so sheets exported from other tools
still load. Each row runs inside its own SAVEPOINT: a failing row is
reported and the rest of the batch continues.
"""

import io
import logging
from datetime import datetime
from typing import Dict, List, Any, Optional

import openpyxl
from sqlalchemy.orm import Session

from database.models import OrderStatus, OrderPriority, ServiceType
from services.client_repository import ClientRepository, EquipmentRepository
from services.export_service import export_to_excel
from services.order_repository import OrderRepository
from services.parsing import combine_schedule, to_bool

logger = logging.getLogger(__name__)

IMPORT_SUFFIX = '-IMP'

COLUMN_ALIASES = {
    'national_id': ['Cedula', 'ID', 'Identificacion', 'Cedula/DNI'],
    'full_name': ['Nombre', 'Nombre Completo', 'Name'],
    'phone': ['Telefono'],
    'address': ['Direccion'],
    'email': ['Email', 'Correo'],
    'equipment_type': ['Tipo', 'Articulo', 'Type'],
    'brand': ['Marca', 'Brand'],
    'model': ['Modelo', 'Model'],
    'serial_number': ['Serial', 'Serie', 'Serial Number'],
    'reported_issue': ['Falla', 'Problema', 'Reported Issue'],
    'date': ['Fecha'],
    'time': ['Hora'],
    'priority': ['Prioridad'],
    'service_type': ['Tipo Servicio'],
    'is_warranty': ['Garantia'],
}

TEMPLATE_COLUMNS = ['Cedula', 'Nombre', 'Telefono', 'Direccion', 'Tipo', 'Marca', 'Modelo',
                    'Serial', 'Falla', 'Fecha', 'Hora', 'Prioridad', 'Tipo Servicio', 'Garantia']


class ImportFileError(Exception):
    """Raised when an uploaded workbook cannot be used at all."""
    pass


def _normalize(header) -> str:
    return str(header or '').strip().lower()


def _text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        # Numeric cells such as ID numbers come back as floats
        value = int(value)
    return str(value).strip()


def read_rows(file_bytes: bytes) -> List[Dict[str, Any]]:
    """
    Read the first worksheet into dicts keyed by canonical field name.

    Raises:
        ImportFileError: If the file is not a readable workbook
    """
    try:
        wb = openpyxl.load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except Exception as e:
        raise ImportFileError(f"No se pudo leer el archivo: {e}")

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        headers = next(rows, None)
        if not headers:
            return []

        lookup = {}
        for field, aliases in COLUMN_ALIASES.items():
            wanted = [_normalize(a) for a in aliases]
            for idx, header in enumerate(headers):
                if _normalize(header) in wanted:
                    lookup[field] = idx
                    break

        records = []
        for values in rows:
            if values is None or all(v in (None, '') for v in values):
                continue
            record = {}
            for field, idx in lookup.items():
                record[field] = values[idx] if idx < len(values) else None
            records.append(record)
        return records
    finally:
        wb.close()


def _coerce(enum_cls, value, default):
    try:
        return enum_cls.parse(_text(value)).value
    except ValueError:
        return default.value


class ImportService:
    """Spreadsheet import into clients, equipment and orders."""

    def __init__(self, session: Session):
        self.session = session
        self.clients = ClientRepository(session)
        self.equipment = EquipmentRepository(session)
        self.orders = OrderRepository(session)

    def _client_payload(self, record: Dict) -> Dict:
        return {
            'national_id': _text(record.get('national_id')),
            'full_name': _text(record.get('full_name')),
            'phone': _text(record.get('phone')),
            'address': _text(record.get('address')),
            'email': _text(record.get('email')) or None,
        }

    def import_orders(self, file_bytes: bytes) -> Dict[str, Any]:
        """
        Import one service order per row.

        Returns:
            {'imported', 'skipped', 'failed', 'rows': [...]} where row numbers
            match the spreadsheet (header is row 1)
        """
        records = read_rows(file_bytes)
        summary = {'imported': 0, 'skipped': 0, 'failed': 0, 'rows': []}

        for row_number, record in enumerate(records, 2):
            client_data = self._client_payload(record)
            if not client_data['national_id'] or not client_data['full_name']:
                summary['skipped'] += 1
                summary['rows'].append({'row': row_number, 'status': 'skipped',
                                        'error': 'Falta Cedula o Nombre'})
                continue

            try:
                with self.session.begin_nested():
                    client = self.clients.upsert_client(client_data)
                    equipment = self.equipment.upsert_equipment(client['id'], {
                        'type': _text(record.get('equipment_type')) or 'Otros',
                        'brand': _text(record.get('brand')) or 'Genérica',
                        'model': _text(record.get('model')) or 'Estandar',
                        'serial_number': _text(record.get('serial_number')),
                    })
                    order = self.orders.create_order({
                        'client_id': client['id'],
                        'equipment_id': equipment['id'],
                        'status': OrderStatus.PENDING.value,
                        'reported_issue': _text(record.get('reported_issue')) or 'Revisión General',
                        'service_type': _coerce(ServiceType, record.get('service_type'), ServiceType.REPAIR),
                        'priority': _coerce(OrderPriority, record.get('priority'), OrderPriority.NORMAL),
                        'is_warranty': to_bool(record.get('is_warranty')),
                        'scheduled_at': combine_schedule(record.get('date'), record.get('time')),
                    }, number_suffix=IMPORT_SUFFIX)
                    self.orders.add_history(order['id'], None, OrderStatus.PENDING.value,
                                            'Importado desde Excel')
            except Exception as e:
                logger.warning(f"Import row {row_number} failed: {e}")
                summary['failed'] += 1
                summary['rows'].append({'row': row_number, 'status': 'error', 'error': str(e)})
                continue

            summary['imported'] += 1
            summary['rows'].append({'row': row_number, 'status': 'success',
                                    'order_number': order['order_number']})

        logger.info(f"Order import: {summary['imported']} imported, "
                    f"{summary['skipped']} skipped, {summary['failed']} failed")
        return summary

    def import_clients(self, file_bytes: bytes) -> Dict[str, Any]:
        """
        Upsert clients from a sheet, matching on national ID.

        Raises:
            ImportFileError: If no row has both a national ID and a name
        """
        records = read_rows(file_bytes)
        valid = [self._client_payload(r) for r in records]
        valid = [c for c in valid if c['national_id'] and c['full_name']]
        if not valid:
            raise ImportFileError('El archivo no contiene clientes válidos (Cedula y Nombre)')

        created = updated = 0
        for data in valid:
            existed = self.clients.get_by_national_id(data['national_id']) is not None
            self.clients.upsert_client(data)
            if existed:
                updated += 1
            else:
                created += 1

        logger.info(f"Client import: {created} created, {updated} updated")
        return {'created': created, 'updated': updated,
                'skipped': len(records) - len(valid), 'total': len(valid)}


def build_import_template(today: Optional[datetime] = None) -> bytes:
    """Workbook with the expected headers and two example rows."""
    day = (today or datetime.utcnow()).strftime('%Y-%m-%d')
    rows = [
        {
            'Cedula': '12345678', 'Nombre': 'Cliente Ejemplo', 'Telefono': '3001234567',
            'Direccion': 'Calle 10 # 5-20, Cali', 'Tipo': 'Nevera', 'Marca': 'Samsung',
            'Modelo': 'RT38', 'Serial': 'SN-SAMS-9988', 'Falla': 'No enfría la parte inferior',
            'Fecha': day, 'Hora': '10:00', 'Prioridad': 'NORMAL', 'Tipo Servicio': 'REPAIR',
            'Garantia': 'NO',
        },
        {
            'Cedula': '87654321', 'Nombre': 'Empresa ABC', 'Telefono': '3109876543',
            'Direccion': 'Av. Siempre Viva 123', 'Tipo': 'Aire Acondicionado', 'Marca': 'LG',
            'Modelo': 'Dual Inverter', 'Serial': 'SN-LG-5544',
            'Falla': 'Mantenimiento preventivo anual', 'Fecha': day, 'Hora': '14:30',
            'Prioridad': 'URGENT', 'Tipo Servicio': 'MAINTENANCE', 'Garantia': 'SI',
        },
    ]
    return export_to_excel(rows, 'Plantilla ServiTech', columns=TEMPLATE_COLUMNS)
