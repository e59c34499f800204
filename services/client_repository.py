"""
Client Repository - Database access layer for clients and their equipment.
"""

import logging
import uuid
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import Client, ClientCategory, Equipment, ServiceOrder
from services.exceptions import NotFoundError, DuplicateRecordError
from services.parsing import parse_date, to_float

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ['national_id', 'full_name', 'phone', 'email', 'address',
                 'latitude', 'longitude', 'category']


def _category(value):
    if not value:
        return ClientCategory.REGULAR.value
    try:
        return ClientCategory.parse(value).value
    except ValueError:
        return ClientCategory.REGULAR.value


class ClientRepository:
    """Repository for client database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, client_id: str) -> Client:
        client = self.session.query(Client).filter(Client.id == client_id).first()
        if not client:
            raise NotFoundError('Client', client_id)
        return client

    def list_clients(self, search: str = None) -> List[Dict]:
        """List clients with their most recent service date and appliance."""
        query = self.session.query(Client)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Client.full_name.ilike(pattern),
                Client.national_id.ilike(pattern),
                Client.phone.ilike(pattern)
            ))

        results = []
        for client in query.order_by(Client.full_name).all():
            data = client.to_dict()
            last = self._last_service(client.id)
            data['last_service_date'] = last.scheduled_at.isoformat() if last and last.scheduled_at else None
            data['last_appliance'] = last.equipment.type if last and last.equipment else None
            results.append(data)
        return results

    def _last_service(self, client_id: str) -> Optional[ServiceOrder]:
        return self.session.query(ServiceOrder).filter(
            ServiceOrder.client_id == client_id,
            ServiceOrder.scheduled_at.isnot(None)
        ).order_by(ServiceOrder.scheduled_at.desc()).first()

    def get_client(self, client_id: str) -> Dict:
        """Get a client by ID."""
        return self._get(client_id).to_dict()

    def get_by_national_id(self, national_id: str) -> Optional[Dict]:
        """Get a client by national ID, or None."""
        client = self.session.query(Client).filter(
            Client.national_id == str(national_id).strip()
        ).first()
        return client.to_dict() if client else None

    def create_client(self, data: Dict) -> Dict:
        """Create a new client. Fails if the national ID is already registered."""
        national_id = str(data.get('national_id', '')).strip()
        if self.session.query(Client).filter(Client.national_id == national_id).first():
            raise DuplicateRecordError(f"El cliente con ID {national_id} ya existe.",
                                       {'national_id': national_id})

        client = Client(
            national_id=national_id,
            full_name=str(data.get('full_name', '')).strip(),
            phone=data.get('phone') or '',
            email=data.get('email') or None,
            address=data.get('address') or '',
            latitude=to_float(data.get('latitude'), None),
            longitude=to_float(data.get('longitude'), None),
            category=_category(data.get('category'))
        )
        self.session.add(client)
        self.session.flush()
        logger.info(f"Created client: {client.id}")
        return client.to_dict()

    def upsert_client(self, data: Dict) -> Dict:
        """Insert a client or update the existing one sharing its national ID."""
        national_id = str(data.get('national_id', '')).strip()
        client = self.session.query(Client).filter(Client.national_id == national_id).first()
        if not client:
            return self.create_client(data)

        for key in ['full_name', 'phone', 'email', 'address', 'latitude', 'longitude']:
            if data.get(key) not in (None, ''):
                setattr(client, key, data[key])
        if data.get('category'):
            client.category = _category(data['category'])
        self.session.flush()
        logger.info(f"Upserted client: {client.id}")
        return client.to_dict()

    def update_client(self, client_id: str, data: Dict) -> Dict:
        """Update a client. Only non-empty fields are written."""
        client = self._get(client_id)

        new_nid = data.get('national_id')
        if new_nid and new_nid != client.national_id:
            if self.session.query(Client).filter(Client.national_id == new_nid).first():
                raise DuplicateRecordError(f"El cliente con ID {new_nid} ya existe.",
                                           {'national_id': new_nid})

        for key in CLIENT_FIELDS:
            if data.get(key):
                setattr(client, key, _category(data[key]) if key == 'category' else data[key])
        self.session.flush()
        logger.info(f"Updated client: {client_id}")
        return client.to_dict()

    def get_profile(self, client_id: str) -> Dict:
        """Client with equipment and service history (newest first)."""
        client = self._get(client_id)
        orders = self.session.query(ServiceOrder).filter(
            ServiceOrder.client_id == client_id
        ).order_by(ServiceOrder.created_at.desc()).all()

        data = client.to_dict()
        data['equipment'] = [e.to_dict() for e in client.equipment]
        data['history'] = [o.to_dict() for o in orders]
        return data


class EquipmentRepository:
    """Repository for client equipment."""

    def __init__(self, session: Session):
        self.session = session

    def get_equipment(self, equipment_id: str) -> Dict:
        equipment = self.session.query(Equipment).filter(Equipment.id == equipment_id).first()
        if not equipment:
            raise NotFoundError('Equipment', equipment_id)
        return equipment.to_dict()

    def list_by_client(self, client_id: str) -> List[Dict]:
        items = self.session.query(Equipment).filter(
            Equipment.client_id == client_id
        ).order_by(Equipment.created_at).all()
        return [e.to_dict() for e in items]

    def create_equipment(self, client_id: str, data: Dict) -> Dict:
        """Register an appliance for a client."""
        if not self.session.query(Client).filter(Client.id == client_id).first():
            raise NotFoundError('Client', client_id)

        serial = data.get('serial_number') or None
        if serial and self.session.query(Equipment).filter(Equipment.serial_number == serial).first():
            raise DuplicateRecordError(f"El serial {serial} ya está registrado.",
                                       {'serial_number': serial})

        equipment = Equipment(
            client_id=client_id,
            type=data.get('type') or 'Otros',
            brand=data.get('brand') or 'Genérica',
            model=data.get('model') or 'Estandar',
            serial_number=serial,
            purchase_date=parse_date(data.get('purchase_date')),
            specs=data.get('specs') or {}
        )
        self.session.add(equipment)
        self.session.flush()
        logger.info(f"Created equipment {equipment.id} for client {client_id}")
        return equipment.to_dict()

    def upsert_equipment(self, client_id: str, data: Dict) -> Dict:
        """Insert equipment or update the row sharing its serial number."""
        serial = data.get('serial_number') or f"SN-AUTO-{uuid.uuid4().hex[:5]}"
        equipment = self.session.query(Equipment).filter(Equipment.serial_number == serial).first()
        if not equipment:
            return self.create_equipment(client_id, dict(data, serial_number=serial))

        equipment.client_id = client_id
        for key in ['type', 'brand', 'model']:
            if data.get(key):
                setattr(equipment, key, data[key])
        self.session.flush()
        return equipment.to_dict()
