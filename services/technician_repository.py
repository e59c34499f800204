"""
Technician Repository - Database access layer for field technicians.
"""

import logging
from typing import List, Dict
from sqlalchemy.orm import Session

from database.models import Technician
from services.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class TechnicianRepository:
    """Repository for technician database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, tech_id: str) -> Technician:
        tech = self.session.query(Technician).filter(Technician.id == tech_id).first()
        if not tech:
            raise NotFoundError('Technician', tech_id)
        return tech

    def list_technicians(self, active_only: bool = False) -> List[Dict]:
        query = self.session.query(Technician)
        if active_only:
            query = query.filter(Technician.is_active == True)  # noqa: E712
        return [t.to_dict() for t in query.order_by(Technician.full_name).all()]

    def get_technician(self, tech_id: str) -> Dict:
        return self._get(tech_id).to_dict()

    def create_technician(self, data: Dict) -> Dict:
        tech = Technician(
            full_name=data.get('full_name', '').strip(),
            specialty=data.get('specialty', ''),
            phone=data.get('phone', ''),
            commission_rate=float(data.get('commission_rate') or 0),
            is_active=data.get('is_active', True)
        )
        self.session.add(tech)
        self.session.flush()
        logger.info(f"Created technician: {tech.id}")
        return tech.to_dict()

    def update_technician(self, tech_id: str, data: Dict) -> Dict:
        tech = self._get(tech_id)
        for key in ['full_name', 'specialty', 'phone', 'commission_rate', 'is_active']:
            if key in data:
                setattr(tech, key, data[key])
        self.session.flush()
        logger.info(f"Updated technician: {tech_id}")
        return tech.to_dict()

    def set_active(self, tech_id: str, is_active: bool) -> Dict:
        return self.update_technician(tech_id, {'is_active': bool(is_active)})

    def delete_technician(self, tech_id: str) -> bool:
        tech = self._get(tech_id)
        # Technicians with assigned orders are deactivated instead of removed
        if tech.service_orders:
            tech.is_active = False
            self.session.flush()
            logger.info(f"Deactivated technician with orders: {tech_id}")
            return False
        self.session.delete(tech)
        self.session.flush()
        logger.info(f"Deleted technician: {tech_id}")
        return True
