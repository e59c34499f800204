"""
Inventory Repository - Database access layer for spare parts and stock.
"""

import logging
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import or_, func

from database.models import Part
from services.exceptions import NotFoundError, DuplicateRecordError, InvalidInputError
from services.parsing import to_float, to_int

logger = logging.getLogger(__name__)

PART_FIELDS = ['code', 'name', 'description', 'location', 'stock_level',
               'min_stock', 'unit_cost', 'unit_price']


class InventoryRepository:
    """Repository for spare part database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, part_id: str) -> Part:
        part = self.session.query(Part).filter(Part.id == part_id).first()
        if not part:
            raise NotFoundError('Part', part_id)
        return part

    def list_parts(self, in_stock_only: bool = False, low_stock_only: bool = False,
                   search: str = None) -> List[Dict]:
        """List parts with optional filters."""
        query = self.session.query(Part)
        if in_stock_only:
            query = query.filter(Part.stock_level > 0)
        if low_stock_only:
            query = query.filter(Part.stock_level <= Part.min_stock)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Part.name.ilike(pattern), Part.code.ilike(pattern)))

        parts = query.order_by(Part.name).all()
        return [p.to_dict() for p in parts]

    def get_part(self, part_id: str) -> Dict:
        """Get a part by ID."""
        return self._get(part_id).to_dict()

    def find_by_code(self, code: str) -> Optional[Dict]:
        """
        Look up a scanned code.

        Tries an exact match first, then a loose match on any code
        containing the scanned text.
        """
        code = (code or '').strip()
        if not code:
            return None

        part = self.session.query(Part).filter(Part.code == code).first()
        if not part:
            part = self.session.query(Part).filter(Part.code.ilike(f"%{code}%")).first()
        if part:
            logger.info(f"Scanned code {code} matched part {part.id}")
        return part.to_dict() if part else None

    def search_parts(self, name: str, limit: int = 5) -> List[Dict]:
        """Search parts by name."""
        parts = self.session.query(Part).filter(
            Part.name.ilike(f"%{name}%")
        ).order_by(Part.name).limit(limit).all()
        return [p.to_dict() for p in parts]

    def create_part(self, data: Dict) -> Dict:
        """Create a new part. Name and code are required."""
        name = (data.get('name') or '').strip()
        code = (data.get('code') or '').strip()
        if not name or not code:
            raise InvalidInputError('Nombre y código son obligatorios')
        if self.session.query(Part).filter(Part.code == code).first():
            raise DuplicateRecordError(f"El código {code} ya existe", {'code': code})

        part = Part(
            code=code,
            name=name,
            description=data.get('description'),
            location=data.get('location'),
            stock_level=max(to_int(data.get('stock_level')), 0),
            min_stock=max(to_int(data.get('min_stock')), 0),
            unit_cost=to_float(data.get('unit_cost')),
            unit_price=to_float(data.get('unit_price'))
        )
        self.session.add(part)
        self.session.flush()
        logger.info(f"Created part: {part.id} ({code})")
        return part.to_dict()

    def update_part(self, part_id: str, data: Dict) -> Dict:
        """Update a part."""
        part = self._get(part_id)

        for key in ('code', 'name'):
            if key in data and not str(data[key] or '').strip():
                raise InvalidInputError('Nombre y código son obligatorios')

        new_code = data.get('code')
        if new_code and new_code != part.code:
            if self.session.query(Part).filter(Part.code == new_code).first():
                raise DuplicateRecordError(f"El código {new_code} ya existe", {'code': new_code})

        for key in PART_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key in ('stock_level', 'min_stock'):
                value = max(to_int(value), 0)
            elif key in ('unit_cost', 'unit_price'):
                value = to_float(value)
            setattr(part, key, value)

        self.session.flush()
        logger.info(f"Updated part: {part_id}")
        return part.to_dict()

    def set_stock(self, part_id: str, quantity: int) -> Dict:
        """Set the stock level to an absolute value."""
        part = self._get(part_id)
        part.stock_level = max(int(quantity), 0)
        self.session.flush()
        logger.info(f"Set stock for {part_id} to {part.stock_level}")
        return part.to_dict()

    def adjust_stock(self, part_id: str, adjustment: int) -> Dict:
        """Adjust stock by a delta; the level never drops below zero."""
        part = self._get(part_id)
        old_qty = part.stock_level or 0
        part.stock_level = max(old_qty + int(adjustment), 0)
        self.session.flush()
        logger.info(f"Adjusted stock for {part_id}: {old_qty} -> {part.stock_level}")
        return part.to_dict()

    def get_low_stock_parts(self) -> List[Dict]:
        """Get parts at or below their minimum stock."""
        return self.list_parts(low_stock_only=True)

    def count_low_stock(self) -> int:
        return self.session.query(func.count(Part.id)).filter(
            Part.stock_level <= Part.min_stock
        ).scalar() or 0

    def get_stock_value(self) -> Dict:
        """Total inventory value at cost and at sale price."""
        parts = self.session.query(Part).all()
        total_cost = sum((p.stock_level or 0) * (p.unit_cost or 0) for p in parts)
        total_retail = sum((p.stock_level or 0) * (p.unit_price or 0) for p in parts)
        return {
            'total_items': len(parts),
            'total_quantity': sum(p.stock_level or 0 for p in parts),
            'total_cost_value': total_cost,
            'total_retail_value': total_retail,
            'potential_profit': total_retail - total_cost
        }
