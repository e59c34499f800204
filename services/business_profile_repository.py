"""
Business Profile Repository - the company identity printed on invoices.
"""

import logging
from typing import Dict
from sqlalchemy.orm import Session

from database.models import BusinessProfile
from database.seed import seed_business_profile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ['name', 'tax_id', 'address', 'phone', 'email', 'website', 'payment_methods']


class BusinessProfileRepository:
    """Repository for the single business profile row."""

    def __init__(self, session: Session):
        self.session = session

    def _get_or_seed(self) -> BusinessProfile:
        profile = self.session.query(BusinessProfile).first()
        if not profile:
            profile = seed_business_profile(self.session)
        return profile

    def get_profile(self) -> Dict:
        return self._get_or_seed().to_dict()

    def update_profile(self, data: Dict) -> Dict:
        profile = self._get_or_seed()
        for key in PROFILE_FIELDS:
            if key in data:
                setattr(profile, key, data[key])
        self.session.flush()
        logger.info("Updated business profile")
        return profile.to_dict()
