"""
Database seeding for ServiTech Pro.
Creates the default business profile and admin user if the database is empty.
"""

import logging
import os
from werkzeug.security import generate_password_hash
from database.models import BusinessProfile, User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = os.environ.get('DEFAULT_ADMIN_EMAIL', 'admin@servitechpro.com')
DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'admin123')

DEFAULT_BUSINESS_PROFILE = {
    'name': 'ServiTech Pro',
    'tax_id': '900.123.456-7',
    'address': 'Calle 100 #15-20, Oficina 302',
    'phone': '300 999 8888',
    'email': 'contacto@servitechpro.com',
    'payment_methods': [
        {'id': 'pm1', 'name': 'Efectivo', 'details': 'Pago directo', 'active': True, 'icon': 'payments'},
        {'id': 'pm2', 'name': 'Bancolombia', 'details': 'Ahorros 032-123456-99', 'active': True, 'icon': 'account_balance'},
        {'id': 'pm3', 'name': 'Nequi', 'details': '300 999 8888', 'active': True, 'icon': 'smartphone'},
    ],
}


def seed_business_profile(session, company_name=None):
    """Create the business profile if none exists."""
    profile = session.query(BusinessProfile).first()
    if profile:
        return profile

    data = dict(DEFAULT_BUSINESS_PROFILE)
    if company_name:
        data['name'] = company_name
    profile = BusinessProfile(**data)
    session.add(profile)
    session.flush()
    logger.info(f"Created default business profile: {profile.name}")
    return profile


def seed_default_admin(session):
    """Create default admin user if none exists."""
    admin = session.query(User).filter_by(role=UserRole.ADMIN.value).first()
    if admin:
        return admin

    admin = User(
        email=DEFAULT_ADMIN_EMAIL,
        full_name='Administrador',
        password_hash=generate_password_hash(DEFAULT_ADMIN_PASSWORD, method='pbkdf2:sha256'),
        role=UserRole.ADMIN.value,
        is_active=True
    )
    session.add(admin)
    session.flush()
    logger.warning(f"Created default admin user {DEFAULT_ADMIN_EMAIL} - change its password")
    return admin


def seed_all(session, company_name=None):
    """Run every seed step inside the given session."""
    seed_business_profile(session, company_name)
    seed_default_admin(session)
